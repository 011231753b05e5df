"""SQLite-backed store for devices, notifications and their delivery links."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional
from uuid import uuid4

from app.core.errors import PersistenceError

NOTIFICATION_TYPES = ("media",)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteStore:
    """Relational store mirroring the devices / notifications / links schema."""

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Unable to open database: {exc}") from exc
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            raise PersistenceError(str(exc)) from exc
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        allowed_types = ", ".join(f"'{value}'" for value in NOTIFICATION_TYPES)
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS devices (
                    id TEXT PRIMARY KEY,
                    device_id TEXT NOT NULL UNIQUE,
                    fcm_token TEXT NOT NULL,
                    platform TEXT NOT NULL DEFAULT 'unknown',
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS notifications (
                    id TEXT PRIMARY KEY,
                    type TEXT NOT NULL CHECK (type IN ({allowed_types})),
                    title TEXT NOT NULL,
                    body TEXT NOT NULL,
                    data TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS device_notifications (
                    id TEXT PRIMARY KEY,
                    device_id TEXT NOT NULL REFERENCES devices(id),
                    notification_id TEXT NOT NULL REFERENCES notifications(id),
                    read INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    UNIQUE (device_id, notification_id)
                )
                """
            )

    def upsert_device(
        self, *, device_id: str, fcm_token: str, platform: str = "unknown"
    ) -> Dict[str, Any]:
        """Insert or refresh a device keyed by its caller supplied identifier."""
        if not device_id or not fcm_token:
            raise ValueError("device_id and fcm_token are required")

        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO devices (id, device_id, fcm_token, platform, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(device_id) DO UPDATE SET
                    fcm_token = excluded.fcm_token,
                    platform = excluded.platform,
                    updated_at = excluded.updated_at
                """,
                (uuid4().hex, device_id, fcm_token, platform, _now_iso()),
            )
            row = conn.execute(
                "SELECT * FROM devices WHERE device_id = ?", (device_id,)
            ).fetchone()
        return dict(row)

    def get_device(self, *, device_id: str) -> Optional[Dict[str, Any]]:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM devices WHERE device_id = ?", (device_id,)
            ).fetchone()
        if not row:
            return None
        return dict(row)

    def list_devices(self) -> List[Dict[str, Any]]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT id, fcm_token FROM devices").fetchall()
        return [dict(row) for row in rows]

    def insert_notification(
        self, *, type_: str, title: str, body: str, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        record = {
            "id": uuid4().hex,
            "type": type_,
            "title": title,
            "body": body,
            "data": json.dumps(data),
            "created_at": _now_iso(),
        }
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO notifications (id, type, title, body, data, created_at)
                VALUES (:id, :type, :title, :body, :data, :created_at)
                """,
                record,
            )
        record["data"] = data
        return record

    def insert_device_notification(
        self, *, device_pk: str, notification_id: str
    ) -> Dict[str, Any]:
        record = {
            "id": uuid4().hex,
            "device_id": device_pk,
            "notification_id": notification_id,
            "read": 0,
            "created_at": _now_iso(),
        }
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO device_notifications
                    (id, device_id, notification_id, read, created_at)
                VALUES (:id, :device_id, :notification_id, :read, :created_at)
                """,
                record,
            )
        record["read"] = False
        return record

    def list_device_notifications(self, *, device_pk: str) -> List[Dict[str, Any]]:
        """Return links for a device joined with their notification, newest first."""
        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT
                    dn.id AS id,
                    dn.read AS read,
                    dn.created_at AS created_at,
                    n.id AS notification_id,
                    n.type AS notification_type,
                    n.title AS notification_title,
                    n.body AS notification_body,
                    n.data AS notification_data,
                    n.created_at AS notification_created_at
                FROM device_notifications AS dn
                JOIN notifications AS n ON n.id = dn.notification_id
                WHERE dn.device_id = ?
                ORDER BY dn.created_at DESC, dn.rowid DESC
                """,
                (device_pk,),
            ).fetchall()

        return [
            {
                "id": row["id"],
                "read": bool(row["read"]),
                "created_at": row["created_at"],
                "notification": {
                    "id": row["notification_id"],
                    "type": row["notification_type"],
                    "title": row["notification_title"],
                    "body": row["notification_body"],
                    "data": json.loads(row["notification_data"]),
                    "created_at": row["notification_created_at"],
                },
            }
            for row in rows
        ]


__all__ = ["NOTIFICATION_TYPES", "SQLiteStore"]
