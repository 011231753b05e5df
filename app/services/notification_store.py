"""
Async adapters over the SQLite store for notifications and registered devices.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

from app.clients.sqlite_store import SQLiteStore
from app.schemas import (
    DeliveryLink,
    Device,
    DeviceNotification,
    DeviceRecord,
    Notification,
    NotificationDraft,
)


class NotificationStore:
    """Persist notifications and the per-device links created at fan-out."""

    def __init__(self, store: SQLiteStore) -> None:
        self._store = store

    async def persist_notification(self, draft: NotificationDraft) -> Notification:
        """Insert the notification row and return it with its assigned id."""
        record = await asyncio.to_thread(
            self._store.insert_notification,
            type_=draft.type,
            title=draft.title,
            body=draft.body,
            data=dict(draft.data),
        )
        return Notification.model_validate(record)

    async def link_device(
        self, notification_id: str, device_internal_id: str
    ) -> DeliveryLink:
        """Record that ``notification_id`` was targeted at one device."""
        record = await asyncio.to_thread(
            self._store.insert_device_notification,
            device_pk=device_internal_id,
            notification_id=notification_id,
        )
        return DeliveryLink.model_validate(record)

    async def list_for_device(self, device_id: str) -> Optional[List[DeviceNotification]]:
        """Return the device's notifications newest first, or None if unknown."""
        device = await asyncio.to_thread(self._store.get_device, device_id=device_id)
        if device is None:
            return None
        rows = await asyncio.to_thread(
            self._store.list_device_notifications, device_pk=device["id"]
        )
        return [DeviceNotification.model_validate(row) for row in rows]


class DeviceDirectory:
    """Read and register devices that should receive pushes."""

    def __init__(self, store: SQLiteStore) -> None:
        self._store = store

    async def list_devices(self) -> List[DeviceRecord]:
        rows = await asyncio.to_thread(self._store.list_devices)
        return [
            DeviceRecord(internal_id=row["id"], push_token=row["fcm_token"])
            for row in rows
        ]

    async def register(
        self, device_id: str, fcm_token: str, platform: Optional[str] = None
    ) -> Device:
        record = await asyncio.to_thread(
            self._store.upsert_device,
            device_id=device_id,
            fcm_token=fcm_token,
            platform=platform or "unknown",
        )
        return Device.model_validate(record)


__all__ = ["DeviceDirectory", "NotificationStore"]
