"""
Turn raw media-platform webhooks into notification drafts.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from app.core.errors import MalformedEventError
from app.schemas import IgnoredEvent, NotificationDraft

ALLOWED_EVENTS = frozenset(
    {
        "conversions_complete",
        "channel_active",
        "channel_idle",
        "channel_created",
        "media_available",
        "media_created",
        "media_deleted",
        "media_reuploaded",
        "media_updated",
        "thumbnail_created",
        "thumbnail_deleted",
        "track_created",
        "track_deleted",
    }
)

CREATED_EVENT = "media_created"
CREATED_TITLE = "New Video Uploaded"
UPDATED_TITLE = "Video Updated"
DEFAULT_MEDIA_TITLE = "New Media"


class EventClassifier:
    """Validate webhook bodies against the event allow-list."""

    def __init__(self, allowed_events: frozenset[str] = ALLOWED_EVENTS) -> None:
        self._allowed = allowed_events

    def classify(self, raw: Any) -> NotificationDraft | IgnoredEvent:
        """Return a draft for recognized events or ``IgnoredEvent`` otherwise."""
        event = self._coerce_mapping(raw)

        kind = event.get("event")
        if kind is None:
            raise MalformedEventError("Webhook body is missing the 'event' field.")
        if not isinstance(kind, str):
            raise MalformedEventError("Webhook 'event' field must be a string.")

        if kind not in self._allowed:
            return IgnoredEvent(event=kind)

        media = event.get("data")
        if not isinstance(media, Mapping):
            raise MalformedEventError(f"Event '{kind}' is missing its 'data' object.")

        media_id = media.get("media_id")
        if media_id in (None, ""):
            raise MalformedEventError(f"Event '{kind}' is missing 'data.media_id'.")

        return NotificationDraft(
            event=kind,
            title=CREATED_TITLE if kind == CREATED_EVENT else UPDATED_TITLE,
            body=str(media.get("title") or DEFAULT_MEDIA_TITLE),
            data={"type": "media", "id": str(media_id)},
        )

    @staticmethod
    def _coerce_mapping(raw: Any) -> Mapping[str, Any]:
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise MalformedEventError("Webhook body is not valid UTF-8.") from exc
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError as exc:
                raise MalformedEventError("Webhook body is not valid JSON.") from exc
        if not isinstance(raw, Mapping):
            raise MalformedEventError("Webhook body must be a JSON object.")
        return raw


__all__ = ["ALLOWED_EVENTS", "EventClassifier"]
