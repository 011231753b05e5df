"""
Webhook-to-push pipeline: classify, persist, link and fan out.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from app.schemas import DeliveryReport, IgnoredEvent, Notification
from app.services.event_classifier import EventClassifier
from app.services.fanout import FanoutDispatcher
from app.services.notification_store import DeviceDirectory, NotificationStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PipelineResult:
    """Outcome of handling one webhook event."""

    ignored: bool
    event: str
    notification: Optional[Notification] = None
    links_created: int = 0
    links_failed: int = 0
    targeted: int = 0
    delivery: Optional[DeliveryReport] = None


class NotificationPipeline:
    """Coordinate one webhook run from raw body to delivery report."""

    def __init__(
        self,
        *,
        classifier: EventClassifier,
        notification_store: NotificationStore,
        device_directory: DeviceDirectory,
        dispatcher: FanoutDispatcher,
    ) -> None:
        self._classifier = classifier
        self._notifications = notification_store
        self._devices = device_directory
        self._dispatcher = dispatcher

    async def handle_event(self, raw: Any) -> PipelineResult:
        """
        Run the pipeline for one webhook body.

        Raises ``MalformedEventError`` before any side effect, and
        ``PersistenceError``, ``CredentialError`` or ``AuthError`` at the
        stage where they occur. Rows written before a failure are kept.
        """
        outcome = self._classifier.classify(raw)
        if isinstance(outcome, IgnoredEvent):
            logger.info("Ignoring webhook event", extra={"event_kind": outcome.event})
            return PipelineResult(ignored=True, event=outcome.event)

        draft = outcome
        notification = await self._notifications.persist_notification(draft)
        logger.info(
            "Stored notification %s for %s",
            notification.id,
            draft.event,
            extra={"notification_id": notification.id},
        )

        devices = await self._devices.list_devices()

        link_results = await asyncio.gather(
            *(
                self._notifications.link_device(notification.id, device.internal_id)
                for device in devices
            ),
            return_exceptions=True,
        )
        links_failed = 0
        for device, result in zip(devices, link_results):
            if isinstance(result, BaseException):
                links_failed += 1
                logger.warning(
                    "Failed to link notification %s to device %s: %s",
                    notification.id,
                    device.internal_id,
                    result,
                )

        tokens = [device.push_token for device in devices if device.push_token]
        delivery = await self._dispatcher.dispatch(tokens, draft.push_payload())

        return PipelineResult(
            ignored=False,
            event=draft.event,
            notification=notification,
            links_created=len(devices) - links_failed,
            links_failed=links_failed,
            targeted=len(tokens),
            delivery=delivery,
        )


__all__ = ["NotificationPipeline", "PipelineResult"]
