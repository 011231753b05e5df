"""Service layer exports."""

from .event_classifier import ALLOWED_EVENTS, EventClassifier
from .fanout import FanoutDispatcher
from .google_tokens import AccessTokenBroker
from .notification_store import DeviceDirectory, NotificationStore
from .webhook_pipeline import NotificationPipeline, PipelineResult

__all__ = [
    "ALLOWED_EVENTS",
    "AccessTokenBroker",
    "DeviceDirectory",
    "EventClassifier",
    "FanoutDispatcher",
    "NotificationPipeline",
    "NotificationStore",
    "PipelineResult",
]
