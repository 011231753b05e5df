"""Public schema exports."""

from .notifications import (
    DeliveryLink,
    DeliveryOutcome,
    DeliveryReport,
    Device,
    DeviceNotification,
    DeviceRecord,
    IgnoredEvent,
    ManualPushRequest,
    Notification,
    NotificationDraft,
    PushPayload,
    RegisterDeviceRequest,
)

__all__ = [
    "DeliveryLink",
    "DeliveryOutcome",
    "DeliveryReport",
    "Device",
    "DeviceNotification",
    "DeviceRecord",
    "IgnoredEvent",
    "ManualPushRequest",
    "Notification",
    "NotificationDraft",
    "PushPayload",
    "RegisterDeviceRequest",
]
