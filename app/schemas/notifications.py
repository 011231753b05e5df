"""
Pydantic models for webhook intake, stored notifications and push delivery.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class PushPayload(BaseModel):
    """Content delivered to every device token in a fan-out."""

    title: str
    body: str
    data: Dict[str, str] = Field(default_factory=dict)


class NotificationDraft(BaseModel):
    """Validated notification derived from an accepted webhook event."""

    model_config = ConfigDict(frozen=True)

    event: str = Field(..., description="Webhook event kind that produced the draft.")
    type: Literal["media"] = "media"
    title: str
    body: str
    data: Dict[str, str] = Field(default_factory=dict)

    def push_payload(self) -> PushPayload:
        return PushPayload(title=self.title, body=self.body, data=dict(self.data))


class IgnoredEvent(BaseModel):
    """Marker for webhook events outside the allow-list."""

    event: str


class Notification(BaseModel):
    """Notification row as stored."""

    id: str
    type: str
    title: str
    body: str
    data: Dict[str, str] = Field(default_factory=dict)
    created_at: datetime


class Device(BaseModel):
    """Registered device row."""

    id: str = Field(..., description="Internal identifier generated by the store.")
    device_id: str = Field(..., description="Caller supplied stable identifier.")
    fcm_token: str
    platform: str = "unknown"
    updated_at: datetime


class DeviceRecord(BaseModel):
    """Projection of a device used during fan-out."""

    internal_id: str
    push_token: Optional[str] = None


class DeliveryLink(BaseModel):
    """Join record between a device and a notification it was sent."""

    id: str
    device_id: str = Field(..., description="Internal identifier of the device.")
    notification_id: str
    read: bool = False
    created_at: datetime


class DeviceNotification(BaseModel):
    """Delivery link joined with its notification, as served to devices."""

    id: str
    read: bool
    created_at: datetime
    notification: Notification


class DeliveryOutcome(BaseModel):
    """Result of a single per-token send."""

    token: str
    success: bool
    status_code: Optional[int] = None
    message_name: Optional[str] = Field(
        None, description="Provider message identifier on success."
    )
    error: Optional[str] = None


class DeliveryReport(BaseModel):
    """Aggregate audit of one fan-out."""

    status: Literal["delivered", "partial", "failed", "no_devices"]
    attempted: int = 0
    sent: int = 0
    failed: int = 0
    outcomes: List[DeliveryOutcome] = Field(default_factory=list)

    @classmethod
    def no_devices(cls) -> "DeliveryReport":
        return cls(status="no_devices")

    @classmethod
    def from_outcomes(cls, outcomes: List[DeliveryOutcome]) -> "DeliveryReport":
        sent = sum(1 for outcome in outcomes if outcome.success)
        failed = len(outcomes) - sent
        if failed == 0:
            status = "delivered"
        elif sent == 0:
            status = "failed"
        else:
            status = "partial"
        return cls(
            status=status,
            attempted=len(outcomes),
            sent=sent,
            failed=failed,
            outcomes=outcomes,
        )


class RegisterDeviceRequest(BaseModel):
    """Body accepted by the device registration endpoint."""

    device_id: Optional[str] = Field(None, alias="deviceId")
    fcm_token: Optional[str] = Field(None, alias="fcmToken")
    platform: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ManualPushRequest(BaseModel):
    """Body accepted by the manual push endpoint."""

    fcm_token: Optional[str] = Field(None, alias="fcmToken")
    title: Optional[str] = None
    body: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


__all__ = [
    "DeliveryLink",
    "DeliveryOutcome",
    "DeliveryReport",
    "Device",
    "DeviceNotification",
    "DeviceRecord",
    "IgnoredEvent",
    "Notification",
    "NotificationDraft",
    "PushPayload",
    "RegisterDeviceRequest",
    "ManualPushRequest",
]
