"""
FastAPI routes for the media notification service.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.core.config import AppSettings
from app.dependencies import (
    get_app_settings,
    get_device_directory,
    get_fanout_dispatcher,
    get_notification_pipeline,
    get_notification_store,
)
from app.schemas import ManualPushRequest, PushPayload, RegisterDeviceRequest

router = APIRouter()
logger = logging.getLogger(__name__)

TEST_PUSH_TITLE = "Test Notification"
TEST_PUSH_BODY = "Hello from the media notification service!"


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok", "environment": settings.environment}


@router.post("/register-device", status_code=HTTPStatus.OK)
async def register_device(
    payload: RegisterDeviceRequest,
    directory: Annotated[Any, Depends(get_device_directory)],
) -> Any:
    """Create or refresh a device's push token."""
    if not payload.device_id or not payload.fcm_token:
        return JSONResponse(
            status_code=HTTPStatus.BAD_REQUEST,
            content={"error": "deviceId & fcmToken required"},
        )

    await directory.register(payload.device_id, payload.fcm_token, payload.platform)
    return {"success": True}


@router.post("/test-fcm", status_code=HTTPStatus.OK)
async def send_test_push(
    payload: ManualPushRequest,
    dispatcher: Annotated[Any, Depends(get_fanout_dispatcher)],
) -> Any:
    """Send a one-off push to a single token for manual verification."""
    if not payload.fcm_token:
        return JSONResponse(
            status_code=HTTPStatus.BAD_REQUEST,
            content={"error": "fcmToken required"},
        )

    report = await dispatcher.dispatch(
        [payload.fcm_token],
        PushPayload(
            title=payload.title or TEST_PUSH_TITLE,
            body=payload.body or TEST_PUSH_BODY,
        ),
    )
    return {"success": True, "delivery": report.model_dump(mode="json")}


@router.get("/notifications/{device_id}", status_code=HTTPStatus.OK)
async def list_device_notifications(
    device_id: str,
    notification_store: Annotated[Any, Depends(get_notification_store)],
) -> Any:
    """Return the device's delivery history, most recent first."""
    items = await notification_store.list_for_device(device_id)
    if items is None:
        return JSONResponse(
            status_code=HTTPStatus.NOT_FOUND, content={"error": "Device not found"}
        )
    return [item.model_dump(mode="json") for item in items]


@router.post("/", status_code=HTTPStatus.OK)
async def media_webhook(
    request: Request,
    pipeline: Annotated[Any, Depends(get_notification_pipeline)],
) -> dict:
    """Accept a media platform webhook and fan it out to registered devices."""
    body = await request.body()
    result = await pipeline.handle_event(body)

    if result.ignored:
        return {"ignored": True}

    logger.info(
        "Webhook %s processed: %d targeted, %d links failed",
        result.event,
        result.targeted,
        result.links_failed,
    )
    return {
        "success": True,
        "sent": result.targeted,
        "notification": result.notification.model_dump(mode="json"),
        "delivery": result.delivery.model_dump(mode="json"),
    }


__all__ = ["router"]
