"""
FastAPI application entrypoint for the media notification service.
"""

from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.routes import router as api_router
from app.core.config import get_settings
from app.core.errors import (
    AuthError,
    CredentialError,
    MalformedEventError,
    NotificationServiceError,
    PersistenceError,
)
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)

_ERROR_RESPONSES: dict[type[NotificationServiceError], tuple[HTTPStatus, str]] = {
    MalformedEventError: (HTTPStatus.BAD_REQUEST, "Malformed webhook"),
    PersistenceError: (HTTPStatus.INTERNAL_SERVER_ERROR, "DB operation failed"),
    CredentialError: (HTTPStatus.INTERNAL_SERVER_ERROR, "Push credentials unusable"),
    AuthError: (HTTPStatus.INTERNAL_SERVER_ERROR, "Push authorization failed"),
}


async def _handle_service_error(
    request: Request, exc: NotificationServiceError
) -> JSONResponse:
    status_code, message = HTTPStatus.INTERNAL_SERVER_ERROR, "Failed"
    for error_type, response in _ERROR_RESPONSES.items():
        if isinstance(exc, error_type):
            status_code, message = response
            break

    if status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error("%s on %s %s: %s", message, request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code, content={"error": message, "details": str(exc)}
    )


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Media Push Notification Service",
        version="0.1.0",
        description="Webhook intake and FCM fan-out for media platform events.",
    )
    app.add_exception_handler(NotificationServiceError, _handle_service_error)
    app.include_router(api_router)
    return app


app = create_app()

__all__ = ["app", "create_app"]
