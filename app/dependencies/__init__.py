"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_assertion_signer,
    get_device_directory,
    get_event_classifier,
    get_fanout_dispatcher,
    get_fcm_client,
    get_google_oauth_client,
    get_notification_pipeline,
    get_notification_store,
    get_service_credential,
    get_sqlite_store,
    get_token_broker,
)
from .config import get_app_settings

__all__ = [
    "get_app_settings",
    "get_assertion_signer",
    "get_device_directory",
    "get_event_classifier",
    "get_fanout_dispatcher",
    "get_fcm_client",
    "get_google_oauth_client",
    "get_notification_pipeline",
    "get_notification_store",
    "get_service_credential",
    "get_sqlite_store",
    "get_token_broker",
]
