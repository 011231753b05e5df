"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from datetime import timedelta
from functools import lru_cache

from app.clients import AssertionSigner, FCMClient, GoogleOAuthClient, SQLiteStore
from app.core.config import get_settings
from app.core.errors import CredentialError
from app.models.credentials import ServiceCredential
from app.services import (
    AccessTokenBroker,
    DeviceDirectory,
    EventClassifier,
    FanoutDispatcher,
    NotificationPipeline,
    NotificationStore,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_service_credential() -> ServiceCredential:
    """Load the service account credential once per process."""
    settings = _settings()
    try:
        info = settings.firebase.load_service_account_info()
    except (OSError, ValueError) as exc:
        raise CredentialError(f"Unable to read service account: {exc}") from exc
    return ServiceCredential.from_service_account_info(
        info, audience=settings.oauth.token_uri, scope=settings.oauth.scope
    )


@lru_cache()
def get_sqlite_store() -> SQLiteStore:
    """Provide shared SQLite record store."""
    settings = _settings()
    return SQLiteStore(settings.notifications_db_path)


@lru_cache()
def get_assertion_signer() -> AssertionSigner:
    settings = _settings()
    return AssertionSigner(lifetime_seconds=settings.oauth.assertion_lifetime_seconds)


@lru_cache()
def get_google_oauth_client() -> GoogleOAuthClient:
    """Create a singleton Google OAuth client."""
    return GoogleOAuthClient(_settings().oauth)


@lru_cache()
def get_token_broker() -> AccessTokenBroker:
    """Provide the process-wide access token cache.

    The service account is read on first mint, so requests that never push
    are not affected by unusable credentials.
    """
    settings = _settings()
    return AccessTokenBroker(
        credential_provider=get_service_credential,
        signer=get_assertion_signer(),
        oauth_client=get_google_oauth_client(),
        expiry_margin=timedelta(seconds=settings.oauth.expiry_margin_seconds),
    )


def _service_project_id() -> str:
    return get_service_credential().project_id


@lru_cache()
def get_fcm_client() -> FCMClient:
    """Provide FCM client bound to the service account's project."""
    return FCMClient(_settings().push, project_id=_service_project_id)


def get_fanout_dispatcher() -> FanoutDispatcher:
    """Build a dispatcher over the shared broker and FCM client."""
    return FanoutDispatcher(token_broker=get_token_broker(), fcm_client=get_fcm_client())


def get_notification_store() -> NotificationStore:
    return NotificationStore(get_sqlite_store())


def get_device_directory() -> DeviceDirectory:
    return DeviceDirectory(get_sqlite_store())


def get_event_classifier() -> EventClassifier:
    return EventClassifier()


def get_notification_pipeline() -> NotificationPipeline:
    """Build the webhook pipeline using configured clients."""
    return NotificationPipeline(
        classifier=get_event_classifier(),
        notification_store=get_notification_store(),
        device_directory=get_device_directory(),
        dispatcher=get_fanout_dispatcher(),
    )


__all__ = [
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
