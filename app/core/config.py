"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the notification pipeline
and the operator scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import json
import os

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class FirebaseSettings(BaseSettings):
    """Service account material used to authorize FCM requests."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    service_account_json: Optional[str] = Field(
        None,
        validation_alias="FIREBASE_SERVICE_ACCOUNT",
        description="Raw service account JSON as downloaded from the Firebase console.",
    )
    service_account_file: Optional[str] = Field(
        None,
        validation_alias="FIREBASE_SERVICE_ACCOUNT_FILE",
        description="Path to a service account JSON file.",
    )
    project_id: Optional[str] = Field(
        None,
        validation_alias="FIREBASE_PROJECT_ID",
        description="Overrides the project_id embedded in the service account.",
    )

    @model_validator(mode="after")
    def _require_service_account(self) -> "FirebaseSettings":
        if not self.service_account_json and not self.service_account_file:
            raise ValueError(
                "FIREBASE_SERVICE_ACCOUNT or FIREBASE_SERVICE_ACCOUNT_FILE must be set."
            )
        return self

    def load_service_account_info(self) -> dict:
        """Return the parsed service account mapping."""
        if self.service_account_json:
            raw = self.service_account_json
        else:
            raw = Path(self.service_account_file).read_text(encoding="utf-8")
        info = json.loads(raw)
        if not isinstance(info, dict):
            raise ValueError("Service account JSON must be an object.")
        if self.project_id:
            info["project_id"] = self.project_id
        return info


class OAuthSettings(BaseSettings):
    """Signed-assertion grant configuration."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    token_uri: str = Field(
        "https://oauth2.googleapis.com/token", validation_alias="GOOGLE_TOKEN_URI"
    )
    scope: str = Field(
        "https://www.googleapis.com/auth/firebase.messaging",
        validation_alias="FCM_OAUTH_SCOPE",
    )
    assertion_lifetime_seconds: int = Field(
        3600, validation_alias="OAUTH_ASSERTION_LIFETIME"
    )
    expiry_margin_seconds: int = Field(
        60,
        validation_alias="ACCESS_TOKEN_EXPIRY_MARGIN",
        description="Cached tokens closer than this to expiry are replaced.",
    )
    request_timeout_seconds: float = Field(10.0, validation_alias="OAUTH_REQUEST_TIMEOUT")


class PushSettings(BaseSettings):
    """Settings for the FCM HTTP v1 transport."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    fcm_base_url: str = Field("https://fcm.googleapis.com", validation_alias="FCM_BASE_URL")
    request_timeout_seconds: float = Field(15.0, validation_alias="PUSH_REQUEST_TIMEOUT")


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    notifications_db_path: str = Field(
        "data/notifications.db",
        validation_alias="NOTIFICATIONS_DB_PATH",
        description="SQLite database holding devices, notifications and links.",
    )
    firebase: FirebaseSettings = Field(default_factory=FirebaseSettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    push: PushSettings = Field(default_factory=PushSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "FirebaseSettings",
    "OAuthSettings",
    "PushSettings",
    "get_settings",
]
