"""Expose constructed client wrappers."""

from .fcm import FCMClient
from .google_auth import AssertionSigner, GoogleOAuthClient
from .sqlite_store import SQLiteStore

__all__ = [
    "AssertionSigner",
    "FCMClient",
    "GoogleOAuthClient",
    "SQLiteStore",
]
