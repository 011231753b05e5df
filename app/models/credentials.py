"""
Domain models for service account credentials and minted access tokens.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.errors import CredentialError


class ServiceCredential(BaseModel):
    """Immutable signing identity loaded from a service account file."""

    model_config = ConfigDict(frozen=True)

    client_email: str = Field(..., description="Issuer of signed assertions.")
    private_key: str = Field(..., description="PEM encoded PKCS#8 RSA private key.")
    private_key_id: Optional[str] = Field(None, description="Key id echoed as JWT kid.")
    project_id: str = Field(..., description="Firebase project receiving pushes.")
    audience: str = Field(..., description="Token endpoint the assertion targets.")
    scope: str = Field(..., description="OAuth scope requested for the access token.")

    @classmethod
    def from_service_account_info(
        cls, info: Mapping[str, Any], *, audience: str, scope: str
    ) -> "ServiceCredential":
        """Build a credential from a parsed service account mapping."""
        missing = [
            key for key in ("client_email", "private_key", "project_id") if not info.get(key)
        ]
        if missing:
            raise CredentialError(
                f"Service account is missing required fields: {', '.join(missing)}"
            )
        # Keys pasted into env vars usually carry escaped newlines.
        private_key = str(info["private_key"]).replace("\\n", "\n")
        return cls(
            client_email=info["client_email"],
            private_key=private_key,
            private_key_id=info.get("private_key_id"),
            project_id=info["project_id"],
            audience=audience,
            scope=scope,
        )


@dataclass(frozen=True, slots=True)
class AccessToken:
    """Bearer token paired with its absolute expiry instant."""

    token: str
    expires_at: datetime

    def is_usable(self, now: datetime, margin: timedelta) -> bool:
        return now + margin < self.expires_at


__all__ = ["AccessToken", "ServiceCredential"]
