"""
Google service account OAuth utilities.

These helpers sign JWT-bearer assertions with a service account key and
exchange them for short-lived access tokens.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import httpx
import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import status

from app.core.config import OAuthSettings
from app.core.errors import AuthError, CredentialError
from app.models.credentials import ServiceCredential

JWT_BEARER_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"


class AssertionSigner:
    """Build and RS256-sign time-bounded assertions for the token endpoint."""

    def __init__(self, lifetime_seconds: int = 3600) -> None:
        self._lifetime = lifetime_seconds

    def build_claims(
        self, credential: ServiceCredential, issued_at: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Return the claim set for a new assertion."""
        issued_at = issued_at or datetime.now(timezone.utc)
        iat = int(issued_at.timestamp())
        return {
            "iss": credential.client_email,
            "aud": credential.audience,
            "scope": credential.scope,
            "iat": iat,
            "exp": iat + self._lifetime,
        }

    def sign(self, claims: Dict[str, Any], credential: ServiceCredential) -> str:
        """Return a compact JWS for ``claims`` signed with the credential's key."""
        private_key = self._load_private_key(credential.private_key)

        headers: Dict[str, Any] = {}
        if credential.private_key_id:
            headers["kid"] = credential.private_key_id

        try:
            return jwt.encode(claims, private_key, algorithm="RS256", headers=headers)
        except (jwt.PyJWTError, ValueError, TypeError) as exc:
            raise CredentialError(f"Failed to sign assertion: {exc}") from exc

    @staticmethod
    def _load_private_key(pem: str) -> rsa.RSAPrivateKey:
        try:
            key = serialization.load_pem_private_key(pem.encode("utf-8"), password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise CredentialError("Service account private key could not be parsed.") from exc
        if not isinstance(key, rsa.RSAPrivateKey):
            raise CredentialError("Service account private key must be an RSA key.")
        return key


class GoogleOAuthClient:
    """Exchange signed assertions for access tokens at the Google token endpoint."""

    def __init__(
        self,
        oauth_settings: OAuthSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._oauth = oauth_settings
        self._transport = transport

    @property
    def token_url(self) -> str:
        return self._oauth.token_uri

    async def exchange_jwt_assertion(self, assertion: str) -> Tuple[str, int]:
        """
        Exchange a signed assertion for an access token.

        Returns a tuple of (access_token, expires_in_seconds).
        """
        payload = {"grant_type": JWT_BEARER_GRANT_TYPE, "assertion": assertion}

        try:
            async with httpx.AsyncClient(
                timeout=self._oauth.request_timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(self.token_url, data=payload)
        except httpx.HTTPError as exc:
            raise AuthError(f"Token endpoint request failed: {exc}") from exc

        try:
            token_payload = response.json()
        except ValueError:
            token_payload = {}
        access_token = (
            token_payload.get("access_token") if isinstance(token_payload, dict) else None
        )

        if response.status_code != status.HTTP_200_OK or not access_token:
            raise AuthError("Failed to obtain access token", body=response.text)

        try:
            expires_in = int(token_payload.get("expires_in") or 3600)
        except (TypeError, ValueError) as exc:
            raise AuthError(
                "Token endpoint returned an invalid expires_in", body=response.text
            ) from exc
        return access_token, expires_in


__all__ = [
    "AssertionSigner",
    "GoogleOAuthClient",
    "JWT_BEARER_GRANT_TYPE",
]
