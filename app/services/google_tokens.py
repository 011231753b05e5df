"""
Helpers for minting and caching FCM access tokens.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from app.clients.google_auth import AssertionSigner, GoogleOAuthClient
from app.models.credentials import AccessToken, ServiceCredential

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccessTokenBroker:
    """Owns the process-wide cached access token for one service credential.

    The credential is resolved on each mint rather than at construction, so an
    unusable service account only fails the callers that need a token.

    The cached value is a single immutable ``AccessToken`` swapped in one
    assignment, so readers never observe a token paired with another token's
    expiry. Concurrent callers that miss the cache at the same moment may each
    mint a token; the last one written wins.
    """

    def __init__(
        self,
        *,
        signer: AssertionSigner,
        oauth_client: GoogleOAuthClient,
        credential: Optional[ServiceCredential] = None,
        credential_provider: Optional[Callable[[], ServiceCredential]] = None,
        expiry_margin: timedelta = timedelta(seconds=60),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if credential_provider is None:
            if credential is None:
                raise ValueError("credential or credential_provider is required")
            credential_provider = lambda: credential  # noqa: E731
        self._credential_provider = credential_provider
        self._signer = signer
        self._oauth = oauth_client
        self._margin = expiry_margin
        self._clock = clock
        self._cached: Optional[AccessToken] = None

    async def get_access_token(self) -> AccessToken:
        """Return a token valid for at least the safety margin, minting on miss."""
        cached = self._cached
        if cached is not None and cached.is_usable(self._clock(), self._margin):
            return cached

        credential = self._credential_provider()
        issued_at = self._clock()
        claims = self._signer.build_claims(credential, issued_at=issued_at)
        assertion = self._signer.sign(claims, credential)
        access_token, expires_in = await self._oauth.exchange_jwt_assertion(assertion)

        token = AccessToken(
            token=access_token, expires_at=issued_at + timedelta(seconds=expires_in)
        )
        self._cached = token
        logger.info(
            "Minted FCM access token",
            extra={"issuer": credential.client_email, "expires_in": expires_in},
        )
        return token

    def invalidate(self, token: Optional[AccessToken] = None) -> None:
        """Drop the cached token so the next call mints a fresh one.

        When ``token`` is given, the cache is only cleared if it still holds
        that token, so a rejection of an old token never evicts a newer one.
        """
        if token is None or self._cached is token:
            self._cached = None


__all__ = ["AccessTokenBroker"]
