from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.clients.google_auth import AssertionSigner
from app.core.errors import AuthError, CredentialError
from app.services.google_tokens import AccessTokenBroker

pytestmark = pytest.mark.anyio("asyncio")


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class CountingSigner(AssertionSigner):
    def __init__(self) -> None:
        super().__init__()
        self.signed: list[dict] = []

    def sign(self, claims, credential) -> str:
        self.signed.append(claims)
        return f"assertion-{len(self.signed)}"


class DummyOAuthClient:
    def __init__(self, *, expires_in: int = 3600) -> None:
        self.expires_in = expires_in
        self.assertions: list[str] = []

    async def exchange_jwt_assertion(self, assertion: str) -> tuple[str, int]:
        self.assertions.append(assertion)
        return f"access-{len(self.assertions)}", self.expires_in


class RejectingOAuthClient:
    async def exchange_jwt_assertion(self, assertion: str) -> tuple[str, int]:
        raise AuthError("Failed to obtain access token", body='{"error":"invalid_grant"}')


def _broker(credential, signer, oauth_client, clock) -> AccessTokenBroker:
    return AccessTokenBroker(
        credential=credential,
        signer=signer,
        oauth_client=oauth_client,
        expiry_margin=timedelta(seconds=60),
        clock=clock,
    )


async def test_cached_token_is_reused_before_margin(service_credential) -> None:
    clock = FakeClock()
    signer = CountingSigner()
    oauth_client = DummyOAuthClient()
    broker = _broker(service_credential, signer, oauth_client, clock)

    first = await broker.get_access_token()
    clock.advance(minutes=30)
    second = await broker.get_access_token()
    clock.advance(seconds=1738)  # 62s before expiry
    third = await broker.get_access_token()

    assert first is second is third
    assert first.token == "access-1"
    assert first.expires_at == datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)
    assert len(signer.signed) == 1
    assert oauth_client.assertions == ["assertion-1"]


async def test_token_inside_margin_triggers_exactly_one_refresh(service_credential) -> None:
    clock = FakeClock()
    signer = CountingSigner()
    oauth_client = DummyOAuthClient()
    broker = _broker(service_credential, signer, oauth_client, clock)

    await broker.get_access_token()
    clock.advance(minutes=59, seconds=30)
    refreshed = await broker.get_access_token()
    again = await broker.get_access_token()

    assert refreshed.token == "access-2"
    assert again is refreshed
    assert len(signer.signed) == 2
    assert oauth_client.assertions == ["assertion-1", "assertion-2"]
    assert signer.signed[1]["iat"] == int(clock.now.timestamp())


async def test_claims_are_built_from_the_credential(service_credential) -> None:
    clock = FakeClock()
    signer = CountingSigner()
    broker = _broker(service_credential, signer, DummyOAuthClient(), clock)

    await broker.get_access_token()

    claims = signer.signed[0]
    assert claims["iss"] == service_credential.client_email
    assert claims["aud"] == service_credential.audience
    assert claims["scope"] == service_credential.scope
    assert claims["exp"] - claims["iat"] == 3600


async def test_invalidate_forces_new_token(service_credential) -> None:
    clock = FakeClock()
    oauth_client = DummyOAuthClient()
    broker = _broker(service_credential, CountingSigner(), oauth_client, clock)

    await broker.get_access_token()
    broker.invalidate()
    token = await broker.get_access_token()

    assert token.token == "access-2"


async def test_invalidating_a_stale_token_keeps_the_newer_one(service_credential) -> None:
    clock = FakeClock()
    broker = _broker(service_credential, CountingSigner(), DummyOAuthClient(), clock)

    stale = await broker.get_access_token()
    broker.invalidate(stale)
    fresh = await broker.get_access_token()
    broker.invalidate(stale)

    assert await broker.get_access_token() is fresh


async def test_auth_error_propagates_and_nothing_is_cached(service_credential) -> None:
    clock = FakeClock()
    oauth_client = RejectingOAuthClient()
    signer = CountingSigner()
    broker = _broker(service_credential, signer, oauth_client, clock)

    with pytest.raises(AuthError) as exc_info:
        await broker.get_access_token()

    assert "invalid_grant" in str(exc_info.value)
    assert exc_info.value.body == '{"error":"invalid_grant"}'
    assert broker._cached is None

    with pytest.raises(AuthError):
        await broker.get_access_token()
    assert len(signer.signed) == 2


async def test_credential_provider_is_only_called_on_mint(service_credential) -> None:
    calls: list[int] = []

    def provider():
        calls.append(1)
        return service_credential

    broker = AccessTokenBroker(
        signer=CountingSigner(),
        oauth_client=DummyOAuthClient(),
        credential_provider=provider,
        clock=FakeClock(),
    )
    assert calls == []

    await broker.get_access_token()
    await broker.get_access_token()

    assert calls == [1]


async def test_failing_credential_provider_surfaces_on_first_use() -> None:
    def provider():
        raise CredentialError("Service account is missing required fields: private_key")

    oauth_client = DummyOAuthClient()
    broker = AccessTokenBroker(
        signer=CountingSigner(), oauth_client=oauth_client, credential_provider=provider
    )

    with pytest.raises(CredentialError):
        await broker.get_access_token()

    assert oauth_client.assertions == []


async def test_bad_key_surfaces_credential_error(service_credential) -> None:
    broken = service_credential.model_copy(update={"private_key": "not a pem"})
    oauth_client = DummyOAuthClient()
    broker = _broker(broken, AssertionSigner(), oauth_client, FakeClock())

    with pytest.raises(CredentialError):
        await broker.get_access_token()

    assert oauth_client.assertions == []
