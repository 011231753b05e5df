"""
Concurrent per-token push delivery.
"""

from __future__ import annotations

import asyncio
import logging
from http import HTTPStatus
from typing import Iterable, List

import httpx

from app.clients.fcm import FCMClient
from app.core.errors import DeliveryError
from app.schemas import DeliveryOutcome, DeliveryReport, PushPayload
from app.services.google_tokens import AccessTokenBroker

logger = logging.getLogger(__name__)


class FanoutDispatcher:
    """Send one push per token and report every outcome."""

    def __init__(self, token_broker: AccessTokenBroker, fcm_client: FCMClient) -> None:
        self._broker = token_broker
        self._fcm = fcm_client

    async def dispatch(
        self, tokens: Iterable[str], payload: PushPayload
    ) -> DeliveryReport:
        """
        Deliver ``payload`` to each token concurrently.

        Credential or token endpoint failures propagate; individual send
        failures are captured in the returned report.
        """
        targets = [token for token in tokens if token]
        if not targets:
            logger.info("No device tokens to notify")
            return DeliveryReport.no_devices()

        access_token = await self._broker.get_access_token()

        async with self._fcm.open_session() as client:
            settled = await asyncio.gather(
                *(
                    self._send_one(client, access_token.token, token, payload)
                    for token in targets
                ),
                return_exceptions=True,
            )

        outcomes: List[DeliveryOutcome] = []
        for token, result in zip(targets, settled):
            if isinstance(result, DeliveryOutcome):
                outcomes.append(result)
            else:
                logger.error("Unexpected push failure for token %s: %r", _mask(token), result)
                outcomes.append(DeliveryOutcome(token=token, success=False, error=repr(result)))

        if any(outcome.status_code == HTTPStatus.UNAUTHORIZED for outcome in outcomes):
            logger.warning("FCM rejected the access token; dropping it from the cache")
            self._broker.invalidate(access_token)

        report = DeliveryReport.from_outcomes(outcomes)
        logger.info(
            "Push fan-out finished: %d sent, %d failed",
            report.sent,
            report.failed,
            extra={"status": report.status},
        )
        return report

    async def _send_one(
        self,
        client: httpx.AsyncClient,
        access_token: str,
        token: str,
        payload: PushPayload,
    ) -> DeliveryOutcome:
        try:
            result = await self._fcm.send_message(
                client, access_token=access_token, token=token, payload=payload
            )
        except DeliveryError as exc:
            logger.warning(
                "Push to token %s failed: %s %s", _mask(token), exc, exc.body or ""
            )
            return DeliveryOutcome(
                token=token,
                success=False,
                status_code=exc.status_code,
                error=exc.body or str(exc),
            )
        return DeliveryOutcome(
            token=token, success=True, status_code=200, message_name=result.get("name")
        )


def _mask(token: str) -> str:
    return token if len(token) <= 12 else f"{token[:6]}...{token[-4:]}"


__all__ = ["FanoutDispatcher"]
