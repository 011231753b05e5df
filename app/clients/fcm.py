"""Firebase Cloud Messaging HTTP v1 client."""

from __future__ import annotations

from typing import Any, Callable, Dict, Union

import httpx

from app.core.config import PushSettings
from app.core.errors import DeliveryError
from app.schemas import PushPayload


class FCMClient:
    """Send single-token messages through the FCM ``messages:send`` endpoint.

    ``project_id`` may be a callable so the owning project is looked up only
    when a message is actually sent.
    """

    def __init__(
        self,
        push_settings: PushSettings,
        project_id: Union[str, Callable[[], str]],
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = push_settings
        self._project_id = project_id
        self._transport = transport

    @property
    def project_id(self) -> str:
        if callable(self._project_id):
            return self._project_id()
        return self._project_id

    @property
    def send_url(self) -> str:
        base = self._settings.fcm_base_url.rstrip("/")
        return f"{base}/v1/projects/{self.project_id}/messages:send"

    def open_session(self) -> httpx.AsyncClient:
        """Return an HTTP client shared by the sends of one fan-out."""
        return httpx.AsyncClient(
            timeout=self._settings.request_timeout_seconds, transport=self._transport
        )

    @staticmethod
    def build_message(token: str, payload: PushPayload) -> Dict[str, Any]:
        return {
            "message": {
                "token": token,
                "notification": {"title": payload.title, "body": payload.body},
                "data": {key: str(value) for key, value in payload.data.items()},
            }
        }

    async def send_message(
        self,
        client: httpx.AsyncClient,
        *,
        access_token: str,
        token: str,
        payload: PushPayload,
    ) -> Dict[str, Any]:
        """Send one push and return the provider response body."""
        try:
            response = await client.post(
                self.send_url,
                headers={"Authorization": f"Bearer {access_token}"},
                json=self.build_message(token, payload),
            )
        except httpx.TimeoutException as exc:
            raise DeliveryError("FCM request timed out", token=token) from exc
        except httpx.HTTPError as exc:
            raise DeliveryError(f"FCM request failed: {exc}", token=token) from exc

        if not response.is_success:
            raise DeliveryError(
                f"FCM rejected message with status {response.status_code}",
                token=token,
                status_code=response.status_code,
                body=response.text,
            )

        try:
            result = response.json()
        except ValueError:
            result = {}
        return result if isinstance(result, dict) else {}


__all__ = ["FCMClient"]
