"""
Exception hierarchy shared by the notification pipeline.

Clients translate transport and storage failures into these types so the
services and routes only reason about domain errors.
"""


class NotificationServiceError(Exception):
    """Base class for pipeline failures."""


class MalformedEventError(NotificationServiceError):
    """Raised when a webhook body is not a usable event object."""


class CredentialError(NotificationServiceError):
    """Raised when service account key material cannot be used for signing."""


class AuthError(NotificationServiceError):
    """Raised when the token endpoint does not return an access token."""

    def __init__(self, message: str, *, body: str | None = None) -> None:
        super().__init__(message)
        self.body = body

    def __str__(self) -> str:
        message = super().__str__()
        if self.body:
            return f"{message}: {self.body}"
        return message


class PersistenceError(NotificationServiceError):
    """Raised when the notification store rejects or cannot perform a write."""


class DeliveryError(NotificationServiceError):
    """Raised for a single failed push send."""

    def __init__(
        self,
        message: str,
        *,
        token: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.token = token
        self.status_code = status_code
        self.body = body


__all__ = [
    "AuthError",
    "CredentialError",
    "DeliveryError",
    "MalformedEventError",
    "NotificationServiceError",
    "PersistenceError",
]
