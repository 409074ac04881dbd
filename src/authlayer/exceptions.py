"""Custom exception hierarchy for the authentication layer."""
from __future__ import annotations

from typing import Any


class AuthLayerError(RuntimeError):
    """Base error for authentication layer failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ConfigurationError(AuthLayerError):
    """Raised (or returned) when an authenticator is not usable as configured."""


class MalformedRequestError(AuthLayerError):
    """Raised by request factories when a URI or method cannot be used."""


class AuthenticationError(AuthLayerError):
    """Raised when credentials are rejected. Never retried."""


class TokenFetchError(AuthLayerError):
    """Raised when a token endpoint cannot be reached or answers nonsense."""


class RequestError(AuthLayerError):
    """Raised when an HTTP request cannot be fulfilled."""
