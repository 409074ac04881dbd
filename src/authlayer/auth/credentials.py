"""Immutable credential holders."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..exceptions import ConfigurationError


@dataclass(slots=True, frozen=True)
class ConsumerCredentials:
    """OAuth consumer key/secret pair issued by the provider."""

    key: str
    secret: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.key:
            raise ConfigurationError("OAuth consumer key must not be empty.")


@dataclass(slots=True, frozen=True)
class AccessToken:
    """OAuth access token pair obtained from a completed three-legged flow."""

    key: str
    secret: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.key:
            raise ConfigurationError("OAuth access token must not be empty.")


@dataclass(slots=True, frozen=True)
class ClientLoginCredentials:
    """Account credentials exchanged for a ClientLogin token."""

    email: str
    password: str = field(repr=False)
    account_type: str = "HOSTED_OR_GOOGLE"

    def __post_init__(self) -> None:
        if not self.email:
            raise ConfigurationError("ClientLogin email must not be empty.")
