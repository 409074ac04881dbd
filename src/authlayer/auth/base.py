"""Base abstractions for auth schemes."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from ..http import PendingRequest


@dataclass(slots=True, frozen=True)
class AuthContext:
    """Authenticator settings visible to a scheme for one call."""

    application_name: str
    developer_key: str | None = None


class AuthScheme(ABC):
    """Interface each authentication mechanism must implement.

    Both hooks must only touch the URI or request they are handed. A scheme
    may hold its own state (a token cache, say) but never mutates globals.
    """

    #: Whether re-running `refresh` after a 401 can produce different credentials.
    refreshable: bool = False

    @property
    def name(self) -> str:
        return type(self).__name__

    def rewrite_uri(self, uri: str, context: AuthContext) -> str:
        """Return the URI the request should be bound to. Pure, no I/O."""
        return uri

    @abstractmethod
    def apply(self, request: PendingRequest, context: AuthContext) -> None:
        """Mutate the request in-place with the necessary credentials."""

    def refresh(self, request: PendingRequest, context: AuthContext) -> None:
        """Optional hook for refreshing credentials prior to retry."""
        self.apply(request, context)

    def close(self) -> None:
        """Release resources held by the scheme, such as an HTTP session."""
