"""Developer key header injection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .anonymous import AnonymousAuth
from .base import AuthContext, AuthScheme

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from ..http import PendingRequest

DEVELOPER_KEY_HEADER = "X-GData-Key"
DEVELOPER_KEY_PREFIX = "key="


@dataclass(slots=True)
class DeveloperKeyAuth(AuthScheme):
    """Wrap another scheme and add the authenticator's developer key as a header.

    The key is read from the call context, so setting
    `Authenticator.developer_key` after construction is picked up. When no key
    is configured the header is simply not sent.
    """

    inner: AuthScheme = field(default_factory=AnonymousAuth)
    enabled: bool = True

    @property
    def refreshable(self) -> bool:  # type: ignore[override]
        return self.inner.refreshable

    @property
    def name(self) -> str:
        return f"DeveloperKeyAuth[{self.inner.name}]"

    def rewrite_uri(self, uri: str, context: AuthContext) -> str:
        return self.inner.rewrite_uri(uri, context)

    def apply(self, request: PendingRequest, context: AuthContext) -> None:
        self.inner.apply(request, context)
        self._inject_key(request, context)

    def refresh(self, request: PendingRequest, context: AuthContext) -> None:
        self.inner.refresh(request, context)
        self._inject_key(request, context)

    def close(self) -> None:
        self.inner.close()

    def _inject_key(self, request: PendingRequest, context: AuthContext) -> None:
        if not self.enabled or not context.developer_key:
            return
        request.headers[DEVELOPER_KEY_HEADER] = f"{DEVELOPER_KEY_PREFIX}{context.developer_key}"
