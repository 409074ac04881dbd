"""AuthSub token authentication."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .base import AuthContext, AuthScheme

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from ..http import PendingRequest


@dataclass(slots=True)
class AuthSubAuth(AuthScheme):
    """Apply an already issued AuthSub session token."""

    token: str = field(repr=False)

    def apply(self, request: PendingRequest, context: AuthContext) -> None:
        request.headers["Authorization"] = f'AuthSub token="{self.token}"'

    def update_token(self, token: str) -> None:
        self.token = token
