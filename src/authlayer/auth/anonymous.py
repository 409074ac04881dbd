"""Unauthenticated access."""
from __future__ import annotations

from typing import TYPE_CHECKING

from .base import AuthContext, AuthScheme

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from ..http import PendingRequest


class AnonymousAuth(AuthScheme):
    """Leave requests untouched."""

    def apply(self, request: PendingRequest, context: AuthContext) -> None:
        return None

    def __repr__(self) -> str:
        return "AnonymousAuth()"
