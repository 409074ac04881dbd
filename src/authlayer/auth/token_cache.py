"""Thread-safe, single-flight token cache."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class _Flight:
    """One in-progress fetch that waiting callers can join."""

    def __init__(self) -> None:
        self._done = threading.Event()
        self.token: str | None = None
        self.error: BaseException | None = None

    def resolve(self, token: str) -> None:
        self.token = token
        self._done.set()

    def fail(self, error: BaseException) -> None:
        self.error = error
        self._done.set()

    def wait(self) -> str:
        self._done.wait()
        if self.error is not None:
            raise self.error
        assert self.token is not None
        return self.token


class TokenCache:
    """Cache a token and collapse concurrent refreshes into one fetch.

    The fetch itself runs without holding the lock; only reading and
    publishing the cached value happen inside it. A failed fetch leaves the
    cache empty and hands the same exception to every waiting caller.
    """

    def __init__(
        self,
        fetch: Callable[[], str],
        *,
        lifetime: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetch = fetch
        self._lifetime = lifetime
        self._clock = clock
        self._lock = threading.Lock()
        self._token: str | None = None
        self._expires_at: float | None = None
        self._inflight: _Flight | None = None
        self.fetch_count = 0

    def get(self, fetch: Callable[[], str] | None = None) -> str:
        """Return the cached token, fetching it with ``fetch`` (or the default) if needed."""

        with self._lock:
            if self._is_valid():
                assert self._token is not None
                logger.debug("Token cache hit")
                return self._token
            flight = self._inflight
            leader = flight is None
            if flight is None:
                flight = self._inflight = _Flight()

        if not leader:
            return flight.wait()

        try:
            token = (fetch or self._fetch)()
        except BaseException as exc:
            with self._lock:
                self._inflight = None
            flight.fail(exc)
            raise

        with self._lock:
            self.fetch_count += 1
            self._store(token)
            self._inflight = None
        flight.resolve(token)
        return token

    def set(self, token: str) -> None:
        with self._lock:
            self._store(token)

    def peek(self) -> str | None:
        with self._lock:
            return self._token if self._is_valid() else None

    def invalidate(self, token: str | None = None) -> bool:
        """Drop the cached token; with ``token`` given, only if it is still current."""

        with self._lock:
            if self._token is None:
                return False
            if token is not None and token != self._token:
                return False
            self._token = None
            self._expires_at = None
            return True

    def _store(self, token: str) -> None:
        self._token = token
        self._expires_at = (
            self._clock() + self._lifetime if self._lifetime is not None else None
        )

    def _is_valid(self) -> bool:
        if self._token is None:
            return False
        if self._expires_at is None:
            return True
        return self._clock() < self._expires_at
