"""HTTP utilities: the request-in-progress value and request factories."""

from __future__ import annotations

from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlsplit

import requests
from requests import PreparedRequest, Response, Session
from requests.structures import CaseInsensitiveDict

from .config import TransportConfig
from .exceptions import AuthenticationError, MalformedRequestError, RequestError

_SUPPORTED_SCHEMES = {"http", "https"}


@dataclass(slots=True)
class PendingRequest:
    """A single-use outbound request, mutated in place before it is sent."""

    method: str
    url: str
    headers: MutableMapping[str, str] = field(default_factory=CaseInsensitiveDict)
    allow_redirects: bool = True
    data: Any | None = None
    timeout: float | tuple[float, float] | None = None
    verify: bool | str = True
    proxies: dict[str, str] = field(default_factory=dict)

    def prepare(self, session: Session | None = None) -> PreparedRequest:
        raw = requests.Request(
            method=self.method,
            url=self.url,
            headers=dict(self.headers),
            data=self.data,
        )
        if session is not None:
            return session.prepare_request(raw)
        return raw.prepare()

    def send(self, session: Session) -> Response:
        return session.send(
            self.prepare(session),
            allow_redirects=self.allow_redirects,
            timeout=self.timeout,
            verify=self.verify,
            proxies=self.proxies or None,
        )


@runtime_checkable
class RequestFactory(Protocol):
    """Anything able to turn a URI into an unauthenticated `PendingRequest`."""

    def create(self, target_uri: str) -> PendingRequest:
        """Return a request bound to exactly ``target_uri``. Must not do I/O."""


class HttpRequestFactory:
    """Default factory producing requests-backed `PendingRequest` objects."""

    def __init__(self, transport: TransportConfig | None = None) -> None:
        self.transport = transport or TransportConfig()

    def create(self, target_uri: str) -> PendingRequest:
        parsed = urlsplit(target_uri)
        if parsed.scheme.lower() not in _SUPPORTED_SCHEMES or not parsed.netloc:
            raise MalformedRequestError(
                f"Expected an absolute http(s) URI, got {target_uri!r}",
                details=target_uri,
            )
        request = PendingRequest(
            method="GET",
            url=target_uri,
            timeout=self.transport.timeout,
            verify=self.transport.verify_ssl,
            proxies=self.transport.resolved_proxies(),
        )
        if self.transport.user_agent:
            request.headers["User-Agent"] = self.transport.user_agent
        return request

    def __repr__(self) -> str:
        return f"{type(self).__name__}(transport={self.transport!r})"


def ensure_success(response: Response) -> None:
    """Raise `AuthenticationError` or `RequestError` if the response signals a failure."""

    if 200 <= response.status_code < 300:
        return
    message = f"HTTP error {response.status_code}: {response.text[:200]}"
    if response.status_code in (401, 403):
        raise AuthenticationError(
            message, status_code=response.status_code, details=response.text
        )
    raise RequestError(message, status_code=response.status_code, details=response.text)
