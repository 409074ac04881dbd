"""Turn a method and URI into an authenticated, ready-to-send request."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .auth.anonymous import AnonymousAuth
from .auth.base import AuthContext, AuthScheme
from .auth.credentials import ConsumerCredentials
from .auth.oauth import OAuthScheme, TwoLeggedOAuth
from .exceptions import ConfigurationError
from .http import HttpRequestFactory, PendingRequest, RequestFactory

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class RequestResult:
    """Outcome of `Authenticator.create_http_request`.

    Exactly one of ``request`` and ``error`` is set. A missing request factory
    is reported here instead of being raised.
    """

    request: PendingRequest | None = None
    error: ConfigurationError | None = None

    @property
    def ok(self) -> bool:
        return self.request is not None

    def __bool__(self) -> bool:
        return self.ok

    def unwrap(self) -> PendingRequest:
        if self.request is None:
            raise self.error or ConfigurationError("No request was created.")
        return self.request


class Authenticator:
    """Shape outbound requests for one application and one auth scheme.

    Configure the authenticator (scheme, developer key, request factory)
    before sharing it between threads; after that `create_http_request` may be
    called concurrently. Changing the developer key or factory while requests
    are being created is not supported.
    """

    def __init__(
        self,
        application_name: str,
        scheme: AuthScheme | None = None,
        *,
        developer_key: str | None = None,
        request_factory: RequestFactory | None = None,
    ) -> None:
        self._application_name = application_name
        self._scheme = scheme or AnonymousAuth()
        self._developer_key = developer_key
        self._request_factory: RequestFactory | None = (
            request_factory if request_factory is not None else HttpRequestFactory()
        )

    # Configuration -----------------------------------------------------------
    @property
    def application_name(self) -> str:
        return self._application_name

    @property
    def scheme(self) -> AuthScheme:
        return self._scheme

    @property
    def developer_key(self) -> str | None:
        return self._developer_key

    @developer_key.setter
    def developer_key(self, value: str | None) -> None:
        self._developer_key = value

    @property
    def request_factory(self) -> RequestFactory | None:
        return self._request_factory

    @request_factory.setter
    def request_factory(self, value: RequestFactory | None) -> None:
        self._request_factory = value

    @property
    def is_ready(self) -> bool:
        return self._request_factory is not None

    def context(self) -> AuthContext:
        return AuthContext(
            application_name=self._application_name,
            developer_key=self._developer_key,
        )

    # Public API --------------------------------------------------------------
    def create_http_request(self, http_method: str, target_uri: str) -> RequestResult:
        """Create a request for ``target_uri`` with this scheme's credentials applied.

        The returned request never follows redirects and always carries
        ``http_method``. Factory errors (malformed URIs) propagate unchanged.
        """

        context = self.context()
        uri = self._scheme.rewrite_uri(target_uri, context)

        factory = self._request_factory
        if factory is None:
            return RequestResult(
                error=ConfigurationError(
                    f"Authenticator for {self._application_name!r} has no request factory.",
                    details=target_uri,
                )
            )

        request = factory.create(uri)
        self._enforce_invariants(request, http_method)
        self._scheme.apply(request, context)
        self._enforce_invariants(request, http_method)
        logger.debug(
            "Shaped %s %s with %s", request.method, request.url, self._scheme.name
        )
        return RequestResult(request=request)

    def apply_authentication_to_uri(self, source: str) -> str:
        return self._scheme.rewrite_uri(source, self.context())

    def apply_authentication_to_request(self, request: PendingRequest) -> None:
        self._scheme.apply(request, self.context())

    def refresh_authentication(self, request: PendingRequest) -> None:
        """Re-apply credentials to a request the server rejected."""

        method = request.method
        self._scheme.refresh(request, self.context())
        self._enforce_invariants(request, method)

    def close(self) -> None:
        self._scheme.close()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(application_name={self._application_name!r}, "
            f"scheme={self._scheme!r})"
        )

    # Internal helpers -------------------------------------------------------
    @staticmethod
    def _enforce_invariants(request: PendingRequest, http_method: str) -> None:
        request.allow_redirects = False
        request.method = http_method


class OAuthAuthenticator(Authenticator):
    """Authenticator bound to an OAuth consumer key/secret pair."""

    def __init__(
        self,
        application_name: str,
        consumer_key: str,
        consumer_secret: str,
        *,
        scheme_factory: Callable[..., OAuthScheme] = TwoLeggedOAuth,
        developer_key: str | None = None,
        request_factory: RequestFactory | None = None,
        **scheme_kwargs: Any,
    ) -> None:
        consumer = ConsumerCredentials(key=consumer_key, secret=consumer_secret)
        super().__init__(
            application_name,
            scheme_factory(consumer, **scheme_kwargs),
            developer_key=developer_key,
            request_factory=request_factory,
        )
        self._consumer = consumer

    @property
    def consumer_key(self) -> str:
        return self._consumer.key

    @property
    def consumer_secret(self) -> str:
        return self._consumer.secret
