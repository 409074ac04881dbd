"""OAuth 1.0 request signing schemes."""

from __future__ import annotations

from abc import ABC
from collections.abc import Callable
from typing import TYPE_CHECKING
from urllib.parse import quote, urlsplit, urlunsplit

from oauthlib.oauth1 import SIGNATURE_HMAC, SIGNATURE_TYPE_AUTH_HEADER, Client

from ..exceptions import MalformedRequestError
from .base import AuthContext, AuthScheme
from .credentials import AccessToken, ConsumerCredentials

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from ..http import PendingRequest

REQUESTOR_ID_PARAM = "xoauth_requestor_id"

ValueFactory = Callable[[], str]


class OAuthScheme(AuthScheme, ABC):
    """Hold a consumer key/secret and sign requests with HMAC-SHA1.

    Concrete variants decide which token (if any) accompanies the consumer
    credentials and whether the URI needs rewriting first. ``timestamp_factory``
    and ``nonce_factory`` default to oauthlib's generators.
    """

    def __init__(
        self,
        consumer: ConsumerCredentials,
        *,
        timestamp_factory: ValueFactory | None = None,
        nonce_factory: ValueFactory | None = None,
    ) -> None:
        self._consumer = consumer
        self._timestamp_factory = timestamp_factory
        self._nonce_factory = nonce_factory

    @property
    def consumer_key(self) -> str:
        return self._consumer.key

    @property
    def consumer_secret(self) -> str:
        return self._consumer.secret

    def _resource_owner(self) -> AccessToken | None:
        return None

    def apply(self, request: PendingRequest, context: AuthContext) -> None:
        request.headers["Authorization"] = self._sign(request)

    def _sign(self, request: PendingRequest) -> str:
        owner = self._resource_owner()
        client = Client(
            self._consumer.key,
            client_secret=self._consumer.secret,
            resource_owner_key=owner.key if owner else None,
            resource_owner_secret=owner.secret if owner else None,
            signature_method=SIGNATURE_HMAC,
            signature_type=SIGNATURE_TYPE_AUTH_HEADER,
            timestamp=self._timestamp_factory() if self._timestamp_factory else None,
            nonce=self._nonce_factory() if self._nonce_factory else None,
        )
        headers: dict[str, str] = {}
        content_type = request.headers.get("Content-Type")
        if content_type:
            headers["Content-Type"] = content_type
        body = request.data if isinstance(request.data, str) else None
        try:
            _, signed_headers, _ = client.sign(
                request.url,
                http_method=request.method,
                body=body,
                headers=headers,
            )
        except ValueError as exc:
            raise MalformedRequestError(
                f"Cannot sign request for {request.url!r}: {exc}", details=request.url
            ) from exc
        return signed_headers["Authorization"]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(consumer_key={self.consumer_key!r})"


class TwoLeggedOAuth(OAuthScheme):
    """Sign as a trusted consumer acting on behalf of ``requestor_id``.

    The requestor is carried in the query string, so it has to be in the URI
    before the request object exists and before the signature is computed.
    """

    def __init__(
        self,
        consumer: ConsumerCredentials,
        requestor_id: str | None = None,
        **kwargs: ValueFactory | None,
    ) -> None:
        super().__init__(consumer, **kwargs)
        self.requestor_id = requestor_id

    def rewrite_uri(self, uri: str, context: AuthContext) -> str:
        if not self.requestor_id:
            return uri
        return set_query_param(uri, REQUESTOR_ID_PARAM, self.requestor_id)


class ThreeLeggedOAuth(OAuthScheme):
    """Sign with the consumer pair plus a user-authorized access token."""

    def __init__(
        self,
        consumer: ConsumerCredentials,
        token: AccessToken,
        **kwargs: ValueFactory | None,
    ) -> None:
        super().__init__(consumer, **kwargs)
        self._token = token

    @property
    def token_key(self) -> str:
        return self._token.key

    def _resource_owner(self) -> AccessToken:
        return self._token


def set_query_param(uri: str, name: str, value: str) -> str:
    """Return ``uri`` with exactly one ``name=value`` query parameter.

    Existing ``name`` segments are dropped; every other segment of the query
    is kept byte for byte. Applying it twice gives the same URI as applying it
    once.
    """

    parts = urlsplit(uri)
    prefix = f"{name}="
    segments = [
        segment
        for segment in parts.query.split("&")
        if segment and segment != name and not segment.startswith(prefix)
    ]
    segments.append(prefix + quote(value, safe="@"))
    query = "&".join(segments)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
