"""ClientLogin token authentication."""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING

import requests
from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, wait_none

from ..exceptions import AuthenticationError, TokenFetchError
from .base import AuthContext, AuthScheme
from .credentials import ClientLoginCredentials
from .token_cache import TokenCache

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from ..http import PendingRequest

CLIENT_LOGIN_URL = "https://www.google.com/accounts/ClientLogin"
CLIENT_LOGIN_HEADER_PREFIX = "GoogleLogin auth="
LOGIN_ATTEMPTS = 2
TRANSIENT_ERRORS = (requests.ConnectionError, requests.Timeout)

logger = logging.getLogger(__name__)


class ServiceNames:
    """Service identifiers understood by the ClientLogin endpoint."""

    YOUTUBE = "youtube"
    CALENDAR = "cl"
    DOCUMENTS = "writely"


class ClientLoginAuth(AuthScheme):
    """Exchange account credentials for a token once and reuse it.

    The first `apply` blocks on a POST to the login endpoint; later calls use
    the cached token until it expires or the service rejects it with a 401.
    Concurrent callers share a single fetch.
    """

    refreshable = True

    def __init__(
        self,
        credentials: ClientLoginCredentials,
        service: str,
        *,
        source: str | None = None,
        session: requests.Session | None = None,
        login_url: str = CLIENT_LOGIN_URL,
        timeout: float = 10.0,
        token_lifetime: float | None = None,
    ) -> None:
        self._credentials = credentials
        self.service = service
        self.source = source
        self.login_url = login_url
        self.timeout = timeout
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()
        self._cache = TokenCache(self._request_token, lifetime=token_lifetime)

    @property
    def token(self) -> str | None:
        return self._cache.peek()

    @property
    def fetch_count(self) -> int:
        return self._cache.fetch_count

    def set_token(self, token: str) -> None:
        self._cache.set(token)

    def apply(self, request: PendingRequest, context: AuthContext) -> None:
        source = self.source or context.application_name
        token = self._cache.get(partial(self._request_token, source))
        request.headers["Authorization"] = f"{CLIENT_LOGIN_HEADER_PREFIX}{token}"

    def refresh(self, request: PendingRequest, context: AuthContext) -> None:
        rejected = _token_from_header(request.headers.get("Authorization"))
        if self._cache.invalidate(rejected):
            logger.warning("Discarding rejected ClientLogin token for service %s", self.service)
        self.apply(request, context)

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def _request_token(self, source: str | None = None) -> str:
        retrying = Retrying(
            stop=stop_after_attempt(LOGIN_ATTEMPTS),
            wait=wait_none(),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            reraise=True,
            before_sleep=self._log_retry,
        )
        try:
            response = retrying(self._post_login, source or "")
        except requests.RequestException as exc:
            reason = str(exc).strip() or exc.__class__.__name__
            raise TokenFetchError(
                f"Unable to reach ClientLogin endpoint: {reason}", details=reason
            ) from exc

        if response.status_code in (401, 403):
            fields = parse_clientlogin_body(response.text)
            reason = fields.get("Error", "BadAuthentication")
            raise AuthenticationError(
                f"ClientLogin rejected credentials for {self._credentials.email}: {reason}",
                status_code=response.status_code,
                details=fields,
            )
        if not 200 <= response.status_code < 300:
            raise TokenFetchError(
                f"ClientLogin endpoint returned HTTP {response.status_code}",
                status_code=response.status_code,
                details=response.text[:200],
            )

        token = parse_clientlogin_body(response.text).get("Auth")
        if not token:
            raise TokenFetchError(
                "ClientLogin response did not contain an Auth token",
                status_code=response.status_code,
            )
        logger.info("Obtained ClientLogin token for service %s", self.service)
        return token

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "ClientLogin request to %s failed (%s); retry %d of %d",
            self.login_url,
            exc.__class__.__name__,
            retry_state.attempt_number,
            LOGIN_ATTEMPTS - 1,
        )

    def _post_login(self, source: str) -> requests.Response:
        form = {
            "Email": self._credentials.email,
            "Passwd": self._credentials.password,
            "accountType": self._credentials.account_type,
            "service": self.service,
            "source": source,
        }
        return self._session.post(
            self.login_url,
            data=form,
            timeout=self.timeout,
            allow_redirects=False,
        )

    def __repr__(self) -> str:
        return (
            f"ClientLoginAuth(email={self._credentials.email!r}, service={self.service!r})"
        )


def parse_clientlogin_body(body: str) -> dict[str, str]:
    """Parse the ``Key=Value`` lines returned by the login endpoint."""

    fields: dict[str, str] = {}
    for line in body.splitlines():
        key, sep, value = line.strip().partition("=")
        if sep and key:
            fields[key] = value
    return fields


def _token_from_header(header: str | None) -> str | None:
    if header and header.startswith(CLIENT_LOGIN_HEADER_PREFIX):
        return header[len(CLIENT_LOGIN_HEADER_PREFIX):]
    return None
