"""Service client that sends requests shaped by an `Authenticator`."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import requests
import urllib3
from urllib3.exceptions import InsecureRequestWarning

from .authenticator import Authenticator
from .exceptions import AuthenticationError, RequestError
from .http import HttpRequestFactory, PendingRequest, ensure_success

logger = logging.getLogger(__name__)


class ServiceClient:
    """Send authenticated requests and surface failures as library errors.

    A 401 answer triggers one credential refresh and one resend when the
    scheme can produce fresh credentials. Nothing else is retried.
    """

    def __init__(
        self,
        authenticator: Authenticator,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.authenticator = authenticator
        self._session = session or requests.Session()
        self._suppress_insecure_warning_if_needed()

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> ServiceClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - passthrough
        self.close()

    # Public API --------------------------------------------------------------
    def request(
        self,
        method: str,
        uri: str,
        *,
        data: Any | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> requests.Response:
        pending = self.authenticator.create_http_request(method, uri).unwrap()
        self._merge_headers(pending, headers)
        pending.data = data
        self._log_request(pending)

        response = self._perform_request(pending)
        if response.status_code == 401 and self.authenticator.scheme.refreshable:
            logger.warning(
                "%s rejected credentials for %s %s; refreshing once",
                self.authenticator.scheme.name,
                pending.method,
                pending.url,
            )
            self.authenticator.refresh_authentication(pending)
            response = self._perform_request(pending)
            if response.status_code == 401:
                raise AuthenticationError(
                    "Credentials rejected after refresh",
                    status_code=401,
                    details=response.text[:200],
                )

        ensure_success(response)
        return response

    def get(self, uri: str, **kwargs: Any) -> requests.Response:
        return self.request("GET", uri, **kwargs)

    def post(self, uri: str, **kwargs: Any) -> requests.Response:
        return self.request("POST", uri, **kwargs)

    def close(self) -> None:
        self._session.close()

    # Internal helpers -------------------------------------------------------
    def _perform_request(self, pending: PendingRequest) -> requests.Response:
        try:
            return pending.send(self._session)
        except requests.RequestException as exc:
            reason = str(exc).strip() or exc.__class__.__name__
            raise RequestError(
                f"Failed to communicate with {pending.url}: {reason}", details=reason
            ) from exc

    @staticmethod
    def _merge_headers(pending: PendingRequest, headers: Mapping[str, str] | None) -> None:
        if not headers:
            return
        for name, value in headers.items():
            # credentials set by the scheme win
            if name not in pending.headers:
                pending.headers[name] = value

    def _log_request(self, pending: PendingRequest) -> None:
        logger.info(
            "%s request %s %s (scheme=%s)",
            self.authenticator.application_name,
            pending.method,
            pending.url,
            self.authenticator.scheme.name,
        )

    def _suppress_insecure_warning_if_needed(self) -> None:
        factory = self.authenticator.request_factory
        if isinstance(factory, HttpRequestFactory) and factory.transport.verify_ssl is False:
            urllib3.disable_warnings(InsecureRequestWarning)
