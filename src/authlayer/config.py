"""Configuration helpers for outbound requests."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from .exceptions import ConfigurationError

ENV_PREFIX = "AUTHLAYER_"

_FALSEY = {"0", "false", "no", "off"}


@dataclass(slots=True, frozen=True)
class ProxyConfig:
    """Explicit proxy selection handed to a request factory."""

    http: str | None = None
    https: str | None = None
    no_proxy: str | None = None

    def as_requests(self) -> dict[str, str]:
        proxies: dict[str, str] = {}
        if self.http:
            proxies["http"] = self.http
        if self.https:
            proxies["https"] = self.https
        if self.no_proxy:
            proxies["no_proxy"] = self.no_proxy
        return proxies

    def __bool__(self) -> bool:
        return bool(self.http or self.https)


@dataclass(slots=True)
class TransportConfig:
    """Typed transport settings copied onto every request a factory creates."""

    timeout: float = 30.0
    verify_ssl: bool | str = True
    proxy: ProxyConfig = field(default_factory=ProxyConfig)
    user_agent: str | None = None

    def resolved_proxies(self) -> dict[str, str]:
        return self.proxy.as_requests()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> TransportConfig:
        """Build a config from ``AUTHLAYER_*`` environment variables."""

        env = os.environ if environ is None else environ

        timeout = 30.0
        raw_timeout = env.get(f"{ENV_PREFIX}TIMEOUT")
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError as exc:
                raise ConfigurationError(
                    f"{ENV_PREFIX}TIMEOUT must be a number, got {raw_timeout!r}"
                ) from exc

        verify: bool | str = True
        raw_verify = env.get(f"{ENV_PREFIX}VERIFY_SSL")
        if raw_verify is not None and raw_verify.strip().lower() in _FALSEY:
            verify = False
        ca_cert = env.get(f"{ENV_PREFIX}CA_CERT")
        if ca_cert:
            if verify is False:
                raise ConfigurationError(
                    f"Cannot combine {ENV_PREFIX}CA_CERT with disabled TLS verification."
                )
            verify = ca_cert

        proxy = ProxyConfig(
            http=env.get(f"{ENV_PREFIX}HTTP_PROXY") or None,
            https=env.get(f"{ENV_PREFIX}HTTPS_PROXY") or None,
            no_proxy=env.get(f"{ENV_PREFIX}NO_PROXY") or None,
        )
        return cls(timeout=timeout, verify_ssl=verify, proxy=proxy)
