"""Authentication strategy layer for outbound HTTP requests."""
from .authenticator import Authenticator, OAuthAuthenticator, RequestResult
from .client import ServiceClient
from .config import ProxyConfig, TransportConfig
from .exceptions import AuthLayerError
from .http import HttpRequestFactory, PendingRequest, RequestFactory

__all__ = [
    "Authenticator",
    "AuthLayerError",
    "HttpRequestFactory",
    "OAuthAuthenticator",
    "PendingRequest",
    "ProxyConfig",
    "RequestFactory",
    "RequestResult",
    "ServiceClient",
    "TransportConfig",
]
