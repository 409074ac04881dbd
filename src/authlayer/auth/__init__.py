"""Authentication schemes."""
from .anonymous import AnonymousAuth
from .authsub import AuthSubAuth
from .base import AuthContext, AuthScheme
from .clientlogin import ClientLoginAuth, ServiceNames
from .credentials import AccessToken, ClientLoginCredentials, ConsumerCredentials
from .developer_key import DeveloperKeyAuth
from .oauth import OAuthScheme, ThreeLeggedOAuth, TwoLeggedOAuth
from .token_cache import TokenCache

__all__ = [
    "AccessToken",
    "AnonymousAuth",
    "AuthContext",
    "AuthScheme",
    "AuthSubAuth",
    "ClientLoginAuth",
    "ClientLoginCredentials",
    "ConsumerCredentials",
    "DeveloperKeyAuth",
    "OAuthScheme",
    "ServiceNames",
    "ThreeLeggedOAuth",
    "TokenCache",
    "TwoLeggedOAuth",
]
