"""
CAS Authentication Gate.

Decides, per HTTP request, whether it may proceed or must be sent to the
CAS login service first. Ships a FastAPI/Starlette middleware.
"""

from cas_authgate.config import GateSettings, build_gate_config
from cas_authgate.core.correlation import (
    CorrelatedLogger,
    CorrelationHeaders,
    correlation_context,
    generate_correlation_id,
    get_correlation_id,
)
from cas_authgate.core.errors import CasGateError, ConfigurationError, RequestError
from cas_authgate.core.protocol import CasProtocol
from cas_authgate.core.request import GateRequest, GateResponse, SimpleGateRequest
from cas_authgate.core.urls import LoginUrlConfig, construct_redirect_url, construct_service_url
from cas_authgate.engines.gate import (
    CONST_CAS_ASSERTION,
    LOGIN_URL_HEADER,
    AuthenticationGate,
    GateConfig,
    GateDecision,
    GateState,
)
from cas_authgate.engines.gateway import (
    GatewayResolver,
    NullGatewayResolver,
    RedisGatewayResolver,
    SessionGatewayResolver,
)
from cas_authgate.engines.redirect_strategy import (
    DefaultRedirectStrategy,
    FacesCompatibleRedirectStrategy,
    RedirectStrategy,
    XhrRedirectStrategy,
)
from cas_authgate.engines.redirect_url import LoginRedirect, RedirectUrlBuilder
from cas_authgate.engines.url_matcher import (
    ContainsUrlPatternMatcher,
    ExactUrlPatternMatcher,
    RegexUrlPatternMatcher,
    UrlPatternMatcher,
    create_url_matcher,
)

__version__ = "0.1.0"

__all__ = [
    # Gate
    "AuthenticationGate",
    "GateConfig",
    "GateDecision",
    "GateState",
    "CONST_CAS_ASSERTION",
    "LOGIN_URL_HEADER",
    # Configuration
    "GateSettings",
    "build_gate_config",
    "CasProtocol",
    "LoginUrlConfig",
    # Errors
    "CasGateError",
    "ConfigurationError",
    "RequestError",
    # Request / response seams
    "GateRequest",
    "GateResponse",
    "SimpleGateRequest",
    "construct_service_url",
    "construct_redirect_url",
    # URL exclusion
    "UrlPatternMatcher",
    "ContainsUrlPatternMatcher",
    "ExactUrlPatternMatcher",
    "RegexUrlPatternMatcher",
    "create_url_matcher",
    # Gateway
    "GatewayResolver",
    "SessionGatewayResolver",
    "RedisGatewayResolver",
    "NullGatewayResolver",
    # Redirects
    "RedirectUrlBuilder",
    "LoginRedirect",
    "RedirectStrategy",
    "DefaultRedirectStrategy",
    "FacesCompatibleRedirectStrategy",
    "XhrRedirectStrategy",
    # Correlation
    "correlation_context",
    "get_correlation_id",
    "generate_correlation_id",
    "CorrelationHeaders",
    "CorrelatedLogger",
]
