"""Gate, gateway resolvers, matchers and redirects."""

from cas_authgate.engines.gate import AuthenticationGate, GateConfig, GateDecision, GateState
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

__all__ = [
    "AuthenticationGate",
    "GateConfig",
    "GateDecision",
    "GateState",
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
    # URL exclusion
    "UrlPatternMatcher",
    "ContainsUrlPatternMatcher",
    "ExactUrlPatternMatcher",
    "RegexUrlPatternMatcher",
    "create_url_matcher",
]
