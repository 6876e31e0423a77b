"""
Authentication Gate for CAS single sign-on.

The "may this request proceed?" logic. Every request either passes
through to the application or is redirected to the CAS login service.

Decision order (first match wins):
1. EXCLUDED       - URL matches the configured exclusion pattern
2. AUTHENTICATED  - session already holds a CAS assertion
3. TICKETED       - request carries a ticket for the validator downstream
   GATEWAYED      - returning from a silent (gateway) login attempt
4. BEARER_TOKEN   - Authorization: Bearer header present
5. NEEDS_REDIRECT - everything else is sent to the login service

Fail closed: a request whose URL cannot be parsed raises RequestError,
it never passes through.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from enum import Enum

from cas_authgate.core.correlation import CorrelatedLogger
from cas_authgate.core.errors import ConfigurationError
from cas_authgate.core.protocol import CasProtocol
from cas_authgate.core.request import GateRequest, GateResponse
from cas_authgate.core.urls import LoginUrlConfig, construct_service_url
from cas_authgate.engines.gateway import GatewayResolver, SessionGatewayResolver
from cas_authgate.engines.redirect_strategy import DefaultRedirectStrategy, RedirectStrategy
from cas_authgate.engines.redirect_url import LoginRedirect, RedirectUrlBuilder
from cas_authgate.engines.url_matcher import UrlPatternMatcher

logger = CorrelatedLogger(logging.getLogger(__name__))

CONST_CAS_ASSERTION = "_const_cas_assertion_"
LOGIN_URL_HEADER = "Cas-Server-Login-Url"


class GateState(str, Enum):
    """Outcome of a gate evaluation."""

    EXCLUDED = "excluded"
    AUTHENTICATED = "authenticated"
    TICKETED = "ticketed"
    GATEWAYED = "gatewayed"
    BEARER_TOKEN = "bearer_token"
    NEEDS_REDIRECT = "needs_redirect"


@dataclass(frozen=True)
class GateConfig:
    """
    Immutable gate configuration.

    Collaborators arrive already constructed. Build from settings with
    ``cas_authgate.config.build_gate_config``.
    """

    login: LoginUrlConfig
    renew: bool = False
    gateway: bool = False
    protocol: CasProtocol = CasProtocol.CAS2
    url_matcher: UrlPatternMatcher | None = None
    gateway_resolver: GatewayResolver = field(default_factory=SessionGatewayResolver)
    redirect_strategy: RedirectStrategy = field(default_factory=DefaultRedirectStrategy)
    service: str | None = None
    server_name: str | None = None
    assertion_session_key: str = CONST_CAS_ASSERTION

    def __post_init__(self) -> None:
        """Refuse to build a gate with undefined redirect behavior."""
        if not isinstance(self.login, LoginUrlConfig):
            raise ConfigurationError("login must be a LoginUrlConfig")
        if not self.login.first_part or not self.login.last_part:
            raise ConfigurationError("Login URL domain parts cannot be empty")


@dataclass(frozen=True)
class GateDecision:
    """
    Result of evaluating one request.

    ``redirect`` is set only for NEEDS_REDIRECT; ``bearer_token`` only for
    BEARER_TOKEN. ``service_url`` is set whenever it had to be computed.
    """

    state: GateState
    service_url: str | None = None
    redirect: LoginRedirect | None = None
    bearer_token: str | None = None

    @property
    def passes_through(self) -> bool:
        return self.state is not GateState.NEEDS_REDIRECT

    @property
    def login_url(self) -> str | None:
        return self.redirect.login_url if self.redirect else None

    @property
    def redirect_url(self) -> str | None:
        return self.redirect.redirect_url if self.redirect else None


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _fingerprint(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:12]


class AuthenticationGate:
    """
    Per-request pass-through / redirect decision.

    Holds only the read-only configuration, so one instance can serve any
    number of concurrent requests.

    Usage:
        gate = AuthenticationGate(
            GateConfig(login=LoginUrlConfig.from_url("https://sso.example.org/cas/login"))
        )

        response = GateResponse()
        decision = gate.process(request, response)
        if decision.passes_through:
            # hand over to the application
            ...
        else:
            # send `response` (302 to the login service)
            ...
    """

    def __init__(self, config: GateConfig) -> None:
        self._config = config
        self._builder = RedirectUrlBuilder(config.protocol.service_parameter_name)

    @property
    def config(self) -> GateConfig:
        return self._config

    def is_request_url_excluded(self, request: GateRequest) -> bool:
        """True if the configured exclusion matcher accepts the request URL."""
        matcher = self._config.url_matcher
        if matcher is None:
            return False
        return matcher.matches(request.url)

    def has_assertion(self, request: GateRequest) -> bool:
        session = request.session
        if session is None:
            return False
        return session.get(self._config.assertion_session_key) is not None

    def construct_service_url(self, request: GateRequest) -> str:
        """Callback URL for ``request``; raises RequestError if unparsable."""
        return construct_service_url(
            request,
            self._config.protocol.artifact_parameter_name,
            service=self._config.service,
            server_name=self._config.server_name,
        )

    @staticmethod
    def extract_bearer_token(request: GateRequest) -> str | None:
        """Token from an ``Authorization: Bearer`` header, if present."""
        header = request.get_header("Authorization")
        if header is None or not header.strip():
            return None
        if not header.lower().startswith("bearer "):
            return None
        return header[len("bearer ") :]

    def evaluate(self, request: GateRequest) -> GateDecision:
        """
        Decide what happens to ``request``.

        Side effect: in gateway mode, a return visit consumes the stored
        gateway attempt and a redirect stores a new one.

        Args:
            request: Incoming request

        Returns:
            GateDecision; for NEEDS_REDIRECT it carries the login redirect

        Raises:
            RequestError: request URL cannot be parsed
        """
        config = self._config

        if self.is_request_url_excluded(request):
            logger.debug("Request is ignored: %s", request.url)
            return GateDecision(GateState.EXCLUDED)

        if self.has_assertion(request):
            return GateDecision(GateState.AUTHENTICATED)

        # The stored gateway attempt is consumed on every return visit,
        # including the one that carries the ticket
        service_url: str | None = None
        was_gatewayed = False
        if config.gateway:
            service_url = self.construct_service_url(request)
            was_gatewayed = config.gateway_resolver.has_gatewayed_already(request, service_url)

        ticket = request.get_parameter(config.protocol.artifact_parameter_name)
        if not _is_blank(ticket):
            logger.debug("Ticket present, passing request to validation")
            return GateDecision(GateState.TICKETED, service_url=service_url)

        if was_gatewayed:
            logger.debug("Returning from gateway attempt for %s", service_url)
            return GateDecision(GateState.GATEWAYED, service_url=service_url)

        bearer_token = self.extract_bearer_token(request)
        if bearer_token is not None:
            logger.debug("Access token present (sha256:%s)", _fingerprint(bearer_token))
            return GateDecision(GateState.BEARER_TOKEN, bearer_token=bearer_token)

        logger.debug("No ticket and no assertion found")
        if service_url is None:
            service_url = self.construct_service_url(request)

        if config.gateway:
            logger.debug("Storing gateway attempt in session")
            modified_service_url = config.gateway_resolver.store_gateway_information(
                request, service_url
            )
        else:
            modified_service_url = service_url
        logger.debug("Constructed service url: %s", modified_service_url)

        redirect = self._builder.build(
            config.login,
            modified_service_url,
            renew=config.renew,
            gateway=config.gateway,
        )
        return GateDecision(
            GateState.NEEDS_REDIRECT,
            service_url=redirect.service_url,
            redirect=redirect,
        )

    def process(self, request: GateRequest, response: GateResponse) -> GateDecision:
        """
        Evaluate ``request`` and, when it must log in, write the redirect.

        The response gets the ``Cas-Server-Login-Url`` header (for clients
        that handle the login themselves) and whatever the redirect
        strategy produces.
        """
        decision = self.evaluate(request)
        redirect = decision.redirect
        if redirect is None:
            return decision

        response.add_header(LOGIN_URL_HEADER, redirect.login_url)
        logger.debug('Redirecting to "%s"', redirect.redirect_url)
        self._config.redirect_strategy.redirect(request, response, redirect.redirect_url)
        return decision
