"""
Gate configuration loading.

Turns flat settings (environment variables or a property mapping using
the classic CAS client keys) into a validated ``GateConfig``. All plugin
classes are resolved here, once, so a broken configuration stops the
application at startup instead of failing requests.

Usage:
    settings = GateSettings.from_env()          # CAS_SERVER_LOGIN_URL, CAS_GATEWAY, ...
    gate = AuthenticationGate(build_gate_config(settings))
"""

from __future__ import annotations

import logging
import os
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from cas_authgate.core.errors import ConfigurationError
from cas_authgate.core.protocol import CasProtocol
from cas_authgate.core.urls import LoginUrlConfig
from cas_authgate.engines.gate import GateConfig
from cas_authgate.engines.gateway import GatewayResolver, SessionGatewayResolver
from cas_authgate.engines.redirect_strategy import DefaultRedirectStrategy, RedirectStrategy
from cas_authgate.engines.url_matcher import UrlPatternMatcher, create_url_matcher, load_class

logger = logging.getLogger(__name__)

# Classic CAS client property names -> GateSettings fields
PROPERTY_ALIASES: dict[str, str] = {
    "casServerLoginUrl": "cas_server_login_url",
    "renew": "renew",
    "gateway": "gateway",
    "ignorePattern": "ignore_pattern",
    "ignoreUrlPatternType": "ignore_url_pattern_type",
    "gatewayStorageClass": "gateway_storage_class",
    "authenticationRedirectStrategyClass": "authentication_redirect_strategy_class",
    "protocol": "protocol",
    "service": "service",
    "serverName": "server_name",
}


class GateSettings(BaseModel):
    """Flat, validated gate settings."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    cas_server_login_url: str = Field(..., description="CAS login URL, e.g. https://sso.example.org/cas/login")
    renew: bool = Field(default=False, description="Force re-authentication at the login service")
    gateway: bool = Field(default=False, description="Try silent authentication first")
    ignore_pattern: str | None = Field(default=None, description="URLs matching this pattern skip the gate")
    ignore_url_pattern_type: str = Field(
        default="REGEX",
        description="CONTAINS, REGEX, EXACT or a qualified matcher class name",
    )
    gateway_storage_class: str | None = Field(default=None, description="Qualified GatewayResolver class")
    authentication_redirect_strategy_class: str | None = Field(
        default=None, description="Qualified RedirectStrategy class"
    )
    protocol: CasProtocol = Field(default=CasProtocol.CAS2)
    service: str | None = Field(default=None, description="Fixed service URL")
    server_name: str | None = Field(default=None, description="Public host used to build service URLs")

    @field_validator("cas_server_login_url")
    @classmethod
    def _login_url_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("cas_server_login_url cannot be empty")
        return value.strip()

    @field_validator(
        "ignore_pattern",
        "gateway_storage_class",
        "authentication_redirect_strategy_class",
        "service",
        "server_name",
        mode="before",
    )
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("protocol", mode="before")
    @classmethod
    def _protocol_upper(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @classmethod
    def from_mapping(cls, properties: Mapping[str, Any]) -> GateSettings:
        """
        Build settings from a property mapping.

        Accepts both field names and the classic camelCase property names.

        Raises:
            ConfigurationError: missing or invalid values
        """
        values = {PROPERTY_ALIASES.get(key, key): value for key, value in properties.items()}
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid gate settings: {e}") from e

    @classmethod
    def from_env(cls, prefix: str = "CAS_", environ: Mapping[str, str] | None = None) -> GateSettings:
        """
        Build settings from environment variables.

        ``CAS_SERVER_LOGIN_URL`` maps to ``cas_server_login_url``,
        ``CAS_GATEWAY`` to ``gateway`` and so on.

        Raises:
            ConfigurationError: missing or invalid values
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name in cls.model_fields:
            key = f"{prefix}{name.upper()}"
            # CAS_ prefix already carries the "cas_" of the login URL field
            if name.startswith("cas_"):
                key = f"{prefix}{name[4:].upper()}"
            if key in env:
                values[name] = env[key]
        return cls.from_mapping(values)


def _instantiate(dotted_path: str, protocol: type, label: str) -> Any:
    plugin_class = load_class(dotted_path)
    try:
        instance = plugin_class()
    except TypeError as e:
        raise ConfigurationError(f"Could not instantiate {label} {dotted_path!r}: {e}") from e
    if not isinstance(instance, protocol):
        raise ConfigurationError(f"{dotted_path!r} is not a {label}")
    return instance


def build_gate_config(
    settings: GateSettings,
    *,
    gateway_resolver: GatewayResolver | None = None,
    redirect_strategy: RedirectStrategy | None = None,
    url_matcher: UrlPatternMatcher | None = None,
) -> GateConfig:
    """
    Resolve settings into an immutable GateConfig.

    Injected collaborators take precedence over class names in settings.

    Raises:
        ConfigurationError: anything that would leave redirects undefined
    """
    login = LoginUrlConfig.from_url(settings.cas_server_login_url)

    if url_matcher is None and settings.ignore_pattern is not None:
        url_matcher = create_url_matcher(settings.ignore_url_pattern_type, settings.ignore_pattern)

    if gateway_resolver is None:
        if settings.gateway_storage_class:
            gateway_resolver = _instantiate(
                settings.gateway_storage_class, GatewayResolver, "GatewayResolver"
            )
        else:
            gateway_resolver = SessionGatewayResolver()

    if redirect_strategy is None:
        if settings.authentication_redirect_strategy_class:
            redirect_strategy = _instantiate(
                settings.authentication_redirect_strategy_class, RedirectStrategy, "RedirectStrategy"
            )
        else:
            redirect_strategy = DefaultRedirectStrategy()

    logger.info(
        "CAS gate configured: login=%s renew=%s gateway=%s protocol=%s exclusion=%s",
        login.full_url,
        settings.renew,
        settings.gateway,
        settings.protocol.value,
        type(url_matcher).__name__ if url_matcher else None,
    )

    return GateConfig(
        login=login,
        renew=settings.renew,
        gateway=settings.gateway,
        protocol=settings.protocol,
        url_matcher=url_matcher,
        gateway_resolver=gateway_resolver,
        redirect_strategy=redirect_strategy,
        service=settings.service,
        server_name=settings.server_name,
    )
