"""
Login redirect construction.

Builds the URL an unauthenticated browser is sent to. Two rewrites happen
on the way:

- Cross-domain: sign-on and logout cookies are scoped to the login host's
  domain, so when the service lives under a different top-level label the
  login host follows it (``sso.example.org`` -> ``sso.example.net`` for a
  service on ``app.example.net``).
- Protocol upgrade: an ``http`` service URL is sent as ``https``.
"""

from __future__ import annotations

from dataclasses import dataclass

from cas_authgate.core.errors import ConfigurationError, RequestError
from cas_authgate.core.urls import (
    LoginUrlConfig,
    construct_redirect_url,
    parse_url,
    replace_host,
    rightmost_label,
    upgrade_to_https,
)


@dataclass(frozen=True)
class LoginRedirect:
    """
    Result of building a login redirect.

    ``login_url`` is the (possibly rewritten) login URL without parameters,
    exposed to script clients. ``redirect_url`` is where the browser goes.
    """

    login_url: str
    redirect_url: str
    service_url: str


class RedirectUrlBuilder:
    """
    Pure builder for login redirects.

    Usage:
        builder = RedirectUrlBuilder("service")
        redirect = builder.build(
            LoginUrlConfig.from_url("https://sso.example.org/login"),
            "http://app.example.net/home",
        )
        redirect.redirect_url
        # https://sso.example.net/login?service=https%3A%2F%2Fapp.example.net%2Fhome
    """

    def __init__(self, service_parameter_name: str = "service") -> None:
        self.service_parameter_name = service_parameter_name

    def rewrite_login_url(self, login_config: LoginUrlConfig, service_host: str) -> str:
        """Login URL with its domain aligned to ``service_host``."""
        service_domain = rightmost_label(service_host)
        if service_domain.lower() == login_config.last_part.lower():
            return login_config.full_url
        return replace_host(
            login_config.full_url,
            f"{login_config.first_part}.{service_domain}",
            ConfigurationError,
        )

    def build(
        self,
        login_config: LoginUrlConfig,
        service_url: str,
        *,
        renew: bool = False,
        gateway: bool = False,
    ) -> LoginRedirect:
        """
        Compute the login redirect for ``service_url``.

        Args:
            login_config: Configured login URL parts
            service_url: Callback URL (already gateway-modified if applicable)
            renew: Ask the login service to force re-authentication
            gateway: Ask the login service for a silent attempt

        Returns:
            LoginRedirect with the rewritten login URL, the final redirect
            target and the https service URL embedded in it

        Raises:
            RequestError: service URL is malformed
            ConfigurationError: login URL is malformed
        """
        service_host = parse_url(service_url, RequestError).hostname
        if not service_host:
            raise RequestError("Service URL has no host", url=service_url)

        login_url = self.rewrite_login_url(login_config, service_host)
        final_service_url = upgrade_to_https(service_url)
        redirect_url = construct_redirect_url(
            login_url,
            self.service_parameter_name,
            final_service_url,
            renew=renew,
            gateway=gateway,
        )
        return LoginRedirect(
            login_url=login_url,
            redirect_url=redirect_url,
            service_url=final_service_url,
        )
