"""Unit tests for login redirect construction and URL helpers."""

import pytest

from cas_authgate.core.errors import ConfigurationError, RequestError
from cas_authgate.core.request import SimpleGateRequest
from cas_authgate.core.urls import (
    LoginUrlConfig,
    construct_redirect_url,
    construct_service_url,
    upgrade_to_https,
)
from cas_authgate.engines.redirect_url import RedirectUrlBuilder


class TestLoginUrlConfig:
    """Tests for splitting the login URL host."""

    def test_split_on_last_dot(self) -> None:
        config = LoginUrlConfig.from_url("https://sso.example.org/login")

        assert config.first_part == "sso.example"
        assert config.last_part == "org"
        assert config.full_url == "https://sso.example.org/login"

    @pytest.mark.parametrize("login_url", [
        None,
        "",
        "   ",
        "not a url",
        "https://localhost/login",
        "https://sso.example.org:notaport/login",
    ])
    def test_invalid_login_url(self, login_url) -> None:
        with pytest.raises(ConfigurationError):
            LoginUrlConfig.from_url(login_url)


class TestConstructServiceUrl:
    """Tests for building the callback URL from the request."""

    def test_ticket_parameter_removed(self) -> None:
        request = SimpleGateRequest(url="http://app.example.org:8080/home?a=1&ticket=ST-1&b=2")

        assert construct_service_url(request, "ticket") == "http://app.example.org:8080/home?a=1&b=2"

    def test_query_dropped_when_only_ticket(self) -> None:
        request = SimpleGateRequest(url="http://app.example.org/home?ticket=ST-1")

        assert construct_service_url(request, "ticket") == "http://app.example.org/home"

    def test_configured_service_wins(self) -> None:
        request = SimpleGateRequest(url="http://app.example.org/home")

        assert construct_service_url(
            request, "ticket", service="https://fixed.example.org/cas"
        ) == "https://fixed.example.org/cas"

    def test_server_name_with_scheme(self) -> None:
        request = SimpleGateRequest(url="http://10.0.0.5:8000/home?a=1")

        assert construct_service_url(
            request, "ticket", server_name="https://public.example.org/"
        ) == "https://public.example.org/home?a=1"

    def test_server_name_without_scheme_keeps_request_scheme(self) -> None:
        request = SimpleGateRequest(url="http://10.0.0.5:8000/home")

        assert construct_service_url(
            request, "ticket", server_name="public.example.org"
        ) == "http://public.example.org/home"

    @pytest.mark.parametrize("url", ["not a url", "/relative/path", "http://[::1/home"])
    def test_unparsable_request_url(self, url: str) -> None:
        with pytest.raises(RequestError):
            construct_service_url(SimpleGateRequest(url=url), "ticket")


class TestConstructRedirectUrl:
    """Tests for appending the login parameters."""

    def test_service_is_encoded(self) -> None:
        assert construct_redirect_url(
            "https://sso.example.org/login", "service", "https://app.example.org/a?b=1"
        ) == "https://sso.example.org/login?service=https%3A%2F%2Fapp.example.org%2Fa%3Fb%3D1"

    def test_existing_query_uses_ampersand(self) -> None:
        assert construct_redirect_url(
            "https://sso.example.org/login?locale=en", "service", "https://app.example.org/"
        ) == "https://sso.example.org/login?locale=en&service=https%3A%2F%2Fapp.example.org%2F"

    def test_flags_only_when_true(self) -> None:
        plain = construct_redirect_url("https://sso.example.org/login", "service", "https://a.example.org/")
        both = construct_redirect_url(
            "https://sso.example.org/login", "service", "https://a.example.org/", renew=True, gateway=True
        )

        assert "renew" not in plain
        assert "gateway" not in plain
        assert both.endswith("&renew=true&gateway=true")

    def test_fragment_kept_after_parameters(self) -> None:
        assert construct_redirect_url(
            "https://sso.example.org/login#top", "service", "https://a.example.org/"
        ) == "https://sso.example.org/login?service=https%3A%2F%2Fa.example.org%2F#top"


class TestUpgradeToHttps:
    """Tests for the service URL protocol upgrade."""

    def test_http_upgraded_keeping_port_and_query(self) -> None:
        assert upgrade_to_https("http://app.example.org:8080/a?b=1") == "https://app.example.org:8080/a?b=1"

    def test_https_untouched(self) -> None:
        assert upgrade_to_https("https://app.example.org/a") == "https://app.example.org/a"


class TestRedirectUrlBuilder:
    """Tests for RedirectUrlBuilder."""

    @pytest.fixture
    def builder(self) -> RedirectUrlBuilder:
        return RedirectUrlBuilder("service")

    @pytest.fixture
    def login(self) -> LoginUrlConfig:
        return LoginUrlConfig.from_url("https://sso.example.org/login")

    def test_cross_domain_rewrite_and_upgrade(
        self, builder: RedirectUrlBuilder, login: LoginUrlConfig
    ) -> None:
        """A service on .net moves the login host to .net and goes out as https."""
        redirect = builder.build(login, "http://app.example.net/home")

        assert redirect.login_url == "https://sso.example.net/login"
        assert redirect.service_url == "https://app.example.net/home"
        assert redirect.redirect_url == (
            "https://sso.example.net/login?service=https%3A%2F%2Fapp.example.net%2Fhome"
        )

    def test_same_domain_keeps_login_host(
        self, builder: RedirectUrlBuilder, login: LoginUrlConfig
    ) -> None:
        redirect = builder.build(login, "http://sub.sso.example.org/x")

        assert redirect.login_url == "https://sso.example.org/login"
        assert redirect.service_url == "https://sub.sso.example.org/x"

    def test_domain_comparison_ignores_case(
        self, builder: RedirectUrlBuilder, login: LoginUrlConfig
    ) -> None:
        redirect = builder.build(login, "https://APP.EXAMPLE.ORG/x")

        assert redirect.login_url == "https://sso.example.org/login"

    def test_rewrite_keeps_login_port_path_and_query(self, builder: RedirectUrlBuilder) -> None:
        login = LoginUrlConfig.from_url("https://sso.example.org:8443/cas/login?locale=en")

        redirect = builder.build(login, "http://app.example.net:8080/a?b=1")

        assert redirect.login_url == "https://sso.example.net:8443/cas/login?locale=en"
        assert redirect.redirect_url == (
            "https://sso.example.net:8443/cas/login?locale=en"
            "&service=https%3A%2F%2Fapp.example.net%3A8080%2Fa%3Fb%3D1"
        )

    def test_single_label_service_host(
        self, builder: RedirectUrlBuilder, login: LoginUrlConfig
    ) -> None:
        redirect = builder.build(login, "http://localhost:8000/x")

        assert redirect.login_url == "https://sso.example.localhost/login"

    def test_flags(self, builder: RedirectUrlBuilder, login: LoginUrlConfig) -> None:
        redirect = builder.build(login, "https://app.example.org/", renew=True, gateway=True)

        assert redirect.redirect_url.endswith("&renew=true&gateway=true")

    def test_custom_service_parameter(self, login: LoginUrlConfig) -> None:
        redirect = RedirectUrlBuilder("TARGET").build(login, "https://app.example.org/")

        assert "?TARGET=https%3A%2F%2Fapp.example.org%2F" in redirect.redirect_url

    def test_malformed_service_url(self, builder: RedirectUrlBuilder, login: LoginUrlConfig) -> None:
        with pytest.raises(RequestError):
            builder.build(login, "not a url")
