"""
URL helpers for the gate.

Parsing here is strict: a URL without a scheme or host, or with an
invalid port, is an error. Which error depends on where the URL came
from, so callers pass the exception class to raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import SplitResult, quote, urlsplit, urlunsplit

from cas_authgate.core.errors import CasGateError, ConfigurationError, RequestError
from cas_authgate.core.request import GateRequest


def parse_url(value: str | None, error: type[CasGateError] = RequestError) -> SplitResult:
    """
    Split ``value`` into its components, or raise ``error``.

    Args:
        value: Absolute URL
        error: Exception class raised for unparsable input

    Returns:
        The split URL. ``hostname`` and ``port`` are guaranteed readable.
    """
    if value is None or not value.strip():
        raise error("URL is empty")
    try:
        parts = urlsplit(value.strip())
        _ = parts.port  # ValueError for a bad port
    except ValueError as e:
        raise error(f"Malformed URL {value!r}: {e}") from e
    if not parts.scheme or not parts.hostname:
        raise error(f"Malformed URL {value!r}: scheme and host are required")
    return parts


def _netloc(host: str, port: int | None) -> str:
    if ":" in host:  # IPv6 literal
        host = f"[{host}]"
    return f"{host}:{port}" if port is not None else host


def replace_host(url: str, host: str, error: type[CasGateError] = ConfigurationError) -> str:
    """Return ``url`` with its host swapped, keeping scheme, port, path, query and fragment."""
    parts = parse_url(url, error)
    return urlunsplit(
        (parts.scheme, _netloc(host, parts.port), parts.path, parts.query, parts.fragment)
    )


def upgrade_to_https(url: str) -> str:
    """
    Rewrite an ``http`` URL to ``https``.

    Host, port, path and query are kept; the fragment is dropped. URLs with
    any other scheme are returned unchanged.
    """
    parts = parse_url(url, RequestError)
    if parts.scheme.lower() != "http":
        return url
    return urlunsplit(("https", _netloc(parts.hostname, parts.port), parts.path, parts.query, ""))


def rightmost_label(host: str) -> str:
    """Substring after the last dot of ``host``; the whole host if there is none."""
    return host[host.rfind(".") + 1 :]


@dataclass(frozen=True)
class LoginUrlConfig:
    """
    The CAS login URL split around the last dot of its host.

    For ``https://sso.example.org/cas/login`` the host is ``sso.example.org``,
    so ``first_part`` is ``sso.example`` and ``last_part`` is ``org``.
    """

    first_part: str
    last_part: str
    full_url: str

    @classmethod
    def from_url(cls, login_url: str | None) -> LoginUrlConfig:
        """
        Split a configured login URL.

        Raises:
            ConfigurationError: URL missing, unparsable, or host has no dot
        """
        if login_url is None or not login_url.strip():
            raise ConfigurationError("cas_server_login_url cannot be empty")
        host = parse_url(login_url, ConfigurationError).hostname or ""
        last_dot = host.rfind(".")
        if last_dot <= 0 or last_dot == len(host) - 1:
            raise ConfigurationError(
                f"Login URL host {host!r} must have at least two DNS labels"
            )
        return cls(first_part=host[:last_dot], last_part=host[last_dot + 1 :], full_url=login_url.strip())


def _strip_parameter(query: str, name: str) -> str:
    """Drop every ``name=...`` pair from a raw query string, keeping the rest verbatim."""
    if not query:
        return ""
    kept = [pair for pair in query.split("&") if pair and pair.split("=", 1)[0] != name]
    return "&".join(kept)


def construct_service_url(
    request: GateRequest,
    artifact_parameter_name: str,
    *,
    service: str | None = None,
    server_name: str | None = None,
) -> str:
    """
    Build the URL the login service must send the browser back to.

    A configured ``service`` is returned as is. Otherwise the request's own
    URL is used with the ticket parameter removed from its query. When
    ``server_name`` is set it replaces the request's scheme, host and port;
    a bare host name keeps the request's scheme.

    Raises:
        RequestError: the request URL cannot be parsed
    """
    if service:
        return service

    parts = parse_url(request.url, RequestError)
    if server_name:
        name = server_name.rstrip("/")
        origin = name if name.startswith(("http://", "https://")) else f"{parts.scheme}://{name}"
    else:
        origin = f"{parts.scheme}://{parts.netloc}"

    query = _strip_parameter(parts.query, artifact_parameter_name)
    return f"{origin}{parts.path}" + (f"?{query}" if query else "")


def construct_redirect_url(
    login_url: str,
    service_parameter_name: str,
    service_url: str,
    *,
    renew: bool = False,
    gateway: bool = False,
) -> str:
    """
    Append the service parameter and the renew/gateway flags to ``login_url``.

    The service URL is percent-encoded. Flags are only added when true.
    Parameters go before any fragment of the login URL.
    """
    base, hash_mark, fragment = login_url.partition("#")
    separator = "&" if "?" in base else "?"
    redirect = f"{base}{separator}{service_parameter_name}={quote(service_url, safe='')}"
    if renew:
        redirect += "&renew=true"
    if gateway:
        redirect += "&gateway=true"
    return redirect + hash_mark + fragment
