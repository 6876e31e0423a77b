"""
Transport-neutral request and response seams.

The gate never touches a framework object directly. Adapters (see
``cas_authgate.middleware.fastapi``) expose the incoming request as a
``GateRequest`` and translate the ``GateResponse`` the redirect strategy
filled in back into a real response.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, MutableMapping, Protocol, runtime_checkable
from urllib.parse import parse_qsl, urlsplit


@runtime_checkable
class GateRequest(Protocol):
    """
    What the gate needs to know about an incoming request.

    ``url`` is the full requested URL (scheme, host, port, path and query)
    exactly as received. ``session`` is the session-scoped store, or None
    when the request has no session.
    """

    @property
    def url(self) -> str:
        ...

    @property
    def session(self) -> MutableMapping[str, Any] | None:
        ...

    def get_header(self, name: str) -> str | None:
        """Header value by case-insensitive name."""
        ...

    def get_parameter(self, name: str) -> str | None:
        """First query parameter value by name."""
        ...


@dataclass
class SimpleGateRequest:
    """
    Plain in-memory GateRequest.

    Query parameters are read from ``url`` unless given explicitly.

    Usage:
        request = SimpleGateRequest(
            url="https://app.example.org/home?ticket=ST-1",
            headers={"Authorization": "Bearer abc123"},
            session={},
        )
    """

    url: str
    headers: dict[str, str] = field(default_factory=dict)
    session: MutableMapping[str, Any] | None = None
    parameters: dict[str, str] | None = None

    def __post_init__(self) -> None:
        self._headers = {k.lower(): v for k, v in self.headers.items()}
        if self.parameters is None:
            self.parameters = {}
            try:
                query = urlsplit(self.url).query
            except ValueError:
                query = ""
            for name, value in parse_qsl(query, keep_blank_values=True):
                self.parameters.setdefault(name, value)

    def get_header(self, name: str) -> str | None:
        return self._headers.get(name.lower())

    def get_parameter(self, name: str) -> str | None:
        return (self.parameters or {}).get(name)


@dataclass
class GateResponse:
    """
    Response under construction.

    Redirect strategies write into it; the framework adapter turns it into
    the real response. ``headers`` keeps insertion order and allows repeats.
    """

    status_code: int = 200
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""
    media_type: str | None = None

    def add_header(self, name: str, value: str) -> None:
        self.headers.append((name, value))

    def get_header(self, name: str) -> str | None:
        """Last value set for ``name`` (case-insensitive)."""
        for key, value in reversed(self.headers):
            if key.lower() == name.lower():
                return value
        return None

    def send_redirect(self, location: str, status_code: int = 302) -> None:
        self.status_code = status_code
        self.headers = [(k, v) for k, v in self.headers if k.lower() != "location"]
        self.add_header("Location", location)

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400 and self.get_header("Location") is not None
