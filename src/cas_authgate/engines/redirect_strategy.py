"""
Redirect strategies.

A strategy turns "send the client to this URL" into a concrete response.
The gate only ever calls ``redirect``; how the client is moved is up to
the strategy.
"""

from __future__ import annotations

import json
from typing import Protocol, runtime_checkable
from xml.sax.saxutils import quoteattr

from cas_authgate.core.request import GateRequest, GateResponse


@runtime_checkable
class RedirectStrategy(Protocol):
    """Protocol for redirect strategies."""

    def redirect(self, request: GateRequest, response: GateResponse, target_url: str) -> None:
        """
        Write the redirect to ``target_url`` into ``response``.

        Args:
            request: Request being redirected
            response: Response under construction
            target_url: Login redirect URL
        """
        ...


class DefaultRedirectStrategy:
    """Plain HTTP redirect (302 Found with a Location header)."""

    def __init__(self, status_code: int = 302) -> None:
        self.status_code = status_code

    def redirect(self, request: GateRequest, response: GateResponse, target_url: str) -> None:
        response.send_redirect(target_url, self.status_code)


class FacesCompatibleRedirectStrategy(DefaultRedirectStrategy):
    """
    Redirect that JSF partial (AJAX) requests can follow.

    A JSF AJAX request would silently swallow a 302, so it gets a
    ``partial-response`` document carrying the redirect instead.
    """

    FACES_PARTIAL_ATTRIBUTE = "javax.faces.partial.ajax"

    def redirect(self, request: GateRequest, response: GateResponse, target_url: str) -> None:
        if request.get_parameter(self.FACES_PARTIAL_ATTRIBUTE):
            response.status_code = 200
            response.media_type = "text/xml"
            response.body = (
                "<?xml version='1.0' encoding='UTF-8'?>"
                f"<partial-response><redirect url={quoteattr(target_url)}></redirect>"
                "</partial-response>"
            ).encode("utf-8")
            return
        super().redirect(request, response, target_url)


class XhrRedirectStrategy(DefaultRedirectStrategy):
    """
    Redirect for script clients that cannot follow cross-origin redirects.

    XMLHttpRequest and JSON-only requests get a 401 with the login URL in
    a JSON body; browsers navigating normally get the usual 302.
    """

    def redirect(self, request: GateRequest, response: GateResponse, target_url: str) -> None:
        if not self._is_script_request(request):
            super().redirect(request, response, target_url)
            return

        response.status_code = 401
        response.media_type = "application/json"
        response.body = json.dumps({"login_url": target_url}).encode("utf-8")

    @staticmethod
    def _is_script_request(request: GateRequest) -> bool:
        requested_with = request.get_header("X-Requested-With") or ""
        if requested_with.lower() == "xmlhttprequest":
            return True
        accept = (request.get_header("Accept") or "").lower()
        return "application/json" in accept and "text/html" not in accept
