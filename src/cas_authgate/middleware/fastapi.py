"""
FastAPI / Starlette integration for the CAS gate.

Puts every request through the gate before it reaches a route. Requests
that must log in get the redirect produced by the configured strategy;
all others continue with the decision stored on ``request.state.cas_gate``.

Usage:
    import os

    from fastapi import Depends, FastAPI
    from starlette.middleware.sessions import SessionMiddleware

    from cas_authgate import AuthenticationGate, GateDecision, GateSettings, build_gate_config
    from cas_authgate.middleware.fastapi import CasAuthenticationMiddleware, get_gate_decision

    gate = AuthenticationGate(build_gate_config(GateSettings.from_env()))

    app = FastAPI()
    app.add_middleware(CasAuthenticationMiddleware, gate=gate)
    # Added last so it runs first: the gate reads the session it loads
    app.add_middleware(SessionMiddleware, secret_key=os.environ["SESSION_SECRET"])

    @app.get("/home")
    async def home(decision: GateDecision = Depends(get_gate_decision)):
        return {"state": decision.state}
"""

from __future__ import annotations

from typing import Any, MutableMapping

from fastapi import HTTPException, Request, status
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from cas_authgate.core.correlation import CorrelationHeaders, correlation_context
from cas_authgate.core.request import GateResponse
from cas_authgate.engines.gate import AuthenticationGate, GateDecision


class StarletteGateRequest:
    """GateRequest view of a Starlette request."""

    def __init__(self, request: Request) -> None:
        self._request = request

    @property
    def url(self) -> str:
        return str(self._request.url)

    @property
    def session(self) -> MutableMapping[str, Any] | None:
        # request.session asserts when SessionMiddleware is not installed
        if "session" not in self._request.scope:
            return None
        return self._request.session

    def get_header(self, name: str) -> str | None:
        return self._request.headers.get(name)

    def get_parameter(self, name: str) -> str | None:
        return self._request.query_params.get(name)


def to_starlette_response(gate_response: GateResponse) -> Response:
    """Translate a filled-in GateResponse into a Starlette response."""
    response = Response(
        content=gate_response.body,
        status_code=gate_response.status_code,
        media_type=gate_response.media_type,
    )
    for name, value in gate_response.headers:
        response.headers.append(name, value)
    return response


class CasAuthenticationMiddleware(BaseHTTPMiddleware):
    """
    Middleware that enforces CAS authentication on every HTTP request.

    RequestError and ConfigurationError are not caught here: a request the
    gate cannot judge must not reach the application.

    Set ``threaded=True`` when the gateway resolver does blocking I/O
    (RedisGatewayResolver with a sync client) so the gate runs in the
    threadpool instead of on the event loop.
    """

    def __init__(self, app: ASGIApp, gate: AuthenticationGate, threaded: bool = False) -> None:
        super().__init__(app)
        self.gate = gate
        self.threaded = threaded

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Run the gate, then either continue or answer with the redirect."""
        correlation_id = CorrelationHeaders.extract_from_headers(request.headers)

        with correlation_context(correlation_id):
            gate_response = GateResponse()
            gate_request = StarletteGateRequest(request)
            if self.threaded:
                decision = await run_in_threadpool(self.gate.process, gate_request, gate_response)
            else:
                decision = self.gate.process(gate_request, gate_response)
            request.state.cas_gate = decision

            if decision.passes_through:
                return await call_next(request)

            return to_starlette_response(gate_response)


async def get_gate_decision(request: Request) -> GateDecision:
    """
    FastAPI dependency returning the gate's decision for this request.

    Raises:
        HTTPException: 500 if CasAuthenticationMiddleware is not installed
    """
    decision = getattr(request.state, "cas_gate", None)
    if decision is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="CAS authentication middleware not configured",
        )
    return decision
