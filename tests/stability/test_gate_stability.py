"""
Stability Tests for the CAS gate.

These tests validate:
- Gateway session state does not accumulate across round trips
- Repeated evaluations do not leak objects
- One shared gate is safe under concurrent requests

Run with: pytest tests/stability/ -v --tb=short
"""

import gc
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed

from cas_authgate.core.request import GateResponse, SimpleGateRequest
from cas_authgate.core.urls import LoginUrlConfig
from cas_authgate.engines.gate import AuthenticationGate, GateConfig, GateState
from cas_authgate.engines.gateway import CONST_CAS_GATEWAY, SessionGatewayResolver
from cas_authgate.engines.url_matcher import RegexUrlPatternMatcher


def _create_gate(**overrides) -> AuthenticationGate:
    return AuthenticationGate(
        GateConfig(
            login=LoginUrlConfig.from_url("https://sso.example.org/cas/login"),
            url_matcher=RegexUrlPatternMatcher(r".*/static/.*"),
            **overrides,
        )
    )


class TestGatewaySessionGrowth:
    """Gateway state must be consumed, not accumulated."""

    def test_round_trips_leave_session_empty(self) -> None:
        gate = _create_gate(gateway=True)
        session: dict = {}

        for i in range(1000):
            url = f"http://app.example.org/page/{i}"
            assert gate.evaluate(SimpleGateRequest(url=url, session=session)).state is GateState.NEEDS_REDIRECT
            assert gate.evaluate(SimpleGateRequest(url=url, session=session)).state is GateState.GATEWAYED

        assert CONST_CAS_GATEWAY not in session

    def test_abandoned_attempts_bounded_by_distinct_urls(self) -> None:
        """Re-storing the same URL overwrites instead of appending."""
        resolver = SessionGatewayResolver()
        session: dict = {}

        for _ in range(500):
            for i in range(10):
                request = SimpleGateRequest(url=f"http://app.example.org/p/{i}", session=session)
                resolver.store_gateway_information(request, request.url)

        assert len(session[CONST_CAS_GATEWAY]) == 10


class TestEvaluationMemory:
    """Memory stability for repeated evaluations."""

    def test_repeated_redirects_no_memory_leak(self) -> None:
        gate = _create_gate()

        gc.collect()
        baseline = len(gc.get_objects())

        for i in range(10000):
            response = GateResponse()
            decision = gate.process(SimpleGateRequest(url=f"http://app.example.net/item/{i}"), response)
            assert response.status_code == 302
            assert decision.passes_through is False

        gc.collect()
        growth = len(gc.get_objects()) - baseline

        # Decisions and responses are transient
        assert growth < 1000, f"Memory grew by {growth} objects"


class TestConcurrencyStability:
    """Thread-safety of a shared gate."""

    def test_concurrent_mixed_requests(self) -> None:
        gate = _create_gate(gateway=True)

        errors: list[Exception] = []
        outcomes: list[GateState] = []
        lock = threading.Lock()

        def worker(worker_id: int) -> None:
            session: dict = {}
            try:
                for i in range(100):
                    kind = i % 4
                    if kind == 0:
                        request = SimpleGateRequest(url=f"http://app.example.org/static/{i}.js")
                    elif kind == 1:
                        request = SimpleGateRequest(
                            url=f"http://app.example.org/api/{worker_id}",
                            headers={"Authorization": f"Bearer token-{worker_id}"},
                        )
                    else:
                        # kind 2 stores the attempt, kind 3 returns from it
                        request = SimpleGateRequest(
                            url=f"http://app.example.org/home/{worker_id}/{i // 4}", session=session
                        )
                    state = gate.evaluate(request).state
                    with lock:
                        outcomes.append(state)
            except Exception as e:
                with lock:
                    errors.append(e)

        with ThreadPoolExecutor(max_workers=20) as executor:
            futures = [executor.submit(worker, i) for i in range(20)]
            for future in as_completed(futures):
                future.result()

        assert len(errors) == 0, f"Errors during concurrent evaluation: {errors}"
        assert outcomes.count(GateState.EXCLUDED) == 500
        assert outcomes.count(GateState.BEARER_TOKEN) == 500
        assert outcomes.count(GateState.NEEDS_REDIRECT) == 500
        assert outcomes.count(GateState.GATEWAYED) == 500
