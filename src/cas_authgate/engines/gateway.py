"""
Gateway Resolvers for the CAS gate.

Gateway mode asks the login service to authenticate silently: if the user
has no single sign-on session, the service sends the browser straight
back without a ticket. The resolver remembers that the silent attempt was
made so the gate lets the return visit through instead of looping.

The memory is consumed on read. The first return visit is recognized, a
later visit without a ticket starts a fresh attempt.

Supports both session-backed (default) and Redis (distributed) storage.
"""

from __future__ import annotations

import hashlib
import secrets
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlsplit, urlunsplit

from cas_authgate.core.errors import RequestError
from cas_authgate.core.request import GateRequest

CONST_CAS_GATEWAY = "_const_cas_gateway_"
CONST_CAS_GATEWAY_SESSION_ID = "_const_cas_gateway_sid_"


def gateway_key(service_url: str) -> str:
    """
    Scheme-independent key for a service URL.

    The login service returns to the https-upgraded URL while the attempt
    was stored under the URL the request arrived on, so both must agree.
    """
    try:
        parts = urlsplit(service_url)
    except ValueError:
        return service_url
    if not parts.netloc:
        return service_url
    return urlunsplit(("", parts.netloc.lower(), parts.path, parts.query, ""))


@runtime_checkable
class GatewayResolver(Protocol):
    """
    Protocol for gateway state storage.

    Implementations must isolate sessions from each other.
    """

    def has_gatewayed_already(self, request: GateRequest, service_url: str) -> bool:
        """
        Check and consume a previous gateway attempt for ``service_url``.

        Returns:
            True exactly once per stored attempt
        """
        ...

    def store_gateway_information(self, request: GateRequest, service_url: str) -> str:
        """
        Record that a gateway redirect is about to be issued.

        Returns:
            Service URL to embed in the redirect
        """
        ...


class SessionGatewayResolver:
    """
    Keeps gateway attempts in the request's own session.

    Default resolver. Isolation between users follows from session
    isolation, so no locking is needed here.
    """

    def __init__(self, session_key: str = CONST_CAS_GATEWAY) -> None:
        self._session_key = session_key

    def has_gatewayed_already(self, request: GateRequest, service_url: str) -> bool:
        session = request.session
        if session is None:
            return False

        attempts = session.get(self._session_key)
        if not isinstance(attempts, dict):
            return False

        attempts = dict(attempts)
        found = attempts.pop(gateway_key(service_url), None) is not None
        if attempts:
            session[self._session_key] = attempts
        else:
            session.pop(self._session_key, None)
        return found

    def store_gateway_information(self, request: GateRequest, service_url: str) -> str:
        session = request.session
        if session is None:
            raise RequestError(
                "Gateway mode requires a session to remember the attempt", url=request.url
            )

        attempts = dict(session.get(self._session_key) or {})
        attempts[gateway_key(service_url)] = secrets.token_hex(8)
        session[self._session_key] = attempts
        return service_url


class RedisGatewayResolver:
    """
    Redis-backed gateway resolver for distributed deployments.

    The session only holds a random id; the attempts themselves live in
    Redis with a TTL, keyed by that id and a hash of the service URL.
    Consumption uses GETDEL so two concurrent reads cannot both succeed.
    Calls are blocking with a sync client; under ASGI install the
    middleware with ``threaded=True`` so they stay off the event loop.

    Requires:
        pip install redis

    Usage:
        import redis
        from cas_authgate.engines.gateway import RedisGatewayResolver

        client = redis.Redis(host='localhost', port=6379, db=0)
        resolver = RedisGatewayResolver(client, ttl_seconds=300)
    """

    def __init__(
        self,
        redis_client: Any,  # redis.Redis - type hint avoided for optional dependency
        ttl_seconds: int = 300,
        key_prefix: str = "cas:gateway:",
    ) -> None:
        """
        Initialize Redis gateway resolver.

        Args:
            redis_client: Redis client instance
            ttl_seconds: How long an unanswered attempt is remembered
            key_prefix: Redis key prefix
        """
        self._redis = redis_client
        self._ttl = ttl_seconds
        self._key_prefix = key_prefix

    def _redis_key(self, session_id: str, service_url: str) -> str:
        digest = hashlib.sha256(gateway_key(service_url).encode("utf-8")).hexdigest()
        return f"{self._key_prefix}{session_id}:{digest}"

    def has_gatewayed_already(self, request: GateRequest, service_url: str) -> bool:
        session = request.session
        if session is None:
            return False
        session_id = session.get(CONST_CAS_GATEWAY_SESSION_ID)
        if not session_id:
            return False

        # GETDEL returns the old value, or None if the key was absent
        return self._redis.getdel(self._redis_key(session_id, service_url)) is not None

    def store_gateway_information(self, request: GateRequest, service_url: str) -> str:
        session = request.session
        if session is None:
            raise RequestError(
                "Gateway mode requires a session to remember the attempt", url=request.url
            )

        session_id = session.get(CONST_CAS_GATEWAY_SESSION_ID)
        if not session_id:
            session_id = secrets.token_urlsafe(16)
            session[CONST_CAS_GATEWAY_SESSION_ID] = session_id

        self._redis.set(self._redis_key(session_id, service_url), "1", ex=self._ttl)
        return service_url


class NullGatewayResolver:
    """
    Resolver that remembers nothing.

    WARNING: With gateway mode on, every request without a ticket is sent
    back to the login service. Only use when loop protection happens
    elsewhere.
    """

    def has_gatewayed_already(self, request: GateRequest, service_url: str) -> bool:
        return False

    def store_gateway_information(self, request: GateRequest, service_url: str) -> str:
        return service_url
