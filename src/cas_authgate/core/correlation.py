"""
Request correlation for gate logging.

Each request evaluated by the middleware runs inside a correlation
context, so every log line the gate emits for that request carries the
same id. The id is taken from the incoming tracing headers when the
client (or an upstream proxy) supplied one.

Usage:
    with correlation_context(CorrelationHeaders.extract_from_headers(headers)):
        gate.process(request, response)
"""

from __future__ import annotations

import contextvars
import uuid
from contextlib import contextmanager
from typing import Any, Generator, Mapping

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "cas_correlation_id", default=None
)


def get_correlation_id() -> str | None:
    """Return the id of the current correlation context, if any."""
    return _correlation_id.get()


def generate_correlation_id() -> str:
    """
    Generate a new correlation id.

    Format: cas-{16 hex chars}
    """
    return f"cas-{uuid.uuid4().hex[:16]}"


@contextmanager
def correlation_context(correlation_id: str | None = None) -> Generator[str, None, None]:
    """
    Bind a correlation id for the duration of the block.

    Generates an id when none is given and restores the previous one on
    exit. Works for threads and asyncio tasks alike.
    """
    cid = correlation_id or generate_correlation_id()
    token = _correlation_id.set(cid)
    try:
        yield cid
    finally:
        _correlation_id.reset(token)


class CorrelationHeaders:
    """Header names checked for an incoming correlation id, in priority order."""

    CORRELATION_ID = "X-Correlation-ID"
    REQUEST_ID = "X-Request-ID"
    TRACE_ID = "X-Trace-ID"

    @classmethod
    def extract_from_headers(cls, headers: Mapping[str, str]) -> str | None:
        """Return the first non-empty correlation header value, or None."""
        normalized = {k.lower(): v for k, v in headers.items()}
        for header in (cls.CORRELATION_ID, cls.REQUEST_ID, cls.TRACE_ID):
            value = normalized.get(header.lower())
            if value:
                return value
        return None


class CorrelatedLogger:
    """
    Logger wrapper that stamps the current correlation id on each record.

    The id lands in ``record.correlation_id`` so formatters can print it
    with ``%(correlation_id)s``.
    """

    def __init__(self, logger: Any) -> None:
        self._logger = logger

    def _with_correlation(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("correlation_id", get_correlation_id())
        kwargs["extra"] = extra
        return kwargs

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.debug(msg, *args, **self._with_correlation(kwargs))

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.info(msg, *args, **self._with_correlation(kwargs))

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.warning(msg, *args, **self._with_correlation(kwargs))

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.error(msg, *args, **self._with_correlation(kwargs))
