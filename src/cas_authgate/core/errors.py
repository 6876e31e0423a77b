"""
Error taxonomy for the CAS authentication gate.

Configuration problems surface once, when the gate is built.
Request problems surface per request and are never converted into a
pass-through: an unparsable request must not reach the application.
"""

from __future__ import annotations


class CasGateError(Exception):
    """Base class for all gate errors."""


class ConfigurationError(CasGateError):
    """
    The gate cannot be built from the supplied configuration.

    Raised for a missing or unparsable login URL, an invalid exclusion
    pattern, or a plugin class that cannot be loaded.
    """


class RequestError(CasGateError):
    """
    The current request cannot be turned into a service URL.

    Fatal for the request only. Propagates to the host framework.
    """

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url
