"""Request seams, URL helpers, errors and correlation."""

from cas_authgate.core.correlation import (
    CorrelatedLogger,
    CorrelationHeaders,
    correlation_context,
    generate_correlation_id,
    get_correlation_id,
)
from cas_authgate.core.errors import CasGateError, ConfigurationError, RequestError
from cas_authgate.core.protocol import CasProtocol
from cas_authgate.core.request import GateRequest, GateResponse, SimpleGateRequest
from cas_authgate.core.urls import LoginUrlConfig

__all__ = [
    "CasGateError",
    "ConfigurationError",
    "RequestError",
    "CasProtocol",
    "GateRequest",
    "GateResponse",
    "SimpleGateRequest",
    "LoginUrlConfig",
    # Correlation
    "correlation_context",
    "get_correlation_id",
    "generate_correlation_id",
    "CorrelationHeaders",
    "CorrelatedLogger",
]
