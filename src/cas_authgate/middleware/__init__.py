"""FastAPI middleware integration."""

from cas_authgate.middleware.fastapi import (
    CasAuthenticationMiddleware,
    StarletteGateRequest,
    get_gate_decision,
)

__all__ = [
    "CasAuthenticationMiddleware",
    "StarletteGateRequest",
    "get_gate_decision",
]
