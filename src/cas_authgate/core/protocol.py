"""CAS protocol variants and the request parameter names they use."""

from __future__ import annotations

from enum import Enum


class CasProtocol(str, Enum):
    """
    Supported login protocols.

    Each variant knows the name of the parameter carrying the ticket on
    the callback request and the name of the parameter carrying the
    service URL on the login redirect.
    """

    CAS1 = "CAS1"
    CAS2 = "CAS2"
    CAS3 = "CAS3"
    SAML11 = "SAML11"

    @property
    def artifact_parameter_name(self) -> str:
        return "SAMLart" if self is CasProtocol.SAML11 else "ticket"

    @property
    def service_parameter_name(self) -> str:
        return "TARGET" if self is CasProtocol.SAML11 else "service"
