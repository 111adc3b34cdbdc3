"""
Data model definitions package.

Aggregates the session, gateway, search and result models.
"""

from .auth import (
    AuthenticationResult,
    PasswordUpdateRequest,
    ProfileUpdateRequest,
    SessionGrantRequest,
    SessionGrantResponse,
)
from .gateway import GatewayResponse, OutboundRequest
from .result import ErrorInfo, FetchResult
from .search import NormalizedDocument, SearchEnvelope, SearchQuery
from .session import RenewedCookie, Session

__all__ = [
    "AuthenticationResult",
    "PasswordUpdateRequest",
    "ProfileUpdateRequest",
    "SessionGrantRequest",
    "SessionGrantResponse",
    "GatewayResponse",
    "OutboundRequest",
    "ErrorInfo",
    "FetchResult",
    "NormalizedDocument",
    "SearchEnvelope",
    "SearchQuery",
    "RenewedCookie",
    "Session",
]
