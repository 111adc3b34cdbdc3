"""
Services package.

Provides the session store and the remote API integrations.
"""

from .repository import RepositoryService
from .request_gateway import RequestGateway
from .search_pipeline import SearchPipeline
from .session_store import SessionStore
from .stream_relay import StreamRelay

__all__ = [
    "RepositoryService",
    "RequestGateway",
    "SearchPipeline",
    "SessionStore",
    "StreamRelay",
]
