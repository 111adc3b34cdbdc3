"""
Where: services/relay/lifecycle.py
What: Relay startup/shutdown orchestration for shared resources.
Why: Keep main.py focused on app assembly while preserving lifecycle behavior.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from services.common.core.http_client import HttpClientFactory

from .config import RelayConfig
from .services.repository import RepositoryService
from .services.request_gateway import RequestGateway
from .services.search_pipeline import SearchPipeline
from .services.session_store import SessionStore
from .services.stream_relay import StreamRelay

logger = logging.getLogger("relay.main")


@asynccontextmanager
async def manage_lifespan(app: FastAPI, relay_config: RelayConfig) -> AsyncIterator[None]:
    """Manage application lifecycle."""
    factory = HttpClientFactory(relay_config)
    factory.configure_global_settings()
    client = factory.create_async_client(
        timeout=httpx.Timeout(relay_config.REQUEST_TIMEOUT, connect=relay_config.CONNECT_TIMEOUT)
    )

    try:
        gateway = RequestGateway(client, relay_config)
        pipeline = SearchPipeline(gateway)

        # A store placed on app.state before startup is kept.
        if getattr(app.state, "session_store", None) is None:
            app.state.session_store = SessionStore(
                prune_interval=relay_config.SESSION_PRUNE_INTERVAL
            )

        app.state.repository = RepositoryService(gateway, pipeline)
        app.state.stream_relay = StreamRelay(gateway)

        logger.info(
            "Relay initialized with shared resources.",
            extra={"remote_endpoint": relay_config.REMOTE_API_ENDPOINT},
        )
        yield
    finally:
        logger.info("Relay shutting down, closing http client.")
        await client.aclose()
