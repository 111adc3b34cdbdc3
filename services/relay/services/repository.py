"""
Repository Service

Caller-facing operations against the remote repository API. Reads answer
with a FetchResult (data or an error flag, never an exception); writes raise
so the caller can show the failure to the end user.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from services.relay.core.exceptions import (
    InvalidPath,
    MalformedResponse,
    RelayError,
    RequestRejected,
)
from services.relay.core.transformer import rewrite_url
from services.relay.models.auth import PasswordUpdateRequest
from services.relay.models.result import FetchResult
from services.relay.models.search import SearchEnvelope
from services.relay.models.session import Session
from services.relay.services.request_gateway import RequestGateway
from services.relay.services.search_pipeline import SearchPipeline

logger = logging.getLogger("relay.repository")

FS_PREFIX = "/fs"
DOWNLOAD_PREFIX = "/download"
PREVIEW_PREFIX = "/preview"


class RepositoryService:
    def __init__(self, gateway: RequestGateway, pipeline: Optional[SearchPipeline] = None):
        self.gateway = gateway
        self.pipeline = pipeline or SearchPipeline(gateway)

    @property
    def endpoint(self) -> str:
        return self.gateway.endpoint

    async def _get_json(self, session: Session, path: str) -> Any:
        response = await self.gateway.send(session, "GET", path)
        return response.body

    # ===========================================
    # Reads
    # ===========================================

    async def fetch_resource(self, session: Session, path: str) -> FetchResult[Dict[str, Any]]:
        """
        Fetch a file/tree listing and rewrite its URLs to local routes.

        Raises:
            InvalidPath: blank path
        """
        sanitized = path.strip().strip("/")
        if not sanitized:
            raise InvalidPath("Invalid file path.")

        try:
            data = await self._get_json(session, sanitized)
        except RelayError as exc:
            logger.error(f"Error fetching resource '{sanitized}': {exc}")
            return FetchResult.failure(exc)

        if not isinstance(data, dict):
            return FetchResult.success(None)

        data["url"] = f"{FS_PREFIX}/{sanitized}"
        children = data.get("children")
        if isinstance(children, list):
            data["children"] = [self._rewrite_child(child) for child in children]
        return FetchResult.success(data)

    def _rewrite_child(self, child: Any) -> Any:
        if not isinstance(child, dict):
            return child
        if isinstance(child.get("url"), str):
            child["url"] = rewrite_url(child["url"], self.endpoint, FS_PREFIX)
        if isinstance(child.get("download_url"), str):
            download_url = child["download_url"]
            child["download_url"] = rewrite_url(download_url, self.endpoint, DOWNLOAD_PREFIX)
            child["preview_url"] = rewrite_url(download_url, self.endpoint, PREVIEW_PREFIX)
        return child

    async def ping(self, session: Session) -> FetchResult[Any]:
        try:
            return FetchResult.success(await self._get_json(session, "ping"))
        except RelayError as exc:
            return FetchResult.failure(exc)

    async def fetch_partners(self, session: Session) -> FetchResult[Any]:
        try:
            return FetchResult.success(await self._get_json(session, "partners"))
        except RelayError as exc:
            logger.error(f"Error fetching partners: {exc}")
            return FetchResult.failure(exc)

    async def fetch_partner(self, session: Session, partner_id: str) -> FetchResult[Dict[str, Any]]:
        """
        Partner record with its collections; both lookups run concurrently.

        Both calls are awaited to completion even when one fails, so a cookie
        renewed by either of them is in the session before this returns.
        """
        partner, collections = await asyncio.gather(
            self._get_json(session, f"partners/{partner_id}"),
            self._get_json(session, f"partners/{partner_id}/colls"),
            return_exceptions=True,
        )
        outcomes = (partner, collections)
        for outcome in outcomes:
            if isinstance(outcome, BaseException) and not isinstance(outcome, RelayError):
                raise outcome
        for outcome in outcomes:
            if isinstance(outcome, RelayError):
                logger.error(f"Error fetching partner {partner_id}: {outcome}")
                return FetchResult.failure(outcome)

        if not isinstance(partner, dict):
            return FetchResult.success(None)
        partner["collections"] = collections
        return FetchResult.success(partner)

    async def fetch_partner_collections(
        self, session: Session, partner_id: str
    ) -> FetchResult[Any]:
        try:
            return FetchResult.success(
                await self._get_json(session, f"partners/{partner_id}/colls")
            )
        except RelayError as exc:
            logger.error(f"Error fetching collections of partner {partner_id}: {exc}")
            return FetchResult.failure(exc)

    async def fetch_collection(
        self, session: Session, collection_id: str
    ) -> FetchResult[Dict[str, Any]]:
        """Collection record with its partner embedded and storage URL made local."""
        try:
            data = await self._get_json(session, f"colls/{collection_id}")
            if not isinstance(data, dict):
                return FetchResult.success(None)
            partner_id = data.get("partner_id")
            if partner_id in (None, ""):
                raise MalformedResponse("partner_id not set")

            data["partner"] = await self._get_json(session, f"partners/{partner_id}")
        except RelayError as exc:
            logger.error(f"Error fetching collection {collection_id}: {exc}")
            return FetchResult.failure(exc)

        if isinstance(data.get("storage_url"), str):
            data["storage_url"] = rewrite_url(data["storage_url"], self.endpoint, FS_PREFIX)
        return FetchResult.success(data)

    async def search(
        self, session: Session, term: str, start: int, rows: int
    ) -> FetchResult[SearchEnvelope]:
        try:
            envelope = await self.pipeline.search(session, term, start, rows)
        except RelayError as exc:
            logger.error(f"Search error: {exc}", extra={"term": term})
            empty = SearchEnvelope.empty(term, start, rows) if start >= 0 and rows > 0 else None
            return FetchResult.failure(exc, data=empty)
        return FetchResult.success(envelope)

    # ===========================================
    # Writes
    # ===========================================

    async def update_profile_name(self, session: Session, user_id: str, name: str) -> Any:
        """
        Raises:
            RelayError: any failure, surfaced to the caller
        """
        logger.info("Updating profile name", extra={"user_id": user_id})
        response = await self.gateway.send(session, "PATCH", "users", json_body={"username": name})
        self._raise_if_rejected(response.body, "Failed to update name.")
        return response.body

    async def update_password(self, session: Session, change: PasswordUpdateRequest) -> Any:
        """
        Raises:
            RequestRejected: the remote API refused the change
            RelayError: any other failure
        """
        response = await self.gateway.send(session, "PATCH", "users", json_body=change.model_dump())
        self._raise_if_rejected(
            response.body, "The provided password does not match your current password."
        )
        return response.body

    @staticmethod
    def _raise_if_rejected(body: Any, default_message: str) -> None:
        if isinstance(body, dict) and body.get("error"):
            error = body["error"]
            message = error if isinstance(error, str) else default_message
            raise RequestRejected(message)
