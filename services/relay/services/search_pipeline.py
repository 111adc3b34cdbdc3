"""
Search Pipeline

Queries the remote search endpoint, times the call (QTime) and reshapes the
paged result into a SearchEnvelope.
"""

import logging
import time
from typing import Any, List, Mapping

from services.relay.core.exceptions import InvalidSearchQuery, MalformedResponse
from services.relay.core.transformer import normalize
from services.relay.models.search import NormalizedDocument, SearchEnvelope, SearchQuery
from services.relay.models.session import Session
from services.relay.services.request_gateway import RequestGateway

logger = logging.getLogger("relay.search")

SEARCH_PATH = "search"
SEARCH_SCOPE = "packages"


def _as_count(value: Any, field: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        raise MalformedResponse(f"Search response field '{field}' is not an integer")
    try:
        count = int(value)
    except (TypeError, ValueError) as exc:
        raise MalformedResponse(f"Search response field '{field}' is not an integer") from exc
    return max(count, 0)


class SearchPipeline:
    def __init__(self, gateway: RequestGateway):
        self.gateway = gateway
        self.config = gateway.config

    async def search(self, session: Session, term: str, start: int, rows: int) -> SearchEnvelope:
        """
        Run one page of a package search.

        ``rows`` must be the same for every page of one logical search; the
        pipeline does not check this.

        Raises:
            SessionExpired, AuthCookieMissing, UpstreamError: from the Gateway
            InvalidSearchQuery: negative start or non-positive rows (no request is made)
            MalformedResponse: the result body has an unexpected shape
        """
        if start < 0 or rows <= 0:
            raise InvalidSearchQuery(
                f"Search needs start >= 0 and rows > 0, got start={start} rows={rows}"
            )
        if not term or not term.strip():
            return SearchEnvelope.empty(term or "", start, rows)
        query = SearchQuery(term=term, start=start, rows=rows)

        started = time.perf_counter()
        response = await self.gateway.send(
            session,
            "GET",
            SEARCH_PATH,
            params={
                "scope": SEARCH_SCOPE,
                "term": query.term,
                "start": query.start,
                "rows": query.rows,
            },
        )
        q_time_ms = int(round((time.perf_counter() - started) * 1000))

        results = response.body
        if not results or not isinstance(results, Mapping):
            logger.info("Search returned no usable body", extra={"term": term})
            return SearchEnvelope.empty(term, start, rows, q_time_ms)

        payload = results.get("response") or {}
        if not isinstance(payload, Mapping):
            raise MalformedResponse("Search response field 'response' is not an object")

        raw_docs = payload.get("docs") or []
        if not isinstance(raw_docs, list):
            raise MalformedResponse("Search response field 'docs' is not a list")

        envelope = SearchEnvelope(
            numFound=_as_count(payload.get("numFound"), "numFound"),
            start=_as_count(payload.get("start"), "start"),
            rows=rows,
            qTimeMs=q_time_ms,
            term=term,
            docs=self.transform(raw_docs, term),
        )
        logger.info(
            "Search completed",
            extra={
                "term": term,
                "num_found": envelope.numFound,
                "start": envelope.start,
                "rows": rows,
                "q_time_ms": q_time_ms,
            },
        )
        return envelope

    def transform(self, raw_docs: List[Any], term: str) -> List[NormalizedDocument]:
        docs = []
        for raw in raw_docs:
            if not isinstance(raw, Mapping):
                raise MalformedResponse("Search result document is not an object")
            docs.append(
                normalize(
                    raw,
                    term,
                    local_base_url=self.config.LOCAL_BASE_URL,
                    remote_base_url=self.config.REMOTE_API_ENDPOINT,
                    css_class=self.config.HIGHLIGHT_CLASS,
                )
            )
        return docs
