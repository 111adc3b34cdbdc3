"""
Search models.

SearchEnvelope is the stable contract returned to callers; its
``to_solr_response`` rendering mirrors the Solr response layout the UI reads.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SearchQuery(BaseModel):
    """One page request of a logical search. ``rows`` must stay fixed across pages."""

    model_config = ConfigDict(frozen=True)

    term: str = Field(..., min_length=1)
    start: int = Field(default=0, ge=0)
    rows: int = Field(default=10, gt=0)


class NormalizedDocument(BaseModel):
    """
    A search hit after normalization.

    Any remote field is kept; the three fields below are always present.
    """

    model_config = ConfigDict(extra="allow")

    package_path_url: Optional[str] = None
    match_path_url: Optional[str] = None
    match_context: str = ""


class SearchEnvelope(BaseModel):
    numFound: int = Field(default=0, ge=0)
    start: int = Field(default=0, ge=0)
    rows: int = Field(default=10, gt=0)
    qTimeMs: int = Field(default=0, ge=0)
    term: str = ""
    docs: List[NormalizedDocument] = Field(default_factory=list)

    @classmethod
    def empty(cls, term: str, start: int, rows: int, q_time_ms: int = 0) -> "SearchEnvelope":
        return cls(numFound=0, start=start, rows=rows, qTimeMs=q_time_ms, term=term, docs=[])

    def to_solr_response(self) -> Dict[str, Any]:
        return {
            "responseHeader": {
                "status": 0,
                "QTime": self.qTimeMs,
                "params": {"term": self.term, "start": self.start, "rows": self.rows},
            },
            "response": {
                "numFound": self.numFound,
                "start": self.start,
                "docs": [doc.model_dump() for doc in self.docs],
            },
        }
