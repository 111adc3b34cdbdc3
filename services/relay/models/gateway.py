"""
Request/response models of the Request Gateway.
"""

from typing import Any, Dict, List, Mapping, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field


class OutboundRequest(BaseModel):
    """One authenticated call to the remote API. Immutable per call."""

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    path: str
    params: Optional[Mapping[str, Any]] = None
    json_body: Optional[Any] = None
    timeout: Optional[float] = None


class GatewayResponse(BaseModel):
    """
    Parsed remote API response.

    Header names are stored lower-case; every value is the ordered list of
    header lines received under that name.
    """

    status_code: int
    headers: Dict[str, List[str]] = Field(default_factory=dict)
    body: Any = None

    @staticmethod
    def collect_headers(headers: httpx.Headers) -> Dict[str, List[str]]:
        collected: Dict[str, List[str]] = {}
        for name, value in headers.multi_items():
            collected.setdefault(name.lower(), []).append(value)
        return collected
