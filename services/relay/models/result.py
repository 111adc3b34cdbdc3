"""
Read result models.

Separates "no data" from "upstream failure" so callers never need to match
on error messages.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ErrorInfo(BaseModel):
    kind: str
    message: str


class FetchResult(BaseModel, Generic[T]):
    """
    Outcome of a read operation.

    ``data`` is ``None`` both for an empty answer and for a failure; only
    ``error`` tells them apart.
    """

    data: Optional[T] = None
    error: Optional[ErrorInfo] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Optional[T] = None) -> "FetchResult[T]":
        return cls(data=data)

    @classmethod
    def failure(cls, exc: Exception, data: Optional[T] = None) -> "FetchResult[T]":
        kind = getattr(exc, "kind", "relay_error")
        return cls(data=data, error=ErrorInfo(kind=kind, message=str(exc)))
