"""Shared response envelope and pagination schemas."""
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from ticket_admin.clock import utc_now

T = TypeVar("T")


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int
    has_next: bool
    has_prev: bool


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope returned by every back-office route."""

    success: bool = True
    message: str = "Success"
    data: Optional[T] = None
    pagination: Optional[Pagination] = None
    timestamp: datetime = Field(default_factory=utc_now)


class ErrorBody(BaseModel):
    code: str
    message: str
    field: Optional[str] = None
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorBody
    timestamp: datetime = Field(default_factory=utc_now)
