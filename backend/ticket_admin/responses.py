"""Helpers that build the success envelope and paginate list queries."""
import math
from typing import Any, Optional

from sqlalchemy.orm import Query

from ticket_admin.config import settings
from ticket_admin.schemas.common import ApiResponse, Pagination


def ok(data: Any = None, message: str = "Success", pagination: Optional[Pagination] = None) -> ApiResponse:
    return ApiResponse(data=data, message=message, pagination=pagination)


def paginate(query: Query, page: int, limit: Optional[int]) -> tuple[list, Pagination]:
    """Apply page/limit to ``query`` and return (rows, pagination block)."""
    page = max(1, page)
    limit = min(settings.MAX_PAGE_SIZE, max(1, limit or settings.DEFAULT_PAGE_SIZE))
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    pages = math.ceil(total / limit) if total else 0
    return rows, Pagination(
        total=total,
        page=page,
        limit=limit,
        pages=pages,
        has_next=page < pages,
        has_prev=page > 1,
    )
