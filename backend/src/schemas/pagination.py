"""Shared pagination schema and query helper."""

import math
from typing import Generic, List, TypeVar

from pydantic import BaseModel, Field
from sqlalchemy.orm import Query

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a listing."""
    items: List[T] = Field(..., description="Entries on this page")
    total: int = Field(..., description="Total number of entries matching filters")
    page: int = Field(..., description="Current page number (1-indexed)")
    per_page: int = Field(..., description="Entries per page")
    last_page: int = Field(..., description="Number of the last page (at least 1)")


def clamp_per_page(per_page: int, default: int, maximum: int) -> int:
    if per_page is None:
        return default
    return max(1, min(per_page, maximum))


def paginate(query: Query, page: int, per_page: int) -> tuple[list, int]:
    """Apply offset/limit to query.

    Returns:
        Tuple of (rows on the requested page, total row count)
    """
    page = max(page, 1)
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * per_page).limit(per_page).all()
    return rows, total


def last_page(total: int, per_page: int) -> int:
    return max(1, math.ceil(total / per_page))
