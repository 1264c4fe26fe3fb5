"""Utility modules."""

from app.utils.pagination import (
    PaginationParams,
    get_pagination,
    paginate_query,
)

__all__ = [
    "PaginationParams",
    "get_pagination",
    "paginate_query",
]
