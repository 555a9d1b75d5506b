"""
Store Pagination Utilities
==========================
Page/limit pagination shared by every list operation.

- Pages are 1-indexed
- Minimum limit: 1
- Maximum limit: configurable (default 1000)
- Out-of-range values are rejected, never clamped
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from sensorhub.domain.exceptions import ValidationError

DEFAULT_LIMIT = 10
DEFAULT_READINGS_LIMIT = 100
MAX_LIMIT = 1000
MIN_LIMIT = 1
MIN_PAGE = 1


@dataclass(frozen=True)
class PaginationParams:
    """Validated pagination parameters."""

    page: int
    limit: int

    @classmethod
    def from_request(
        cls,
        page: int | None = None,
        limit: int | None = None,
        *,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> "PaginationParams":
        """
        Create validated pagination parameters from request inputs.

        Args:
            page: 1-indexed page number (default: 1)
            limit: Items per page (default: ``default_limit``)
            default_limit: Limit used when ``limit`` is None
            max_limit: Largest accepted limit

        Raises:
            ValidationError: If page or limit are out of range
        """
        validated_page = MIN_PAGE if page is None else page
        if validated_page < MIN_PAGE:
            raise ValidationError(f"page must be at least {MIN_PAGE}", detail={"page": page})

        validated_limit = default_limit if limit is None else limit
        if validated_limit < MIN_LIMIT:
            raise ValidationError(f"limit must be at least {MIN_LIMIT}", detail={"limit": limit})
        if validated_limit > max_limit:
            raise ValidationError(f"limit cannot exceed {max_limit}", detail={"limit": limit})

        return cls(page=validated_page, limit=validated_limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class PaginatedResponse:
    """One page of a filtered collection."""

    items: list[Any]
    total: int
    page: int
    limit: int

    @classmethod
    def paginate(cls, items: Sequence[Any], params: PaginationParams) -> "PaginatedResponse":
        start = params.offset
        return cls(
            items=list(items[start : start + params.limit]),
            total=len(items),
            page=params.page,
            limit=params.limit,
        )

    @property
    def has_next(self) -> bool:
        """Check if there are more results after current page."""
        return self.page * self.limit < self.total

    @property
    def has_prev(self) -> bool:
        """Check if there are results before current page."""
        return self.page > 1

    @property
    def page_count(self) -> int:
        """Calculate total number of pages."""
        return (self.total + self.limit - 1) // self.limit  # Ceiling division

    def pagination_dict(self) -> dict[str, Any]:
        """Pagination block for JSON responses."""
        return {
            "currentPage": self.page,
            "totalPages": self.page_count,
            "totalItems": self.total,
            "itemsPerPage": self.limit,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }
