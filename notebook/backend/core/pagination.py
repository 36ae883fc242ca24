"""
Pagination Utilities.

Offset pages over ranked note lists. The note list is ranked in memory,
so a page is a window over the full ranking and the total is exact.

Limits come from application.yaml (pagination.default_limit and
pagination.max_limit); a limit above the maximum is rejected.
"""

from dataclasses import dataclass
from typing import Any, Sequence

from fastapi import Query
from pydantic import BaseModel

from notebook.backend.core.config import get_app_config
from notebook.backend.core.exceptions import ValidationError
from notebook.backend.schemas.base import PaginatedResponse, PaginationInfo, ResponseMetadata


@dataclass(frozen=True)
class PaginationParams:
    """One requested page: at most limit items after skipping offset."""

    limit: int
    offset: int = 0

    def window(self, items: Sequence[Any]) -> list[Any]:
        """Slice an already ranked sequence to this page."""
        return list(items[self.offset:self.offset + self.limit])

    def info(self, total: int) -> PaginationInfo:
        return PaginationInfo(
            total=total,
            limit=self.limit,
            offset=self.offset,
            has_more=self.offset + self.limit < total,
        )


def get_pagination_params(
    limit: int | None = Query(
        default=None,
        ge=1,
        description="Page size, defaults to pagination.default_limit",
    ),
    offset: int = Query(default=0, ge=0, description="Number of ranked notes to skip"),
) -> PaginationParams:
    """FastAPI dependency resolving the page from the query string."""
    bounds = get_app_config().application.pagination
    if limit is None:
        limit = bounds.default_limit
    elif limit > bounds.max_limit:
        raise ValidationError(
            f"limit must not exceed {bounds.max_limit}",
            details={"limit": limit, "max_limit": bounds.max_limit},
        )
    return PaginationParams(limit=limit, offset=offset)


def create_paginated_response(
    items: Sequence[Any],
    item_schema: type[BaseModel],
    page: PaginationParams,
    request_id: str | None = None,
) -> dict[str, Any]:
    """
    Build the paginated envelope for one page of a ranked list.

    Args:
        items: The full ranked list (models or dicts); only the page is serialized
        item_schema: Schema each item is validated against
        page: Requested window
        request_id: Echoed in metadata
    """
    data = [
        item_schema.model_validate(item).model_dump(mode="json")
        for item in page.window(items)
    ]
    response = PaginatedResponse(
        data=data,
        pagination=page.info(len(items)),
        metadata=ResponseMetadata(request_id=request_id),
    )
    return response.model_dump(mode="json")
