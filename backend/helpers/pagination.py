"""
Standardized pagination parameters for consistent API pagination.
"""

from typing import Annotated

from fastapi import Query

# Uploaded file listings
PaginationOffset = Annotated[int, Query(ge=0, description="Number of records to skip")]
PaginationLimit = Annotated[
    int, Query(ge=1, le=100, description="Maximum number of records to return")
]

# Notification listings (the portal asks for up to a couple hundred at once)
PaginationLimitLarge = Annotated[
    int, Query(ge=1, le=200, description="Maximum number of records to return")
]


def build_pagination(total: int, limit: int, offset: int) -> dict[str, int | bool]:
    """
    Build the pagination block returned alongside list payloads.

    Args:
        total: Total rows matching the filters
        limit: Page size used
        offset: Rows skipped

    Returns:
        Dict with total, limit, offset and has_more
    """
    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "has_more": offset + limit < total,
    }
