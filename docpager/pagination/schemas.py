"""
Pagination schemas and data models.

This module defines the request, count and result models exchanged between the
pagination engine and its callers. Result models serialize with relay-style
connection field names (``pageInfo``, ``hasNextPage``, ...).
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..settings import PagerSettings


class SortOrder(str, Enum):
    """Sort direction of a paginated query."""

    ASC = "ASC"
    DESC = "DESC"


class PaginationConfig(BaseModel):
    """Configuration for pagination settings."""

    default_page_size: int = 25
    max_page_size: Optional[int] = None
    cursor_field: str = "createdAt"
    cursor_type: str = "Date"
    soft_delete_field: str = "deletedAt"
    with_deleted_key: str = "withDeleted"
    strict_operators: bool = False
    escape_patterns: bool = False
    secret_key: Optional[str] = None
    tz_aware: bool = False
    allow_disk_use: bool = True

    @classmethod
    def from_settings(cls, settings: PagerSettings) -> "PaginationConfig":
        """Build a configuration from loaded settings."""
        return cls(
            default_page_size=settings.pagination_default_page_size,
            max_page_size=settings.pagination_max_page_size,
            cursor_field=settings.pagination_cursor_field,
            cursor_type=settings.pagination_cursor_type,
            soft_delete_field=settings.pagination_soft_delete_field,
            with_deleted_key=settings.pagination_with_deleted_key,
            strict_operators=settings.pagination_strict_operators,
            escape_patterns=settings.pagination_escape_patterns,
            secret_key=settings.pagination_secret_key,
            tz_aware=settings.pagination_tz_aware,
            allow_disk_use=settings.pagination_allow_disk_use,
        )


class MatchFilter(BaseModel):
    """Structured match descriptor of a filter entry."""

    # Kept as a plain string so unknown operators reach the compiler's policy
    operator: str = Field(description="STRICT_WORD, CONTAINS_WORD or CONTAINS_PART")
    value: Union[str, int, float] = Field(description="Value to match")


class PaginationRequest(BaseModel):
    """Relay-style pagination arguments."""

    first: Optional[int] = Field(None, description="Page size, paginating forward")
    last: Optional[int] = Field(None, description="Page size, paginating backward")
    before: Optional[str] = Field(None, description="Cursor bounding a backward page")
    after: Optional[str] = Field(None, description="Cursor bounding a forward page")
    filters: Optional[Dict[str, Any]] = Field(
        None, description="Field to match-specification mapping"
    )


class Counts(BaseModel):
    """Counters reported by the executor for one page."""

    total: int = 0
    cursored: int = 0
    current: int = 0


class PageInfo(BaseModel):
    """Page metadata derived from the counters."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    has_next_page: bool = Field(alias="hasNextPage")
    has_previous_page: bool = Field(alias="hasPreviousPage")
    total_page: int = Field(alias="totalPage")
    total_results: int = Field(alias="totalResults")
    current_page: int = Field(alias="currentPage")


class Edge(BaseModel):
    """A document paired with its cursor."""

    cursor: Optional[str] = None
    node: Any = None


class PageResult(BaseModel):
    """One page of a relay-style connection."""

    model_config = ConfigDict(populate_by_name=True)

    edges: List[Edge] = Field(default_factory=list)
    page_info: PageInfo = Field(alias="pageInfo")
    start_cursor: Optional[str] = Field(None, alias="startCursor")
    end_cursor: Optional[str] = Field(None, alias="endCursor")

    def to_dict(self) -> Dict[str, Any]:
        """Dump with connection field names."""
        return self.model_dump(by_alias=True)
