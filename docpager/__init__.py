"""
docpager: cursor pagination for document-store aggregation pipelines.
"""

from .errors import (
    AggregateResultError,
    InvalidCursorError,
    InvalidLimitError,
    PageInfoNotSetError,
    PaginationError,
    ReservedFieldError,
    UnsupportedFilterOperatorError,
)
from .pagination import (
    Counts,
    CursorCodec,
    CursorType,
    FilterCompiler,
    PageInfo,
    PageMetrics,
    PageResult,
    Paginator,
    PaginationConfig,
    PaginationRequest,
    SortOrder,
)
from .repository import CollectionAggregateExecutor, CursorRepository, extract_counts

__version__ = "0.1.0"

__all__ = [
    "AggregateResultError",
    "CollectionAggregateExecutor",
    "Counts",
    "CursorCodec",
    "CursorRepository",
    "CursorType",
    "FilterCompiler",
    "InvalidCursorError",
    "InvalidLimitError",
    "PageInfo",
    "PageInfoNotSetError",
    "PageMetrics",
    "PageResult",
    "PaginationConfig",
    "PaginationError",
    "PaginationRequest",
    "Paginator",
    "ReservedFieldError",
    "SortOrder",
    "UnsupportedFilterOperatorError",
    "extract_counts",
]
