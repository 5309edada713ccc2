"""
Cursor pagination engine.

This package compiles relay-style pagination requests and declarative filters
into a single faceted aggregation pipeline, and turns the pipeline's output
back into a page of edges with page info.
"""

from .cursor_codec import (
    Cursor,
    CursorCodec,
    CursorType,
    normalize_cursor_type,
    validate_field_name,
)
from .filters import (
    ExactMatch,
    FilterCompiler,
    FilterSpec,
    MatchOperator,
    MembershipMatch,
    PatternMatch,
    parse_filter_spec,
)
from .metrics import PageMetrics, round_half_up
from .paginator import Paginator
from .pipeline import CursorPipelineBuilder, build_range_predicate, clean_pipeline
from .schemas import (
    Counts,
    Edge,
    MatchFilter,
    PageInfo,
    PageResult,
    PaginationConfig,
    PaginationRequest,
    SortOrder,
)

__all__ = [
    "Counts",
    "Cursor",
    "CursorCodec",
    "CursorPipelineBuilder",
    "CursorType",
    "Edge",
    "ExactMatch",
    "FilterCompiler",
    "FilterSpec",
    "MatchFilter",
    "MatchOperator",
    "MembershipMatch",
    "PageInfo",
    "PageMetrics",
    "PageResult",
    "Paginator",
    "PaginationConfig",
    "PaginationRequest",
    "PatternMatch",
    "SortOrder",
    "build_range_predicate",
    "clean_pipeline",
    "normalize_cursor_type",
    "parse_filter_spec",
    "round_half_up",
    "validate_field_name",
]
