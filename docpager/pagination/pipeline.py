"""
Aggregation pipeline builder for cursor-based pagination.

The pipeline filters and sorts the collection once, then fans out into three
branches so a single round trip returns the page and the counters needed for
its metadata::

    [$match filters] + custom stages + [$sort] + [$facet {
        current:  [$match cursor range?, $limit],
        cursored: [$match cursor range, count],   # only with a cursor
        total:    [count],
    }]
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from ..logging_config import get_logger
from .cursor_codec import Cursor, CursorCodec
from .metrics import validate_limit
from .schemas import SortOrder

logger = get_logger(__name__)

Stage = Dict[str, Any]
Pipeline = List[Stage]

COUNTER_KEY = "counter"


def clean_pipeline(stages: Iterable[Optional[Stage]]) -> Pipeline:
    """Drop empty stages from a pipeline."""
    return [stage for stage in stages if stage]


def build_range_predicate(
    field: str,
    value: Any,
    order: Union[SortOrder, str],
    reverse: bool = False,
) -> Stage:
    """
    Build the cursor range condition.

    ``reverse`` selects the documents up to and including the cursor instead of
    the ones after it, to look at the page preceding the cursor.

    Args:
        field: Cursor field
        value: Decoded cursor value
        order: Sort order of the query
        reverse: Select the consumed side of the cursor

    Returns:
        ``{field: {operator: value}}``
    """
    if SortOrder(order) is SortOrder.ASC:
        operator = "$lte" if reverse else "$gt"
    else:
        operator = "$gte" if reverse else "$lt"
    return {field: {operator: value}}


class CursorPipelineBuilder:
    """Build the faceted aggregation pipeline of one page request."""

    def __init__(self, codec: Optional[CursorCodec] = None):
        self.codec = codec or CursorCodec()

    def build_match_stage(self, expression: Optional[Dict[str, Any]]) -> Optional[Stage]:
        if not expression:
            return None
        return {"$match": expression}

    def build_sort_stage(self, field: str, order: Union[SortOrder, str]) -> Stage:
        direction = 1 if SortOrder(order) is SortOrder.ASC else -1
        return {"$sort": {field: direction}}

    def build_cursor_filter(
        self,
        cursor: Cursor,
        order: Union[SortOrder, str],
        reverse: bool = False,
    ) -> Optional[Stage]:
        """
        Build the cursor range match stage.

        Returns:
            A ``$match`` stage, or None when the cursor has no value

        Raises:
            InvalidCursorError: If the cursor value cannot be decoded
        """
        if not cursor.value:
            return None
        value = self.codec.decode(cursor.value, cursor.type)
        return {"$match": build_range_predicate(cursor.field, value, order, reverse)}

    def build_limit_stage(self, limit: int) -> Stage:
        return {"$limit": limit}

    def build_count_stage(self) -> Stage:
        return {"$group": {"_id": 1, COUNTER_KEY: {"$sum": 1}}}

    def build_facet_stage(
        self, cursor_filter: Optional[Stage], limit: int
    ) -> Stage:
        facet: Dict[str, Pipeline] = {
            "current": clean_pipeline([cursor_filter, self.build_limit_stage(limit)]),
            "total": [self.build_count_stage()],
        }
        if cursor_filter:
            facet["cursored"] = [dict(cursor_filter), self.build_count_stage()]
        return {"$facet": facet}

    def build(
        self,
        filter_expression: Optional[Dict[str, Any]],
        cursor: Cursor,
        sort_order: Union[SortOrder, str],
        limit: int,
        custom_stages: Optional[Iterable[Optional[Stage]]] = None,
        reverse: bool = False,
        sort_field: Optional[str] = None,
    ) -> Pipeline:
        """
        Build the complete pagination pipeline.

        Args:
            filter_expression: Compiled filter conjunction, or None
            cursor: Cursor field, type and opaque value
            sort_order: ASC or DESC
            limit: Page size
            custom_stages: Caller stages inserted after the filter, before the sort
            reverse: Bound the page on the consumed side of the cursor
            sort_field: Sort field, defaults to the cursor field

        Returns:
            List of aggregation stages

        Raises:
            InvalidLimitError: If limit is not a positive integer
            InvalidCursorError: If the cursor value cannot be decoded
        """
        limit = validate_limit(limit)
        cursor_filter = self.build_cursor_filter(cursor, sort_order, reverse)

        pipeline = clean_pipeline(
            [
                self.build_match_stage(filter_expression),
                *(custom_stages or []),
                self.build_sort_stage(sort_field or cursor.field, sort_order),
                self.build_facet_stage(cursor_filter, limit),
            ]
        )
        logger.debug(
            "Built pagination pipeline",
            stages=len(pipeline),
            field=cursor.field,
            order=SortOrder(sort_order).value,
            cursored=cursor_filter is not None,
        )
        return pipeline
