"""
Page metadata arithmetic.

Derives the relay page info from three counters:

- ``total``: documents matching the filter
- ``cursored``: documents matching the filter on the unread side of the cursor
- ``current``: documents returned for this page
"""

import math
from typing import Any, Union

from ..errors import InvalidLimitError
from .schemas import PageInfo, SortOrder


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def validate_limit(limit: Any) -> int:
    """Return the limit if it is a positive integer, raise InvalidLimitError otherwise."""
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise InvalidLimitError(limit)
    return limit


class PageMetrics:
    """Compute page info from executor counters."""

    @staticmethod
    def compute(
        total: int,
        cursored: int,
        current: int,
        limit: int,
        order: Union[SortOrder, str] = SortOrder.ASC,
    ) -> PageInfo:
        """
        Compute page info.

        Args:
            total: Count of documents matching the filter
            cursored: Count of documents matching the filter and the cursor range
            current: Count of documents on this page
            limit: Page size
            order: Sort order of the query; DESC numbers pages from the end

        Returns:
            PageInfo

        Raises:
            InvalidLimitError: If limit is not a positive integer
        """
        limit = validate_limit(limit)
        order = SortOrder(order)

        previous_count = total - cursored
        has_previous_page = previous_count > 0
        has_next_page = total - (current + previous_count) > 0
        total_page = round_half_up(ceil_div(total, limit)) if total > 0 else 0

        current_page = 1
        if previous_count > 0:
            # Page holding the first unread document
            current_page = round_half_up(previous_count // limit + 1)
        if order is SortOrder.DESC:
            current_page = round_half_up(total_page - current_page + 1)

        return PageInfo(
            has_next_page=has_next_page,
            has_previous_page=has_previous_page,
            total_page=total_page,
            total_results=total,
            current_page=current_page,
        )
