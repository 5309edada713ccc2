"""
Repository collaborator running paginated queries through an executor.

The engine never talks to the database itself. A repository owns an executor,
an async callable that takes a pipeline and returns the single facet document
of the aggregation, and wires it to a Paginator.
"""

from typing import (
    Any,
    Awaitable,
    Callable,
    Iterable,
    List,
    Mapping,
    Optional,
    Union,
)

from .errors import AggregateResultError
from .logging_config import get_logger
from .pagination.cursor_codec import CursorType
from .pagination.paginator import Paginator
from .pagination.pipeline import COUNTER_KEY, Pipeline, Stage
from .pagination.schemas import (
    Counts,
    PageResult,
    PaginationConfig,
    PaginationRequest,
)

logger = get_logger(__name__)

AggregateResult = Mapping[str, Any]
AggregateExecutor = Callable[[Pipeline], Awaitable[AggregateResult]]


class CollectionAggregateExecutor:
    """
    Executor over a motor-style collection.

    ``collection.aggregate(pipeline, allowDiskUse=...)`` must return a cursor
    exposing ``await cursor.to_list(length=None)``.
    """

    def __init__(self, collection: Any, allow_disk_use: bool = True):
        self.collection = collection
        self.allow_disk_use = allow_disk_use

    async def __call__(self, pipeline: Pipeline) -> AggregateResult:
        cursor = self.collection.aggregate(pipeline, allowDiskUse=self.allow_disk_use)
        documents = await cursor.to_list(length=None)
        return documents[0] if documents else {}


def _read_counter(result: AggregateResult, branch: str) -> int:
    records = result.get(branch)
    if not records:
        return 0
    if not isinstance(records, list) or not isinstance(records[0], Mapping):
        raise AggregateResultError(
            f"facet branch {branch!r} is not a list of count records",
            details={"branch": branch},
        )
    counter = records[0].get(COUNTER_KEY) or 0
    if isinstance(counter, bool) or not isinstance(counter, int):
        raise AggregateResultError(
            f"facet branch {branch!r} has a non-integer counter",
            details={"branch": branch, "counter": str(counter)},
        )
    return counter


def extract_documents(result: AggregateResult) -> List[Mapping[str, Any]]:
    """Return the documents of the ``current`` facet branch."""
    if not isinstance(result, Mapping):
        raise AggregateResultError(
            "expected a single facet document",
            details={"received": type(result).__name__},
        )
    documents = result.get("current") or []
    if not isinstance(documents, list):
        raise AggregateResultError("facet branch 'current' is not a list")
    return documents


def extract_counts(result: AggregateResult) -> Counts:
    """
    Read the counters of a facet document.

    Missing or empty count branches count as 0.

    Raises:
        AggregateResultError: If the result does not have the facet shape
    """
    documents = extract_documents(result)
    return Counts(
        total=_read_counter(result, "total"),
        cursored=_read_counter(result, "cursored"),
        current=len(documents),
    )


class CursorRepository:
    """
    Base repository exposing cursor pagination.

    Subclasses set ``cursor_field``/``cursor_type`` to paginate on another
    field; by default the configured cursor (``createdAt``/``Date``) is used.
    """

    cursor_field: Optional[str] = None
    cursor_type: Optional[Union[CursorType, str]] = None

    def __init__(
        self,
        executor: AggregateExecutor,
        config: Optional[PaginationConfig] = None,
    ):
        self.executor = executor
        self.config = config or PaginationConfig()

    @classmethod
    def for_collection(
        cls, collection: Any, config: Optional[PaginationConfig] = None
    ) -> "CursorRepository":
        """Build a repository over a motor-style collection."""
        config = config or PaginationConfig()
        executor = CollectionAggregateExecutor(
            collection, allow_disk_use=config.allow_disk_use
        )
        return cls(executor, config)

    def create_paginator(
        self, request: Union[PaginationRequest, Mapping[str, Any], None]
    ) -> Paginator:
        paginator = Paginator(request, self.config)
        paginator.set_cursor(
            self.cursor_field or self.config.cursor_field,
            self.cursor_type or self.config.cursor_type,
        )
        return paginator

    async def find_by_cursor(
        self,
        request: Union[PaginationRequest, Mapping[str, Any], None],
        pipeline: Optional[Iterable[Optional[Stage]]] = None,
    ) -> PageResult:
        """
        Get a page of documents.

        Args:
            request: Pagination arguments (first, last, before, after, filters)
            pipeline: Custom stages selecting or shaping the documents

        Returns:
            PageResult of the requested page
        """
        paginator = self.create_paginator(request)
        result = await self.executor(paginator.get_pipeline(pipeline))

        counts = extract_counts(result)
        paginator.set_page_info(counts)
        logger.debug(
            "Cursor page fetched",
            field=paginator.cursor.field,
            total=counts.total,
            returned=counts.current,
        )
        return paginator.get(extract_documents(result))

