"""
Relay-style cursor paginator.

One Paginator serves exactly one pagination request::

    paginator = Paginator({"first": 25, "after": cursor, "filters": filters})
    pipeline = paginator.set_cursor("createdAt", "Date").get_pipeline(stages)
    result = await execute(pipeline)           # external executor
    paginator.set_page_info(extract_counts(result))
    page = paginator.get(result["current"])
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..errors import PageInfoNotSetError
from ..logging_config import get_logger
from .cursor_codec import (
    Cursor,
    CursorCodec,
    CursorType,
    normalize_cursor_type,
    validate_field_name,
)
from .filters import FilterCompiler, parse_filter_spec
from .metrics import PageMetrics, validate_limit
from .pipeline import CursorPipelineBuilder, Pipeline, Stage
from .schemas import (
    Counts,
    Edge,
    PageInfo,
    PageResult,
    PaginationConfig,
    PaginationRequest,
    SortOrder,
)

logger = get_logger(__name__)

_MISSING = object()


def resolve_field(document: Mapping[str, Any], field: str) -> Any:
    """Read a possibly dotted field path from a document, None if absent."""
    if field in document:
        return document[field]
    value: Any = document
    for part in field.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part, _MISSING)
        if value is _MISSING:
            return None
    return value


class Paginator:
    """
    Pagination state of a single request.

    ``first`` paginates forward (ascending) from ``after``; ``last`` paginates
    backward (descending) from ``before``. Without either, the default page
    size is used going backward.
    """

    def __init__(
        self,
        request: Union[PaginationRequest, Mapping[str, Any], None] = None,
        config: Optional[PaginationConfig] = None,
    ):
        """
        Initialize the paginator.

        Args:
            request: Pagination arguments (first, last, before, after, filters)
            config: Pagination configuration

        Raises:
            InvalidLimitError: If the effective page size is not positive
        """
        if request is None:
            request = PaginationRequest()
        elif not isinstance(request, PaginationRequest):
            request = PaginationRequest.model_validate(request)

        self.config = config or PaginationConfig()
        self.request = request
        self.codec = CursorCodec(
            self.config.secret_key, tz_aware=self.config.tz_aware
        )
        self.builder = CursorPipelineBuilder(self.codec)
        self.compiler = FilterCompiler(
            soft_delete_field=self.config.soft_delete_field,
            with_deleted_key=self.config.with_deleted_key,
            strict_operators=self.config.strict_operators,
            escape_patterns=self.config.escape_patterns,
        )

        if request.first is not None:
            self.order = SortOrder.ASC
            limit = request.first
            value = request.after
        else:
            self.order = SortOrder.DESC
            limit = (
                request.last
                if request.last is not None
                else self.config.default_page_size
            )
            value = request.before

        self.limit = self.sanitize_limit(limit)
        self.cursor = Cursor(
            field=validate_field_name(self.config.cursor_field),
            type=normalize_cursor_type(self.config.cursor_type),
            value=value or None,
        )
        self.page_info: Optional[PageInfo] = None
        self.pipeline_requested = False

    def sanitize_limit(self, limit: Any) -> int:
        """Validate the page size and clamp it to the configured maximum."""
        limit = validate_limit(limit)
        if self.config.max_page_size is not None:
            limit = min(limit, self.config.max_page_size)
        return limit

    def set_cursor(
        self, field: str, type: Union[CursorType, str] = CursorType.DATE
    ) -> "Paginator":
        """
        Configure the cursor field.

        Args:
            field: Document field to paginate on
            type: Declared type of the field; types other than Date pass through

        Returns:
            self, for chaining

        Raises:
            ReservedFieldError: If the field name is unsafe
        """
        self.cursor.field = validate_field_name(field)
        self.cursor.type = normalize_cursor_type(type)
        return self

    def get_pipeline(
        self,
        custom_stages: Optional[Iterable[Optional[Stage]]] = None,
        reverse: bool = False,
    ) -> Pipeline:
        """
        Compile the aggregation pipeline of this request.

        Args:
            custom_stages: Caller stages placed after the filter match
            reverse: Bound the page on the consumed side of the cursor

        Returns:
            List of aggregation stages

        Raises:
            ReservedFieldError: If a filter field name is unsafe
            InvalidCursorError: If the request cursor cannot be decoded
            UnsupportedFilterOperatorError: In strict mode, on an unknown operator
        """
        spec = parse_filter_spec(self.request.filters, self.config.with_deleted_key)
        expression = self.compiler.compile(spec)
        pipeline = self.builder.build(
            expression,
            self.cursor,
            self.order,
            self.limit,
            custom_stages=custom_stages,
            reverse=reverse,
        )
        self.pipeline_requested = True
        return pipeline

    def set_page_info(
        self, counts: Union[Counts, Mapping[str, Any], None] = None, **kwargs: Any
    ) -> PageInfo:
        """
        Derive page info from the executor counters.

        Args:
            counts: Counts, or a mapping with total/cursored/current
            **kwargs: Counters given as keyword arguments

        Returns:
            The computed PageInfo, also kept on the paginator
        """
        if counts is None:
            counts = Counts(**kwargs)
        elif not isinstance(counts, Counts):
            counts = Counts.model_validate(counts)

        if not self.pipeline_requested:
            logger.warning("Page info set before a pipeline was requested")

        # Without a cursor nothing has been consumed yet
        cursored = counts.cursored if self.cursor.value else counts.total

        self.page_info = PageMetrics.compute(
            total=counts.total,
            cursored=cursored,
            current=counts.current,
            limit=self.limit,
            order=self.order,
        )
        logger.debug(
            "Page info computed",
            total=counts.total,
            cursored=counts.cursored,
            current=counts.current,
            current_page=self.page_info.current_page,
        )
        return self.page_info

    def get_doc_cursor(self, document: Mapping[str, Any]) -> Optional[str]:
        """Encode the cursor of a document, None if it lacks the cursor field."""
        value = resolve_field(document, self.cursor.field)
        if value is None:
            return None
        return self.codec.encode(value, self.cursor.type)

    def get(self, documents: Iterable[Mapping[str, Any]]) -> PageResult:
        """
        Project documents into a page of edges.

        Args:
            documents: Documents of the current page, in pipeline order

        Returns:
            PageResult with edges, page info and start/end cursors

        Raises:
            PageInfoNotSetError: If set_page_info() was not called
        """
        if self.page_info is None:
            raise PageInfoNotSetError()

        edges: List[Edge] = [
            Edge(cursor=self.get_doc_cursor(document), node=document)
            for document in documents
        ]
        return PageResult(
            edges=edges,
            page_info=self.page_info,
            start_cursor=edges[0].cursor if edges else None,
            end_cursor=edges[-1].cursor if edges else None,
        )

    def describe(self) -> Dict[str, Any]:
        """Summary of the pagination state, with the decoded cursor value."""
        value = (
            self.codec.decode(self.cursor.value, self.cursor.type)
            if self.cursor.value
            else None
        )
        return {
            "limit": self.limit,
            "order": self.order.value,
            "field": self.cursor.field,
            "value": value,
        }
