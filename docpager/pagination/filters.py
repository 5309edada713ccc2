"""
Filter compilation for paginated queries.

A filter specification maps field names to match specifications. It is parsed
once, at the boundary, into tagged clauses (exact, membership, pattern) and then
compiled into a single ``$and`` conjunction ready for a ``$match`` stage.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..errors import UnsupportedFilterOperatorError
from ..logging_config import get_logger
from .cursor_codec import validate_field_name
from .schemas import MatchFilter

logger = get_logger(__name__)

DEFAULT_WITH_DELETED_KEY = "withDeleted"
DEFAULT_SOFT_DELETE_FIELD = "deletedAt"


class MatchOperator(str, Enum):
    """Matching semantics of a structured filter entry."""

    STRICT_WORD = "STRICT_WORD"
    CONTAINS_WORD = "CONTAINS_WORD"
    CONTAINS_PART = "CONTAINS_PART"


@dataclass(frozen=True)
class ExactMatch:
    """Field equals a literal value."""

    field: str
    value: Any


@dataclass(frozen=True)
class MembershipMatch:
    """Field value is one of a list of strings."""

    field: str
    values: Tuple[str, ...]


@dataclass(frozen=True)
class PatternMatch:
    """Structured ``{operator, value}`` entry."""

    field: str
    operator: str
    value: Any


FilterClause = Union[ExactMatch, MembershipMatch, PatternMatch]


@dataclass(frozen=True)
class FilterSpec:
    """Parsed filter specification."""

    clauses: Tuple[FilterClause, ...] = field(default_factory=tuple)
    with_deleted: bool = False


def parse_filter_spec(
    filters: Optional[Mapping[str, Any]],
    with_deleted_key: str = DEFAULT_WITH_DELETED_KEY,
) -> FilterSpec:
    """
    Parse a raw filter mapping into tagged clauses.

    Args:
        filters: Mapping of field name to match specification, or None
        with_deleted_key: Control key that includes soft-deleted documents

    Returns:
        FilterSpec with clauses in the mapping's iteration order

    Raises:
        ReservedFieldError: If a field name is unsafe
    """
    if not filters:
        return FilterSpec()

    clauses: List[FilterClause] = []
    with_deleted = False

    for key, value in filters.items():
        if key == with_deleted_key:
            with_deleted = value is True
            continue

        validate_field_name(key)

        if isinstance(value, str):
            clauses.append(ExactMatch(key, value))
        elif isinstance(value, (list, tuple)) and value and isinstance(value[0], str):
            clauses.append(MembershipMatch(key, tuple(value)))
        elif isinstance(value, MatchFilter):
            clauses.append(PatternMatch(key, value.operator, value.value))
        elif isinstance(value, Mapping):
            clauses.append(PatternMatch(key, value.get("operator"), value.get("value")))
        else:
            # Same outcome as an unknown operator: the entry matches nothing to compile
            clauses.append(PatternMatch(key, None, value))

    return FilterSpec(clauses=tuple(clauses), with_deleted=with_deleted)


class FilterCompiler:
    """
    Compile filter specifications into a conjunctive query expression.

    Unless ``withDeleted`` is explicitly true, a "not soft-deleted" clause is
    placed first. Field clauses follow in the specification's order.
    """

    def __init__(
        self,
        soft_delete_field: str = DEFAULT_SOFT_DELETE_FIELD,
        with_deleted_key: str = DEFAULT_WITH_DELETED_KEY,
        strict_operators: bool = False,
        escape_patterns: bool = False,
    ):
        """
        Initialize the compiler.

        Args:
            soft_delete_field: Field whose presence marks a soft-deleted document
            with_deleted_key: Control key of the raw filter mapping
            strict_operators: Raise on unknown operators instead of dropping the clause
            escape_patterns: Escape regex metacharacters in pattern values
        """
        self.soft_delete_field = soft_delete_field
        self.with_deleted_key = with_deleted_key
        self.strict_operators = strict_operators
        self.escape_patterns = escape_patterns

    def compile(
        self, spec: Union[FilterSpec, Mapping[str, Any], None]
    ) -> Optional[Dict[str, List[Dict[str, Any]]]]:
        """
        Compile a filter specification.

        Args:
            spec: Parsed FilterSpec or a raw filter mapping

        Returns:
            ``{"$and": [...]}``, or None when there is no condition at all
        """
        if not isinstance(spec, FilterSpec):
            spec = parse_filter_spec(spec, self.with_deleted_key)

        conditions: List[Dict[str, Any]] = []
        if not spec.with_deleted:
            conditions.append({self.soft_delete_field: None})

        for clause in spec.clauses:
            condition = self.compile_clause(clause)
            if condition is not None:
                conditions.append(condition)

        if not conditions:
            return None
        return {"$and": conditions}

    def compile_clause(self, clause: FilterClause) -> Optional[Dict[str, Any]]:
        """Compile one clause; None means the clause is dropped."""
        if isinstance(clause, ExactMatch):
            return {clause.field: clause.value}
        if isinstance(clause, MembershipMatch):
            return {clause.field: {"$in": list(clause.values)}}
        return self._compile_pattern(clause)

    def _compile_pattern(self, clause: PatternMatch) -> Optional[Dict[str, Any]]:
        try:
            operator = MatchOperator(clause.operator)
        except ValueError:
            if self.strict_operators:
                raise UnsupportedFilterOperatorError(clause.field, clause.operator)
            logger.warning(
                "Dropping filter clause with unsupported operator",
                field=clause.field,
                operator=clause.operator,
            )
            return None

        if operator is MatchOperator.STRICT_WORD:
            return {clause.field: clause.value}

        literal = str(clause.value)
        if self.escape_patterns:
            literal = re.escape(literal)

        if operator is MatchOperator.CONTAINS_WORD:
            pattern = rf"\b{literal}\b"
        else:
            pattern = literal
        return {clause.field: {"$regex": pattern, "$options": "i"}}
