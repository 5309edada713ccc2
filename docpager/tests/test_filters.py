"""
Tests for filter specification parsing and compilation.
"""

import pytest
from structlog.testing import capture_logs

from docpager.errors import ReservedFieldError, UnsupportedFilterOperatorError
from docpager.pagination.filters import (
    ExactMatch,
    FilterCompiler,
    FilterSpec,
    MembershipMatch,
    PatternMatch,
    parse_filter_spec,
)
from docpager.pagination.schemas import MatchFilter


class TestParseFilterSpec:
    """Test parsing raw filters into tagged clauses."""

    def test_empty_filters(self):
        """Test missing and empty filters parse to an empty spec."""
        assert parse_filter_spec(None) == FilterSpec()
        assert parse_filter_spec({}) == FilterSpec()

    def test_tagged_variants(self):
        """Test each filter value shape parses to its clause type."""
        spec = parse_filter_spec(
            {
                "status": "open",
                "tags": ["a", "b"],
                "name": {"operator": "CONTAINS_PART", "value": "bo"},
            }
        )

        assert spec.clauses == (
            ExactMatch("status", "open"),
            MembershipMatch("tags", ("a", "b")),
            PatternMatch("name", "CONTAINS_PART", "bo"),
        )
        assert spec.with_deleted is False

    def test_match_filter_model(self):
        """Test MatchFilter models parse like plain descriptors."""
        spec = parse_filter_spec(
            {"name": MatchFilter(operator="STRICT_WORD", value="Bob")}
        )

        assert spec.clauses == (PatternMatch("name", "STRICT_WORD", "Bob"),)

    def test_control_key_is_not_a_field(self):
        """Test the withDeleted key is not compiled as a field."""
        spec = parse_filter_spec({"withDeleted": True, "status": "open"})

        assert spec.with_deleted is True
        assert spec.clauses == (ExactMatch("status", "open"),)

    def test_control_key_must_be_explicitly_true(self):
        """Test only a literal True includes soft-deleted documents."""
        assert parse_filter_spec({"withDeleted": "true"}).with_deleted is False
        assert parse_filter_spec({"withDeleted": None}).with_deleted is False

    def test_custom_control_key(self):
        """Test a configured control key replaces withDeleted."""
        spec = parse_filter_spec({"includeTrash": True}, with_deleted_key="includeTrash")

        assert spec.with_deleted is True
        assert spec.clauses == ()

    @pytest.mark.parametrize("field", ["__proto__", "a.__proto__", "$where", ""])
    def test_reserved_field_names_rejected(self, field):
        """Test reserved filter field names are rejected."""
        with pytest.raises(ReservedFieldError):
            parse_filter_spec({field: "x"})


class TestFilterCompiler:
    """Test compiling filter specifications to query expressions."""

    def setup_method(self):
        self.compiler = FilterCompiler()

    def test_empty_spec_excludes_soft_deleted(self):
        """Test an empty spec still excludes soft-deleted documents."""
        assert self.compiler.compile({}) == {"$and": [{"deletedAt": None}]}
        assert self.compiler.compile(None) == {"$and": [{"deletedAt": None}]}

    def test_with_deleted_and_no_fields_is_none(self):
        """Test nothing to match compiles to None."""
        assert self.compiler.compile({"withDeleted": True}) is None

    def test_with_deleted_keeps_field_clauses(self):
        """Test field clauses survive without the soft-delete clause."""
        assert self.compiler.compile({"withDeleted": True, "status": "open"}) == {
            "$and": [{"status": "open"}]
        }

    def test_exact_and_membership(self):
        """Test exact values and string lists compile to equality and ."""
        expression = self.compiler.compile({"status": "open", "tags": ["a", "b"]})

        assert expression == {
            "$and": [
                {"deletedAt": None},
                {"status": "open"},
                {"tags": {"$in": ["a", "b"]}},
            ]
        }

    def test_strict_word(self):
        """Test STRICT_WORD compiles to equality."""
        expression = self.compiler.compile(
            {"withDeleted": True, "name": {"operator": "STRICT_WORD", "value": "Bob"}}
        )

        assert expression == {"$and": [{"name": "Bob"}]}

    def test_contains_word(self):
        """Test CONTAINS_WORD compiles to a word-bounded regex."""
        expression = self.compiler.compile(
            {"withDeleted": True, "name": {"operator": "CONTAINS_WORD", "value": "Bob"}}
        )

        assert expression == {
            "$and": [{"name": {"$regex": r"\bBob\b", "$options": "i"}}]
        }

    def test_contains_part(self):
        """Test CONTAINS_PART compiles to a substring regex."""
        expression = self.compiler.compile(
            {"withDeleted": True, "name": {"operator": "CONTAINS_PART", "value": "ob"}}
        )

        assert expression == {"$and": [{"name": {"$regex": "ob", "$options": "i"}}]}

    def test_numeric_pattern_value(self):
        """Test numeric pattern values are stringified."""
        expression = self.compiler.compile(
            {"withDeleted": True, "code": {"operator": "CONTAINS_PART", "value": 42}}
        )

        assert expression == {"$and": [{"code": {"$regex": "42", "$options": "i"}}]}

    def test_pattern_value_is_raw_by_default(self):
        """Test regex metacharacters are kept by default."""
        expression = self.compiler.compile(
            {"withDeleted": True, "host": {"operator": "CONTAINS_PART", "value": "a.b"}}
        )

        assert expression["$and"][0]["host"]["$regex"] == "a.b"

    def test_escape_patterns(self):
        """Test regex metacharacters are escaped when configured."""
        compiler = FilterCompiler(escape_patterns=True)
        expression = compiler.compile(
            {"withDeleted": True, "host": {"operator": "CONTAINS_WORD", "value": "a.b"}}
        )

        assert expression["$and"][0]["host"]["$regex"] == r"\ba\.b\b"

    def test_unknown_operator_is_dropped(self):
        """Test unknown operators are dropped with a warning."""
        with capture_logs() as logs:
            expression = self.compiler.compile(
                {"name": {"operator": "STARTS_WITH", "value": "Bo"}}
            )

        assert expression == {"$and": [{"deletedAt": None}]}
        assert logs[0]["log_level"] == "warning"
        assert logs[0]["operator"] == "STARTS_WITH"

    def test_unknown_operator_raises_in_strict_mode(self):
        """Test strict mode raises on unknown operators."""
        compiler = FilterCompiler(strict_operators=True)

        with pytest.raises(UnsupportedFilterOperatorError) as exc_info:
            compiler.compile({"name": {"operator": "STARTS_WITH", "value": "Bo"}})

        assert exc_info.value.field == "name"
        assert exc_info.value.operator == "STARTS_WITH"

    def test_unsupported_values_are_dropped(self):
        """Test unsupported value shapes are dropped."""
        expression = self.compiler.compile({"ids": [1, 2], "count": 3, "tags": []})

        assert expression == {"$and": [{"deletedAt": None}]}

    def test_custom_soft_delete_field(self):
        """Test a configured soft-delete field is used."""
        compiler = FilterCompiler(soft_delete_field="removedAt")

        assert compiler.compile({}) == {"$and": [{"removedAt": None}]}

    def test_compilation_is_order_stable(self):
        """Test clauses follow the filter mapping order."""
        filters = {
            "b": "2",
            "a": ["1"],
            "c": {"operator": "CONTAINS_PART", "value": "x"},
        }

        first = self.compiler.compile(filters)
        second = self.compiler.compile(filters)

        assert first == second
        assert [list(clause)[0] for clause in first["$and"]] == [
            "deletedAt",
            "b",
            "a",
            "c",
        ]

    def test_accepts_parsed_spec(self):
        """Test a parsed FilterSpec compiles directly."""
        spec = FilterSpec(clauses=(ExactMatch("status", "open"),), with_deleted=True)

        assert self.compiler.compile(spec) == {"$and": [{"status": "open"}]}
