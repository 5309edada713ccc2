"""
Tests for the repository collaborator and executor boundary.
"""

from datetime import timedelta

import pytest

from docpager.errors import AggregateResultError, InvalidCursorError
from docpager.pagination.schemas import Counts, PaginationConfig
from docpager.repository import (
    CollectionAggregateExecutor,
    CursorRepository,
    extract_counts,
    extract_documents,
)

from .conftest import BASE_TIME, FakeCollection, make_documents, run_pipeline


class TestExtractCounts:
    """Test reading counters from the facet document."""

    def test_full_result(self):
        """Test counters and documents are read from a facet result."""
        result = {
            "current": [{"_id": "1"}, {"_id": "2"}],
            "cursored": [{"_id": 1, "counter": 7}],
            "total": [{"_id": 1, "counter": 9}],
        }

        assert extract_counts(result) == Counts(total=9, cursored=7, current=2)

    def test_missing_branches_count_as_zero(self):
        """Test missing count branches count as zero."""
        assert extract_counts({}) == Counts(total=0, cursored=0, current=0)
        assert extract_counts({"total": [], "cursored": []}) == Counts()

    def test_not_a_mapping(self):
        """Test a non-mapping result is rejected."""
        with pytest.raises(AggregateResultError):
            extract_counts([{"total": []}])

    def test_malformed_branch(self):
        """Test malformed count branches are rejected."""
        with pytest.raises(AggregateResultError):
            extract_counts({"total": {"counter": 3}})
        with pytest.raises(AggregateResultError):
            extract_counts({"total": [{"counter": "3"}]})
        with pytest.raises(AggregateResultError):
            extract_documents({"current": "nope"})


class TestCollectionAggregateExecutor:
    """Test the motor-style collection adapter."""

    @pytest.mark.asyncio
    async def test_returns_first_document(self, collection):
        """Test the executor returns the facet document."""
        executor = CollectionAggregateExecutor(collection, allow_disk_use=False)

        result = await executor([{"$facet": {"total": [{"$group": {"_id": 1, "counter": {"$sum": 1}}}]}}])

        assert result == {"total": [{"_id": 1, "counter": 65}]}
        assert collection.calls[0]["kwargs"] == {"allowDiskUse": False}

    @pytest.mark.asyncio
    async def test_empty_aggregation(self):
        """Test an empty aggregation returns an empty result."""
        executor = CollectionAggregateExecutor(FakeCollection([]))

        assert await executor([{"$match": {"never": True}}]) == {}


class PublishedRepository(CursorRepository):
    cursor_field = "publishedAt"
    cursor_type = "Date"


class TestCursorRepository:
    """Test paginating through a repository."""

    @pytest.mark.asyncio
    async def test_find_by_cursor(self, collection):
        """Test fetching the first page through a collection."""
        repository = CursorRepository.for_collection(collection)

        page = await repository.find_by_cursor({"first": 25})

        assert len(page.edges) == 25
        assert page.page_info.current_page == 1
        assert page.page_info.total_page == 3
        assert page.page_info.has_next_page is True
        assert page.page_info.has_previous_page is False
        assert collection.calls[0]["kwargs"] == {"allowDiskUse": True}

    @pytest.mark.asyncio
    async def test_next_page_and_custom_stages(self, collection):
        """Test fetching the next page with custom stages."""
        repository = CursorRepository.for_collection(collection)
        stages = [{"$match": {"status": "closed"}}]

        first = await repository.find_by_cursor({"first": 20}, stages)
        second = await repository.find_by_cursor(
            {"first": 20, "after": first.end_cursor}, stages
        )

        assert first.page_info.total_results == 30
        assert len(second.edges) == 10
        assert second.page_info.current_page == 2
        assert second.page_info.has_next_page is False
        assert all(edge.node["status"] == "closed" for edge in second.edges)

    @pytest.mark.asyncio
    async def test_repository_cursor_field(self):
        """Test a repository subclass paginates on its own field."""
        documents = [
            {"_id": str(index), "publishedAt": BASE_TIME - timedelta(hours=index)}
            for index in range(5)
        ]
        repository = PublishedRepository.for_collection(FakeCollection(documents))

        page = await repository.find_by_cursor({"first": 2})

        assert [edge.node["_id"] for edge in page.edges] == ["4", "3"]

    @pytest.mark.asyncio
    async def test_custom_executor(self):
        """Test any async callable works as executor."""
        documents = make_documents(4)
        pipelines = []

        async def executor(pipeline):
            pipelines.append(pipeline)
            return run_pipeline(pipeline, documents)[0]

        repository = CursorRepository(executor, PaginationConfig(default_page_size=3))
        page = await repository.find_by_cursor(None)

        assert len(pipelines) == 1
        assert [edge.node["_id"] for edge in page.edges] == ["3", "2", "1"]
        assert page.page_info.current_page == 2

    @pytest.mark.asyncio
    async def test_invalid_cursor_skips_execution(self, collection):
        """Test an invalid cursor fails before the executor runs."""
        repository = CursorRepository.for_collection(collection)

        with pytest.raises(InvalidCursorError):
            await repository.find_by_cursor({"first": 5, "after": "bogus"})

        assert collection.calls == []
