"""
Shared fixtures for docpager tests.

``run_pipeline`` evaluates the subset of aggregation stages the engine emits
($match, $sort, $limit, $group count, $facet) over a list of dicts, so tests
can check pagination end to end without a database.
"""

import re
from datetime import datetime, timedelta
from typing import Any, Dict, List

import pytest

# Naive UTC, as returned by a pymongo client with its default tz_aware=False
BASE_TIME = datetime(2024, 1, 1)


def _match_value(value: Any, condition: Any) -> bool:
    if isinstance(condition, dict) and condition and all(
        key.startswith("$") for key in condition
    ):
        flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
        for operator, argument in condition.items():
            if operator == "$options":
                continue
            if operator == "$in":
                ok = value in argument
            elif operator == "$regex":
                ok = isinstance(value, str) and re.search(argument, value, flags)
            elif value is None:
                ok = False
            elif operator == "$gt":
                ok = value > argument
            elif operator == "$gte":
                ok = value >= argument
            elif operator == "$lt":
                ok = value < argument
            elif operator == "$lte":
                ok = value <= argument
            else:
                raise NotImplementedError(operator)
            if not ok:
                return False
        return True
    return value == condition


def _matches(document: Dict[str, Any], expression: Dict[str, Any]) -> bool:
    for key, condition in expression.items():
        if key == "$and":
            if not all(_matches(document, sub) for sub in condition):
                return False
        elif not _match_value(document.get(key), condition):
            return False
    return True


def run_pipeline(
    pipeline: List[Dict[str, Any]], documents: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """Evaluate a pipeline over in-memory documents."""
    for stage in pipeline:
        ((name, argument),) = stage.items()
        if name == "$match":
            documents = [d for d in documents if _matches(d, argument)]
        elif name == "$sort":
            ((field, direction),) = argument.items()
            documents = sorted(
                documents, key=lambda d: d[field], reverse=direction == -1
            )
        elif name == "$limit":
            documents = documents[:argument]
        elif name == "$group":
            documents = [{"_id": 1, "counter": len(documents)}] if documents else []
        elif name == "$facet":
            documents = [
                {branch: run_pipeline(sub, documents) for branch, sub in argument.items()}
            ]
        else:
            raise NotImplementedError(name)
    return documents


class FakeCommandCursor:
    def __init__(self, documents: List[Dict[str, Any]]):
        self.documents = documents

    async def to_list(self, length: Any = None) -> List[Dict[str, Any]]:
        return self.documents


class FakeCollection:
    """Motor-style collection backed by a list."""

    def __init__(self, documents: List[Dict[str, Any]]):
        self.documents = documents
        self.calls: List[Dict[str, Any]] = []

    def aggregate(self, pipeline: List[Dict[str, Any]], **kwargs: Any) -> FakeCommandCursor:
        self.calls.append({"pipeline": pipeline, "kwargs": kwargs})
        return FakeCommandCursor(run_pipeline(pipeline, self.documents))


def make_documents(count: int) -> List[Dict[str, Any]]:
    return [
        {
            "_id": str(index),
            "name": f"Item {index}",
            "status": "open" if index % 2 == 0 else "closed",
            "createdAt": BASE_TIME + timedelta(seconds=index),
        }
        for index in range(count)
    ]


@pytest.fixture
def documents() -> List[Dict[str, Any]]:
    """Sixty live documents plus five soft-deleted ones."""
    live = make_documents(60)
    deleted = [
        {
            "_id": f"deleted-{index}",
            "name": f"Deleted {index}",
            "status": "open",
            "createdAt": BASE_TIME + timedelta(days=1, seconds=index),
            "deletedAt": BASE_TIME + timedelta(days=2),
        }
        for index in range(5)
    ]
    return live + deleted


@pytest.fixture
def collection(documents: List[Dict[str, Any]]) -> FakeCollection:
    return FakeCollection(documents)
