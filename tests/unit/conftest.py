"""Shared fixtures for bongo unit tests."""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from typing import Any

import pytest
from pymongo.results import UpdateResult

from bongo.runtime.registry import Registry


def _matches(doc: Any, query: Mapping[str, Any]) -> bool:
    """Equality-only query matching, enough for cascade queries."""
    if not isinstance(doc, dict):
        return False
    return all(doc.get(key) == value for key, value in query.items())


class InMemoryCollection:
    """Collection stand-in applying ``$set``/``$push``/``$pull`` to dicts.

    Every ``update_many`` call is recorded in ``calls`` so tests can assert
    on the exact sequence the cascade engine issued. With
    ``acknowledged=False`` updates still apply but the results carry no
    counts, like a collection with ``WriteConcern(w=0)``.
    """

    def __init__(
        self,
        name: str,
        docs: list[dict[str, Any]] | None = None,
        acknowledged: bool = True,
    ):
        self.name = name
        self.acknowledged = acknowledged
        self.docs: list[dict[str, Any]] = [copy.deepcopy(d) for d in docs or []]
        self.calls: list[tuple[dict[str, Any], dict[str, Any]]] = []

    def find_one(self, query: Mapping[str, Any]) -> dict[str, Any] | None:
        for doc in self.docs:
            if _matches(doc, query):
                return doc
        return None

    def update_many(self, filter: Mapping[str, Any], update: Mapping[str, Any]) -> UpdateResult:
        self.calls.append((copy.deepcopy(dict(filter)), copy.deepcopy(dict(update))))
        matched = modified = 0
        for doc in self.docs:
            if not _matches(doc, filter):
                continue
            matched += 1
            before = copy.deepcopy(doc)
            for op, fields in update.items():
                for path, value in fields.items():
                    if op == "$set":
                        doc[path] = copy.deepcopy(value)
                    elif op == "$push":
                        doc.setdefault(path, []).append(copy.deepcopy(value))
                    elif op == "$pull":
                        doc[path] = [e for e in doc.get(path, []) if not _matches(e, value)]
                    else:
                        raise ValueError(f"Unsupported update operator {op}")
            if doc != before:
                modified += 1
        if not self.acknowledged:
            return UpdateResult({}, False)
        return UpdateResult({"n": matched, "nModified": modified, "ok": 1.0}, True)


@pytest.fixture
def make_collection() -> Callable[..., InMemoryCollection]:
    """Factory for in-memory collections."""

    def _make(
        name: str = "parents",
        docs: list[dict[str, Any]] | None = None,
        acknowledged: bool = True,
    ):
        return InMemoryCollection(name, docs, acknowledged)

    return _make


@pytest.fixture
def registry() -> Registry:
    """A fresh, empty registry."""
    return Registry()
