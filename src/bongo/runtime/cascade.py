"""
Cascade engine - keeps denormalized copies of a document in related collections.

When a document is saved, selected properties are copied into the documents
that relate to it; when it is deleted, those copies are removed.  Every step
is an independent ``update_many`` on the related collection, issued in a
fixed order:

REL_ONE (related document holds one copy under ``through_prop``)
    save:   unset on ``old_query`` (if any), then set on ``query``
    delete: unset on ``query``

REL_MANY (related document holds an array of copies under ``through_prop``)
    save:   pull own id on ``old_query`` (if any), pull own id on ``query``,
            then push on ``query``
    delete: pull own id on ``query``

Pulling before pushing leaves at most one copy per source id in each related
array, and unsetting the old relation before setting the new one keeps two
related documents from holding the same copy.  There is no rollback: a
failure part way through leaves the earlier updates in place, and a later
successful cascade repairs the state.

Documents opt in by implementing ``get_cascade()``; anything else passed to
``cascade_save``/``cascade_delete`` is a no-op.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from pymongo.errors import PyMongoError

from bongo.core.errors import CascadeError, InvalidRelationTypeError, MissingIdentifierError
from bongo.specs.relation import RelationDescriptor, RelType

logger = logging.getLogger(__name__)


# =============================================================================
# Capabilities
# =============================================================================


class UpdatableCollection(Protocol):
    """The part of ``pymongo.collection.Collection`` the engine uses."""

    def update_many(self, filter: Mapping[str, Any], update: Mapping[str, Any]) -> Any: ...


@runtime_checkable
class Cascading(Protocol):
    """A document that declares where copies of it live."""

    def get_cascade(self) -> Sequence[CascadeConfig]: ...


@runtime_checkable
class Identifiable(Protocol):
    """A document that exposes its primary key."""

    def get_id(self) -> Any: ...


# =============================================================================
# Config / Result
# =============================================================================


@dataclass
class CascadeConfig:
    """How to cascade one document into one related collection.

    Built by the document right before a save or delete; never stored.

    Attributes:
        collection: Related collection to update
        rel_type: REL_ONE or REL_MANY
        through_prop: Path on the related document that holds the copy
        query: Selects the currently related documents
        properties: Source properties copied alongside ``_id``
        old_query: Selects previously related documents, when the relation
            just changed
    """

    collection: UpdatableCollection
    rel_type: RelType
    through_prop: str
    query: dict[str, Any]
    properties: list[str] = field(default_factory=list)
    old_query: dict[str, Any] | None = None

    @classmethod
    def from_relation(
        cls,
        relation: RelationDescriptor,
        collection: UpdatableCollection,
        query: dict[str, Any],
        properties: list[str] | None = None,
        old_query: dict[str, Any] | None = None,
    ) -> CascadeConfig:
        """Config that maintains the copies behind a registered reference field."""
        return cls(
            collection=collection,
            rel_type=relation.rel_type,
            through_prop=relation.path,
            query=query,
            properties=list(properties or []),
            old_query=old_query,
        )


@dataclass
class CascadeResult:
    """Outcome of one config.

    Counts come from the last update of the sequence (the set or push on
    save, the unset or pull on delete).
    """

    config: CascadeConfig
    matched_count: int = 0
    modified_count: int = 0
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# =============================================================================
# Helpers
# =============================================================================


def _collection_name(conf: CascadeConfig) -> str:
    name = getattr(conf.collection, "name", None)
    return name if isinstance(name, str) else type(conf.collection).__name__


def _relation_type(conf: CascadeConfig) -> RelType:
    try:
        return RelType(conf.rel_type)
    except ValueError:
        raise InvalidRelationTypeError(conf.rel_type, conf.through_prop) from None


def _snapshot_id(prepared: Mapping[str, Any]) -> Any:
    doc_id = prepared.get("_id")
    if doc_id is None:
        raise MissingIdentifierError("Prepared snapshot has no '_id'; nothing to cascade")
    return doc_id


def build_payload(conf: CascadeConfig, prepared: Mapping[str, Any]) -> dict[str, Any]:
    """The copy written to related documents: ``_id`` plus ``conf.properties``."""
    payload: dict[str, Any] = {"_id": prepared.get("_id")}
    for prop in conf.properties:
        payload[prop] = prepared.get(prop)
    return payload


def _counts(result: Any) -> tuple[int, int]:
    """Matched/modified counts, or zeros for an unacknowledged write."""
    if not getattr(result, "acknowledged", True):
        return 0, 0
    return getattr(result, "matched_count", 0), getattr(result, "modified_count", 0)


def _update(conf: CascadeConfig, query: Mapping[str, Any], update: dict[str, Any]) -> Any:
    result = conf.collection.update_many(dict(query), update)
    if logger.isEnabledFor(logging.DEBUG):
        matched, modified = _counts(result)
        logger.debug(
            "Cascade %s on %s where %s: matched=%s modified=%s",
            next(iter(update)),
            _collection_name(conf),
            query,
            matched,
            modified,
        )
    return result


def _result(conf: CascadeConfig, update_result: Any) -> CascadeResult:
    matched, modified = _counts(update_result)
    return CascadeResult(config=conf, matched_count=matched, modified_count=modified)


# =============================================================================
# Per-config operations
# =============================================================================


def cascade_save_with_config(conf: CascadeConfig, prepared: Mapping[str, Any]) -> CascadeResult:
    """Write the copy of a saved document described by one config.

    Raises:
        InvalidRelationTypeError: Unknown ``rel_type``; no update is issued.
        MissingIdentifierError: ``prepared`` has no ``_id``.
        PyMongoError: Propagated from the collection.
    """
    rel_type = _relation_type(conf)
    doc_id = _snapshot_id(prepared)
    payload = build_payload(conf, prepared)

    if rel_type is RelType.ONE:
        if conf.old_query:
            _update(conf, conf.old_query, {"$set": {conf.through_prop: None}})
        return _result(conf, _update(conf, conf.query, {"$set": {conf.through_prop: payload}}))

    pull = {"$pull": {conf.through_prop: {"_id": doc_id}}}
    if conf.old_query:
        _update(conf, conf.old_query, pull)
    _update(conf, conf.query, pull)
    return _result(conf, _update(conf, conf.query, {"$push": {conf.through_prop: payload}}))


def cascade_delete_with_config(conf: CascadeConfig, doc_id: Any) -> CascadeResult:
    """Remove the copy of a deleted document described by one config.

    Raises:
        InvalidRelationTypeError: Unknown ``rel_type``; no update is issued.
        PyMongoError: Propagated from the collection.
    """
    rel_type = _relation_type(conf)

    if rel_type is RelType.ONE:
        update = {"$set": {conf.through_prop: None}}
    else:
        update = {"$pull": {conf.through_prop: {"_id": doc_id}}}
    return _result(conf, _update(conf, conf.query, update))


# =============================================================================
# Entry points
# =============================================================================


def cascade_save(doc: Any, prepared: Mapping[str, Any]) -> list[CascadeResult]:
    """Cascade a saved document into every related collection.

    Args:
        doc: The saved document; ignored unless it implements ``get_cascade()``.
        prepared: Flat snapshot of the document as written to the store
            (already encoded), including ``_id``.

    Returns:
        One result per config.  A config that fails is logged and reported
        through ``CascadeResult.error``; the remaining configs still run.

    Raises:
        MissingIdentifierError: If ``prepared`` has no ``_id``.
    """
    if not isinstance(doc, Cascading):
        return []

    configs = list(doc.get_cascade())
    if not configs:
        return []
    _snapshot_id(prepared)

    results: list[CascadeResult] = []
    for conf in configs:
        try:
            results.append(cascade_save_with_config(conf, prepared))
        except (CascadeError, PyMongoError) as exc:
            logger.warning(
                "Cascade save of %s into %s.%s failed: %s",
                type(doc).__name__,
                _collection_name(conf),
                conf.through_prop,
                exc,
            )
            results.append(CascadeResult(config=conf, error=exc))
    return results


def cascade_delete(doc: Any) -> list[CascadeResult]:
    """Remove copies of a deleted document from every related collection.

    Returns:
        One result per config, as for ``cascade_save``.

    Raises:
        MissingIdentifierError: If the document has no readable id.
    """
    if not isinstance(doc, Cascading):
        return []

    doc_id = doc.get_id() if isinstance(doc, Identifiable) else None
    if doc_id is None:
        raise MissingIdentifierError(
            f"Cannot cascade delete of {type(doc).__name__}: document has no id"
        )

    results: list[CascadeResult] = []
    for conf in doc.get_cascade():
        try:
            results.append(cascade_delete_with_config(conf, doc_id))
        except (CascadeError, PyMongoError) as exc:
            logger.warning(
                "Cascade delete of %s from %s.%s failed: %s",
                type(doc).__name__,
                _collection_name(conf),
                conf.through_prop,
                exc,
            )
            results.append(CascadeResult(config=conf, error=exc))
    return results
