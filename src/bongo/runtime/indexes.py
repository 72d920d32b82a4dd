"""
Native index lowering and creation.

Turns the registry's parsed declarations into ``pymongo.IndexModel``
objects and creates them on each type's collection.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from bongo.specs.index import NativeIndexSpec

if TYPE_CHECKING:
    from bongo.runtime.registry import Registry

logger = logging.getLogger(__name__)


def dedupe_indexes(specs: Iterable[NativeIndexSpec]) -> list[NativeIndexSpec]:
    """Drop specs identical to an earlier one, keeping first-seen order."""
    seen: set[NativeIndexSpec] = set()
    result: list[NativeIndexSpec] = []
    for spec in specs:
        if spec in seen:
            continue
        seen.add(spec)
        result.append(spec)
    return result


def ensure_indexes(
    registry: Registry,
    database: Any,
    document_types: Iterable[type] | None = None,
) -> dict[str, list[str]]:
    """Create the declared indexes of registered types.

    Args:
        registry: Populated registry.
        database: ``pymongo.database.Database`` (or anything indexable by
            collection name that returns a collection with ``create_indexes``).
        document_types: Restrict to these types; defaults to every
            registered type.

    Returns:
        Index names reported by the driver, keyed by collection name.
        Types without declared indexes are skipped.
    """
    created: dict[str, list[str]] = {}
    types_to_index = registry.document_types if document_types is None else document_types

    for doc_type in types_to_index:
        collection_name = registry.get_collection_name(doc_type)
        if collection_name is None:
            logger.warning("Skipping unregistered type %s", getattr(doc_type, "__name__", doc_type))
            continue

        specs = registry.get_all_index(doc_type)
        if not specs:
            continue

        names = database[collection_name].create_indexes([s.to_index_model() for s in specs])
        created.setdefault(collection_name, []).extend(names)
        logger.info(
            "Ensured %d index(es) on %s: %s", len(names), collection_name, ", ".join(names)
        )

    return created
