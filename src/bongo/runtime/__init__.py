"""
bongo runtime - registry, factory, cascade engine and index creation.
"""

from bongo.runtime.cascade import (
    CascadeConfig,
    CascadeResult,
    Cascading,
    Identifiable,
    cascade_delete,
    cascade_delete_with_config,
    cascade_save,
    cascade_save_with_config,
)
from bongo.runtime.factory import DocumentFactory, new_document
from bongo.runtime.index_grammar import parse_index, parse_index_declarations
from bongo.runtime.indexes import dedupe_indexes, ensure_indexes
from bongo.runtime.registry import (
    BASE_FIELD,
    DocumentDescriptor,
    FieldDescriptor,
    Registry,
)

__all__ = [
    # Registry
    "BASE_FIELD",
    "DocumentDescriptor",
    "FieldDescriptor",
    "Registry",
    # Factory
    "DocumentFactory",
    "new_document",
    # Index grammar / creation
    "parse_index",
    "parse_index_declarations",
    "dedupe_indexes",
    "ensure_indexes",
    # Cascade
    "CascadeConfig",
    "CascadeResult",
    "Cascading",
    "Identifiable",
    "cascade_delete",
    "cascade_delete_with_config",
    "cascade_save",
    "cascade_save_with_config",
]
