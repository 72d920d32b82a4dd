"""
bongo - document mapping metadata and relational cascades for MongoDB.

This package provides:
- DocumentModel and declaration markers (DocumentMeta, Index, Ref, RefField)
- Registry: write-once schema descriptors, parsed indexes and relations
- DocumentFactory: registry-bound document construction
- Cascade engine: denormalized copies kept in step across collections
"""

from bongo._version import get_version as _get_version

__version__ = _get_version()

from bongo.core.errors import (  # noqa: E402
    BongoError,
    CascadeError,
    IndexGrammarError,
    InvalidRelationTypeError,
    MissingIdentifierError,
    RegistryFrozenError,
    SchemaError,
    UnregisteredDocumentError,
)
from bongo.runtime import (  # noqa: E402
    CascadeConfig,
    CascadeResult,
    DocumentFactory,
    Registry,
    cascade_delete,
    cascade_save,
    ensure_indexes,
    new_document,
)
from bongo.specs import (  # noqa: E402
    REL_MANY,
    REL_ONE,
    DocumentMeta,
    DocumentModel,
    Index,
    NativeIndexSpec,
    ParsedIndex,
    Ref,
    RefField,
    RelType,
)

__all__ = [
    "__version__",
    # Declarations
    "DocumentMeta",
    "DocumentModel",
    "Index",
    "Ref",
    "RefField",
    "NativeIndexSpec",
    "ParsedIndex",
    "REL_MANY",
    "REL_ONE",
    "RelType",
    # Runtime
    "Registry",
    "DocumentFactory",
    "new_document",
    "ensure_indexes",
    "CascadeConfig",
    "CascadeResult",
    "cascade_delete",
    "cascade_save",
    # Errors
    "BongoError",
    "CascadeError",
    "IndexGrammarError",
    "InvalidRelationTypeError",
    "MissingIdentifierError",
    "RegistryFrozenError",
    "SchemaError",
    "UnregisteredDocumentError",
]
