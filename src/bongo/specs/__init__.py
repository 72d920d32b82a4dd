"""
Schema specification types for bongo documents.

This package provides:
- Document: DocumentModel base, DocumentMeta, Index/Ref markers, RefField
- Index: ParsedIndex and NativeIndexSpec
- Relation: RelType and RelationDescriptor
"""

from bongo.specs.document import DocumentMeta, DocumentModel, Index, Ref, RefField
from bongo.specs.index import INDEX_OPTIONS, NativeIndexSpec, ParsedIndex
from bongo.specs.relation import REL_MANY, REL_ONE, RelationDescriptor, RelType

__all__ = [
    # Documents
    "DocumentMeta",
    "DocumentModel",
    "Index",
    "Ref",
    "RefField",
    # Indexes
    "INDEX_OPTIONS",
    "NativeIndexSpec",
    "ParsedIndex",
    # Relations
    "REL_MANY",
    "REL_ONE",
    "RelType",
    "RelationDescriptor",
]
