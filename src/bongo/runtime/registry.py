"""
Document type registry.

Reads the declarations of every registered DocumentModel subclass once,
at startup, into immutable descriptors:

* collection binding
* parsed index declarations, per field and for the type as a whole
* relation descriptors for reference fields

Registration is all-or-nothing: every type in a ``register()`` call is
validated before any of them is stored, and all schema problems are
reported together in one SchemaError.  Once the registration phase is over
the registry is sealed and only read from; lookups never raise, they
return ``None`` or an empty result for unknown types and fields.
"""

from __future__ import annotations

import logging
import re
import types
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field
from pydantic.fields import FieldInfo

from bongo.core.errors import RegistryFrozenError, SchemaError
from bongo.runtime.index_grammar import parse_index_declarations
from bongo.runtime.indexes import dedupe_indexes
from bongo.specs.document import DocumentMeta, DocumentModel, Index, Ref, RefField
from bongo.specs.index import NativeIndexSpec, ParsedIndex
from bongo.specs.relation import RelationDescriptor, RelType

logger = logging.getLogger(__name__)

# Name under which type-level index declarations are reported
BASE_FIELD = DocumentModel.__name__

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


# =============================================================================
# Descriptors
# =============================================================================


class FieldDescriptor(BaseModel):
    """One declared field of a document type."""

    name: str = Field(description="Attribute name")
    path: str = Field(description="Storage path (alias or name)")
    indexes: tuple[ParsedIndex, ...] = Field(default=(), description="Index declarations")
    ref_target: str | None = Field(default=None, description="Target type of a reference")

    model_config = ConfigDict(frozen=True)


class DocumentDescriptor(BaseModel):
    """
    Everything the registry knows about one document type.

    Attributes:
        document_type: The registered class
        collection: Collection the type is stored in
        fields: Declared fields in definition order (base fields excluded)
        base_indexes: Type-level index declarations
        relations: One descriptor per reference field
    """

    document_type: type[DocumentModel] = Field(description="Registered class")
    collection: str = Field(description="Collection name")
    fields: tuple[FieldDescriptor, ...] = Field(default=(), description="Declared fields")
    base_indexes: tuple[ParsedIndex, ...] = Field(default=(), description="Type-level indexes")
    relations: tuple[RelationDescriptor, ...] = Field(default=(), description="Relations")

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def name(self) -> str:
        return self.document_type.__name__

    def get_field(self, name: str) -> FieldDescriptor | None:
        """Get field by attribute name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def iter_parsed_indexes(self) -> Iterator[ParsedIndex]:
        """Type-level declarations first, then fields in order."""
        yield from self.base_indexes
        for f in self.fields:
            yield from f.indexes


# =============================================================================
# Annotation helpers
# =============================================================================


def _strip_optional(annotation: Any) -> Any:
    """``X | None`` -> ``X``; anything else is returned unchanged."""
    if get_origin(annotation) in (Union, types.UnionType):
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _is_ref(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, RefField)


def _reference_kind(annotation: Any) -> RelType | None:
    """Relation type implied by a field annotation, or None for plain fields."""
    annotation = _strip_optional(annotation)
    if _is_ref(annotation):
        return RelType.ONE
    if get_origin(annotation) in (list, tuple, set, frozenset):
        args = [a for a in get_args(annotation) if a is not Ellipsis]
        if len(args) == 1 and _is_ref(_strip_optional(args[0])):
            return RelType.MANY
    return None


def _markers(info: FieldInfo, kind: type) -> list[Any]:
    return [m for m in info.metadata if isinstance(m, kind)]


def default_collection_name(type_name: str) -> str:
    """``DocumentChild`` -> ``document_child``."""
    return _CAMEL_BOUNDARY_RE.sub("_", type_name).lower()


def _collection_issue(name: str) -> str | None:
    if not name:
        return "collection name is empty"
    if "$" in name or "\0" in name:
        return f"collection name '{name}' contains a reserved character"
    if name.startswith("system."):
        return f"collection name '{name}' is in the reserved system namespace"
    return None


# =============================================================================
# Registry
# =============================================================================


@dataclass
class Registry:
    """Write-once mapping from document type to its DocumentDescriptor.

    Populate it with ``register()`` during startup, then call ``seal()``.
    A sealed registry rejects further registration and is safe to share
    between any number of readers.
    """

    _descriptors: dict[type, DocumentDescriptor] = field(default_factory=dict)
    _sealed: bool = False

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register(self, *document_types: Any) -> list[DocumentDescriptor]:
        """Validate and store document types.

        Reference targets may name types registered earlier or types in this
        same call.  Registering a type again rebuilds its descriptor (last
        write wins).

        Returns:
            The descriptors stored, in argument order.

        Raises:
            RegistryFrozenError: If the registry has been sealed.
            SchemaError: If any type is invalid; nothing is stored.
        """
        if self._sealed:
            raise RegistryFrozenError("Registry is sealed; register types before sealing it")

        known = {t.__name__: t for t in self._descriptors}
        for doc_type in document_types:
            if isinstance(doc_type, type):
                known[doc_type.__name__] = doc_type

        issues: list[str] = []
        built: list[DocumentDescriptor] = []
        for doc_type in document_types:
            try:
                built.append(self._build_descriptor(doc_type, known))
            except SchemaError as exc:
                issues.extend(exc.issues)

        if issues:
            names = ", ".join(getattr(t, "__name__", repr(t)) for t in document_types)
            raise SchemaError(f"Schema registration failed for {names}", issues=issues)

        for descriptor in built:
            if descriptor.document_type in self._descriptors:
                logger.debug("Re-registering document type %s", descriptor.name)
            self._descriptors[descriptor.document_type] = descriptor
            logger.info(
                "Registered document type %s (collection: %s, indexes: %d, relations: %d)",
                descriptor.name,
                descriptor.collection,
                sum(1 for _ in descriptor.iter_parsed_indexes()),
                len(descriptor.relations),
            )
        return built

    def seal(self) -> None:
        """End the registration phase."""
        self._sealed = True
        logger.debug("Registry sealed with %d document type(s)", len(self._descriptors))

    @property
    def sealed(self) -> bool:
        return self._sealed

    def _build_descriptor(self, doc_type: Any, known: dict[str, type]) -> DocumentDescriptor:
        type_name = getattr(doc_type, "__name__", repr(doc_type))
        if not (isinstance(doc_type, type) and issubclass(doc_type, DocumentModel)):
            raise SchemaError(f"{type_name} must extend DocumentModel to be stored")
        if doc_type is DocumentModel:
            raise SchemaError("DocumentModel itself cannot be registered")

        meta = doc_type.__document__ or DocumentMeta()
        issues: list[str] = []
        if meta.collection is not None and (problem := _collection_issue(meta.collection)):
            issues.append(f"{type_name}: {problem}")

        declared = {
            name: info
            for name, info in doc_type.model_fields.items()
            if name not in DocumentModel.model_fields
        }
        paths = {"_id"} | {info.alias or name for name, info in declared.items()}

        base_indexes = self._parse_site(type_name, BASE_FIELD, meta.index, None, issues)

        fields: list[FieldDescriptor] = []
        relations: list[RelationDescriptor] = []
        for name, info in declared.items():
            path = info.alias or name
            declarations = [m.declaration for m in _markers(info, Index)]
            indexes = self._parse_site(type_name, name, declarations, path, issues)

            ref_target = None
            refs = _markers(info, Ref)
            rel_type = _reference_kind(info.annotation)
            if rel_type is not None and not refs:
                issues.append(
                    f"{type_name}.{name}: reference field must declare its target with Ref(...)"
                )
            elif refs and rel_type is None:
                issues.append(
                    f"{type_name}.{name}: Ref(...) is only valid on RefField or list[RefField]"
                )
            elif refs and rel_type is not None:
                ref_target = refs[-1].target_name
                target = known.get(ref_target)
                if target is None or (
                    isinstance(refs[-1].target, type) and refs[-1].target is not target
                ):
                    issues.append(
                        f"{type_name}.{name}: reference target '{ref_target}' is not registered"
                    )
                else:
                    relations.append(
                        RelationDescriptor(
                            target=ref_target, rel_type=rel_type, field=name, path=path
                        )
                    )

            fields.append(
                FieldDescriptor(name=name, path=path, indexes=tuple(indexes), ref_target=ref_target)
            )

        for parsed in [*base_indexes, *(i for f in fields for i in f.indexes)]:
            unknown = [p for p in parsed.paths if p.split(".")[0] not in paths]
            if unknown:
                issues.append(
                    f"{type_name}: index {{{','.join(parsed.fields)}}} references "
                    f"undeclared field(s) {', '.join(unknown)}"
                )

        if issues:
            raise SchemaError(f"Invalid document type {type_name}", issues=issues)

        return DocumentDescriptor(
            document_type=doc_type,
            collection=(
                meta.collection if meta.collection is not None else default_collection_name(type_name)
            ),
            fields=tuple(fields),
            base_indexes=tuple(base_indexes),
            relations=tuple(relations),
        )

    @staticmethod
    def _parse_site(
        type_name: str,
        site: str,
        declarations: Iterable[str],
        own_path: str | None,
        issues: list[str],
    ) -> list[ParsedIndex]:
        try:
            return parse_index_declarations(declarations, own_path)
        except SchemaError as exc:
            issues.append(f"{type_name}.{site}: {exc.message}")
            return []

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def is_registered(self, doc_type: Any) -> bool:
        return doc_type in self._descriptors

    def get_descriptor(self, doc_type: Any) -> DocumentDescriptor | None:
        return self._descriptors.get(doc_type)

    @property
    def document_types(self) -> list[type[DocumentModel]]:
        """Registered types in registration order."""
        return list(self._descriptors)

    def resolve(self, type_name: str) -> type[DocumentModel] | None:
        """Find a registered type by class name."""
        for doc_type in self._descriptors:
            if doc_type.__name__ == type_name:
                return doc_type
        return None

    def get_collection_name(self, doc_type: Any) -> str | None:
        descriptor = self.get_descriptor(doc_type)
        return descriptor.collection if descriptor else None

    def get_relations(self, doc_type: Any) -> list[RelationDescriptor]:
        descriptor = self.get_descriptor(doc_type)
        return list(descriptor.relations) if descriptor else []

    def get_referencing(self, target: Any) -> list[tuple[type[DocumentModel], RelationDescriptor]]:
        """Every (type, relation) whose reference points at ``target``.

        ``target`` may be a registered class or its name.  This is what a
        document consults when assembling its cascade configs.
        """
        target_name = target if isinstance(target, str) else getattr(target, "__name__", "")
        return [
            (descriptor.document_type, relation)
            for descriptor in self._descriptors.values()
            for relation in descriptor.relations
            if relation.target == target_name
        ]

    def get_parsed_index(self, doc_type: Any, field_name: str) -> list[ParsedIndex] | None:
        """Parsed declarations of one field, or None if it has none or does not exist.

        Type-level declarations are addressed as ``"DocumentModel"``.
        """
        descriptor = self.get_descriptor(doc_type)
        if descriptor is None:
            return None
        if field_name == BASE_FIELD:
            return list(descriptor.base_indexes) or None
        f = descriptor.get_field(field_name)
        if f is None:
            return None
        return list(f.indexes) or None

    def get_all_parsed_index(self, doc_type: Any) -> dict[str, list[ParsedIndex] | None]:
        """``"DocumentModel"`` plus every declared field; None where unannotated."""
        descriptor = self.get_descriptor(doc_type)
        if descriptor is None:
            return {}
        result: dict[str, list[ParsedIndex] | None] = {
            BASE_FIELD: list(descriptor.base_indexes) or None
        }
        for f in descriptor.fields:
            result[f.name] = list(f.indexes) or None
        return result

    def get_index(self, doc_type: Any, field_name: str) -> list[NativeIndexSpec]:
        """Native index specs declared by one field."""
        parsed = self.get_parsed_index(doc_type, field_name) or []
        return dedupe_indexes(NativeIndexSpec.from_parsed(p) for p in parsed)

    def get_all_index(self, doc_type: Any) -> list[NativeIndexSpec]:
        """Native index specs of the whole type, duplicates collapsed."""
        descriptor = self.get_descriptor(doc_type)
        if descriptor is None:
            return []
        return dedupe_indexes(
            NativeIndexSpec.from_parsed(p) for p in descriptor.iter_parsed_indexes()
        )

    def __contains__(self, doc_type: Any) -> bool:
        return self.is_registered(doc_type)

    def __len__(self) -> int:
        return len(self._descriptors)
