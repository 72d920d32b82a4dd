"""
Document factory.

Builds documents of registered types and binds them to the registry so
that their schema lookups (indexes, relations, collection) work.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from bongo.core.errors import SchemaError, UnregisteredDocumentError
from bongo.runtime.registry import Registry
from bongo.specs.document import DocumentModel

D = TypeVar("D", bound=DocumentModel)


class DocumentFactory:
    """Creates registry-bound documents."""

    def __init__(self, registry: Registry):
        self.registry = registry

    def new_document(
        self,
        document_type: type[D],
        prototype: Mapping[str, Any] | DocumentModel | None = None,
        /,
        **values: Any,
    ) -> D:
        """
        Build a new document of a registered type.

        Args:
            document_type: Registered DocumentModel subclass
            prototype: Field values to copy, as a mapping or as an existing
                document of the same type
            **values: Field values applied on top of the prototype

        Returns:
            A validated instance bound to this factory's registry

        Raises:
            SchemaError: If the type does not extend DocumentModel
            UnregisteredDocumentError: If the type was never registered
        """
        if not (isinstance(document_type, type) and issubclass(document_type, DocumentModel)):
            name = getattr(document_type, "__name__", repr(document_type))
            raise SchemaError(f"{name} must extend DocumentModel to be stored")
        if not self.registry.is_registered(document_type):
            raise UnregisteredDocumentError(document_type)

        data = _prototype_values(document_type, prototype)
        data.update(values)

        document = document_type(**data)
        document.bind_registry(self.registry)
        return document


def _prototype_values(
    document_type: type[DocumentModel], prototype: Mapping[str, Any] | DocumentModel | None
) -> dict[str, Any]:
    if prototype is None:
        return {}
    if isinstance(prototype, DocumentModel):
        if not isinstance(prototype, document_type):
            raise TypeError(
                f"Prototype of type {type(prototype).__name__} cannot build a "
                f"{document_type.__name__}"
            )
        return {name: getattr(prototype, name) for name in type(prototype).model_fields}
    return dict(prototype)


def new_document(
    registry: Registry,
    document_type: type[D],
    prototype: Mapping[str, Any] | DocumentModel | None = None,
    /,
    **values: Any,
) -> D:
    """Shortcut for ``DocumentFactory(registry).new_document(...)``."""
    return DocumentFactory(registry).new_document(document_type, prototype, **values)
