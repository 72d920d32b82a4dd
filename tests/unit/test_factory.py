"""
Tests for DocumentFactory.

Covers construction from prototypes, type validation, and the registry
lookups exposed on bound documents.
"""

from __future__ import annotations

from typing import Annotated, ClassVar

import pytest
from bson import ObjectId
from pydantic import BaseModel

from bongo.core.errors import SchemaError, UnregisteredDocumentError
from bongo.runtime.factory import DocumentFactory, new_document
from bongo.runtime.registry import Registry
from bongo.specs.document import DocumentMeta, DocumentModel, Index, Ref, RefField
from bongo.specs.index import NativeIndexSpec, ParsedIndex
from bongo.specs.relation import RelType


class BadDocument(BaseModel):
    name: str = ""


class Person(DocumentModel):
    __document__: ClassVar[DocumentMeta] = DocumentMeta(
        collection="people", index="{name,surname},unique"
    )

    name: Annotated[str, Index("{name},unique,sparse")] = ""
    surname: str = ""


class Pet(DocumentModel):
    name: str = ""
    owner: Annotated[RefField | None, Ref("Person")] = None


class Unregistered(DocumentModel):
    name: str = ""


@pytest.fixture
def factory(registry: Registry) -> DocumentFactory:
    registry.register(Person, Pet)
    registry.seal()
    return DocumentFactory(registry)


class TestNewDocument:
    def test_from_mapping(self, factory: DocumentFactory) -> None:
        doc = factory.new_document(Person, {"name": "MyName", "surname": "MySurname"})
        assert isinstance(doc, Person)
        assert doc.name == "MyName"
        assert doc.surname == "MySurname"
        assert doc.id is None

    def test_from_keywords(self, factory: DocumentFactory) -> None:
        doc = factory.new_document(Person, name="MyName")
        assert doc.name == "MyName"
        assert doc.surname == ""

    def test_keywords_override_prototype(self, factory: DocumentFactory) -> None:
        doc = factory.new_document(Person, {"name": "A", "surname": "B"}, name="C")
        assert (doc.name, doc.surname) == ("C", "B")

    def test_from_instance_copies_values(self, factory: DocumentFactory) -> None:
        oid = ObjectId()
        prototype = Person(_id=oid, name="MyFirst")
        doc = factory.new_document(Person, prototype)
        assert doc is not prototype
        assert doc.id == oid
        assert doc.name == "MyFirst"

    def test_storage_alias_accepted(self, factory: DocumentFactory) -> None:
        oid = ObjectId()
        doc = factory.new_document(Person, {"_id": oid})
        assert doc.get_id() == oid

    def test_reference_values(self, factory: DocumentFactory) -> None:
        oid = ObjectId()
        pet = factory.new_document(Pet, name="Rex", owner={"_id": oid, "name": "Ann"})
        assert pet.owner is not None
        assert pet.owner.id == oid

    def test_prototype_of_other_type_fails(self, factory: DocumentFactory) -> None:
        with pytest.raises(TypeError):
            factory.new_document(Person, Pet(name="Rex"))

    def test_type_without_base_model_fails(self, factory: DocumentFactory) -> None:
        with pytest.raises(SchemaError):
            factory.new_document(BadDocument)  # type: ignore[type-var]

    def test_unregistered_type_fails(self, factory: DocumentFactory) -> None:
        with pytest.raises(UnregisteredDocumentError, match="Unregistered"):
            factory.new_document(Unregistered)

    def test_module_shortcut(self, factory: DocumentFactory) -> None:
        doc = new_document(factory.registry, Person, name="X")
        assert doc.name == "X"
        assert doc.registry is factory.registry


class TestBoundLookups:
    def test_parsed_index(self, factory: DocumentFactory) -> None:
        doc = factory.new_document(Person)
        assert doc.get_parsed_index("name") == [
            ParsedIndex(fields=("name",), options=("unique", "sparse"), position=0)
        ]
        assert doc.get_parsed_index("boh") is None

    def test_all_parsed_index(self, factory: DocumentFactory) -> None:
        doc = factory.new_document(Person)
        assert doc.get_all_parsed_index() == {
            "DocumentModel": [
                ParsedIndex(fields=("name", "surname"), options=("unique",), position=1)
            ],
            "name": [ParsedIndex(fields=("name",), options=("unique", "sparse"), position=0)],
            "surname": None,
        }

    def test_index(self, factory: DocumentFactory) -> None:
        doc = factory.new_document(Person)
        idx = doc.get_index("name")
        assert len(idx) > 0
        assert idx[0] == NativeIndexSpec(keys=(("name", 1),), unique=True, sparse=True)

    def test_all_index(self, factory: DocumentFactory) -> None:
        doc = factory.new_document(Person, name="MyFirst")
        idx = doc.get_all_index()
        assert len(idx) == 2
        assert idx[1] == NativeIndexSpec(keys=(("name", 1),), unique=True, sparse=True)

    def test_relations_and_collection(self, factory: DocumentFactory) -> None:
        pet = factory.new_document(Pet)
        [relation] = pet.get_relations()
        assert relation.rel_type is RelType.ONE
        assert relation.target == "Person"
        assert pet.get_collection_name() == "pet"

    def test_unbound_document_raises(self) -> None:
        with pytest.raises(RuntimeError, match="not bound to a registry"):
            Person(name="loose").get_index("name")
