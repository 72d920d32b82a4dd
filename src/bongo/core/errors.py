"""
Error types for bongo schema registration and cascade operations.
"""

from __future__ import annotations

from typing import Any


class BongoError(Exception):
    """Base exception for all bongo errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class SchemaError(BongoError):
    """
    Raised when a document type fails structural validation at registration.

    Examples:
    - Type does not extend DocumentModel
    - Reference field without a declared target type
    - Compound index naming a field the type does not declare

    Attributes:
        issues: Every problem found, one message per problem
    """

    def __init__(self, message: str, issues: list[str] | None = None):
        self.issues = list(issues) if issues else [message]
        super().__init__(message)

    def __str__(self) -> str:
        if len(self.issues) == 1 and self.issues[0] == self.message:
            return self.message
        lines = [self.message] + [f"  - {issue}" for issue in self.issues]
        return "\n".join(lines)


class IndexGrammarError(SchemaError):
    """Raised when an index declaration cannot be parsed."""

    def __init__(self, declaration: str, reason: str):
        self.declaration = declaration
        self.reason = reason
        super().__init__(f"Invalid index declaration {declaration!r}: {reason}")


class RegistryFrozenError(BongoError):
    """Raised when registering types after the registry has been sealed."""

    pass


class UnregisteredDocumentError(BongoError):
    """Raised when a document is created for a type the registry does not know."""

    def __init__(self, document_type: Any):
        self.document_type = document_type
        name = getattr(document_type, "__name__", repr(document_type))
        super().__init__(f"Document type '{name}' is not registered")


class CascadeError(BongoError):
    """Base class for errors raised while cascading a document."""

    pass


class InvalidRelationTypeError(CascadeError):
    """Raised when a cascade config carries an unknown relation type."""

    def __init__(self, rel_type: Any, through_prop: str):
        self.rel_type = rel_type
        self.through_prop = through_prop
        super().__init__(
            f"Invalid relation type {rel_type!r} for cascade through '{through_prop}' "
            "(expected 'one' or 'many')"
        )


class MissingIdentifierError(CascadeError):
    """Raised when a cascading document has no readable identifier."""

    pass
