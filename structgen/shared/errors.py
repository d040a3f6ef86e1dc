"""Custom exceptions for the struct generator."""

from __future__ import annotations


class GenError(Exception):
    """Base exception for generation errors.

    ``context`` names what was being processed, a table name or a schema
    file path, and prefixes the message when given.
    """

    def __init__(self, message: str, context: str | None = None) -> None:
        self.context = context
        full_message = f"{message}" if not context else f"[{context}] {message}"
        super().__init__(full_message)


class SchemaValidationError(GenError):
    """Raised when a schema document is malformed."""

    def __init__(
        self,
        message: str,
        context: str | None = None,
        field: str | None = None,
    ) -> None:
        self.field = field
        if field:
            message = f"Field '{field}': {message}"
        super().__init__(message, context)


class TypeMappingError(GenError):
    """Raised when a column type has no mapping and unsupported types are fatal."""

    def __init__(
        self,
        type_name: str,
        detail: str,
        context: str | None = None,
    ) -> None:
        self.type_name = type_name
        super().__init__(f"No type mapping for '{type_name}' ({detail})", context)


class EmptyIdentifierError(GenError):
    """Raised when a table or column name does not yield a usable identifier."""

    def __init__(self, raw: str, context: str | None = None) -> None:
        self.raw = raw
        super().__init__(f"Cannot derive an identifier from {raw!r}", context)


class DuplicateIdentifierError(GenError):
    """Raised when two columns of one table format to the same identifier."""

    def __init__(
        self,
        identifier: str,
        columns: tuple[str, ...],
        context: str | None = None,
    ) -> None:
        self.identifier = identifier
        self.columns = columns
        names = ", ".join(repr(name) for name in columns)
        super().__init__(f"Columns {names} all map to identifier '{identifier}'", context)


class SchemaIntrospectionError(GenError):
    """Raised when table or column metadata cannot be obtained."""


class RenderingError(GenError):
    """Raised when a model cannot be rendered or formatted."""
