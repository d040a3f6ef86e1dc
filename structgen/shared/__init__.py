"""Shared utilities for the struct generator."""

from .schema_loader import (
    SchemaCache,
    load_schema,
    collect_schema_paths,
)
from .naming import (
    COMMON_INITIALISMS,
    DIGIT_WORDS,
    IdentifierFormatter,
    capitalize_first,
    format_identifier,
    singularize,
)
from .errors import (
    GenError,
    SchemaValidationError,
    TypeMappingError,
    EmptyIdentifierError,
    DuplicateIdentifierError,
    SchemaIntrospectionError,
    RenderingError,
)
from .sources import (
    ColumnDescriptor,
    ColumnSource,
    DatabaseColumnSource,
    YamlColumnSource,
    normalize_type_name,
)

__all__ = [
    # Schema loading
    "SchemaCache",
    "load_schema",
    "collect_schema_paths",
    # Naming utilities
    "COMMON_INITIALISMS",
    "DIGIT_WORDS",
    "IdentifierFormatter",
    "capitalize_first",
    "format_identifier",
    "singularize",
    # Errors
    "GenError",
    "SchemaValidationError",
    "TypeMappingError",
    "EmptyIdentifierError",
    "DuplicateIdentifierError",
    "SchemaIntrospectionError",
    "RenderingError",
    # Column sources
    "ColumnDescriptor",
    "ColumnSource",
    "DatabaseColumnSource",
    "YamlColumnSource",
    "normalize_type_name",
]
