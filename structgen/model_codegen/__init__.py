"""Model Code Generator - Generates Go structs from table metadata."""

from .type_mapping import (
    DEFAULT_GO_TYPES,
    DEFAULT_MYSQL_TYPES,
    TargetType,
    TypeMapper,
)
from .fields import (
    FieldDeclaration,
    FieldOptions,
    ModelBuilder,
    ModelInfo,
    assemble_fields,
    build_annotations,
)
from .render import GeneratorContext, format_source, render_model
from .main import GenerationReport, generate, main

__all__ = [
    "DEFAULT_GO_TYPES",
    "DEFAULT_MYSQL_TYPES",
    "TargetType",
    "TypeMapper",
    "FieldDeclaration",
    "FieldOptions",
    "ModelBuilder",
    "ModelInfo",
    "assemble_fields",
    "build_annotations",
    "GeneratorContext",
    "format_source",
    "render_model",
    "GenerationReport",
    "generate",
    "main",
]
