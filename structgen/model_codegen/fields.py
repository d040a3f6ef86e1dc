"""Turning column metadata into Go struct fields and models."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from ..shared import (
    ColumnDescriptor,
    DuplicateIdentifierError,
    EmptyIdentifierError,
    IdentifierFormatter,
    TypeMappingError,
    singularize,
)
from .type_mapping import DEFAULT_TYPE_MAPPER, TypeMapper

logger = logging.getLogger(__name__)

SERIALIZATION_TAG = "json"


@dataclass(frozen=True, slots=True)
class FieldOptions:
    """Flags controlling which struct tags are emitted.

    ``strict_types`` turns an unmapped column type into a ``TypeMappingError``
    instead of silently dropping the column.
    """

    emit_persistence_annotation: bool = False
    emit_serialization_annotation: bool = True
    persistence_tag: str = "orm"
    strict_types: bool = False


@dataclass(frozen=True, slots=True)
class FieldDeclaration:
    """One Go struct field."""

    identifier: str
    type_repr: str
    annotations: tuple[str, ...] = ()

    def render(self) -> str:
        if self.annotations:
            return f"{self.identifier} {self.type_repr} `{' '.join(self.annotations)}`"
        return f"{self.identifier} {self.type_repr}"

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True, slots=True)
class ModelInfo:
    """Everything the model template needs for one table."""

    package_name: str
    struct_name: str
    short_alias: str
    table_name: str
    fields: tuple[str, ...]


def build_annotations(
    column_name: str,
    is_first_column: bool,
    options: FieldOptions,
) -> tuple[str, ...]:
    """Build the struct tags for a column, persistence tag first.

    The first column is tagged as the primary key. That is a positional
    guess, not a lookup of the table's key constraint.
    """
    annotations: list[str] = []
    if options.emit_persistence_annotation:
        value = f"column:{column_name}"
        if is_first_column:
            value += ";primary_key"
        annotations.append(f'{options.persistence_tag}:"{value}"')
    if options.emit_serialization_annotation:
        annotations.append(f'{SERIALIZATION_TAG}:"{column_name}"')
    return tuple(annotations)


def _checked_identifier(
    formatter: IdentifierFormatter,
    raw: str,
    context: str | None,
) -> str:
    identifier = formatter.format(raw)
    if not identifier or not identifier[0].isalpha():
        raise EmptyIdentifierError(raw, context)
    return identifier


def assemble_fields(
    columns: Sequence[ColumnDescriptor],
    options: FieldOptions,
    formatter: IdentifierFormatter | None = None,
    mapper: TypeMapper | None = None,
    table_name: str | None = None,
) -> list[FieldDeclaration]:
    """Build field declarations for ``columns`` in ordinal order.

    Columns whose type has no mapping are left out. The primary-key tag
    goes to the first column by ordinal position, so if that column is
    dropped no field carries it.

    Raises:
        EmptyIdentifierError: If a column name has no usable characters.
        DuplicateIdentifierError: If two kept columns format to the same
            identifier (e.g. ``url`` and ``URL``).
        TypeMappingError: If a type is unmapped and ``options.strict_types``.
    """
    formatter = formatter or IdentifierFormatter()
    mapper = mapper or DEFAULT_TYPE_MAPPER

    ordered = sorted(columns, key=lambda col: col.ordinal_position)
    fields: list[FieldDeclaration] = []
    claimed: dict[str, str] = {}

    for index, column in enumerate(ordered):
        type_repr, ok = mapper.map_type(column.database_type_name, column.nullable)
        if not ok:
            if options.strict_types:
                raise TypeMappingError(
                    column.database_type_name,
                    f"column '{column.name}'",
                    table_name,
                )
            logger.warning(
                "Skipping column %s.%s: unsupported type %r",
                table_name or "?",
                column.name,
                column.database_type_name,
            )
            continue

        identifier = _checked_identifier(formatter, column.name, table_name)
        if identifier in claimed:
            raise DuplicateIdentifierError(
                identifier, (claimed[identifier], column.name), table_name
            )
        claimed[identifier] = column.name

        fields.append(
            FieldDeclaration(
                identifier=identifier,
                type_repr=type_repr,
                annotations=build_annotations(column.name, index == 0, options),
            )
        )

    return fields


class ModelBuilder:
    """Builds a ``ModelInfo`` for a table from its columns.

    ``singularizer`` turns a plural table name into a singular one; it
    defaults to the simple English rules in ``structgen.shared.naming``.
    """

    def __init__(
        self,
        formatter: IdentifierFormatter | None = None,
        mapper: TypeMapper | None = None,
        singularizer: Callable[[str], str] = singularize,
    ) -> None:
        self.formatter = formatter or IdentifierFormatter()
        self.mapper = mapper or DEFAULT_TYPE_MAPPER
        self.singularizer = singularizer

    def struct_name(self, hint: str, context: str | None = None) -> str:
        """Derive the struct name for a table name (or explicit hint).

        The raw name is singularized before formatting so that a trailing
        initialism survives (``urls`` gives ``URL``, not ``Url``).
        """
        struct_name = self.formatter.format(self.singularizer(hint))
        if not struct_name or not struct_name[0].isalpha():
            raise EmptyIdentifierError(hint, context)
        return struct_name

    def build(
        self,
        table_name: str,
        columns: Sequence[ColumnDescriptor],
        package_name: str,
        options: FieldOptions,
        struct_name_hint: str | None = None,
    ) -> ModelInfo:
        """Build the model for one table.

        Raises:
            EmptyIdentifierError: If the struct or a field name would be empty.
            DuplicateIdentifierError: If two columns share an identifier.
            TypeMappingError: If a type is unmapped and ``options.strict_types``.
        """
        struct_name = self.struct_name(struct_name_hint or table_name, table_name)
        fields = assemble_fields(
            columns,
            options,
            formatter=self.formatter,
            mapper=self.mapper,
            table_name=table_name,
        )
        logger.debug(
            "Built %s for table %s with %d field(s)",
            struct_name,
            table_name,
            len(fields),
        )
        return ModelInfo(
            package_name=package_name,
            struct_name=struct_name,
            short_alias=struct_name[0].lower()[0],
            table_name=table_name,
            fields=tuple(field.render() for field in fields),
        )
