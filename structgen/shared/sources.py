"""Column sources: where table and column metadata comes from.

Two sources are provided. ``DatabaseColumnSource`` reflects a live database
through SQLAlchemy; ``YamlColumnSource`` reads offline schema documents.
Both raise ``SchemaIntrospectionError`` when metadata cannot be obtained.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Protocol, Sequence

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import CompileError, SQLAlchemyError

from .errors import GenError, SchemaIntrospectionError, SchemaValidationError
from .schema_loader import SchemaCache, collect_schema_paths

logger = logging.getLogger(__name__)

_TYPE_KEYWORD_RE: Final = re.compile(r"\s*([A-Za-z_][A-Za-z0-9_]*)")


@dataclass(frozen=True, slots=True)
class ColumnDescriptor:
    """Metadata for one table column."""

    name: str
    database_type_name: str
    nullable: bool
    ordinal_position: int


class ColumnSource(Protocol):
    """Anything that can list tables and describe their columns."""

    def table_names(self) -> list[str]: ...

    def columns(self, table_name: str) -> list[ColumnDescriptor]: ...

    def close(self) -> None: ...


def normalize_type_name(raw: str) -> str:
    """Reduce a rendered column type to its leading keyword.

    Examples:
        >>> normalize_type_name("VARCHAR(255)")
        'VARCHAR'
        >>> normalize_type_name("BIGINT UNSIGNED")
        'BIGINT'
    """
    match = _TYPE_KEYWORD_RE.match(raw)
    return match.group(1) if match else raw.strip()


class DatabaseColumnSource:
    """Reflects tables and columns from a live database via SQLAlchemy."""

    def __init__(self, url: str, schema: str | None = None) -> None:
        self._schema = schema
        try:
            self._engine: Engine = create_engine(url)
            self._inspector = inspect(self._engine)
        except SQLAlchemyError as e:
            raise SchemaIntrospectionError(f"Failed to connect: {e}") from e

    def table_names(self) -> list[str]:
        try:
            names = self._inspector.get_table_names(schema=self._schema)
        except SQLAlchemyError as e:
            raise SchemaIntrospectionError(f"Failed to list tables: {e}") from e
        logger.debug("Found %d table(s)", len(names))
        return list(names)

    def columns(self, table_name: str) -> list[ColumnDescriptor]:
        try:
            columns_info = self._inspector.get_columns(table_name, schema=self._schema)
        except SQLAlchemyError as e:
            raise SchemaIntrospectionError(
                f"Failed to read columns: {e}", table_name
            ) from e

        descriptors = [
            ColumnDescriptor(
                name=col["name"],
                database_type_name=self._type_name(col["type"]),
                nullable=bool(col.get("nullable", True)),
                ordinal_position=position,
            )
            for position, col in enumerate(columns_info)
        ]
        logger.debug("Table %s: %d column(s)", table_name, len(descriptors))
        return descriptors

    def close(self) -> None:
        self._engine.dispose()

    def __enter__(self) -> DatabaseColumnSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _type_name(self, column_type: Any) -> str:
        try:
            rendered = column_type.compile(dialect=self._engine.dialect)
        except CompileError:
            # Types the dialect cannot render (e.g. NullType)
            rendered = getattr(column_type, "__visit_name__", type(column_type).__name__)
        return normalize_type_name(str(rendered))


class YamlColumnSource:
    """Reads tables and columns from YAML schema documents.

    Expected layout::

        tables:
          - name: users
            columns:
              - name: id
                type: int
                nullable: false

    ``nullable`` defaults to true. Column order in the document is the
    ordinal order.
    """

    def __init__(self, paths: Sequence[Path], cache: SchemaCache | None = None) -> None:
        self._cache = cache if cache is not None else SchemaCache()
        try:
            self._paths = collect_schema_paths(paths)
        except FileNotFoundError as e:
            raise SchemaIntrospectionError(str(e)) from e
        if not self._paths:
            raise SchemaIntrospectionError("No schema files found")
        self._tables: dict[str, tuple[dict[str, Any], str]] | None = None

    def table_names(self) -> list[str]:
        return list(self._load())

    def columns(self, table_name: str) -> list[ColumnDescriptor]:
        tables = self._load()
        if table_name not in tables:
            raise SchemaIntrospectionError("Table not found in schema files", table_name)
        table, schema_path = tables[table_name]

        raw_columns = table.get("columns", [])
        if not isinstance(raw_columns, list):
            raise SchemaIntrospectionError(
                f"Table '{table_name}' must provide a 'columns' list", schema_path
            )

        descriptors: list[ColumnDescriptor] = []
        for position, column in enumerate(raw_columns):
            try:
                descriptors.append(_column_from_mapping(column, position, table_name))
            except SchemaValidationError as e:
                raise SchemaIntrospectionError(str(e), schema_path) from e
        return descriptors

    def close(self) -> None:
        """Forget the loaded tables; the next call reads the files again."""
        self._tables = None
        for path in self._paths:
            self._cache.invalidate(path)

    def _load(self) -> dict[str, tuple[dict[str, Any], str]]:
        if self._tables is not None:
            return self._tables

        tables: dict[str, tuple[dict[str, Any], str]] = {}
        for schema_path in self._paths:
            try:
                schema = self._cache.get(schema_path)
            except GenError as e:
                raise SchemaIntrospectionError(f"Failed to load schema: {e}") from e

            entries = schema.get("tables")
            if not isinstance(entries, list):
                raise SchemaIntrospectionError(
                    "schema must provide a 'tables' list", str(schema_path)
                )
            for table in entries:
                if not isinstance(table, dict) or not table.get("name"):
                    raise SchemaIntrospectionError(
                        "every table needs a 'name'", str(schema_path)
                    )
                name = str(table["name"])
                if name in tables:
                    logger.warning(
                        "Table %s redefined in %s; using the later definition",
                        name,
                        schema_path,
                    )
                tables[name] = (table, str(schema_path))

        self._tables = tables
        return tables


def _column_from_mapping(column: Any, position: int, table_name: str) -> ColumnDescriptor:
    if not isinstance(column, dict):
        raise SchemaValidationError("column entries must be mappings", table_name)

    name = column.get("name")
    if not name:
        raise SchemaValidationError(
            f"column #{position} is missing required 'name'", table_name
        )
    type_name = column.get("type")
    if not type_name:
        raise SchemaValidationError(
            "column is missing required 'type'", table_name, field=str(name)
        )

    return ColumnDescriptor(
        name=str(name),
        database_type_name=str(type_name),
        nullable=bool(column.get("nullable", True)),
        ordinal_position=position,
    )
