"""Mapping from database column types to Go types."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final, Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TargetType:
    """A Go representation for one category of database types.

    ``nilable`` is false for types that are already reference-like and are
    never wrapped in a pointer.
    """

    name: str
    nilable: bool = True

    def resolve(self, nullable: bool) -> str:
        if nullable and self.nilable:
            return f"*{self.name}"
        return self.name


DEFAULT_GO_TYPES: Final[Mapping[str, TargetType]] = MappingProxyType({
    "narrow_int": TargetType("int8"),
    "int32": TargetType("int32"),
    "int64": TargetType("int64"),
    "text": TargetType("string"),
    "temporal": TargetType("time.Time"),
    "double": TargetType("float64"),
    "float": TargetType("float32"),
    "bytes": TargetType("[]byte", nilable=False),
})

# Database type name (lower-case) -> category in DEFAULT_GO_TYPES
DEFAULT_MYSQL_TYPES: Final[Mapping[str, str]] = MappingProxyType({
    "tinyint": "narrow_int",
    "int": "int32",
    "integer": "int32",
    "bigint": "int64",
    "char": "text",
    "enum": "text",
    "varchar": "text",
    "longtext": "text",
    "mediumtext": "text",
    "text": "text",
    "tinytext": "text",
    "date": "temporal",
    "datetime": "temporal",
    "time": "temporal",
    "timestamp": "temporal",
    "decimal": "double",
    "double": "double",
    "float": "float",
    "binary": "bytes",
    "blob": "bytes",
    "longblob": "bytes",
    "mediumblob": "bytes",
    "varbinary": "bytes",
})


class TypeMapper:
    """Resolves database type names to Go types.

    Lookup is an exact match on the lower-cased type name. Both tables are
    only read, so one mapper may be shared between threads.
    """

    __slots__ = ("_database_types", "_target_types")

    def __init__(
        self,
        database_types: Mapping[str, str] = DEFAULT_MYSQL_TYPES,
        target_types: Mapping[str, TargetType] = DEFAULT_GO_TYPES,
    ) -> None:
        unknown = set(database_types.values()) - set(target_types)
        if unknown:
            raise ValueError(f"Categories without a target type: {sorted(unknown)}")
        self._database_types = database_types
        self._target_types = target_types

    def map_type(self, database_type_name: str, nullable: bool) -> tuple[str, bool]:
        """Return ``(go_type, True)``, or ``("", False)`` for an unknown type."""
        category = self._database_types.get(database_type_name.lower())
        if category is None:
            logger.debug("No mapping for database type %r", database_type_name)
            return "", False
        return self._target_types[category].resolve(nullable), True


DEFAULT_TYPE_MAPPER: Final = TypeMapper()
