"""Loading of offline YAML schema documents, with caching."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Sequence

import yaml

from .errors import SchemaValidationError

SCHEMA_SUFFIXES: tuple[str, ...] = (".yaml", ".yml")


@dataclass(frozen=True, slots=True)
class CacheKey:
    """Identity of a schema file at a point in time."""

    path: Path
    mtime: float
    size: int

    @classmethod
    def from_path(cls, path: Path) -> CacheKey:
        stat = path.stat()
        return cls(path=path.resolve(), mtime=stat.st_mtime, size=stat.st_size)


class SchemaCache:
    """Cache of parsed schema documents.

    An entry is reparsed when the file's mtime or size changes. Once
    ``max_size`` entries are held, the oldest one is evicted.
    """

    __slots__ = ("_entries", "_max_size", "_lock")

    def __init__(self, max_size: int = 100) -> None:
        self._entries: dict[Path, tuple[CacheKey, dict[str, Any]]] = {}
        self._max_size = max_size
        self._lock = threading.Lock()

    def get(self, path: Path) -> dict[str, Any]:
        """Return the parsed document at ``path``, loading it if needed.

        Raises:
            SchemaValidationError: If the document cannot be read or parsed.
        """
        resolved = path.resolve()
        try:
            current_key = CacheKey.from_path(resolved)
        except OSError as e:
            raise SchemaValidationError(f"Failed to stat schema file: {e}", str(path)) from e

        with self._lock:
            cached = self._entries.get(resolved)
            if cached is not None and cached[0] == current_key:
                return cached[1]

        data = load_schema(resolved)

        with self._lock:
            if resolved not in self._entries and len(self._entries) >= self._max_size:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
            self._entries[resolved] = (current_key, data)
        return data

    def invalidate(self, path: Path | None = None) -> None:
        """Drop one cached document, or all of them when ``path`` is None."""
        with self._lock:
            if path is None:
                self._entries.clear()
            else:
                self._entries.pop(path.resolve(), None)

    def __len__(self) -> int:
        return len(self._entries)


def load_schema(schema_path: Path) -> dict[str, Any]:
    """Load a schema document from a YAML file.

    Args:
        schema_path: Path to the schema file.

    Returns:
        The parsed document; its root is always a mapping.

    Raises:
        SchemaValidationError: If the file cannot be read or parsed.
    """
    try:
        content = schema_path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaValidationError(f"Failed to read schema file: {e}", str(schema_path)) from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SchemaValidationError(f"Invalid YAML: {e}", str(schema_path)) from e

    if not isinstance(data, dict):
        raise SchemaValidationError("Schema root must be a mapping", str(schema_path))

    return data


def collect_schema_paths(inputs: Sequence[Path]) -> list[Path]:
    """Expand files and directories into a de-duplicated list of schema files.

    Directories contribute their ``.yaml``/``.yml`` files in name order.

    Raises:
        FileNotFoundError: If any input path doesn't exist.
    """

    def _iter_paths() -> Iterator[Path]:
        for raw in inputs:
            path = raw.resolve()
            if not path.exists():
                raise FileNotFoundError(f"Schema path '{raw}' does not exist")
            if path.is_dir():
                yield from sorted(
                    p
                    for p in path.iterdir()
                    if p.is_file() and p.suffix in SCHEMA_SUFFIXES
                )
            else:
                yield path

    # dict keeps first-seen order
    seen: dict[Path, None] = {}
    for path in _iter_paths():
        seen.setdefault(path, None)

    return list(seen.keys())
