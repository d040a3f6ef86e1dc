"""
Model Code Generator - Generates Go structs from table metadata.

Columns are read from a live database or from YAML schema files, each table
becomes one ``<table>.go`` file holding a struct with one field per column.

A table that cannot be generated (unusable or clashing name, unmapped type
in strict mode, rendering or write failure) is reported and skipped; the
rest of the run goes on. Failing to read metadata at all aborts the run.
"""

from __future__ import annotations

import argparse
import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import closing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, Sequence

from ..shared import (
    ColumnDescriptor,
    ColumnSource,
    DatabaseColumnSource,
    DuplicateIdentifierError,
    EmptyIdentifierError,
    RenderingError,
    SchemaIntrospectionError,
    TypeMappingError,
    YamlColumnSource,
    singularize,
)
from .fields import FieldOptions, ModelBuilder
from .render import GeneratorContext, render_model

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE: Final[str] = "generated"
DEFAULT_OUTPUT_DIR: Final[Path] = Path("model")
GO_SUFFIX: Final[str] = ".go"
_UNSAFE_FILE_CHARS_RE: Final = re.compile(r"[^\w.-]+")

# Errors that cost one table its output but leave the run going
TABLE_ERRORS: Final = (
    EmptyIdentifierError,
    DuplicateIdentifierError,
    TypeMappingError,
    RenderingError,
)


@dataclass
class GenerationReport:
    """Outcome of a generation run."""

    written: list[Path] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


def output_path_for(table_name: str, output_dir: Path) -> Path:
    """Path of the generated file for ``table_name``.

    Characters that are unsafe in a file name, path separators included,
    become ``_``, so the file always lands directly in ``output_dir``.

    Raises:
        RenderingError: If no file name is left after cleaning.
    """
    stem = _UNSAFE_FILE_CHARS_RE.sub("_", singularize(table_name)).strip("._")
    if not stem:
        raise RenderingError(f"Cannot derive a file name from {table_name!r}", table_name)
    return output_dir / f"{stem}{GO_SUFFIX}"


def _claim_output_paths(
    table_names: Sequence[str],
    output_dir: Path,
    report: GenerationReport,
) -> dict[str, Path]:
    """Assign each table its output file; later tables lose on a clash."""
    claimed: dict[Path, str] = {}
    paths: dict[str, Path] = {}
    for table_name in table_names:
        try:
            output_path = output_path_for(table_name, output_dir)
            if output_path in claimed:
                raise RenderingError(
                    f"Output file {output_path.name} is already generated for "
                    f"table '{claimed[output_path]}'",
                    table_name,
                )
        except RenderingError as e:
            _record_failure(report, table_name, e)
            continue
        claimed[output_path] = table_name
        paths[table_name] = output_path
    return paths


def _record_failure(report: GenerationReport, table_name: str, error: Exception) -> None:
    logger.error("Failed to generate table %s: %s", table_name, error)
    report.failures[table_name] = str(error)


def _generate_table(
    table_name: str,
    columns: Sequence[ColumnDescriptor],
    output_path: Path,
    package_name: str,
    options: FieldOptions,
    builder: ModelBuilder,
    ctx: GeneratorContext,
) -> Path:
    """Build, render and write one table.

    Safe to run in worker threads: the builder and template context are
    only read, and every table writes its own file.
    """
    model = builder.build(table_name, columns, package_name, options)
    rendered = render_model(model, ctx)
    try:
        output_path.write_text(rendered, encoding="utf-8")
    except OSError as e:
        raise RenderingError(f"Failed to write {output_path}: {e}", table_name) from e
    logger.info("Wrote %s (%s)", output_path, model.struct_name)
    return output_path


def generate(
    source: ColumnSource,
    output_dir: Path,
    tables: Sequence[str] | None = None,
    package_name: str = DEFAULT_PACKAGE,
    options: FieldOptions | None = None,
    parallel: bool = True,
    max_workers: int | None = None,
) -> GenerationReport:
    """Generate one Go file per table.

    Args:
        source: Where table and column metadata comes from.
        output_dir: Directory for generated files; created if missing.
        tables: Tables to generate, or None for every table in ``source``.
        package_name: Go package clause of the generated files.
        options: Struct tag flags.
        parallel: Whether to build and write tables in parallel.
        max_workers: Maximum number of parallel workers.

    Returns:
        The files written and the tables that failed, with their causes.

    Raises:
        SchemaIntrospectionError: If metadata cannot be read from ``source``.
    """
    options = options or FieldOptions()
    ctx = GeneratorContext()
    builder = ModelBuilder()

    table_names = list(tables) if tables else source.table_names()
    # The source is only queried from this thread.
    columns_by_table = {name: source.columns(name) for name in table_names}

    output_dir.mkdir(parents=True, exist_ok=True)
    report = GenerationReport()
    output_paths = _claim_output_paths(list(columns_by_table), output_dir, report)
    written: dict[str, Path] = {}

    if parallel and len(output_paths) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(
                    _generate_table,
                    table_name,
                    columns_by_table[table_name],
                    output_path,
                    package_name,
                    options,
                    builder,
                    ctx,
                ): table_name
                for table_name, output_path in output_paths.items()
            }

            for future in as_completed(futures):
                table_name = futures[future]
                try:
                    written[table_name] = future.result()
                except TABLE_ERRORS as e:
                    _record_failure(report, table_name, e)
    else:
        for table_name, output_path in output_paths.items():
            try:
                written[table_name] = _generate_table(
                    table_name,
                    columns_by_table[table_name],
                    output_path,
                    package_name,
                    options,
                    builder,
                    ctx,
                )
            except TABLE_ERRORS as e:
                _record_failure(report, table_name, e)

    # Keep failures in table order regardless of completion order
    report.failures = {
        name: report.failures[name] for name in columns_by_table if name in report.failures
    }

    report.written = [written[name] for name in columns_by_table if name in written]
    return report


def _parse_tables(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [name.strip() for name in raw.split(",") if name.strip()]


def _open_source(args: argparse.Namespace) -> ColumnSource:
    if args.schema:
        return YamlColumnSource(args.schema)
    if args.url:
        return DatabaseColumnSource(args.url, schema=args.db_schema)
    raise SystemExit("Error: a database URL (--url or DATABASE_URL) or --schema is required")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="structgen",
        description="Generate Go structs from database table metadata",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--url",
        default=os.environ.get("DATABASE_URL"),
        help="SQLAlchemy database URL (default: $DATABASE_URL)",
    )
    source.add_argument(
        "--schema",
        type=Path,
        nargs="+",
        help="YAML schema file(s) or directories to read instead of a database",
    )
    parser.add_argument(
        "--db-schema",
        default=None,
        help="Database schema (namespace) to reflect tables from",
    )
    parser.add_argument(
        "-t",
        "--table",
        default="",
        help="Comma-separated tables to generate (default: all tables)",
    )
    parser.add_argument(
        "--package",
        default=DEFAULT_PACKAGE,
        help=f"Go package name for generated files (default: {DEFAULT_PACKAGE})",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        help=f"Directory for generated files (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--json",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Add json struct tags",
    )
    parser.add_argument(
        "--orm",
        action="store_true",
        help="Add ORM column struct tags, marking the first column as primary key",
    )
    parser.add_argument(
        "--orm-tag",
        default="orm",
        help="Struct tag key used for ORM tags (default: orm)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail a table on unsupported column types instead of skipping the column",
    )
    parser.add_argument(
        "--no-parallel",
        action="store_true",
        help="Disable parallel processing",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Maximum number of parallel workers",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    options = FieldOptions(
        emit_persistence_annotation=args.orm,
        emit_serialization_annotation=args.json,
        persistence_tag=args.orm_tag,
        strict_types=args.strict,
    )

    try:
        with closing(_open_source(args)) as source:
            report = generate(
                source,
                args.output_dir,
                tables=_parse_tables(args.table),
                package_name=args.package,
                options=options,
                parallel=not args.no_parallel,
                max_workers=args.workers,
            )
    except SchemaIntrospectionError as e:
        raise SystemExit(f"Error: {e}") from e

    print(f"Generated {len(report.written)} model(s) into {args.output_dir}")
    if not report.ok:
        for table_name, cause in report.failures.items():
            print(f"  failed: {table_name}: {cause}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
