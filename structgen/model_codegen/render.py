"""Rendering of models to Go source."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Final

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from ..shared import RenderingError
from .fields import ModelInfo

TEMPLATE_DIR: Final[Path] = Path(__file__).parent / "templates"
MODEL_TEMPLATE: Final[str] = "model.go.j2"
TIME_TYPE: Final[str] = "time.Time"


@lru_cache(maxsize=256)
def _quote(value: str) -> str:
    """Quote a string as a Go string literal. Cached for performance."""
    return json.dumps(value)


@dataclass
class GeneratorContext:
    """Template environment shared by every table of a run.

    Jinja2 environments are safe to share between threads once templates
    are loaded, so the model template is compiled up front.
    """

    template_dir: Path = TEMPLATE_DIR
    template_env: Environment = field(init=False)

    def __post_init__(self) -> None:
        self.template_env = Environment(
            loader=FileSystemLoader(self.template_dir),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
            auto_reload=False,
        )
        self.template_env.filters["go_quote"] = _quote
        self._model_template = self.template_env.get_template(MODEL_TEMPLATE)

    @property
    def model_template(self):
        return self._model_template


def _uses_time(fields: tuple[str, ...]) -> bool:
    for declaration in fields:
        parts = declaration.split(" ", 2)
        if len(parts) > 1 and parts[1].lstrip("*") == TIME_TYPE:
            return True
    return False


def render_model(model: ModelInfo, ctx: GeneratorContext) -> str:
    """Render ``model`` through the model template and format the result.

    Raises:
        RenderingError: If the template fails or the output is malformed.
    """
    try:
        rendered = ctx.model_template.render(
            package_name=model.package_name,
            struct_name=model.struct_name,
            short_alias=model.short_alias,
            table_name=model.table_name,
            fields=model.fields,
            needs_time=_uses_time(model.fields),
        )
    except TemplateError as e:
        raise RenderingError(f"Template failed: {e}", model.table_name) from e
    return format_source(rendered, model.table_name)


def _brace_delta(line: str) -> int:
    """Net count of braces on a line, ignoring string and raw-string literals."""
    if line.startswith("//"):
        return 0
    delta = 0
    quote: str | None = None
    escaped = False
    for char in line:
        if quote is not None:
            if escaped:
                escaped = False
            elif char == "\\" and quote == '"':
                escaped = True
            elif char == quote:
                quote = None
        elif char in ('"', "`"):
            quote = char
        elif char == "{":
            delta += 1
        elif char == "}":
            delta -= 1
    return delta


def _split_field(line: str) -> list[str]:
    if line.startswith("//"):
        return [line]
    name, _, rest = line.partition(" ")
    rest = rest.strip()
    tag_start = rest.find("`")
    if tag_start > 0:
        return [name, rest[:tag_start].rstrip(), rest[tag_start:]]
    return [name, rest] if rest else [name]


def _align_fields(rows: list[list[str]], depth: int) -> list[str]:
    indent = "\t" * depth
    name_width = max((len(row[0]) for row in rows if len(row) > 1), default=0)
    type_width = max((len(row[1]) for row in rows if len(row) > 2), default=0)

    lines = []
    for row in rows:
        if len(row) == 1:
            lines.append(indent + row[0])
        elif len(row) == 2:
            lines.append(f"{indent}{row[0].ljust(name_width)} {row[1]}")
        else:
            lines.append(
                f"{indent}{row[0].ljust(name_width)} {row[1].ljust(type_width)} {row[2]}"
            )
    return lines


def format_source(source: str, context: str | None = None) -> str:
    """Normalize indentation and align struct fields the way gofmt does.

    Blocks are indented with tabs, struct field names, types and tags are
    padded into columns, runs of blank lines collapse to one.

    Raises:
        RenderingError: If braces are unbalanced.
    """
    out: list[str] = []
    depth = 0
    struct_rows: list[list[str]] | None = None

    for raw_line in source.splitlines():
        line = raw_line.strip()

        if struct_rows is not None:
            if line.startswith("}"):
                out.extend(_align_fields(struct_rows, depth))
                struct_rows = None
            elif line:
                struct_rows.append(_split_field(line))
                continue
            else:
                continue

        if not line:
            if out and out[-1]:
                out.append("")
            continue

        indent = depth - 1 if line.startswith("}") else depth
        depth += _brace_delta(line)
        if depth < 0 or indent < 0:
            raise RenderingError("Unbalanced braces in generated source", context)
        out.append("\t" * indent + line)

        if line.endswith("struct {"):
            struct_rows = []

    if depth != 0 or struct_rows is not None:
        raise RenderingError("Unbalanced braces in generated source", context)

    while out and not out[-1]:
        out.pop()
    return "\n".join(out) + "\n"
