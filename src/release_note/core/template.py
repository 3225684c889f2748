"""Release note templates.

The release note is rendered from a Jinja2 template. A project can replace the
built-in one by adding a template file. Each searched directory is checked
for, in order:

1. ``release-note.jinja``
2. ``.github/release-note.jinja``
3. ``.gitlab/release-note.jinja``

Templates receive:

- ``git_ref``, ``release_date``, ``summary`` and ``footer``
- ``sections``: a list of :class:`Section`, in configured order, empty ones left out
- ``include_body`` and ``platform``

and can use the ``commit_entry``, ``commit_url`` and ``issue_url`` functions
and the ``strip_conventional_prefix``, ``unwrap`` and ``date`` filters. The
``indent`` filter only splits lines on newlines.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined, Template, TemplateError

from release_note.core.commits import Commit, CommitCategory, strip_conventional_prefix
from release_note.exceptions import ChangelogError
from release_note.logging_config import get_logger

logger = get_logger(__name__)

TEMPLATE_FILENAME = "release-note.jinja"
TEMPLATE_LOCATIONS = (
    Path(TEMPLATE_FILENAME),
    Path(".github") / TEMPLATE_FILENAME,
    Path(".gitlab") / TEMPLATE_FILENAME,
)

_LIST_ITEM_PATTERN = re.compile(r"^(?:[-*+]|\d+[.)])\s+")

DEFAULT_TEMPLATE = """\
## {{ git_ref }} - {{ release_date | date("%B %d, %Y") }}

{% if summary %}
{{ summary }}

{% endif %}
{% for section in sections %}
## {{ section.title }}

{% for commit in section.commits %}
{{ commit_entry(commit) }}
{% if include_body and commit.body %}

{{ commit.body | unwrap | indent(2, first=True) }}

{% endif %}
{% endfor %}
{% if not (include_body and section.commits[-1].body) %}

{% endif %}
{% endfor %}
{% if footer %}
{{ footer }}
{% endif %}
"""


@dataclass(frozen=True)
class Section:
    """One rendered section of the release note."""

    category: CommitCategory
    title: str
    commits: list[Commit]

    @property
    def anchor(self) -> str:
        return self.title.lower().replace(" ", "-")


def unwrap(text: str) -> str:
    """Join hard-wrapped lines into one line per paragraph or list item.

    Fenced code blocks and block quotes are kept exactly as written.
    """
    output: list[str] = []
    paragraph: list[str] = []
    in_fence = False

    def flush() -> None:
        if paragraph:
            output.append(" ".join(paragraph))
            paragraph.clear()

    for line in text.split("\n"):
        stripped = line.strip()

        if stripped.startswith("```"):
            flush()
            output.append(line)
            in_fence = not in_fence
        elif in_fence:
            output.append(line)
        elif not stripped:
            flush()
            output.append("")
        elif stripped.startswith(">"):
            flush()
            output.append(line)
        elif _LIST_ITEM_PATTERN.match(stripped):
            flush()
            paragraph.append(stripped)
        else:
            paragraph.append(stripped)

    flush()
    return "\n".join(output)


def _format_date(value: datetime, fmt: str = "%Y-%m-%d") -> str:
    return value.strftime(fmt)


def _indent(text: str, width: int | str = 4, first: bool = False, blank: bool = False) -> str:
    # Same as the built-in filter, but only newlines split lines
    prefix = width if isinstance(width, str) else " " * width
    lines = [prefix + line if line or blank else line for line in text.split("\n")]
    if not first and lines:
        lines[0] = text.split("\n", 1)[0]
    return "\n".join(lines)


def create_environment() -> Environment:
    """Jinja2 environment shared by the built-in and custom templates."""
    env = Environment(
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["date"] = _format_date
    env.filters["indent"] = _indent
    env.filters["unwrap"] = unwrap
    env.filters["strip_conventional_prefix"] = strip_conventional_prefix
    return env


def compile_template(source: str, origin: str = "<default>") -> Template:
    """Compile template source.

    Raises:
        ChangelogError: If the template has a syntax error
    """
    try:
        return create_environment().from_string(source)
    except TemplateError as e:
        raise ChangelogError(f"Invalid template syntax in {origin}: {e}") from e


def find_template(*directories: Path) -> Path | None:
    """Return the first custom template found, searching each directory in turn."""
    for directory in directories:
        for location in TEMPLATE_LOCATIONS:
            candidate = directory / location
            if candidate.is_file():
                return candidate
    return None


def resolve_template(*directories: Path) -> Template:
    """Load the first custom template in ``directories``, or the built-in default.

    Raises:
        ChangelogError: If a custom template cannot be read or does not compile
    """
    path = find_template(*directories)
    if path is None:
        logger.debug("using the built-in template")
        return compile_template(DEFAULT_TEMPLATE)

    try:
        source = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ChangelogError(f"Failed to read template {path}: {e}") from e

    template = compile_template(source, str(path))
    logger.info("using custom template: %s", path)
    return template


def render_template(template: Template, context: dict[str, Any]) -> str:
    """Render a compiled template, stripping surrounding whitespace.

    Raises:
        ChangelogError: If rendering fails, e.g. on an undefined variable
    """
    try:
        return template.render(context).strip()
    except TemplateError as e:
        raise ChangelogError(f"Failed to render release note: {e}") from e
