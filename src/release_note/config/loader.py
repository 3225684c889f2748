"""Configuration loading from pyproject.toml."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from release_note.config.models import ReleaseNoteConfig
from release_note.exceptions import ConfigNotFoundError, ConfigValidationError
from release_note.logging_config import get_logger

logger = get_logger(__name__)

TOOL_TABLE = "release-note"


def find_pyproject_toml(start: Path | None = None) -> Path:
    """Find the nearest pyproject.toml, searching upward from ``start``.

    Raises:
        ConfigNotFoundError: If no pyproject.toml exists in ``start`` or its parents
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate

    raise ConfigNotFoundError(f"No pyproject.toml found in {current} or any parent directory")


def load_pyproject_toml(path: Path) -> dict[str, Any]:
    """Parse a pyproject.toml file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not valid TOML
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"Configuration file not found: {path}")

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from e


def extract_release_note_config(pyproject: dict[str, Any]) -> dict[str, Any]:
    """Return the ``[tool.release-note]`` table, or an empty dict."""
    return pyproject.get("tool", {}).get(TOOL_TABLE, {})


def load_config(path: Path | None = None) -> ReleaseNoteConfig:
    """Load configuration for the project at ``path``.

    Defaults are used when there is no pyproject.toml or it has no
    ``[tool.release-note]`` table.

    Raises:
        ConfigValidationError: If the table is present but invalid
    """
    try:
        pyproject_path = find_pyproject_toml(path)
    except ConfigNotFoundError:
        logger.debug("no pyproject.toml found, using default configuration")
        return ReleaseNoteConfig()

    data = extract_release_note_config(load_pyproject_toml(pyproject_path))
    if not data:
        logger.debug("no [tool.%s] table in %s, using defaults", TOOL_TABLE, pyproject_path)
        return ReleaseNoteConfig()

    try:
        config = ReleaseNoteConfig.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        raise ConfigValidationError(
            f"Invalid [tool.{TOOL_TABLE}] configuration in {pyproject_path}: {problems}"
        ) from e

    logger.debug("loaded configuration from %s", pyproject_path)
    return config
