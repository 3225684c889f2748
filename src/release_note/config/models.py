"""Configuration models for release-note.

Configuration lives in the ``[tool.release-note]`` table of pyproject.toml:

    [tool.release-note.history]
    path = "packages/search"

    [tool.release-note.changelog]
    sections = ["breaking", "feature", "fix"]
    include_body = false
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from release_note.core.commits import CommitCategory

DEFAULT_SECTIONS = [
    CommitCategory.BREAKING,
    CommitCategory.FEATURE,
    CommitCategory.FIX,
    CommitCategory.DEPENDENCIES,
]

DEFAULT_FOOTER = "*Generated with [release-note](https://github.com/purpleclay/release-note)*"


class HistoryConfig(BaseModel):
    """Which commits make up the release."""

    model_config = ConfigDict(extra="forbid")

    path: str | None = Field(
        default=None,
        description="Only include commits that change this directory (relative to the repository root)",
    )

    @field_validator("path")
    @classmethod
    def normalize_path(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().removeprefix("./").strip("/")
        return value or None


class ChangelogConfig(BaseModel):
    """How the release note is rendered."""

    model_config = ConfigDict(extra="forbid")

    sections: list[CommitCategory] = Field(
        default_factory=lambda: list(DEFAULT_SECTIONS),
        description="Categories to render, in order",
    )
    include_body: bool = Field(default=True, description="Render commit bodies under each entry")
    include_linked_issues: bool = Field(
        default=True, description="Append closed issues to each entry"
    )
    skip_chore_dependencies: bool = Field(
        default=True,
        description="Leave chore(deps) commits out of the dependency section",
    )
    footer: str | None = Field(default=DEFAULT_FOOTER, description="Trailing line of the note")


class ReleaseNoteConfig(BaseModel):
    """Root configuration for release-note."""

    model_config = ConfigDict(extra="forbid")

    history: HistoryConfig = Field(default_factory=HistoryConfig)
    changelog: ChangelogConfig = Field(default_factory=ChangelogConfig)
