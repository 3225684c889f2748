"""Command line interface for release-note."""

from __future__ import annotations

from release_note.cli.app import app

__all__ = ["app"]
