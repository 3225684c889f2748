"""release-note: turn git history into categorized release notes."""

from __future__ import annotations

__version__ = "0.4.0"

__all__ = ["__version__"]
