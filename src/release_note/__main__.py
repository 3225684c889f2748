"""Allow ``python -m release_note``."""

from release_note.cli import app

app()
