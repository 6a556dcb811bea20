"""Shared ``.env`` loader for credentials that MCP hosts do not forward.

MCP hosts spawn the server with whatever environment the user configured in
the host, which often leaves ``ELEVENLABS_API_KEY`` or ``GEMINI_API_KEY``
blank or as an unexpanded ``${VAR}``. Values in
``~/.config/genmedia-mcp/.env`` fill those gaps; real values already in the
process environment always win.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

DEFAULT_ENV_PATH = Path.home() / ".config" / "genmedia-mcp" / ".env"

_PLACEHOLDER = re.compile(r"^\$\{?(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-[^}]*)?\}?$")


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def _parse_line(line: str) -> tuple[str, str] | None:
    """Parse one ``.env`` line into ``(key, value)`` or None for non-assignments."""
    line = line.strip()
    if not line or line.startswith("#"):
        return None
    line = line.removeprefix("export ").lstrip()
    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not key:
        return None
    return key, _strip_quotes(value.strip())


def parse_dotenv(path: Path) -> dict[str, str]:
    """Read ``KEY=VALUE`` pairs from *path*; a missing file yields ``{}``.

    Handles ``export`` prefixes, single/double quotes, blank lines and ``#``
    comments. Values are taken literally (no ``$VAR`` expansion).
    """
    if not path.is_file():
        return {}
    pairs = (_parse_line(raw) for raw in path.read_text().splitlines())
    return dict(pair for pair in pairs if pair is not None)


def _needs_value(key: str, current: str | None) -> bool:
    """True when *current* is missing, blank, or an unexpanded ``$KEY`` reference."""
    if current is None:
        return True
    value = _strip_quotes(current.strip()).strip()
    if not value:
        return True
    match = _PLACEHOLDER.match(value)
    return bool(match and match.group("name") == key)


def load_dotenv(path: Path | None = None) -> dict[str, str]:
    """Copy values from the env file into ``os.environ`` where they are missing.

    Args:
        path: File to read. Defaults to :data:`DEFAULT_ENV_PATH`.

    Returns:
        The variables that were injected.
    """
    injected: dict[str, str] = {}
    for key, value in parse_dotenv(path or DEFAULT_ENV_PATH).items():
        if _needs_value(key, os.environ.get(key)):
            os.environ[key] = value
            injected[key] = value
    return injected
