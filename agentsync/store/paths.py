"""Home directory resolution and document name rules."""

from __future__ import annotations

import os
from pathlib import Path

from agentsync.errors import ValidationError

HOME_ENV = "AGENTSYNC_HOME"


def default_home() -> Path:
    """Return ``$AGENTSYNC_HOME`` or ``~/.agentsync``."""
    env = os.environ.get(HOME_ENV)
    if env:
        return Path(env).expanduser()
    return Path.home() / ".agentsync"


def is_valid_name(name: str) -> bool:
    """Names become file and directory names, so no separators or dot entries."""
    if not name or not name.strip():
        return False
    if "/" in name or "\\" in name:
        return False
    return name not in (".", "..")


def require_valid_name(name: str, kind: str = "name") -> str:
    if not is_valid_name(name):
        raise ValidationError(f"Invalid {kind}: {name!r}")
    return name
