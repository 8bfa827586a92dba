"""revise: learn flashcard sets written as plain-text files."""

from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

__all__ = ["__version__"]


def _version_from_pyproject() -> str | None:
    """Read `[project].version` from a source checkout's pyproject.toml."""
    for base in Path(__file__).resolve().parents:
        pyproject = base / "pyproject.toml"
        if not pyproject.is_file():
            continue
        in_project = False
        for line in pyproject.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped.startswith("["):
                in_project = stripped == "[project]"
            elif in_project:
                match = re.match(r'^version\s*=\s*"([^"]+)"$', stripped)
                if match:
                    return match.group(1)
        return None
    return None


_project_version = _version_from_pyproject()
if _project_version is not None:
    __version__ = _project_version
else:
    try:
        __version__ = version("revise")
    except PackageNotFoundError:
        __version__ = "0+unknown"
