"""Expose the installed project version."""

from __future__ import annotations

import re
from functools import lru_cache
from importlib import metadata
from pathlib import Path
from typing import Final

DISTRIBUTION_NAME: Final = "naijatax"
PYPROJECT_PATH: Final = Path(__file__).resolve().parents[3] / "pyproject.toml"

_VERSION_LINE = re.compile(r'^version\s*=\s*"(?P<version>[^"]+)"\s*$')


@lru_cache(maxsize=1)
def get_project_version() -> str:
    """Return the distribution version, reading ``pyproject.toml`` for source checkouts."""

    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return read_pyproject_version(PYPROJECT_PATH)


def read_pyproject_version(path: Path) -> str:
    """Return ``[project].version`` from the ``pyproject.toml`` at ``path``."""

    if not path.exists():
        raise RuntimeError(f"Unable to locate project metadata at {path}")

    in_project = False
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if line.startswith("["):
            in_project = line == "[project]"
            continue
        if in_project:
            match = _VERSION_LINE.match(line)
            if match:
                return match.group("version")

    raise RuntimeError(f"No [project] version declared in {path}")


__all__ = ["get_project_version", "read_pyproject_version"]
