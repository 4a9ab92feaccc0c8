"""Expose the project version for health checks and metadata endpoints."""

from __future__ import annotations

from functools import lru_cache
from importlib import metadata
from pathlib import Path
from typing import Final

PACKAGE_NAME: Final = "cukai"
PYPROJECT_PATH: Final = Path(__file__).resolve().parents[3] / "pyproject.toml"


@lru_cache(maxsize=1)
def get_project_version() -> str:
    """Return the installed distribution version.

    Source checkouts that were never installed fall back to the ``version``
    declared in the ``[project]`` table of ``pyproject.toml``.
    """

    try:
        return metadata.version(PACKAGE_NAME)
    except metadata.PackageNotFoundError:
        return read_pyproject_version(PYPROJECT_PATH)


def read_pyproject_version(path: Path) -> str:
    if not path.exists():  # pragma: no cover - repository invariant
        raise RuntimeError(f"Unable to locate project metadata at {path}")

    in_project = False
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("[") and line.endswith("]"):
            in_project = line == "[project]"
            continue
        key, sep, value = line.partition("=")
        if in_project and sep and key.strip() == "version":
            version = value.strip().strip("\"'")
            if version:
                return version

    raise RuntimeError(f"No project version declared in {path}")


__all__ = ["PACKAGE_NAME", "get_project_version", "read_pyproject_version"]
