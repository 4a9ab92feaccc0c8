"""Unit coverage for the project version helper."""

from __future__ import annotations

from importlib import metadata
from pathlib import Path

import pytest

from cukai.backend.version import (
    PYPROJECT_PATH,
    get_project_version,
    read_pyproject_version,
)


def test_pyproject_path_points_at_repository_root() -> None:
    assert PYPROJECT_PATH == Path(__file__).resolve().parents[2] / "pyproject.toml"


def test_read_pyproject_version() -> None:
    assert read_pyproject_version(PYPROJECT_PATH) == "0.1.0"


def test_read_pyproject_version_ignores_other_sections(tmp_path: Path) -> None:
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(
        '[tool.other]\nversion = "9.9.9"\n\n[project]\nname = "x"\nversion = "1.2.3"\n',
        encoding="utf-8",
    )

    assert read_pyproject_version(pyproject) == "1.2.3"


def test_read_pyproject_version_requires_a_version(tmp_path: Path) -> None:
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text('[project]\nname = "x"\n', encoding="utf-8")

    with pytest.raises(RuntimeError):
        read_pyproject_version(pyproject)


def test_get_project_version_prefers_installed_metadata(monkeypatch) -> None:
    get_project_version.cache_clear()  # type: ignore[attr-defined]
    monkeypatch.setattr(metadata, "version", lambda package: "2.0.0")

    assert get_project_version() == "2.0.0"
    get_project_version.cache_clear()  # type: ignore[attr-defined]


def test_get_project_version_falls_back_to_pyproject(monkeypatch) -> None:
    def _missing(package: str) -> str:
        raise metadata.PackageNotFoundError(package)

    get_project_version.cache_clear()  # type: ignore[attr-defined]
    monkeypatch.setattr(metadata, "version", _missing)

    assert get_project_version() == "0.1.0"
    get_project_version.cache_clear()  # type: ignore[attr-defined]
