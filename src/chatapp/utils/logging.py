"""
Project metadata lookups used to stamp `service` and `version` on log records.

Installed distributions answer through `importlib.metadata`; source checkouts
fall back to the nearest `pyproject.toml`.
"""

from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import Any
import tomllib

DISTRIBUTION_NAME = "chatapp-conversations"


def find_pyproject(start: Path, max_up: int = 5) -> Path | None:
    p = start
    for _ in range(max_up):
        candidate = p / "pyproject.toml"
        if candidate.exists():
            return candidate
        if p.parent == p:
            break
        p = p.parent
    return None


def get_pyproject_value(key: str, start: str | Path | None = None, max_up: int = 5, default: Any = None) -> Any:
    """
    Value for a dot-separated `key` (e.g. "project.version") in the nearest
    pyproject.toml, or `default` when the file or the key is missing.
    """
    start_path = Path(start).resolve() if start is not None else Path(__file__).resolve().parent
    pyproject = find_pyproject(start_path, max_up=max_up)
    if pyproject is None or not key:
        return default

    try:
        with pyproject.open("rb") as f:
            cur = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return default

    for part in key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def get_project_name(start: Path | str | None = None, default: str = DISTRIBUTION_NAME) -> str:
    return get_pyproject_value("project.name", start=start, default=default)


def get_project_version(start: Path | str | None = None, default: str = "unknown") -> str:
    """Installed version first, then pyproject's `project.version`, then `default`."""
    try:
        return importlib_metadata.version(DISTRIBUTION_NAME)
    except importlib_metadata.PackageNotFoundError:
        pass
    value = get_pyproject_value("project.version", start=start)
    return value if value is not None else default


__all__ = ["find_pyproject", "get_pyproject_value", "get_project_name", "get_project_version"]
