"""Source file discovery for the indexing pipeline."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from repomap.errors import IndexingError

_SKIPPED_DIRS = frozenset({".git", "__pycache__", "node_modules", ".venv", ".mypy_cache"})


def collect_files(path: str | Path, *, suffixes: Iterable[str] = ()) -> list[Path]:
    """Recursively list files under `path` in a stable, sorted order.

    Args:
        path: Directory (or single file) to scan.
        suffixes: Optional allow-list of extensions such as ``(".py", ".ts")``.

    Raises:
        IndexingError: if `path` is empty, missing, or cannot be listed.
    """
    if not str(path).strip():
        raise IndexingError("Path is required and cannot be empty")
    root = Path(path)
    if not root.exists():
        raise IndexingError(f"Path {root} does not exist")
    if root.is_file():
        return [root]

    allowed = {suffix.lower() for suffix in suffixes}
    files: list[Path] = []
    try:
        for item in sorted(root.iterdir()):
            if item.is_dir():
                if item.name in _SKIPPED_DIRS:
                    continue
                files.extend(collect_files(item, suffixes=allowed))
            elif not allowed or item.suffix.lower() in allowed:
                files.append(item)
    except OSError as exc:
        raise IndexingError(f"Error reading directory {root}: {exc}") from exc
    return files
