"""Source file resolution and reading for the import-graph scanner.

Resolution mirrors how JS/TS bundlers find a module from a specifier:
the path verbatim, then with each source extension, then as a directory
containing an ``index`` file.
"""

from __future__ import annotations

import os
from pathlib import Path

SOURCE_EXTENSIONS: tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx", ".mjs")


def resolve_source_path(path: Path) -> Path | None:
    """Return the first existing file for *path*, or None.

    The returned path is normalized (``..`` segments collapsed) but
    symlinks are not followed.
    """
    candidate = Path(os.path.normpath(path))
    if candidate.is_file():
        return candidate

    for ext in SOURCE_EXTENSIONS:
        with_ext = Path(f"{candidate}{ext}")
        if with_ext.is_file():
            return with_ext

    for ext in SOURCE_EXTENSIONS:
        index = candidate / f"index{ext}"
        if index.is_file():
            return index

    return None


def read_source(path: Path) -> str:
    """Read a source file as UTF-8. Raises OSError or UnicodeDecodeError."""
    return path.read_text(encoding="utf-8")
