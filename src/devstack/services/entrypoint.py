"""Entrypoint detection for the application being scanned.

Priority: explicit flag > package.json (``main``, then ``module``) >
``[scan] entrypoint`` from config > ``./src/index.ts``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

logger = logging.getLogger(__name__)

DEFAULT_ENTRYPOINT = "./src/index.ts"

EntrypointSource = Literal["flag", "package.json", "config", "default"]


@dataclass(frozen=True)
class EntrypointInfo:
    path: Path
    source: EntrypointSource


def _from_package_json(cwd: Path) -> str | None:
    pkg_path = cwd / "package.json"
    if not pkg_path.is_file():
        return None
    try:
        pkg = json.loads(pkg_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.debug("Ignoring unreadable %s: %s", pkg_path, exc)
        return None
    if not isinstance(pkg, dict):
        return None
    entry = pkg.get("main") or pkg.get("module")
    return entry if isinstance(entry, str) and entry else None


def detect_entrypoint(
    cwd: Path,
    flag_value: str | None = None,
    configured: str | None = None,
) -> EntrypointInfo:
    """Pick the application entry file, resolved against *cwd*."""
    if flag_value:
        return EntrypointInfo(path=(cwd / flag_value).resolve(), source="flag")

    entry = _from_package_json(cwd)
    if entry:
        return EntrypointInfo(path=(cwd / entry).resolve(), source="package.json")

    if configured:
        return EntrypointInfo(path=(cwd / configured).resolve(), source="config")

    return EntrypointInfo(path=(cwd / DEFAULT_ENTRYPOINT).resolve(), source="default")


def validate_entrypoint(path: Path) -> str | None:
    """Return an error message if *path* is not an existing file."""
    if not path.is_file():
        return f"Entrypoint not found: {path}"
    return None
