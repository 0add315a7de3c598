"""Import specifier extraction — line-oriented, no parsing.

Pure functions, no infrastructure dependencies. Consumed by the source
scanner to decide which files to follow.
"""

from __future__ import annotations

import re

# import x from './a' | import './a' | export { y } from '../b'
# require('./c') | import('./d')
_IMPORT_PATTERN = re.compile(r"""(?:\bimport|\bfrom|\brequire\s*\(|\bimport\s*\()\s*['"]([^'"]+)['"]""")

_RELATIVE_PREFIX = re.compile(r"^\.\.?[/\\]")

_DEPENDENCY_SEGMENT = "/node_modules/"


def extract_import_specifiers(content: str) -> list[str]:
    """Return quoted module specifiers in source order, one per occurrence.

    Registry references (``@scope/pkg``) and paths through a dependency
    directory are dropped. Bare package names are returned; use
    :func:`is_relative_specifier` to keep only local files.
    """
    specifiers: list[str] = []
    for line in content.splitlines():
        for match in _IMPORT_PATTERN.finditer(line):
            specifier = match.group(1)
            if is_package_specifier(specifier):
                continue
            specifiers.append(specifier)
    return specifiers


def is_package_specifier(specifier: str) -> bool:
    """True for scoped registry packages or anything inside node_modules."""
    return specifier.startswith("@") or _DEPENDENCY_SEGMENT in specifier.replace("\\", "/")


def is_relative_specifier(specifier: str) -> bool:
    return _RELATIVE_PREFIX.match(specifier) is not None


def relative_imports(content: str) -> list[str]:
    """Local (``./`` or ``../``) specifiers only, in source order."""
    return [s for s in extract_import_specifiers(content) if is_relative_specifier(s)]
