"""Source scanner — walk the local import graph and match SDK constructs.

No code is executed or parsed. Each file is read once, every catalog
pattern is tested against every line, and relative imports are followed
depth-first in source order.

INVARIANT: Each file appears at most once in ``analyzed_files``, and the
walk stops at ``max_depth``, so cyclic or very deep graphs terminate.
INVARIANT: A missing, unreadable, or too-deep branch only ends that
branch. It is recorded in ``skipped`` and never raises.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from devstack.domain.imports import relative_imports
from devstack.domain.models import (
    DiscoveredPrimitive,
    DiscoveryResult,
    InfrastructureRequirement,
    SkippedPath,
)
from devstack.domain.patterns import PRIMITIVE_PATTERNS, SourcePattern
from devstack.domain.types import InfraKind, SkipReason
from devstack.infrastructure.sources import read_source, resolve_source_path

logger = logging.getLogger(__name__)

MAX_DEPTH = 10


@dataclass
class _Requirement:
    # dicts keep insertion order and dedupe exact strings
    requested_by: dict[str, None] = field(default_factory=dict)
    reasons: dict[str, None] = field(default_factory=dict)


@dataclass
class _ScanState:
    visited: dict[str, None] = field(default_factory=dict)
    primitives: list[DiscoveredPrimitive] = field(default_factory=list)
    infrastructure: dict[InfraKind, _Requirement] = field(default_factory=dict)
    skipped: list[SkippedPath] = field(default_factory=list)


class SourceScanner:
    """Discover constructs and infra requirements from an entry point.

    Args:
        patterns: Ordered pattern catalog. Defaults to every known construct.
        max_depth: Import hops followed from the entry point. Files deeper
            than this are not read.
    """

    def __init__(
        self,
        patterns: Sequence[SourcePattern] = PRIMITIVE_PATTERNS,
        max_depth: int = MAX_DEPTH,
    ) -> None:
        self._patterns = tuple(patterns)
        self._max_depth = max_depth

    def scan(self, entrypoint: str | Path) -> DiscoveryResult:
        start = time.perf_counter()
        state = _ScanState()

        resolved_entry = resolve_source_path(Path(entrypoint))
        self._scan_file(Path(entrypoint), state, depth=0)

        infrastructure = [
            InfrastructureRequirement(
                kind=kind,
                requested_by=list(req.requested_by),
                reasons=list(req.reasons),
            )
            for kind, req in state.infrastructure.items()
        ]
        return DiscoveryResult(
            entrypoint=str(resolved_entry or entrypoint),
            analyzed_files=list(state.visited),
            primitives=state.primitives,
            infrastructure=infrastructure,
            duration_ms=(time.perf_counter() - start) * 1000,
            skipped=state.skipped,
        )

    def _scan_file(self, path: Path, state: _ScanState, depth: int) -> None:
        resolved = resolve_source_path(path)
        if resolved is not None and str(resolved) in state.visited:
            return

        if depth > self._max_depth:
            self._skip(state, resolved or path, SkipReason.DEPTH, depth)
            return

        if resolved is None:
            self._skip(state, path, SkipReason.UNRESOLVED, depth)
            return

        key = str(resolved)
        state.visited[key] = None

        try:
            content = read_source(resolved)
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Cannot read %s: %s", resolved, exc)
            self._skip(state, resolved, SkipReason.UNREADABLE, depth)
            return

        self._match_lines(key, content.splitlines(), state)

        base_dir = resolved.parent
        for specifier in relative_imports(content):
            self._scan_file(base_dir / specifier, state, depth + 1)

    def _match_lines(self, file: str, lines: list[str], state: _ScanState) -> None:
        for pattern in self._patterns:
            for line_no, line in enumerate(lines, start=1):
                if not pattern.matches(line):
                    continue
                state.primitives.append(
                    DiscoveredPrimitive(
                        name=pattern.name,
                        file=file,
                        line=line_no,
                        infra_kind=pattern.infra_kind,
                        reason=pattern.reason,
                    )
                )
                if pattern.infra_kind is not None:
                    req = state.infrastructure.setdefault(pattern.infra_kind, _Requirement())
                    req.requested_by[pattern.name] = None
                    if pattern.reason:
                        req.reasons[pattern.reason] = None

    @staticmethod
    def _skip(state: _ScanState, path: Path, reason: SkipReason, depth: int) -> None:
        if any(s.path == str(path) and s.reason is reason for s in state.skipped):
            return
        logger.debug("Skipped %s (%s at depth %d)", path, reason, depth)
        state.skipped.append(SkippedPath(path=str(path), reason=reason, depth=depth))


def scan(entrypoint: str | Path, *, max_depth: int = MAX_DEPTH) -> DiscoveryResult:
    """Scan *entrypoint* with the full pattern catalog."""
    return SourceScanner(max_depth=max_depth).scan(entrypoint)
