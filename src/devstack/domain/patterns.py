"""Pattern catalog — SDK constructs recognized by the source scanner.

Each pattern is a single-line regex. Matching is stateless: ``matches``
calls ``re.Pattern.search`` on one line and keeps no scan position, so a
pattern can be reused across lines and files without resetting.
"""

from __future__ import annotations

import re

from pydantic import BaseModel

from devstack.domain.types import InfraKind


class SourcePattern(BaseModel):
    """A named construct, its line matcher, and the infra it implies."""

    model_config = {"frozen": True}

    name: str
    regex: re.Pattern[str]
    infra_kind: InfraKind | None = None
    reason: str | None = None

    def matches(self, line: str) -> bool:
        return self.regex.search(line) is not None


def _pattern(
    name: str,
    regex: str,
    infra_kind: InfraKind | None = None,
    reason: str | None = None,
) -> SourcePattern:
    return SourcePattern(name=name, regex=re.compile(regex), infra_kind=infra_kind, reason=reason)


INFRASTRUCTURE_PATTERNS: tuple[SourcePattern, ...] = (
    # Database backends
    _pattern("postgres", r"\.postgres\s*\(", InfraKind.POSTGRESQL),
    _pattern("mysql", r"\.mysql\s*\(", InfraKind.MYSQL),
    _pattern("sqlite", r"\.sqlite\s*\("),
    # Cache
    _pattern("redis", r"Cache\.create\s*\([^)]*\).*?\.redis\s*\(", InfraKind.REDIS),
    _pattern("redis-direct", r"\.redis\s*\(\s*['\"`]", InfraKind.REDIS),
    # Durable execution
    _pattern(
        "workflow",
        r"Workflow\.create\s*\(",
        InfraKind.POSTGRESQL,
        "Workflows require PostgreSQL for durable execution",
    ),
    _pattern(
        "cron",
        r"Cron\.create\s*\(",
        InfraKind.POSTGRESQL,
        "Cron jobs require PostgreSQL for persistence",
    ),
)

PRIMITIVE_PATTERNS: tuple[SourcePattern, ...] = (
    *INFRASTRUCTURE_PATTERNS,
    _pattern("flow", r"Flow\.create\s*\("),
    _pattern("signal", r"Signal\.create\s*\("),
    _pattern("rest", r"REST\.create\s*\("),
    _pattern("channel", r"Channel\.create\s*\("),
    _pattern("projection", r"Projection\.create\s*\("),
    _pattern("auth", r"Auth\.create\s*\("),
    _pattern("storage", r"Storage\.create\s*\("),
    # Service-to-service communication
    _pattern("service-client", r"ServiceClient\.create\s*\("),
    _pattern("service-registry", r"ServiceRegistry\.create\s*\("),
)
