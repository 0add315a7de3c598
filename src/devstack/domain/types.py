"""Infrastructure and container-engine classification enums."""

from __future__ import annotations

from enum import StrEnum


class InfraKind(StrEnum):
    """Backing-service categories a construct may imply."""

    POSTGRESQL = "postgresql"
    REDIS = "redis"
    MYSQL = "mysql"


class EngineKind(StrEnum):
    """Container engines the probe can select.

    APPLE is the platform-native engine (macOS only); DOCKER is the
    cross-platform one.
    """

    APPLE = "apple"
    DOCKER = "docker"
    NONE = "none"


class SkipReason(StrEnum):
    """Why a scan branch was cut short."""

    UNRESOLVED = "unresolved"
    UNREADABLE = "unreadable"
    DEPTH = "depth"
