"""Tunables for import analysis, duplicate discovery and commits."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import env_flag, env_int

DEFAULT_DUPLICATE_CLUSTER_LIMIT: Final[int] = 30
DEFAULT_ORPHAN_LIMIT: Final[int] = 50
DEFAULT_ORPHAN_SUGGESTIONS: Final[int] = 3


@dataclass(frozen=True, slots=True)
class ImportConfig:
    duplicate_cluster_limit: int = DEFAULT_DUPLICATE_CLUSTER_LIMIT
    orphan_limit: int = DEFAULT_ORPHAN_LIMIT
    orphan_suggestions: int = DEFAULT_ORPHAN_SUGGESTIONS
    create_missing_guests: bool = True


def get_import_config() -> ImportConfig:
    return ImportConfig(
        duplicate_cluster_limit=env_int(
            "GUESTRECON_DUPLICATE_CLUSTER_LIMIT", DEFAULT_DUPLICATE_CLUSTER_LIMIT
        ),
        orphan_limit=env_int("GUESTRECON_ORPHAN_LIMIT", DEFAULT_ORPHAN_LIMIT),
        orphan_suggestions=env_int("GUESTRECON_ORPHAN_SUGGESTIONS", DEFAULT_ORPHAN_SUGGESTIONS),
        create_missing_guests=env_flag("GUESTRECON_CREATE_MISSING_GUESTS", default=True),
    )
