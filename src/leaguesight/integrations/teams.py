"""
Team identity resolution.

Upstream team names are inconsistent between matches of the same team, so
they are never used. A team's display name and icon come only from a static
override table; teams missing from it get a placeholder derived from the id.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

PLACEHOLDER_ID_LENGTH = 8


@dataclass(frozen=True)
class TeamIdentity:
    """Authoritative name and icon for a team."""

    name: str
    icon: str | None = None
    resolved: bool = True


def placeholder_name(team_id: str) -> str:
    """Deterministic stand-in name for a team missing from the override table."""
    return f"Unknown Team ({team_id[:PLACEHOLDER_ID_LENGTH]})"


class TeamDirectory:
    """
    Lookup table of team overrides.

    An empty directory is valid: every team then resolves to its placeholder.
    """

    def __init__(self, entries: dict[str, TeamIdentity] | None = None, load_error: str | None = None):
        self._entries: dict[str, TeamIdentity] = dict(entries or {})
        self.load_error = load_error
        self._missing: set[str] = set()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, team_id: object) -> bool:
        return team_id in self._entries

    @classmethod
    def from_records(cls, records: list[dict[str, Any]]) -> TeamDirectory:
        """Build a directory from ``{team_id, name, icon}`` records."""
        entries: dict[str, TeamIdentity] = {}
        for record in records:
            if not isinstance(record, dict):
                logger.warning(f"Skipping team entry that is not an object: {record!r}")
                continue
            team_id = record.get("team_id")
            name = record.get("name")
            if not team_id or not name:
                logger.warning(f"Team entry missing 'team_id' or 'name': {record}")
                continue
            entries[team_id] = TeamIdentity(name=name, icon=record.get("icon"))
        return cls(entries)

    def resolve(self, team_id: str, upstream_name: str = "") -> TeamIdentity:
        """
        Resolve a team id to its display identity.

        Args:
            team_id: Upstream team id
            upstream_name: Name reported by upstream. Accepted for logging only,
                           it is never returned.

        Returns:
            The override identity, or a placeholder identity with resolved=False
        """
        identity = self._entries.get(team_id)
        if identity is not None:
            return identity

        if team_id not in self._missing:
            self._missing.add(team_id)
            logger.warning(
                f"Team {team_id} (upstream name {upstream_name!r}) not in override table, "
                "using placeholder"
            )
        return TeamIdentity(name=placeholder_name(team_id), icon=None, resolved=False)

    def reset_missing(self) -> None:
        """Forget logged misses so the next run warns about them again."""
        self._missing.clear()

    @property
    def missing_team_ids(self) -> set[str]:
        """Team ids that resolved to a placeholder so far."""
        return set(self._missing)


def load_team_directory(path: Path) -> TeamDirectory:
    """
    Load the override table from a JSON array file.

    A missing or corrupt file degrades to an empty directory (placeholder-only
    mode) and records the reason in ``load_error``; it never raises.
    """
    try:
        records = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(records, list):
            raise ValueError("team file is not a JSON array")
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load team overrides from {path}: {e}")
        return TeamDirectory(load_error=str(e))

    directory = TeamDirectory.from_records(records)
    logger.info(f"Loaded {len(directory)} team overrides from {path}")
    return directory
