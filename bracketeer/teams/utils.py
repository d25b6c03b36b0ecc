"""Utility functions for teams."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


def team_names(teams: Iterable[dict[str, Any]]) -> dict[str, str]:
    """Map team ids to display names."""
    return {t["id"]: t.get("name") or "Unknown Team" for t in teams}


def with_team_names(match: dict[str, Any], names: dict[str, str]) -> dict[str, Any]:
    """Return a copy of a match enriched with home, away and winner names."""
    enriched = dict(match)
    for id_key, name_key in (
        ("homeTeamId", "homeTeamName"),
        ("awayTeamId", "awayTeamName"),
        ("winnerTeamId", "winnerTeamName"),
    ):
        team_id = match.get(id_key)
        enriched[name_key] = names.get(team_id) if team_id else None
    return enriched
