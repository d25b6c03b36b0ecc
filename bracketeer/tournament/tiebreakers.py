"""Pairwise tiebreaker rules for teams level on points.

Every rule returns a positive number when the first team ranks higher, a
negative number when the second team ranks higher, and zero when the rule
cannot separate them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from bracketeer.core.constants import (
    TB_GOAL_DIFFERENTIAL,
    TB_GOALS_SCORED,
    TB_HEAD_TO_HEAD,
)

logger = logging.getLogger(__name__)


def goal_differential(team: dict[str, Any]) -> int:
    """Return goals for minus goals against."""
    return int(team.get("goalsFor", 0)) - int(team.get("goalsAgainst", 0))


def head_to_head(
    team_a: dict[str, Any], team_b: dict[str, Any], matches: Iterable[dict[str, Any]]
) -> int:
    """Compare two teams by the decided matches they played against each other."""
    pair = {team_a["id"], team_b["id"]}
    balance = 0
    for match in matches:
        if {match.get("homeTeamId"), match.get("awayTeamId")} != pair:
            continue
        winner = match.get("winnerTeamId")
        if winner == team_a["id"]:
            balance += 1
        elif winner == team_b["id"]:
            balance -= 1
    return balance


def _by_goal_differential(
    team_a: dict[str, Any], team_b: dict[str, Any], matches: Iterable[dict[str, Any]]
) -> int:
    return goal_differential(team_a) - goal_differential(team_b)


def _by_goals_scored(
    team_a: dict[str, Any], team_b: dict[str, Any], matches: Iterable[dict[str, Any]]
) -> int:
    return int(team_a.get("goalsFor", 0)) - int(team_b.get("goalsFor", 0))


TIEBREAKER_RULES: dict[str, Callable[..., int]] = {
    TB_HEAD_TO_HEAD: head_to_head,
    TB_GOAL_DIFFERENTIAL: _by_goal_differential,
    TB_GOALS_SCORED: _by_goals_scored,
}


def compare_by_tiebreaker(
    team_a: dict[str, Any],
    team_b: dict[str, Any],
    rule: str,
    matches: Iterable[dict[str, Any]],
) -> int:
    """Compare two team records under a single named rule."""
    evaluate = TIEBREAKER_RULES.get(rule)
    if evaluate is None:
        return 0
    return evaluate(team_a, team_b, matches)


def compare_on_tiebreakers(
    team_a: dict[str, Any],
    team_b: dict[str, Any],
    order: Iterable[str],
    matches: list[dict[str, Any]],
) -> int:
    """Return the first decisive comparison in ``order``, or zero."""
    for rule in order:
        result = compare_by_tiebreaker(team_a, team_b, rule, matches)
        if result:
            return result
    return 0


def valid_tiebreaker_order(order: Iterable[str]) -> list[str]:
    """Drop unknown rule names from a configured order."""
    valid = []
    for rule in order:
        if rule in TIEBREAKER_RULES:
            valid.append(rule)
        else:
            logger.warning(f"Ignoring unknown tiebreaker: {rule}")
    return valid
