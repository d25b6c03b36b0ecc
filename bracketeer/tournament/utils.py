"""Standings calculation for tournaments."""

from __future__ import annotations

from collections.abc import Iterable
from itertools import combinations
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from bracketeer.core.constants import (
    MATCH_COMPLETED,
    MATCH_FORFEIT,
    MATCHES_COLLECTION,
    TEAMS_COLLECTION,
    TIED_GROUP_MIN_SIZE,
    TOURNAMENTS_COLLECTION,
)
from bracketeer.errors import NotFoundError

from .models import Standings, StandingsRow, TiedGroup, TournamentConfig
from .tiebreakers import compare_on_tiebreakers, goal_differential, valid_tiebreaker_order

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client


TIED_REASON = "Teams tied on points and all configured tiebreakers"
CYCLE_REASON = "Head-to-head results are circular and no other tiebreaker separates the teams"


def fetch_tournament_teams(db: Client, tournament_id: str) -> list[dict[str, Any]]:
    """Fetch all team documents associated with the tournament_id."""
    docs = (
        db.collection(TEAMS_COLLECTION)
        .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
        .stream()
    )
    return [{**(doc.to_dict() or {}), "id": doc.id} for doc in docs if doc.exists]


def fetch_tournament_matches(db: Client, tournament_id: str) -> list[dict[str, Any]]:
    """Fetch all match documents associated with the tournament_id."""
    docs = (
        db.collection(MATCHES_COLLECTION)
        .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
        .stream()
    )
    return [{**(doc.to_dict() or {}), "id": doc.id} for doc in docs if doc.exists]


def decided_matches(matches: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Keep played matches that have a result, leaving byes out."""
    return [
        m
        for m in matches
        if m.get("status") in (MATCH_COMPLETED, MATCH_FORFEIT) and not m.get("isBye")
    ]


def count_games_played(
    teams: list[dict[str, Any]], matches: list[dict[str, Any]]
) -> dict[str, int]:
    """Count decided matches per team."""
    games = {t["id"]: 0 for t in teams}
    for match in matches:
        for side in ("homeTeamId", "awayTeamId"):
            team_id = match.get(side)
            if team_id in games:
                games[team_id] += 1
    return games


def _name_key(team: dict[str, Any]) -> tuple[str, str]:
    return (str(team.get("name") or ""), team["id"])


def _strongly_connected(
    ids: list[str], beats: dict[str, set[str]]
) -> list[list[str]]:
    """Tarjan's algorithm over the 'ranks higher than' graph."""
    index: dict[str, int] = {}
    low: dict[str, int] = {}
    stack: list[str] = []
    on_stack: set[str] = set()
    components: list[list[str]] = []
    counter = 0

    def visit(node: str) -> None:
        nonlocal counter
        index[node] = low[node] = counter
        counter += 1
        stack.append(node)
        on_stack.add(node)
        for other in sorted(beats[node]):
            if other not in index:
                visit(other)
                low[node] = min(low[node], low[other])
            elif other in on_stack:
                low[node] = min(low[node], index[other])
        if low[node] == index[node]:
            component = []
            while True:
                member = stack.pop()
                on_stack.discard(member)
                component.append(member)
                if member == node:
                    break
            components.append(component)

    for node in ids:
        if node not in index:
            visit(node)
    return components


def order_point_group(
    teams: list[dict[str, Any]], order: list[str], matches: list[dict[str, Any]]
) -> tuple[list[dict[str, Any]], list[list[str]]]:
    """Order teams level on points.

    Returns the ordered teams and the head-to-head cycles found among them.
    Every decisive pairwise comparison is honoured unless it is part of a
    cycle. Teams that cannot be separated fall back to name order.
    """
    by_id = {t["id"]: t for t in teams}
    ids = sorted(by_id, key=lambda tid: _name_key(by_id[tid]))
    beats: dict[str, set[str]] = {tid: set() for tid in ids}
    for a, b in combinations(ids, 2):
        result = compare_on_tiebreakers(by_id[a], by_id[b], order, matches)
        if result > 0:
            beats[a].add(b)
        elif result < 0:
            beats[b].add(a)

    components = _strongly_connected(ids, beats)
    component_of = {tid: i for i, comp in enumerate(components) for tid in comp}
    indegree = [0] * len(components)
    edges: list[set[int]] = [set() for _ in components]
    for a in ids:
        for b in beats[a]:
            ca, cb = component_of[a], component_of[b]
            if ca != cb and cb not in edges[ca]:
                edges[ca].add(cb)
                indegree[cb] += 1

    def component_key(i: int) -> tuple[str, str]:
        return min(_name_key(by_id[tid]) for tid in components[i])

    ordered: list[dict[str, Any]] = []
    available = sorted(
        (i for i in range(len(components)) if indegree[i] == 0), key=component_key
    )
    while available:
        current = available.pop(0)
        members = sorted(components[current], key=lambda tid: _name_key(by_id[tid]))
        ordered.extend(by_id[tid] for tid in members)
        for nxt in edges[current]:
            indegree[nxt] -= 1
            if indegree[nxt] == 0:
                available.append(nxt)
        available.sort(key=component_key)

    cycles = [comp for comp in components if len(comp) > 1]
    return ordered, cycles


def find_tied_groups(
    ordered: list[dict[str, Any]],
    cycles: list[list[str]],
    order: list[str],
    matches: list[dict[str, Any]],
) -> list[TiedGroup]:
    """Union adjacent inseparable teams and cycles into tied groups."""
    parent = {t["id"]: t["id"] for t in ordered}

    def find(tid: str) -> str:
        while parent[tid] != tid:
            parent[tid] = parent[parent[tid]]
            tid = parent[tid]
        return tid

    def union(a: str, b: str) -> None:
        parent[find(b)] = find(a)

    for first, second in zip(ordered, ordered[1:]):
        if compare_on_tiebreakers(first, second, order, matches) == 0:
            union(first["id"], second["id"])
    cyclic = set()
    for cycle in cycles:
        cyclic.update(cycle)
        for tid in cycle[1:]:
            union(cycle[0], tid)

    classes: dict[str, list[str]] = {}
    for team in ordered:
        classes.setdefault(find(team["id"]), []).append(team["id"])

    groups: list[TiedGroup] = []
    for members in classes.values():
        if len(members) < TIED_GROUP_MIN_SIZE:
            continue
        reason = CYCLE_REASON if cyclic.intersection(members) else TIED_REASON
        groups.append({"teamIds": members, "reason": reason})
    return groups


def _standings_row(
    team: dict[str, Any], rank: int, games_played: int, cutoff: int | None
) -> StandingsRow:
    return {
        "teamId": team["id"],
        "teamName": team.get("name", "Unknown Team"),
        "rank": rank,
        "wins": team.get("wins", 0),
        "losses": team.get("losses", 0),
        "ties": team.get("ties", 0),
        "points": team.get("points", 0),
        "goalsFor": team.get("goalsFor", 0),
        "goalsAgainst": team.get("goalsAgainst", 0),
        "goalDifferential": goal_differential(team),
        "gamesPlayed": games_played,
        "isPlayoffBound": bool(cutoff) and rank <= cast(int, cutoff),
        "isTied": False,
    }


def calculate_standings(
    teams: list[dict[str, Any]],
    matches: list[dict[str, Any]],
    config: TournamentConfig,
) -> Standings:
    """Rank teams by points, then by the configured tiebreakers."""
    played = decided_matches(matches)
    games_played = count_games_played(teams, played)
    order = valid_tiebreaker_order(config.tiebreaker_order)
    cutoff = config.playoff_teams_count if config.playoff_teams_count else None

    point_groups: dict[int, list[dict[str, Any]]] = {}
    for team in teams:
        point_groups.setdefault(int(team.get("points", 0)), []).append(team)

    rows: list[StandingsRow] = []
    tied_groups: list[TiedGroup] = []
    for points in sorted(point_groups, reverse=True):
        ordered, cycles = order_point_group(point_groups[points], order, played)
        tied_groups.extend(find_tied_groups(ordered, cycles, order, played))
        for team in ordered:
            rows.append(
                _standings_row(team, len(rows) + 1, games_played[team["id"]], cutoff)
            )

    tied_ids = {tid for group in tied_groups for tid in group["teamIds"]}
    for row in rows:
        row["isTied"] = row["teamId"] in tied_ids

    return {"standings": rows, "tiedGroups": tied_groups, "playoffCutoff": cutoff}


def get_tournament_standings(db: Client, tournament_id: str) -> Standings:
    """Orchestrate the calculation of tournament standings."""
    t_doc = cast(
        "DocumentSnapshot",
        db.collection(TOURNAMENTS_COLLECTION).document(tournament_id).get(),
    )
    if not t_doc.exists:
        raise NotFoundError("Tournament not found.")
    config = TournamentConfig.from_dict(t_doc.to_dict() or {})
    teams = fetch_tournament_teams(db, tournament_id)
    matches = fetch_tournament_matches(db, tournament_id)
    return calculate_standings(teams, matches, config)
