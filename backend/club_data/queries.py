"""
Domain-level reads composed from the record-oriented repo port.

Each helper returns plain rows; calculators in `club_analytics` turn them into
derived metrics. Absent single rows come back as None, while `FetchFailure`
propagates to the caller.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from club_data.repo import GET_PLAYER_ID, ClubRepoProtocol, RecordNotFound

Row = Dict[str, Any]


def _optional_one(repo: ClubRepoProtocol, table: str, **filters: Any) -> Optional[Row]:
    try:
        return repo.select_one(table, filters=filters)
    except RecordNotFound:
        return None


def _on_or_after(value: Any, since: date) -> bool:
    if not value:
        return False
    return str(value)[:10] >= since.isoformat()


def user_profile_row(repo: ClubRepoProtocol, user_id: str) -> Optional[Row]:
    return _optional_one(repo, "users", id=user_id)


def list_users(repo: ClubRepoProtocol) -> List[Row]:
    return repo.select("users", order_by="email")


def list_players(repo: ClubRepoProtocol, *, season: str | None = None) -> List[Row]:
    filters = {"season": season} if season else None
    return repo.select("players", filters=filters, order_by="name")


def player(repo: ClubRepoProtocol, player_id: str) -> Optional[Row]:
    return _optional_one(repo, "players", id=player_id)


def disciplinary_records(repo: ClubRepoProtocol, player_id: str | None = None) -> List[Row]:
    filters = {"player_id": player_id} if player_id else None
    return repo.select("player_disciplinary", filters=filters, order_by="match_date", descending=True)


def squad_fitness(repo: ClubRepoProtocol, *, season: str) -> List[Row]:
    """Fitness rows for players registered in `season`."""
    ids = [p.get("id") for p in list_players(repo, season=season)]
    if not ids:
        return []
    return repo.select("player_fitness_status", filters={"player_id": ids})


def eligibility(repo: ClubRepoProtocol, player_id: str) -> Optional[Row]:
    return _optional_one(repo, "player_eligibility", player_id=player_id)


def all_eligibility(repo: ClubRepoProtocol) -> List[Row]:
    return repo.select("player_eligibility")


def active_injury(repo: ClubRepoProtocol, player_id: str) -> Optional[Row]:
    return _optional_one(repo, "player_injuries", player_id=player_id, status="active")


def active_injuries(repo: ClubRepoProtocol) -> List[Row]:
    return repo.select("player_injuries", filters={"status": "active"})


def contract(repo: ClubRepoProtocol, player_id: str) -> Optional[Row]:
    return _optional_one(repo, "player_contracts", player_id=player_id)


def matches_since(repo: ClubRepoProtocol, since: date) -> List[Row]:
    return [m for m in repo.select("matches", order_by="date") if _on_or_after(m.get("date"), since)]


def goals(repo: ClubRepoProtocol, player_id: str | None = None) -> List[Row]:
    filters = {"player_id": player_id} if player_id else None
    return repo.select("goals", filters=filters)


def training_since(repo: ClubRepoProtocol, since: date) -> List[Row]:
    """Attendance rows recorded on or after `since`."""
    rows = repo.select("player_training_attendance")
    return [t for t in rows if _on_or_after(t.get("created_at"), since)]


def shots(repo: ClubRepoProtocol, *, player_id: str | None = None) -> List[Row]:
    filters = {"player_id": player_id} if player_id else None
    return repo.select("shots", filters=filters, order_by="minute")


def development_targets(repo: ClubRepoProtocol) -> List[Row]:
    return repo.select("development_targets")


def youth_teams(repo: ClubRepoProtocol) -> List[Row]:
    return repo.select("youth_teams", order_by="level")


def team_assignments(repo: ClubRepoProtocol) -> List[Row]:
    """Active player to youth team assignments (`youth_team_id` references `youth_teams`)."""
    return repo.select("player_team_assignments", filters={"status": "active"})


def linked_player_id(repo: ClubRepoProtocol) -> Optional[str]:
    """Player record of the account `repo` is scoped to, via `get_player_id`.

    None when the account has no player record.
    """
    value = repo.rpc(GET_PLAYER_ID)
    if isinstance(value, list):
        value = value[0] if value else None
    if value in (None, ""):
        return None
    return str(value)
