"""
Club data access: record-oriented queries keyed by table and equality filters.

Why:
    Calculators and pages only need "rows of table T where column = value".
    Keeping the port that small lets the hosted backend (Supabase/PostgREST)
    and the in-memory development repo behave identically in tests.

Actor scoping:
    Reads on behalf of a signed-in account go through `as_user`, which returns
    a repo bound to that account. The hosted backend uses it to send the
    account's own access token, so row level security sees the right user;
    database functions that depend on the caller (`get_player_id`) are called
    through `rpc` on the scoped repo.

Errors:
    - `RecordNotFound` when a single-row lookup yields nothing. Callers treat
      it as "absent", not as a failure.
    - `FetchFailure` for everything else (network, auth, malformed response).
"""
from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol


class RecordNotFound(Exception):
    code = "not_found"

    def __init__(self, table: str, filters: Mapping[str, Any] | None = None) -> None:
        super().__init__(f"{table}: no row")
        self.table = table
        self.filters = dict(filters or {})


class FetchFailure(Exception):
    code = "fetch_failed"

    def __init__(self, table: str, reason: str = "") -> None:
        super().__init__(f"{table}: {reason}" if reason else table)
        self.table = table
        self.reason = reason


class ClubRepoProtocol(Protocol):
    def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        ...

    def select_one(self, table: str, *, filters: Mapping[str, Any]) -> Dict[str, Any]:
        ...

    def rpc(self, function: str, params: Mapping[str, Any] | None = None) -> Any:
        ...

    def as_user(self, user_id: str, access_token: Optional[str] = None) -> "ClubRepoProtocol":
        ...


GET_PLAYER_ID = "get_player_id"


def _matches(row: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
    for column, expected in filters.items():
        value = row.get(column)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if value not in expected:
                return False
        elif value != expected:
            return False
    return True


def _sort_key(column: str):
    def key(row: Mapping[str, Any]):
        value = row.get(column)
        # None sorts first; numbers before strings, strings by string form.
        if value is None:
            return (0, 0, "")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return (1, value, "")
        return (2, 0, str(value))
    return key


class InMemoryClubRepo:
    """Dictionary-backed repo used for local development and tests.

    `player_links` maps account ids to player ids and backs the
    `get_player_id` function for the account bound via `as_user`.
    """

    def __init__(
        self,
        tables: Mapping[str, Iterable[Mapping[str, Any]]] | None = None,
        *,
        player_links: Mapping[str, Any] | None = None,
    ) -> None:
        self._tables: Dict[str, List[Dict[str, Any]]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        self._player_links: Dict[str, Any] = dict(player_links or {})
        self._auth_uid: Optional[str] = None

    def insert(self, table: str, row: Mapping[str, Any]) -> None:
        self._tables.setdefault(table, []).append(dict(row))

    def link_player(self, user_id: str, player_id: Any) -> None:
        self._player_links[user_id] = player_id

    def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        rows = [copy.deepcopy(r) for r in self._tables.get(table, []) if _matches(r, filters or {})]
        if order_by:
            rows.sort(key=_sort_key(order_by), reverse=descending)
        return rows

    def select_one(self, table: str, *, filters: Mapping[str, Any]) -> Dict[str, Any]:
        rows = self.select(table, filters=filters)
        if not rows:
            raise RecordNotFound(table, filters)
        return rows[0]

    def rpc(self, function: str, params: Mapping[str, Any] | None = None) -> Any:
        if function == GET_PLAYER_ID:
            return self._player_links.get(self._auth_uid or "")
        raise FetchFailure(f"rpc/{function}", "unknown_function")

    def as_user(self, user_id: str, access_token: Optional[str] = None) -> "InMemoryClubRepo":
        # Shallow copy: tables and links stay shared with the unscoped repo.
        scoped = copy.copy(self)
        scoped._auth_uid = user_id
        return scoped


class UnavailableClubRepo:
    """Null adapter for deployments whose backend client could not be built.

    Every read fails with FetchFailure so pages show a retry state instead of
    demo data.
    """

    def select(self, table: str, *, filters=None, order_by=None, descending=False) -> List[Dict[str, Any]]:
        raise FetchFailure(table, "backend_unavailable")

    def select_one(self, table: str, *, filters: Mapping[str, Any]) -> Dict[str, Any]:
        raise FetchFailure(table, "backend_unavailable")

    def rpc(self, function: str, params: Mapping[str, Any] | None = None) -> Any:
        raise FetchFailure(f"rpc/{function}", "backend_unavailable")

    def as_user(self, user_id: str, access_token: Optional[str] = None) -> "UnavailableClubRepo":
        return self


def demo_tables() -> Dict[str, List[Dict[str, Any]]]:
    """Seed data for the development repo: one senior squad, season 2024-25.

    Rows use the column names of the hosted club database.
    """
    players = [
        {"id": "p1", "name": "Marcus Reed", "position": "Forward", "season": "2024-25", "matches": 18},
        {"id": "p2", "name": "Jonas Keller", "position": "Midfielder", "season": "2024-25", "matches": 20},
        {"id": "p3", "name": "Theo Laurent", "position": "Defender", "season": "2024-25", "matches": 16},
        {"id": "p4", "name": "Samir Haddad", "position": "Midfielder", "season": "2024-25", "matches": 12},
        {"id": "p5", "name": "Liam O'Connor", "position": "Goalkeeper", "season": "2024-25", "matches": 20},
        {"id": "p6", "name": "Diego Alvarez", "position": "Forward", "season": "2024-25", "matches": 9},
    ]
    users = [
        {"id": "user-admin", "email": "admin@test.com", "full_name": "Alex Admin", "role": "admin"},
        {"id": "user-management", "email": "management@test.com", "full_name": "Morgan Board", "role": "management"},
        {"id": "user-pd", "email": "performance_director@test.com", "full_name": "Pat Director", "role": "performance_director"},
        {"id": "user-analyst", "email": "analyst@test.com", "full_name": "Ana Lyst", "role": "analyst"},
        {"id": "user-coach", "email": "coach@test.com", "full_name": "Chris Coach", "role": "coach"},
        {"id": "user-player", "email": "player@test.com", "full_name": "Marcus Reed", "role": "player"},
        {"id": "user-unassigned", "email": "unassigned@test.com", "full_name": "New Member", "role": "unassigned"},
    ]
    fitness = [
        {"id": 1, "player_id": "p1", "status": "available", "fitness_level": 92},
        {"id": 2, "player_id": "p2", "status": "available", "fitness_level": 88},
        {"id": 3, "player_id": "p3", "status": "injured", "fitness_level": 40},
        {"id": 4, "player_id": "p4", "status": "suspended", "fitness_level": 90},
        {"id": 5, "player_id": "p5", "status": "available", "fitness_level": 85},
        {"id": 6, "player_id": "p6", "status": "light_training", "fitness_level": 70},
    ]
    disciplinary = [
        {"id": 1, "player_id": "p2", "card_type": "Yellow", "match_date": "2024-09-14", "competition": "League"},
        {"id": 2, "player_id": "p2", "card_type": "yellow", "match_date": "2024-10-05", "competition": "League"},
        {"id": 3, "player_id": "p2", "card_type": "YELLOW", "match_date": "2024-11-02", "competition": "Cup"},
        {"id": 4, "player_id": "p2", "card_type": "yellow", "match_date": "2024-12-07", "competition": "League"},
        {"id": 5, "player_id": "p4", "card_type": "red", "match_date": "2025-01-18", "competition": "League"},
        {"id": 6, "player_id": "p1", "card_type": "yellow", "match_date": "2024-10-19", "competition": "League"},
    ]
    eligibility = [
        {"id": 1, "player_id": "p1", "is_eligible": True, "suspension_until": None, "registration_expires": "2026-06-30"},
        {"id": 2, "player_id": "p2", "is_eligible": True, "suspension_until": None, "registration_expires": "2026-06-30"},
        {"id": 3, "player_id": "p3", "is_eligible": True, "suspension_until": None, "registration_expires": "2026-06-30"},
        {"id": 4, "player_id": "p4", "is_eligible": True, "suspension_until": "2099-01-01", "registration_expires": "2026-06-30"},
        {"id": 5, "player_id": "p5", "is_eligible": True, "suspension_until": None, "registration_expires": "2025-01-31"},
        {"id": 6, "player_id": "p6", "is_eligible": False, "suspension_until": None, "registration_expires": "2026-06-30"},
    ]
    injuries = [
        {"id": 1, "player_id": "p3", "status": "active", "injury_type": "Hamstring strain", "severity": "moderate",
         "body_part": "Hamstring", "injury_date": "2024-12-28", "expected_return_date": "2025-03-01"},
        {"id": 2, "player_id": "p1", "status": "recovered", "injury_type": "Ankle sprain", "severity": "minor",
         "body_part": "Ankle", "injury_date": "2024-08-02", "expected_return_date": "2024-08-20"},
    ]
    contracts = [
        {"id": 1, "player_id": "p1", "contract_type": "professional", "status": "active",
         "contract_start_date": "2023-07-01", "contract_end_date": "2027-06-30", "salary_per_week": 4500},
        {"id": 2, "player_id": "p2", "contract_type": "professional", "status": "active",
         "contract_start_date": "2022-07-01", "contract_end_date": "2026-06-30", "salary_per_week": 3800},
    ]
    matches = [
        {"id": "m1", "opponent": "Northfield", "location": "Home", "date": "2024-09-07", "result": "Win", "home_score": 2, "away_score": 0},
        {"id": "m2", "opponent": "Riverside", "location": "Away", "date": "2024-09-21", "result": "Loss", "home_score": 1, "away_score": 3},
        {"id": "m3", "opponent": "Eastbrook", "location": "Home", "date": "2024-10-12", "result": None, "home_score": 3, "away_score": 1},
        {"id": "m4", "opponent": "Hillcrest", "location": "Away", "date": "2024-11-09", "result": "Draw", "home_score": 1, "away_score": 1},
        {"id": "m0", "opponent": "Pre-season XI", "location": "Home", "date": "2024-08-10", "result": "Win", "home_score": 4, "away_score": 0},
    ]
    goals = [
        {"id": "g1", "match_id": "m1", "player_id": "p1", "minute": 23, "period": "First Half"},
        {"id": "g2", "match_id": "m1", "player_id": "p6", "minute": 71, "period": "Second Half"},
        {"id": "g3", "match_id": "m3", "player_id": "p1", "minute": 12, "period": "First Half"},
        {"id": "g4", "match_id": "m3", "player_id": "p2", "minute": 55, "period": "Second Half"},
        {"id": "g5", "match_id": "m3", "player_id": "p1", "minute": 88, "period": "Second Half"},
        {"id": "g6", "match_id": "m4", "player_id": "p2", "minute": 40, "period": "First Half"},
    ]
    shots = [
        {"id": "s1", "player_id": "p1", "match_id": "m1", "match_name": "vs Northfield", "date": "2024-09-07",
         "period": "First Half", "outcome": "Goal", "minute": 23, "x_coordinate": 940, "y_coordinate": 330},
        {"id": "s2", "player_id": "p1", "match_id": "m1", "match_name": "vs Northfield", "date": "2024-09-07",
         "period": "First Half", "outcome": "Shot on Target", "minute": 31, "x_coordinate": 880, "y_coordinate": 300},
        {"id": "s3", "player_id": "p6", "match_id": "m1", "match_name": "vs Northfield", "date": "2024-09-07",
         "period": "Second Half", "outcome": "Goal", "minute": 71, "x_coordinate": 960, "y_coordinate": 350},
        {"id": "s4", "player_id": "p2", "match_id": "m2", "match_name": "at Riverside", "date": "2024-09-21",
         "period": "Second Half", "outcome": "Shot Off Target", "minute": 64, "x_coordinate": 820, "y_coordinate": 250},
        {"id": "s5", "player_id": "p1", "match_id": "m3", "match_name": "vs Eastbrook", "date": "2024-10-12",
         "period": "First Half", "outcome": "Goal", "minute": 12, "x_coordinate": 970, "y_coordinate": 340},
        {"id": "s6", "player_id": "p1", "match_id": "m3", "match_name": "vs Eastbrook", "date": "2024-10-12",
         "period": "Second Half", "outcome": "Blocked Shot", "minute": 80, "x_coordinate": 900, "y_coordinate": 400},
        {"id": "s7", "player_id": "p1", "match_id": "m3", "match_name": "vs Eastbrook", "date": "2024-10-12",
         "period": "Second Half", "outcome": "Goal", "minute": 88, "x_coordinate": 985, "y_coordinate": 335},
        {"id": "s8", "player_id": "p2", "match_id": "m4", "match_name": "at Hillcrest", "date": "2024-11-09",
         "period": "First Half", "outcome": "Goal", "minute": 40, "x_coordinate": 930, "y_coordinate": 310},
    ]
    training = [
        {"id": 1, "player_id": "p1", "training_session_id": 41, "created_at": "2025-01-13T10:00:00+00:00", "attended": True},
        {"id": 2, "player_id": "p2", "training_session_id": 41, "created_at": "2025-01-13T10:00:00+00:00", "attended": True},
        {"id": 3, "player_id": "p3", "training_session_id": 41, "created_at": "2025-01-13T10:00:00+00:00", "attended": False},
        {"id": 4, "player_id": "p5", "training_session_id": 41, "created_at": "2025-01-13T10:00:00+00:00", "attended": True},
        {"id": 5, "player_id": "p1", "training_session_id": 30, "created_at": "2024-12-20T10:00:00+00:00", "attended": False},
    ]
    targets = [
        {"id": 1, "player_id": "p1", "category": "Technical", "target_description": "Weak-foot finishing",
         "status": "achieved", "target_date": "2024-12-01"},
        {"id": 2, "player_id": "p1", "category": "Tactical", "target_description": "Pressing triggers",
         "status": "on_track", "target_date": "2025-04-01"},
        {"id": 3, "player_id": "p2", "category": "Technical", "target_description": "Progressive passing",
         "status": "behind", "target_date": "2025-02-01"},
        {"id": 4, "player_id": "p6", "category": "Physical", "target_description": "Aerial duels",
         "status": "on_track", "target_date": "2025-05-01"},
    ]
    youth_teams = [
        {"id": 1, "team_name": "U16", "age_group": "U16", "level": 1},
        {"id": 2, "team_name": "U18", "age_group": "U18", "level": 2},
        {"id": 3, "team_name": "U23", "age_group": "U23", "level": 3},
        {"id": 4, "team_name": "U14", "age_group": "U14", "level": 0},
    ]
    assignments = [
        {"id": 1, "youth_team_id": 3, "player_id": "p1", "status": "active"},
        {"id": 2, "youth_team_id": 3, "player_id": "p2", "status": "active"},
        {"id": 3, "youth_team_id": 2, "player_id": "p6", "status": "active"},
        {"id": 4, "youth_team_id": 1, "player_id": "p4", "status": "active"},
        {"id": 5, "youth_team_id": 4, "player_id": "p3", "status": "inactive"},
    ]
    return {
        "players": players,
        "users": users,
        "player_fitness_status": fitness,
        "player_disciplinary": disciplinary,
        "player_eligibility": eligibility,
        "player_injuries": injuries,
        "player_contracts": contracts,
        "matches": matches,
        "goals": goals,
        "shots": shots,
        "player_training_attendance": training,
        "development_targets": targets,
        "youth_teams": youth_teams,
        "player_team_assignments": assignments,
    }


# Account to player record links behind `get_player_id` in the demo repo.
DEMO_PLAYER_LINKS = {"user-player": "p1"}


def build_demo_repo() -> InMemoryClubRepo:
    return InMemoryClubRepo(demo_tables(), player_links=DEMO_PLAYER_LINKS)


__all__ = [
    "RecordNotFound",
    "FetchFailure",
    "ClubRepoProtocol",
    "GET_PLAYER_ID",
    "InMemoryClubRepo",
    "UnavailableClubRepo",
    "DEMO_PLAYER_LINKS",
    "demo_tables",
    "build_demo_repo",
]
