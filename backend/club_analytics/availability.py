"""
Squad availability, per-player status and headline team metrics.

All calculators take `today` explicitly so results are reproducible.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any, Dict, Iterable, Mapping, Optional

from club_analytics.rounding import percentage

REGISTRATION_WARNING_DAYS = 30
SEASON_START = date(2024, 9, 1)
TRAINING_WINDOW_DAYS = 7


@dataclass
class SquadAvailability:
    available: int
    light_training: int
    injured: int
    suspended: int
    total: int

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def squad_availability(fitness_rows: Iterable[Mapping[str, Any]]) -> SquadAvailability:
    """Count fitness statuses. Rows with other statuses still count in the total."""
    counts = {"available": 0, "light_training": 0, "injured": 0, "suspended": 0}
    total = 0
    for row in fitness_rows:
        total += 1
        status = str(row.get("status") or "")
        if status in counts:
            counts[status] += 1
    return SquadAvailability(total=total, **counts)


@dataclass
class PlayerStatusInfo:
    status: str
    status_text: str
    description: str

    def as_dict(self) -> Dict[str, str]:
        return asdict(self)


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def determine_player_status(
    eligibility: Optional[Mapping[str, Any]],
    injury: Optional[Mapping[str, Any]],
    *,
    today: date,
) -> PlayerStatusInfo:
    """Selection status with precedence suspended, injured, ineligible, expiry."""
    suspension_until = _parse_date((eligibility or {}).get("suspension_until"))
    if suspension_until and suspension_until > today:
        return PlayerStatusInfo("suspended", "Suspended", f"Suspended until {suspension_until.isoformat()}")

    if injury and injury.get("status") == "active":
        return PlayerStatusInfo("injured", "Injured", "Currently injured")

    if eligibility:
        if not eligibility.get("is_eligible", False):
            return PlayerStatusInfo("ineligible", "Ineligible", "Not eligible for selection")
        expires = _parse_date(eligibility.get("registration_expires"))
        if expires:
            days_left = (expires - today).days
            if days_left <= 0:
                return PlayerStatusInfo("ineligible", "Registration Expired", "Registration has expired")
            if days_left <= REGISTRATION_WARNING_DAYS:
                return PlayerStatusInfo("available", "Available", f"Registration expires in {days_left} days")

    return PlayerStatusInfo("available", "Available", "Available for selection")


def is_win(match: Mapping[str, Any]) -> bool:
    if match.get("result") == "Win":
        return True
    home, away = match.get("home_score"), match.get("away_score")
    return home is not None and away is not None and home > away


@dataclass
class TeamMetrics:
    total_players: int
    available_players: int
    injured_players: int
    suspended_players: int
    team_goals: int
    win_rate: int
    training_attendance: int
    matches_played: int

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def team_metrics(
    *,
    players: Iterable[Mapping[str, Any]],
    active_injuries: Iterable[Mapping[str, Any]],
    eligibility_rows: Iterable[Mapping[str, Any]],
    goals: Iterable[Mapping[str, Any]],
    matches: Iterable[Mapping[str, Any]],
    training: Iterable[Mapping[str, Any]],
    today: date,
) -> TeamMetrics:
    """Headline squad numbers for the dashboard.

    `matches` and `training` are expected to be pre-filtered to the season and
    the recent training window respectively.
    """
    total_players = len(list(players))
    injured = len({str(r.get("player_id")) for r in active_injuries})
    suspended = 0
    for row in eligibility_rows:
        until = _parse_date(row.get("suspension_until"))
        if until is not None and until > today:
            suspended += 1
    match_list = list(matches)
    wins = sum(1 for m in match_list if is_win(m))
    sessions = list(training)
    attended = sum(1 for t in sessions if t.get("attended"))
    return TeamMetrics(
        total_players=total_players,
        available_players=total_players - injured - suspended,
        injured_players=injured,
        suspended_players=suspended,
        team_goals=len(list(goals)),
        win_rate=int(percentage(wins, len(match_list))),
        training_attendance=int(percentage(attended, len(sessions))),
        matches_played=len(match_list),
    )


def training_window_start(today: date) -> date:
    return today - timedelta(days=TRAINING_WINDOW_DAYS)
