"""
Development-target progress across the academy.

A target counts as "on target" when it is on track or already achieved, and
as "needs focus" when it is behind. Per-team percentages are derived from the
targets of the team's active players; a team without targets reports None.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional

from club_analytics.rounding import percentage

ON_TARGET_STATUSES = frozenset({"on_track", "achieved"})
NEEDS_FOCUS_STATUSES = frozenset({"behind"})
LOOKBACK_DAYS = 90


@dataclass
class TeamProgress:
    team_name: str
    total_players: int
    on_target_percentage: Optional[int]


@dataclass
class DevelopmentProgress:
    targets_met_percentage: int
    on_track_count: int
    need_focus_count: int
    total_targets: int
    teams: List[TeamProgress] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "targets_met_percentage": self.targets_met_percentage,
            "on_track_count": self.on_track_count,
            "need_focus_count": self.need_focus_count,
            "total_targets": self.total_targets,
            "teams": [
                {
                    "team_name": t.team_name,
                    "total_players": t.total_players,
                    "on_target_percentage": t.on_target_percentage,
                }
                for t in self.teams
            ],
        }


def recent_targets(targets: Iterable[Mapping[str, Any]], *, today: date) -> List[Mapping[str, Any]]:
    """Targets due within the lookback window or later."""
    cutoff = (today - timedelta(days=LOOKBACK_DAYS)).isoformat()
    return [t for t in targets if str(t.get("target_date") or "")[:10] >= cutoff]


def development_progress(
    targets: Iterable[Mapping[str, Any]],
    teams: Iterable[Mapping[str, Any]],
    assignments: Iterable[Mapping[str, Any]],
) -> DevelopmentProgress:
    """Overall target counts plus per-team progress.

    `teams` are `youth_teams` rows in display order (by level);
    `assignments` are active `player_team_assignments` rows linking players to
    a team through `youth_team_id`. Teams without active players are left out.
    """
    target_list = list(targets)
    on_track = sum(1 for t in target_list if t.get("status") in ON_TARGET_STATUSES)
    need_focus = sum(1 for t in target_list if t.get("status") in NEEDS_FOCUS_STATUSES)

    by_player: Dict[str, List[Mapping[str, Any]]] = {}
    for t in target_list:
        by_player.setdefault(str(t.get("player_id")), []).append(t)

    members: Dict[str, List[str]] = {}
    for a in assignments:
        team_id = a.get("youth_team_id")
        if team_id is None:
            continue
        roster = members.setdefault(str(team_id), [])
        pid = str(a.get("player_id"))
        if pid not in roster:
            roster.append(pid)

    progress: List[TeamProgress] = []
    for team in teams:
        roster = members.get(str(team.get("id")))
        if not roster:
            continue
        team_targets = [t for pid in roster for t in by_player.get(pid, [])]
        pct: Optional[int] = None
        if team_targets:
            met = sum(1 for t in team_targets if t.get("status") in ON_TARGET_STATUSES)
            pct = int(percentage(met, len(team_targets)))
        progress.append(
            TeamProgress(team_name=str(team.get("team_name") or ""), total_players=len(roster), on_target_percentage=pct)
        )

    return DevelopmentProgress(
        targets_met_percentage=int(percentage(on_track, len(target_list))),
        on_track_count=on_track,
        need_focus_count=need_focus,
        total_targets=len(target_list),
        teams=progress,
    )
