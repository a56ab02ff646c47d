"""
Analytics use cases: load rows through the repo port and apply calculators.

Methods are synchronous (the Supabase client is blocking); web handlers call
them through `anyio.to_thread.run_sync`. `FetchFailure` propagates so the
caller can render a retry state or a 502.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from club_analytics import availability, development, disciplinary, shots
from club_data import queries
from club_data.repo import ClubRepoProtocol


@dataclass
class PlayerOverview:
    player: Dict[str, Any]
    status: availability.PlayerStatusInfo
    disciplinary: disciplinary.DisciplinarySummary
    team_average_fair_play: Optional[float]
    contract: Optional[Dict[str, Any]]
    shots: shots.ShotStatistics
    goals: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "player": self.player,
            "status": self.status.as_dict(),
            "disciplinary": self.disciplinary.as_dict(),
            "team_average_fair_play": self.team_average_fair_play,
            "contract": self.contract,
            "shots": self.shots.as_dict(),
            "goals": self.goals,
        }


class ClubAnalyticsService:
    def __init__(self, repo: ClubRepoProtocol, *, today: date, season: str) -> None:
        self.repo = repo
        self.today = today
        self.season = season

    def players(self) -> List[Dict[str, Any]]:
        return queries.list_players(self.repo, season=self.season)

    def squad_availability(self) -> availability.SquadAvailability:
        return availability.squad_availability(queries.squad_fitness(self.repo, season=self.season))

    def team_metrics(self) -> availability.TeamMetrics:
        return availability.team_metrics(
            players=self.players(),
            active_injuries=queries.active_injuries(self.repo),
            eligibility_rows=queries.all_eligibility(self.repo),
            goals=queries.goals(self.repo),
            matches=queries.matches_since(self.repo, availability.SEASON_START),
            training=queries.training_since(self.repo, availability.training_window_start(self.today)),
            today=self.today,
        )

    def player_status(self, player_id: str) -> availability.PlayerStatusInfo:
        return availability.determine_player_status(
            queries.eligibility(self.repo, player_id),
            queries.active_injury(self.repo, player_id),
            today=self.today,
        )

    def player_statuses(self) -> Dict[str, availability.PlayerStatusInfo]:
        elig = {str(r.get("player_id")): r for r in queries.all_eligibility(self.repo)}
        injured = {str(r.get("player_id")): r for r in queries.active_injuries(self.repo)}
        return {
            str(p.get("id")): availability.determine_player_status(
                elig.get(str(p.get("id"))), injured.get(str(p.get("id"))), today=self.today
            )
            for p in self.players()
        }

    def player_disciplinary(self, player_id: str) -> disciplinary.DisciplinarySummary:
        row = queries.player(self.repo, player_id) or {}
        return disciplinary.assess_disciplinary_risk(
            queries.disciplinary_records(self.repo, player_id),
            matches_played=row.get("matches"),
        )

    def disciplinary_by_player(self) -> Dict[str, disciplinary.DisciplinarySummary]:
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for rec in queries.disciplinary_records(self.repo):
            grouped.setdefault(str(rec.get("player_id")), []).append(rec)
        return {
            str(p.get("id")): disciplinary.assess_disciplinary_risk(
                grouped.get(str(p.get("id")), []), matches_played=p.get("matches")
            )
            for p in self.players()
        }

    def players_at_risk(self) -> List[disciplinary.PlayerAtRisk]:
        return disciplinary.players_at_risk(
            self.players(),
            queries.disciplinary_records(self.repo),
            queries.all_eligibility(self.repo),
            today=self.today,
        )

    def shot_statistics(
        self,
        *,
        player_id: Optional[str] = None,
        match_id: Optional[str] = None,
        period: Optional[str] = None,
        outcome: Optional[str] = None,
    ) -> Dict[str, Any]:
        all_shots = queries.shots(self.repo, player_id=player_id)
        selected = shots.filter_shots(all_shots, match_id=match_id, period=period, outcome=outcome)
        return {
            "statistics": shots.shot_statistics(selected).as_dict(),
            "matches": shots.match_options(all_shots),
        }

    def development_progress(self) -> development.DevelopmentProgress:
        return development.development_progress(
            development.recent_targets(queries.development_targets(self.repo), today=self.today),
            queries.youth_teams(self.repo),
            queries.team_assignments(self.repo),
        )

    def player_overview(self, player_id: str) -> Optional[PlayerOverview]:
        row = queries.player(self.repo, player_id)
        if row is None:
            return None
        player_shots = queries.shots(self.repo, player_id=player_id)
        return PlayerOverview(
            player=row,
            status=self.player_status(player_id),
            disciplinary=self.player_disciplinary(player_id),
            team_average_fair_play=disciplinary.team_average_fair_play(
                self.players(), queries.disciplinary_records(self.repo)
            ),
            contract=queries.contract(self.repo, player_id),
            shots=shots.shot_statistics(player_shots),
            goals=len(queries.goals(self.repo, player_id=player_id)),
        )

    def goals_by_player(self) -> List[Dict[str, Any]]:
        counts: Dict[str, int] = {}
        for goal in queries.goals(self.repo):
            pid = str(goal.get("player_id"))
            counts[pid] = counts.get(pid, 0) + 1
        rows = [
            {"player_id": str(p.get("id")), "name": p.get("name"), "goals": counts.get(str(p.get("id")), 0)}
            for p in self.players()
        ]
        rows.sort(key=lambda r: (-r["goals"], str(r["name"])))
        return rows

    def match_record(self) -> Dict[str, int]:
        record = {"wins": 0, "draws": 0, "losses": 0}
        for match in queries.matches_since(self.repo, availability.SEASON_START):
            if availability.is_win(match):
                record["wins"] += 1
            elif match.get("result") == "Draw" or (
                match.get("home_score") is not None and match.get("home_score") == match.get("away_score")
            ):
                record["draws"] += 1
            else:
                record["losses"] += 1
        return record
