"""
Availability calculators and team metrics, including the seeded squad.
"""
from __future__ import annotations

from datetime import date

from club_analytics.availability import (
    determine_player_status,
    squad_availability,
    team_metrics,
    training_window_start,
)
from club_analytics.service import ClubAnalyticsService
from club_data import queries
from club_data.repo import build_demo_repo

TODAY = date(2025, 1, 15)


def _service() -> ClubAnalyticsService:
    return ClubAnalyticsService(build_demo_repo(), today=TODAY, season="2024-25")


def test_squad_availability_counts_unknown_statuses_in_total():
    data = squad_availability([
        {"status": "available"},
        {"status": "injured"},
        {"status": "retired"},
    ])
    assert data.as_dict() == {"available": 1, "light_training": 0, "injured": 1, "suspended": 0, "total": 3}


def test_squad_availability_empty():
    assert squad_availability([]).total == 0


def test_status_precedence_suspension_over_injury():
    status = determine_player_status(
        {"is_eligible": False, "suspension_until": "2025-02-01"},
        {"status": "active"},
        today=TODAY,
    )
    assert status.status == "suspended"
    assert status.description == "Suspended until 2025-02-01"


def test_status_injury_over_ineligibility():
    status = determine_player_status({"is_eligible": False}, {"status": "active"}, today=TODAY)
    assert status.status == "injured"


def test_past_suspension_is_ignored():
    status = determine_player_status(
        {"is_eligible": True, "suspension_until": "2025-01-15"}, None, today=TODAY
    )
    assert status.status == "available"


def test_registration_expiry():
    soon = determine_player_status({"is_eligible": True, "registration_expires": "2025-02-14"}, None, today=TODAY)
    assert soon.status == "available"
    assert soon.description == "Registration expires in 30 days"
    expired = determine_player_status({"is_eligible": True, "registration_expires": "2025-01-15"}, None, today=TODAY)
    assert expired.status == "ineligible"
    assert expired.status_text == "Registration Expired"


def test_missing_rows_mean_available():
    status = determine_player_status(None, None, today=TODAY)
    assert status.as_dict() == {
        "status": "available",
        "status_text": "Available",
        "description": "Available for selection",
    }


def test_team_metrics_empty_inputs():
    metrics = team_metrics(
        players=[], active_injuries=[], eligibility_rows=[], goals=[], matches=[], training=[], today=TODAY
    )
    assert metrics.win_rate == 0
    assert metrics.training_attendance == 0
    assert metrics.available_players == 0


def test_team_metrics_on_seed_data():
    assert _service().team_metrics().as_dict() == {
        "total_players": 6,
        "available_players": 4,
        "injured_players": 1,
        "suspended_players": 1,
        "team_goals": 6,
        "win_rate": 50,
        "training_attendance": 75,
        "matches_played": 4,
    }


def test_seed_statuses():
    statuses = _service().player_statuses()
    assert statuses["p3"].status == "injured"
    assert statuses["p4"].status == "suspended"
    assert statuses["p6"].status == "ineligible"
    assert statuses["p5"].description == "Registration expires in 16 days"
    assert statuses["p1"].description == "Available for selection"


def test_seed_squad_availability_and_record():
    service = _service()
    assert service.squad_availability().as_dict() == {
        "available": 3,
        "light_training": 1,
        "injured": 1,
        "suspended": 1,
        "total": 6,
    }
    assert service.match_record() == {"wins": 2, "draws": 1, "losses": 1}


def test_player_overview_for_unknown_player_is_none():
    assert _service().player_overview("nope") is None


def test_training_window_reads_attendance_by_recorded_time():
    repo = build_demo_repo()
    recent = queries.training_since(repo, training_window_start(TODAY))
    assert len(recent) == 4
    assert all(row["created_at"] >= "2025-01-08" for row in recent)
    assert len(repo.select("player_training_attendance")) == 5
