"""
Disciplinary calculator tests: card thresholds, fair play and the compliance list.
"""
from __future__ import annotations

from datetime import date

import pytest

from club_analytics.disciplinary import (
    AtRiskLevel,
    RiskLevel,
    assess_disciplinary_risk,
    count_cards,
    fair_play_rating,
    players_at_risk,
    team_average_fair_play,
)
from club_data.repo import demo_tables

TODAY = date(2025, 1, 15)


def _cards(*kinds: str) -> list[dict]:
    return [{"player_id": "p", "card_type": k} for k in kinds]


@pytest.mark.parametrize(
    "cards, level, until",
    [
        ([], RiskLevel.SAFE, 5),
        (["yellow"] * 3, RiskLevel.SAFE, 2),
        (["yellow"] * 4, RiskLevel.AT_RISK, 1),
        (["yellow"] * 5, RiskLevel.CRITICAL, 0),
        (["red"], RiskLevel.CRITICAL, 0),
        (["yellow", "red"], RiskLevel.CRITICAL, 0),
    ],
)
def test_risk_thresholds(cards, level, until):
    summary = assess_disciplinary_risk(_cards(*cards))
    assert summary.risk_level is level
    assert summary.cards_until_suspension == until


def test_card_types_are_case_insensitive():
    assert count_cards(_cards("Yellow", "YELLOW", "yellow", "Red", "second yellow")) == (3, 1)


def test_fair_play_rating():
    assert fair_play_rating(0, 10) == 10.0
    assert fair_play_rating(1, 18) == 9.9
    assert fair_play_rating(4, 1) == 2.0
    # Floored at 1; zero matches counts as one match.
    assert fair_play_rating(10, 0) == 1.0
    assert fair_play_rating(3, None) == 4.0


def test_summary_dict_shape():
    body = assess_disciplinary_risk(_cards("yellow"), matches_played=18).as_dict()
    assert body["risk_level"] == "SAFE"
    assert body["cards_until_suspension"] == 4
    assert body["fair_play_rating"] == 9.9
    assert body["events"][0]["competition"] == "League"


def test_team_average_fair_play():
    players = [{"id": "a", "matches": 10}, {"id": "b", "matches": 10}]
    records = [{"player_id": "a", "card_type": "yellow"}] * 5
    # a: 10 - 0.5*2 = 9.0, b: 10.0
    assert team_average_fair_play(players, records) == 9.5
    assert team_average_fair_play([], records) is None


def test_players_at_risk_on_seed_data():
    tables = demo_tables()
    rows = players_at_risk(
        tables["players"], tables["player_disciplinary"], tables["player_eligibility"], today=TODAY
    )
    assert [(r.id, r.risk_level) for r in rows] == [
        ("p6", AtRiskLevel.HIGH),
        ("p4", AtRiskLevel.HIGH),
        ("p2", AtRiskLevel.MEDIUM),
    ]
    by_id = {r.id: r for r in rows}
    assert by_id["p4"].reason == "Suspended until 2099-01-01"
    assert by_id["p6"].reason == "Not eligible for selection"
    assert by_id["p2"].yellow_cards == 4


def test_players_at_risk_low_and_expired_suspension():
    players = [{"id": "x", "name": "Xavi"}, {"id": "y", "name": "Yann"}]
    records = _cards("yellow", "yellow", "yellow")
    for r in records:
        r["player_id"] = "x"
    elig = [{"player_id": "y", "is_eligible": True, "suspension_until": "2024-12-01"}]
    rows = players_at_risk(players, records, elig, today=TODAY)
    assert [(r.id, r.risk_level) for r in rows] == [("x", AtRiskLevel.LOW)]
    assert rows[0].as_dict()["risk_level"] == "LOW"
