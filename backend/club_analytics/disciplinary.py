"""
Disciplinary risk assessment.

Rules:
- Cards are counted by type, case-insensitively ("Yellow", "YELLOW", "yellow").
- CRITICAL when any red card was shown or five or more cards in total.
- AT RISK at exactly four cards (one more yellow triggers a suspension).
- SAFE otherwise; the next suspension comes after every fifth yellow.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from club_analytics.rounding import round_half_up

SUSPENSION_THRESHOLD = 5


class RiskLevel(str, Enum):
    SAFE = "SAFE"
    AT_RISK = "AT RISK"
    CRITICAL = "CRITICAL"


class AtRiskLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


@dataclass(frozen=True)
class DisciplinaryRecord:
    player_id: str
    card_type: str
    match_date: Optional[str] = None
    competition: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "DisciplinaryRecord":
        return cls(
            player_id=str(row.get("player_id") or ""),
            card_type=str(row.get("card_type") or ""),
            match_date=row.get("match_date"),
            competition=row.get("competition") or "League",
        )


@dataclass
class DisciplinarySummary:
    yellow_cards: int
    red_cards: int
    total_cards: int
    risk_level: RiskLevel
    cards_until_suspension: int
    fair_play_rating: Optional[float] = None
    events: List[DisciplinaryRecord] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "yellow_cards": self.yellow_cards,
            "red_cards": self.red_cards,
            "total_cards": self.total_cards,
            "risk_level": self.risk_level.value,
            "cards_until_suspension": self.cards_until_suspension,
            "fair_play_rating": self.fair_play_rating,
            "events": [
                {"card_type": e.card_type, "match_date": e.match_date, "competition": e.competition}
                for e in self.events
            ],
        }


def _as_records(records: Iterable[Any]) -> List[DisciplinaryRecord]:
    out: List[DisciplinaryRecord] = []
    for rec in records:
        if isinstance(rec, DisciplinaryRecord):
            out.append(rec)
        elif isinstance(rec, Mapping):
            out.append(DisciplinaryRecord.from_row(rec))
    return out


def count_cards(records: Iterable[Any]) -> tuple[int, int]:
    """Return (yellow, red) counts; other card types are ignored."""
    yellow = red = 0
    for rec in _as_records(records):
        kind = rec.card_type.strip().lower()
        if kind == "yellow":
            yellow += 1
        elif kind == "red":
            red += 1
    return yellow, red


def risk_level_for(yellow: int, red: int) -> RiskLevel:
    total = yellow + red
    if red > 0 or total >= SUSPENSION_THRESHOLD:
        return RiskLevel.CRITICAL
    if total == SUSPENSION_THRESHOLD - 1:
        return RiskLevel.AT_RISK
    return RiskLevel.SAFE


def cards_until_suspension(yellow: int, red: int) -> int:
    level = risk_level_for(yellow, red)
    if level is RiskLevel.CRITICAL:
        return 0
    if level is RiskLevel.AT_RISK:
        return 1
    return SUSPENSION_THRESHOLD - (yellow % SUSPENSION_THRESHOLD)


def fair_play_rating(total_cards: int, matches_played: int | None) -> float:
    """10-point rating, two points off per card per match, floored at 1."""
    matches = matches_played if matches_played and matches_played > 0 else 1
    return round_half_up(max(1.0, 10 - (total_cards / matches) * 2), 1)


def assess_disciplinary_risk(records: Iterable[Any], *, matches_played: int | None = None) -> DisciplinarySummary:
    events = _as_records(records)
    yellow, red = count_cards(events)
    total = yellow + red
    return DisciplinarySummary(
        yellow_cards=yellow,
        red_cards=red,
        total_cards=total,
        risk_level=risk_level_for(yellow, red),
        cards_until_suspension=cards_until_suspension(yellow, red),
        fair_play_rating=fair_play_rating(total, matches_played),
        events=events,
    )


def team_average_fair_play(players: Iterable[Mapping[str, Any]], records: Iterable[Any]) -> Optional[float]:
    """Mean fair-play rating across the squad, None for an empty squad."""
    by_player: Dict[str, List[DisciplinaryRecord]] = {}
    for rec in _as_records(records):
        by_player.setdefault(rec.player_id, []).append(rec)
    ratings = []
    for p in players:
        pid = str(p.get("id") or "")
        yellow, red = count_cards(by_player.get(pid, []))
        ratings.append(fair_play_rating(yellow + red, p.get("matches")))
    if not ratings:
        return None
    return round_half_up(sum(ratings) / len(ratings), 1)


@dataclass
class PlayerAtRisk:
    id: str
    name: str
    yellow_cards: int
    red_cards: int
    is_eligible: bool
    suspension_until: Optional[str]
    risk_level: AtRiskLevel
    reason: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "yellow_cards": self.yellow_cards,
            "red_cards": self.red_cards,
            "is_eligible": self.is_eligible,
            "suspension_until": self.suspension_until,
            "risk_level": self.risk_level.value,
            "reason": self.reason,
        }


_AT_RISK_ORDER = {AtRiskLevel.HIGH: 0, AtRiskLevel.MEDIUM: 1, AtRiskLevel.LOW: 2}


def _is_future(value: Any, today: date) -> bool:
    return bool(value) and str(value)[:10] > today.isoformat()


def players_at_risk(
    players: Iterable[Mapping[str, Any]],
    records: Iterable[Any],
    eligibility_rows: Iterable[Mapping[str, Any]],
    *,
    today: date,
) -> List[PlayerAtRisk]:
    """Compliance list ordered HIGH, MEDIUM, LOW then by name.

    HIGH: active suspension, ineligible, red card or five cards.
    MEDIUM: one card away from a suspension.
    LOW: three cards. Players below that are omitted.
    """
    by_player: Dict[str, List[DisciplinaryRecord]] = {}
    for rec in _as_records(records):
        by_player.setdefault(rec.player_id, []).append(rec)
    elig = {str(r.get("player_id")): r for r in eligibility_rows}

    out: List[PlayerAtRisk] = []
    for p in players:
        pid = str(p.get("id") or "")
        yellow, red = count_cards(by_player.get(pid, []))
        row = elig.get(pid) or {}
        is_eligible = bool(row.get("is_eligible", True))
        suspension_until = row.get("suspension_until")
        level: Optional[AtRiskLevel] = None
        reason = ""
        if _is_future(suspension_until, today):
            level, reason = AtRiskLevel.HIGH, f"Suspended until {str(suspension_until)[:10]}"
        elif not is_eligible:
            level, reason = AtRiskLevel.HIGH, "Not eligible for selection"
        else:
            risk = risk_level_for(yellow, red)
            if risk is RiskLevel.CRITICAL:
                level = AtRiskLevel.HIGH
                reason = "Red card on record" if red else f"{yellow + red} cards this season"
            elif risk is RiskLevel.AT_RISK:
                level, reason = AtRiskLevel.MEDIUM, "One card from suspension"
            elif yellow + red == SUSPENSION_THRESHOLD - 2:
                level, reason = AtRiskLevel.LOW, "Three cards this season"
        if level is None:
            continue
        out.append(PlayerAtRisk(
            id=pid,
            name=str(p.get("name") or ""),
            yellow_cards=yellow,
            red_cards=red,
            is_eligible=is_eligible,
            suspension_until=suspension_until,
            risk_level=level,
            reason=reason,
        ))
    out.sort(key=lambda r: (_AT_RISK_ORDER[r.risk_level], r.name))
    return out
