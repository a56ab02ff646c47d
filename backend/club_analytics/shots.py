"""Shot map statistics and filtering."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from club_analytics.rounding import percentage

GOAL = "Goal"
ON_TARGET = "Shot on Target"
OFF_TARGET = "Shot Off Target"
BLOCKED = "Blocked Shot"
OUTCOMES = (GOAL, ON_TARGET, OFF_TARGET, BLOCKED)

FIRST_HALF = "First Half"
SECOND_HALF = "Second Half"
PERIODS = (FIRST_HALF, SECOND_HALF, "Extra Time", "Penalties")


@dataclass
class ShotStatistics:
    total_shots: int
    goals: int
    on_target: int
    off_target: int
    blocked: int
    missed: int
    conversion_rate: float
    accuracy: float

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def shot_statistics(shots: Iterable[Mapping[str, Any]]) -> ShotStatistics:
    """Totals per outcome; rates are percentages to one decimal (0 without shots).

    Accuracy counts goals plus saved shots on target.
    """
    counts = {outcome: 0 for outcome in OUTCOMES}
    total = 0
    for shot in shots:
        total += 1
        outcome = shot.get("outcome")
        if outcome in counts:
            counts[outcome] += 1
    goals = counts[GOAL]
    on_target = counts[ON_TARGET]
    return ShotStatistics(
        total_shots=total,
        goals=goals,
        on_target=on_target,
        off_target=counts[OFF_TARGET],
        blocked=counts[BLOCKED],
        missed=counts[OFF_TARGET] + counts[BLOCKED],
        conversion_rate=percentage(goals, total, 1),
        accuracy=percentage(goals + on_target, total, 1),
    )


def filter_shots(
    shots: Iterable[Mapping[str, Any]],
    *,
    player_id: Optional[str] = None,
    match_id: Optional[str] = None,
    period: Optional[str] = None,
    outcome: Optional[str] = None,
) -> List[Mapping[str, Any]]:
    """Apply optional filters; None (or "all") leaves a dimension unfiltered."""
    def keep(shot: Mapping[str, Any]) -> bool:
        if player_id not in (None, "", "all") and str(shot.get("player_id")) != str(player_id):
            return False
        if match_id not in (None, "", "all") and str(shot.get("match_id")) != str(match_id):
            return False
        if period not in (None, "", "all") and shot.get("period") != period:
            return False
        if outcome not in (None, "", "all") and shot.get("outcome") != outcome:
            return False
        return True

    return [s for s in shots if keep(s)]


def match_options(shots: Iterable[Mapping[str, Any]]) -> List[Dict[str, str]]:
    """Distinct matches present in the shots, in first-seen order."""
    seen: Dict[str, str] = {}
    for shot in shots:
        mid = shot.get("match_id")
        if mid is None:
            continue
        key = str(mid)
        if key not in seen:
            seen[key] = str(shot.get("match_name") or key)
    return [{"id": mid, "name": name} for mid, name in seen.items()]
