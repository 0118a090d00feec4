"""
Journey aggregate rules.

Core rules:
  - Reflection gates are scheduled once, at journey creation, for days
    3, 7, 14, 21 and the final day, never past the journey's duration.
  - A check-in advances current_day by at least one and never below the day
    it records, always extends the streak, and folds its truth rating into
    a running average weighted by the pre-update current_day.
  - An unanswered gate at or before the day being recorded takes precedence
    over an ordinary check-in.
  - Completing a gate never touches the aggregates.
"""
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

from questline.core.config import MIN_JOURNEY_DURATION
from questline.journeys.progress import DateLike, can_check_in_today, round_half_up, to_datetime

GATE_DAYS = (3, 7, 14, 21)
GATE_PROMPT = "Day {day} Reflection: How has this journey changed you so far?"

DEFAULT_TRUTH_RATING = 5
MIN_TRUTH_SCORE = 0
MAX_TRUTH_SCORE = 10

# next_action() results
NOT_STARTED = "not_started"
COMPLETED = "completed"
REFLECTION_GATE = "reflection_gate"
CHECK_IN = "check_in"
WAIT = "wait"


class GateLike(Protocol):
    day: int
    completed: bool


@dataclass(frozen=True)
class GatePlan:
    day: int
    prompt: str
    completed: bool = False


@dataclass(frozen=True)
class Aggregate:
    current_day: int = 0
    streak: int = 0
    truth_score: int = 0

    def as_dict(self) -> dict:
        return {
            "current_day": self.current_day,
            "streak": self.streak,
            "truth_score": self.truth_score,
        }


def schedule_reflection_gates(duration: int) -> list[GatePlan]:
    """
    Gate plan for a new journey.

    The final-day gate is only added for durations inside the supported
    journey range; shorter journeys keep just the fixed milestones they reach.
    """
    if duration is None or duration <= 0:
        return []

    days = {day for day in GATE_DAYS if day <= duration}
    if duration >= MIN_JOURNEY_DURATION:
        days.add(duration)

    return [GatePlan(day=day, prompt=GATE_PROMPT.format(day=day)) for day in sorted(days)]


def clamp_truth_score(value: int) -> int:
    return max(MIN_TRUTH_SCORE, min(MAX_TRUTH_SCORE, value))


def apply_check_in(aggregate: Aggregate, day: int, truth_rating: Optional[int] = None) -> Aggregate:
    current_day = aggregate.current_day or 0
    rating = DEFAULT_TRUTH_RATING if truth_rating is None else truth_rating

    # Weighted by the pre-update current_day; assumes no gaps before it.
    truth_score = round_half_up(
        ((aggregate.truth_score or 0) * current_day + rating) / (current_day + 1)
    )

    return Aggregate(
        current_day=max(current_day + 1, (day or 0) + 1),
        streak=(aggregate.streak or 0) + 1,
        truth_score=clamp_truth_score(truth_score),
    )


def pending_gate(gates: Iterable[GateLike], day: int) -> Optional[GateLike]:
    """Earliest unanswered gate due on or before `day`."""
    due = [gate for gate in gates if not gate.completed and gate.day <= day]
    if not due:
        return None
    return min(due, key=lambda gate: gate.day)


def next_action(
    started_at: DateLike,
    completed_at: DateLike,
    current_day: int,
    gates: Iterable[GateLike],
    last_check_in: DateLike,
    now: DateLike = None,
) -> str:
    """
    What the client should put in front of the user for this journey:
    the gate form, the check-in form, or nothing until tomorrow.
    """
    if to_datetime(completed_at) is not None:
        return COMPLETED
    if to_datetime(started_at) is None:
        return NOT_STARTED
    if pending_gate(gates, current_day) is not None:
        return REFLECTION_GATE
    if can_check_in_today(started_at, current_day, last_check_in, now=now):
        return CHECK_IN
    return WAIT
