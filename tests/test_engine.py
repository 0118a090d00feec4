from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from questline.journeys.engine import (
    CHECK_IN,
    COMPLETED,
    NOT_STARTED,
    REFLECTION_GATE,
    WAIT,
    Aggregate,
    apply_check_in,
    next_action,
    pending_gate,
    schedule_reflection_gates,
)

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


def gate_days(duration):
    return [plan.day for plan in schedule_reflection_gates(duration)]


def gate(day, completed=False):
    return SimpleNamespace(day=day, completed=completed)


# ======================================================
# GATE SCHEDULING
# ======================================================

def test_thirty_day_journey_gets_five_gates():
    assert gate_days(30) == [3, 7, 14, 21, 30]


def test_short_journey_keeps_only_reached_milestones():
    assert gate_days(5) == [3]


def test_final_day_coinciding_with_milestone_is_not_duplicated():
    assert gate_days(7) == [3, 7]
    assert gate_days(14) == [3, 7, 14]
    assert gate_days(21) == [3, 7, 14, 21]


def test_gates_never_exceed_duration():
    for duration in (1, 2, 3, 10, 45, 90, 120):
        assert all(day <= duration for day in gate_days(duration))


def test_no_gates_for_nonpositive_duration():
    assert gate_days(0) == []
    assert gate_days(-4) == []


def test_gate_plans_start_incomplete_with_day_prompt():
    plans = schedule_reflection_gates(10)
    assert [p.day for p in plans] == [3, 7, 10]
    assert all(p.completed is False for p in plans)
    assert plans[0].prompt == "Day 3 Reflection: How has this journey changed you so far?"


# ======================================================
# CHECK-IN AGGREGATE
# ======================================================

def test_first_and_second_check_in():
    first = apply_check_in(Aggregate(0, 0, 0), day=0, truth_rating=8)
    assert first == Aggregate(current_day=1, streak=1, truth_score=8)

    second = apply_check_in(first, day=1, truth_rating=6)
    assert second == Aggregate(current_day=2, streak=2, truth_score=7)


def test_truth_score_rounds_half_up():
    # (6 * 1 + 7) / 2 = 6.5
    assert apply_check_in(Aggregate(1, 1, 6), day=1, truth_rating=7).truth_score == 7


def test_missing_rating_defaults_to_five():
    assert apply_check_in(Aggregate(0, 0, 0), day=0).truth_score == 5


def test_zero_rating_is_kept():
    assert apply_check_in(Aggregate(1, 1, 10), day=1, truth_rating=0).truth_score == 5


def test_current_day_jumps_to_recorded_day():
    assert apply_check_in(Aggregate(2, 2, 5), day=5, truth_rating=5).current_day == 6


def test_current_day_advances_for_older_day():
    assert apply_check_in(Aggregate(4, 4, 5), day=0, truth_rating=5).current_day == 5


def test_streak_always_increments():
    aggregate = Aggregate()
    for day in (0, 3, 9):
        aggregate = apply_check_in(aggregate, day=day, truth_rating=5)
    assert aggregate.streak == 3


def test_truth_score_stays_in_range():
    aggregate = Aggregate()
    for rating in (10, 10, 0, 10, 3, 10, 0):
        aggregate = apply_check_in(aggregate, day=aggregate.current_day, truth_rating=rating)
        assert 0 <= aggregate.truth_score <= 10


# ======================================================
# GATE PRECEDENCE / NEXT ACTION
# ======================================================

def test_pending_gate_is_earliest_due_incomplete():
    gates = [gate(3, completed=True), gate(7), gate(14)]
    assert pending_gate(gates, 2) is None
    assert pending_gate(gates, 3) is None
    assert pending_gate(gates, 7).day == 7
    assert pending_gate(gates, 20).day == 7


def test_next_action_states():
    start = NOW - timedelta(days=5)
    gates = [gate(3), gate(7)]

    assert next_action(None, None, 0, gates, None, now=NOW) == NOT_STARTED
    assert next_action(start, NOW, 3, gates, None, now=NOW) == COMPLETED
    assert next_action(start, None, 3, gates, None, now=NOW) == REFLECTION_GATE
    assert next_action(start, None, 2, gates, None, now=NOW) == CHECK_IN
    assert next_action(start, None, 2, gates, NOW, now=NOW) == WAIT


def test_gate_resolution_reopens_check_in():
    start = NOW - timedelta(days=5)
    gates = [gate(3, completed=True), gate(7)]
    assert next_action(start, None, 3, gates, NOW - timedelta(days=1), now=NOW) == CHECK_IN
