"""Derived, render-ready state for a journey page."""
from questline.journeys.engine import next_action, pending_gate
from questline.journeys.progress import (
    DateLike,
    can_check_in_today,
    is_active,
    journey_status,
    narrative_for,
    progress_milestones,
    progress_percent,
    reflection_prompt_for,
)
from questline.journeys.repository import JourneySnapshot
from questline.journeys.schemas import JourneyView

RECENT_CHECK_IN_COUNT = 5


def build_journey_view(snapshot: JourneySnapshot, now: DateLike = None) -> JourneyView:
    journey = snapshot.journey
    last = snapshot.last_check_in
    last_at = last.created_at if last is not None else None

    progress = progress_percent(journey.started_at, journey.current_day, journey.duration)

    gate = None
    if journey.started_at is not None and journey.completed_at is None:
        gate = pending_gate(snapshot.reflection_gates, journey.current_day)

    return JourneyView(
        journey=journey,
        status=journey_status(journey.started_at, journey.completed_at),
        progress=progress,
        narrative=narrative_for(journey.theme, journey.current_day, journey.duration),
        reflection_prompt=reflection_prompt_for(journey.current_day, journey.theme),
        milestones=progress_milestones(progress),
        is_active=is_active(journey.started_at, journey.completed_at, now=now),
        # An open gate has to be answered before the next check-in is accepted.
        can_check_in=gate is None and can_check_in_today(journey.started_at, journey.current_day, last_at, now=now),
        next_action=next_action(
            journey.started_at,
            journey.completed_at,
            journey.current_day,
            snapshot.reflection_gates,
            last_at,
            now=now,
        ),
        pending_gate=gate,
        check_ins=list(snapshot.check_ins),
        recent_check_ins=list(reversed(snapshot.check_ins[-RECENT_CHECK_IN_COUNT:])),
        reflection_gates=list(snapshot.reflection_gates),
    )
