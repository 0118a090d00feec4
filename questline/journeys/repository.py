"""
Journey data access for one signed-in user.

JourneyRepository sequences the reads and writes behind each journey action
and keeps an explicit JourneySession up to date:

  - every query and write is scoped by the caller's user_id
  - journey + gates, and check-in + aggregate update, commit as one unit
  - the active journey snapshot is replaced wholesale after each write,
    from the known delta rather than a full reload where possible
  - with STRICT_AGGREGATE_UPDATES on, aggregates computed from a stale
    snapshot are rejected instead of overwriting a concurrent check-in
"""
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from questline.achievements.service import evaluate_achievements
from questline.core.config import (
    MAX_AUX_TEXT_LENGTH,
    MIN_GATE_RESPONSE_LENGTH,
    MIN_REFLECTION_LENGTH,
    STRICT_AGGREGATE_UPDATES,
)
from questline.core.errors import ConflictError, NotFound, ReflectionGatePending, ValidationFailed
from questline.journeys.engine import (
    MAX_TRUTH_SCORE,
    MIN_TRUTH_SCORE,
    Aggregate,
    apply_check_in,
    pending_gate,
    schedule_reflection_gates,
)
from questline.journeys.models import THEMES, CheckIn, Journey, ReflectionGate
from questline.journeys.schemas import CheckInOut, JourneyOut, ReflectionGateOut

logger = logging.getLogger(__name__)

REQUIRED_JOURNEY_FIELDS = ("title", "description", "habit", "duration", "theme")

# Derived from check-ins, so they stay zero until the journey starts.
AGGREGATE_FIELDS = {"current_day", "streak", "truth_score"}

UPDATABLE_JOURNEY_FIELDS = {
    "title",
    "description",
    "habit",
    "theme",
    "current_day",
    "streak",
    "truth_score",
    "started_at",
    "completed_at",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_duplicate_check_in(exc: IntegrityError) -> bool:
    """True only for the (journey_id, day) uniqueness clash on check_ins."""
    constraint = getattr(getattr(exc.orig, "diag", None), "constraint_name", None)
    if constraint:
        return constraint == "uq_check_in_journey_day"
    # SQLite names the columns instead of the constraint
    message = str(exc.orig)
    return "uq_check_in_journey_day" in message or "check_ins.journey_id, check_ins.day" in message


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


# ---------------------------------------------------------------------------
# Session context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class JourneySnapshot:
    """A journey with its check-ins and gates, both ascending by day."""

    journey: JourneyOut
    check_ins: tuple = ()
    reflection_gates: tuple = ()

    @property
    def last_check_in(self) -> Optional[CheckInOut]:
        stamped = [c for c in self.check_ins if c.created_at is not None]
        if stamped:
            return max(stamped, key=lambda c: c.created_at)
        return self.check_ins[-1] if self.check_ins else None

    def with_journey(self, journey: JourneyOut) -> "JourneySnapshot":
        return replace(self, journey=journey)

    def with_check_in(self, check_in: CheckInOut) -> "JourneySnapshot":
        check_ins = sorted(self.check_ins + (check_in,), key=lambda c: c.day)
        return replace(self, check_ins=tuple(check_ins))

    def with_gate(self, gate: ReflectionGateOut) -> "JourneySnapshot":
        gates = tuple(gate if g.id == gate.id else g for g in self.reflection_gates)
        return replace(self, reflection_gates=gates)


@dataclass
class JourneySession:
    """
    Per-user cache of what has been loaded: the journey list and the active
    journey snapshot. Both are swapped by reference, never mutated in place.
    """

    user_id: int
    journeys: tuple = ()
    active: Optional[JourneySnapshot] = None
    active_loaded: bool = field(default=False)

    def replace_active(self, snapshot: Optional[JourneySnapshot]) -> None:
        self.active = snapshot
        self.active_loaded = True

    def replace_journey(self, journey: JourneyOut) -> None:
        self.journeys = tuple(journey if j.id == journey.id else j for j in self.journeys)

    def is_active_journey(self, journey_id: int) -> bool:
        return self.active is not None and self.active.journey.id == journey_id


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------

class JourneyRepository:
    def __init__(self, db: Session, context: JourneySession, strict: Optional[bool] = None):
        self.db = db
        self.context = context
        self.strict = STRICT_AGGREGATE_UPDATES if strict is None else strict

    @property
    def user_id(self) -> int:
        return self.context.user_id

    # -- reads -------------------------------------------------------------

    def list_journeys(self) -> list[JourneyOut]:
        rows = (
            self.db.query(Journey)
            .filter(Journey.user_id == self.user_id)
            .order_by(Journey.created_at.desc(), Journey.id.desc())
            .all()
        )
        journeys = [JourneyOut.model_validate(row) for row in rows]
        self.context.journeys = tuple(journeys)
        return journeys

    def load_active_journey(self) -> Optional[JourneySnapshot]:
        """
        Most recently created journey that has started and is not completed.
        None is a normal outcome, not an error.
        """
        journey = (
            self.db.query(Journey)
            .filter(
                Journey.user_id == self.user_id,
                Journey.started_at.isnot(None),
                Journey.completed_at.is_(None),
            )
            .order_by(Journey.created_at.desc(), Journey.id.desc())
            .first()
        )
        snapshot = self._snapshot(journey) if journey is not None else None
        self.context.replace_active(snapshot)
        return snapshot

    def load_journey(self, journey_id: int) -> JourneySnapshot:
        return self._snapshot(self._owned_journey(journey_id))

    # -- journeys ----------------------------------------------------------

    def create_journey(self, fields: Mapping[str, Any]) -> JourneyOut:
        missing = [name for name in REQUIRED_JOURNEY_FIELDS if _is_blank(fields.get(name))]
        if missing:
            raise ValidationFailed(f"Missing required fields: {', '.join(missing)}", fields=missing)

        theme = fields["theme"]
        if theme not in THEMES:
            raise ValidationFailed(
                f"Unknown theme '{theme}', expected one of: {', '.join(THEMES)}",
                fields=["theme"],
            )

        duration = fields["duration"]
        if isinstance(duration, bool) or not isinstance(duration, int) or duration < 1:
            raise ValidationFailed("Duration must be a positive number of days", fields=["duration"])

        start_now = fields.get("start_now", True)

        journey = Journey(
            user_id=self.user_id,
            title=fields["title"].strip(),
            description=fields["description"].strip(),
            habit=fields["habit"].strip(),
            theme=theme,
            duration=duration,
            started_at=_utcnow() if start_now else None,
            current_day=0,
            streak=0,
            truth_score=0,
            version=1,
        )

        plans = schedule_reflection_gates(duration)
        try:
            self.db.add(journey)
            self.db.flush()
            self.db.add_all(
                ReflectionGate(journey_id=journey.id, day=plan.day, prompt=plan.prompt, completed=False)
                for plan in plans
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("[JOURNEY] user=%s create failed, nothing was stored", self.user_id)
            raise

        self.db.refresh(journey)
        created = JourneyOut.model_validate(journey)
        logger.info(
            "[JOURNEY] user=%s created journey=%s duration=%s gates=%s",
            self.user_id, created.id, duration, [plan.day for plan in plans],
        )

        self.context.journeys = (created,) + tuple(self.context.journeys)
        if created.started_at is not None:
            # Newest started journey is the active one by definition.
            self.context.replace_active(self._snapshot(journey))
        return created

    def update_journey(self, journey_id: int, fields: Mapping[str, Any]) -> JourneyOut:
        journey = self._owned_journey(journey_id)
        values = self._validated_journey_update(journey, fields)
        return self._commit_journey_update(journey, values)

    def start_journey(self, journey_id: int) -> JourneyOut:
        journey = self._owned_journey(journey_id)
        if journey.started_at is not None:
            return JourneyOut.model_validate(journey)
        return self._commit_journey_update(journey, {"started_at": _utcnow()})

    def complete_journey(self, journey_id: int) -> JourneyOut:
        """Completion is always an explicit action; check-ins never set it."""
        journey = self._owned_journey(journey_id)
        if journey.completed_at is not None:
            return JourneyOut.model_validate(journey)
        if journey.started_at is None:
            raise ValidationFailed("A journey that has not started cannot be completed")
        return self._commit_journey_update(journey, {"completed_at": _utcnow()}, award=True)

    def delete_journey(self, journey_id: int) -> None:
        journey = self._owned_journey(journey_id)
        try:
            self.db.delete(journey)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        logger.info("[JOURNEY] user=%s deleted journey=%s", self.user_id, journey_id)

        self.context.journeys = tuple(j for j in self.context.journeys if j.id != journey_id)
        if self.context.is_active_journey(journey_id):
            self.load_active_journey()

    # -- check-ins ---------------------------------------------------------

    def create_check_in(self, fields: Mapping[str, Any]) -> CheckInOut:
        journey_id = fields.get("journey_id")
        day = fields.get("day")
        reflection = fields.get("reflection") or ""
        truth_rating = fields.get("truth_rating")
        text_input = fields.get("text_input")

        if day is None or isinstance(day, bool) or not isinstance(day, int) or day < 0:
            raise ValidationFailed("Check-in day must be a non-negative integer", fields=["day"])
        if len(reflection.strip()) < MIN_REFLECTION_LENGTH:
            raise ValidationFailed(
                f"Reflection must be at least {MIN_REFLECTION_LENGTH} characters",
                fields=["reflection"],
            )
        if text_input is not None and len(text_input) > MAX_AUX_TEXT_LENGTH:
            raise ValidationFailed(
                f"Text input must be at most {MAX_AUX_TEXT_LENGTH} characters",
                fields=["text_input"],
            )
        if truth_rating is not None and not (MIN_TRUTH_SCORE <= truth_rating <= MAX_TRUTH_SCORE):
            raise ValidationFailed("Truth rating must be between 0 and 10", fields=["truth_rating"])

        journey = self._owned_journey(journey_id)
        if journey.started_at is None:
            raise ValidationFailed("This journey has not started yet")
        if journey.completed_at is not None:
            raise ValidationFailed("This journey is already completed")

        gates = self.db.query(ReflectionGate).filter(ReflectionGate.journey_id == journey.id).all()
        gate = pending_gate(gates, day)
        if gate is not None:
            raise ReflectionGatePending(gate.id, gate.day)

        if not self.context.active_loaded:
            self.load_active_journey()
        active = self.context.active
        updates_aggregate = active is not None and active.journey.id == journey.id

        check_in = CheckIn(
            journey_id=journey.id,
            day=day,
            reflection=reflection.strip(),
            text_input=text_input,
            numeric_input=fields.get("numeric_input"),
            photo_url=fields.get("photo_url"),
            truth_rating=5 if truth_rating is None else truth_rating,
        )

        try:
            self.db.add(check_in)
            self.db.flush()

            if updates_aggregate:
                before = active.journey
                after = apply_check_in(
                    Aggregate(before.current_day, before.streak, before.truth_score),
                    day,
                    truth_rating,
                )
                expected = before.version if self.strict else None
                if not self._write_journey(journey.id, after.as_dict(), expected_version=expected):
                    raise ConflictError("Journey was updated by another check-in; reload and try again")

            evaluate_achievements(self.db, self.user_id)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if not _is_duplicate_check_in(exc):
                logger.exception("[CHECKIN] user=%s journey=%s day=%s rolled back", self.user_id, journey.id, day)
                raise
            logger.info("[CHECKIN] user=%s journey=%s duplicate day=%s", self.user_id, journey.id, day)
            raise ConflictError(f"A check-in for day {day} already exists") from exc
        except ConflictError:
            self.db.rollback()
            logger.warning("[CHECKIN] user=%s journey=%s stale aggregate, rolled back", self.user_id, journey.id)
            raise
        except SQLAlchemyError:
            self.db.rollback()
            raise

        self.db.refresh(check_in)
        created = CheckInOut.model_validate(check_in)
        logger.info(
            "[CHECKIN] user=%s journey=%s day=%s rating=%s aggregate=%s",
            self.user_id, journey.id, day, created.truth_rating, updates_aggregate,
        )

        if updates_aggregate:
            self.db.refresh(journey)
            updated = JourneyOut.model_validate(journey)
            self.context.replace_active(active.with_journey(updated).with_check_in(created))
            self.context.replace_journey(updated)
        return created

    # -- reflection gates --------------------------------------------------

    def complete_reflection_gate(
        self,
        gate_id: int,
        response: str,
        journey_id: Optional[int] = None,
    ) -> ReflectionGateOut:
        if len((response or "").strip()) < MIN_GATE_RESPONSE_LENGTH:
            raise ValidationFailed(
                f"Reflection must be at least {MIN_GATE_RESPONSE_LENGTH} characters",
                fields=["response"],
            )

        query = (
            self.db.query(ReflectionGate)
            .join(Journey, Journey.id == ReflectionGate.journey_id)
            .filter(ReflectionGate.id == gate_id, Journey.user_id == self.user_id)
        )
        if journey_id is not None:
            query = query.filter(ReflectionGate.journey_id == journey_id)
        gate = query.first()
        if gate is None:
            raise NotFound("Reflection gate not found")
        if gate.journey.started_at is None:
            raise ValidationFailed("This journey has not started yet")
        if gate.completed:
            raise ConflictError(f"Day {gate.day} reflection gate is already completed")

        try:
            # Only an incomplete gate may transition; a racing completion loses.
            updated = (
                self.db.query(ReflectionGate)
                .filter(ReflectionGate.id == gate.id, ReflectionGate.completed.is_(False))
                .update(
                    {"completed": True, "response": response.strip(), "completed_at": _utcnow()},
                    synchronize_session=False,
                )
            )
            if not updated:
                raise ConflictError(f"Day {gate.day} reflection gate is already completed")
            evaluate_achievements(self.db, self.user_id)
            self.db.commit()
        except ConflictError:
            self.db.rollback()
            raise
        except SQLAlchemyError:
            self.db.rollback()
            raise

        self.db.refresh(gate)
        completed = ReflectionGateOut.model_validate(gate)
        logger.info("[GATE] user=%s journey=%s day=%s completed", self.user_id, gate.journey_id, gate.day)

        if self.context.is_active_journey(gate.journey_id):
            self.context.replace_active(self.context.active.with_gate(completed))
        return completed

    # -- internals ---------------------------------------------------------

    def _owned_journey(self, journey_id: Any) -> Journey:
        # Someone else's journey is indistinguishable from a missing one.
        journey = None
        if journey_id is not None:
            journey = (
                self.db.query(Journey)
                .filter(Journey.id == journey_id, Journey.user_id == self.user_id)
                .first()
            )
        if journey is None:
            raise NotFound("Journey not found")
        return journey

    def _snapshot(self, journey: Journey) -> JourneySnapshot:
        check_ins = (
            self.db.query(CheckIn)
            .filter(CheckIn.journey_id == journey.id)
            .order_by(CheckIn.day.asc())
            .all()
        )
        gates = (
            self.db.query(ReflectionGate)
            .filter(ReflectionGate.journey_id == journey.id)
            .order_by(ReflectionGate.day.asc())
            .all()
        )
        return JourneySnapshot(
            journey=JourneyOut.model_validate(journey),
            check_ins=tuple(CheckInOut.model_validate(c) for c in check_ins),
            reflection_gates=tuple(ReflectionGateOut.model_validate(g) for g in gates),
        )

    def _validated_journey_update(self, journey: Journey, fields: Mapping[str, Any]) -> dict:
        unknown = sorted(set(fields) - UPDATABLE_JOURNEY_FIELDS)
        if unknown:
            raise ValidationFailed(f"Fields cannot be updated: {', '.join(unknown)}", fields=unknown)

        values = dict(fields)
        if journey.started_at is None:
            drafted = sorted(set(values) & AGGREGATE_FIELDS)
            if drafted:
                raise ValidationFailed(
                    f"A journey that has not started has no progress to set: {', '.join(drafted)}",
                    fields=drafted,
                )
        for name in ("title", "description", "habit"):
            if name in values and _is_blank(values[name]):
                raise ValidationFailed(f"{name} cannot be empty", fields=[name])
        if "theme" in values and values["theme"] not in THEMES:
            raise ValidationFailed(f"Unknown theme '{values['theme']}'", fields=["theme"])
        if "current_day" in values and values["current_day"] < (journey.current_day or 0):
            raise ValidationFailed("current_day can never go backwards", fields=["current_day"])
        if "streak" in values and values["streak"] < 0:
            raise ValidationFailed("streak cannot be negative", fields=["streak"])
        if "truth_score" in values and not (MIN_TRUTH_SCORE <= values["truth_score"] <= MAX_TRUTH_SCORE):
            raise ValidationFailed("truth_score must be between 0 and 10", fields=["truth_score"])
        if "completed_at" in values and values["completed_at"] is None and journey.completed_at is not None:
            raise ValidationFailed("A completed journey cannot be reopened", fields=["completed_at"])
        if "started_at" in values and values["started_at"] is None and journey.started_at is not None:
            raise ValidationFailed("A started journey cannot return to draft", fields=["started_at"])
        return values

    def _write_journey(
        self,
        journey_id: int,
        values: Mapping[str, Any],
        expected_version: Optional[int] = None,
    ) -> int:
        """UPDATE scoped to (id, user_id), optionally guarded by version. Returns rowcount."""
        query = self.db.query(Journey).filter(
            Journey.id == journey_id,
            Journey.user_id == self.user_id,
        )
        if expected_version is not None:
            query = query.filter(Journey.version == expected_version)

        payload = dict(values)
        payload["version"] = Journey.version + 1
        return query.update(payload, synchronize_session=False)

    def _commit_journey_update(self, journey: Journey, values: Mapping[str, Any], award: bool = False) -> JourneyOut:
        was_active = self.context.is_active_journey(journey.id)
        try:
            if not self._write_journey(journey.id, values):
                raise NotFound("Journey not found")
            if award:
                evaluate_achievements(self.db, self.user_id)
            self.db.commit()
        except (NotFound, SQLAlchemyError):
            self.db.rollback()
            raise

        self.db.refresh(journey)
        updated = JourneyOut.model_validate(journey)
        logger.info("[JOURNEY] user=%s updated journey=%s fields=%s", self.user_id, journey.id, sorted(values))

        self.context.replace_journey(updated)
        still_active = updated.started_at is not None and updated.completed_at is None
        if was_active and still_active:
            self.context.replace_active(self.context.active.with_journey(updated))
        elif was_active or "started_at" in values or "completed_at" in values:
            # Which journey counts as active may have changed.
            self.load_active_journey()
        return updated
