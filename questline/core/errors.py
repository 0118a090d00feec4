"""
Domain failures raised by the journey layer.

Routes never build error bodies by hand: main.py registers a single handler
that renders any QuestlineError as {"error": code, "detail": message}.
"""
from typing import Optional


class QuestlineError(Exception):
    code = "error"
    status_code = 400

    def __init__(self, message: str, extra: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}

    def to_dict(self) -> dict:
        body = {"error": self.code, "detail": self.message}
        body.update(self.extra)
        return body


class ValidationFailed(QuestlineError):
    """Rejected before any write was attempted."""

    code = "validation_error"
    status_code = 422

    def __init__(self, message: str, fields: Optional[list[str]] = None):
        super().__init__(message, {"fields": fields} if fields else None)
        self.fields = fields or []


class ConflictError(QuestlineError):
    code = "conflict"
    status_code = 409


class ReflectionGatePending(ConflictError):
    """An unanswered reflection gate must be completed before checking in."""

    code = "reflection_gate_pending"

    def __init__(self, gate_id: int, day: int):
        super().__init__(
            f"Day {day} reflection gate must be completed before checking in",
            {"gate_id": gate_id, "gate_day": day},
        )
        self.gate_id = gate_id
        self.day = day


class NotFound(QuestlineError):
    # Also used for records owned by someone else.
    code = "not_found"
    status_code = 404
