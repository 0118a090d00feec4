from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from questline.core.config import MAX_JOURNEY_DURATION, MIN_JOURNEY_DURATION

Theme = Literal["fantasy", "sci-fi", "adventure", "mystery"]


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class JourneyCreate(BaseModel):
    # Presence of the five story fields is checked by the repository so the
    # error can name every missing one at once.
    title: Optional[str] = None
    description: Optional[str] = None
    habit: Optional[str] = None
    duration: Optional[int] = Field(None, ge=MIN_JOURNEY_DURATION, le=MAX_JOURNEY_DURATION)
    theme: Optional[Theme] = None
    start_now: bool = True


class JourneyUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    habit: Optional[str] = None
    theme: Optional[Theme] = None
    current_day: Optional[int] = Field(None, ge=0)
    streak: Optional[int] = Field(None, ge=0)
    truth_score: Optional[int] = Field(None, ge=0, le=10)


class CheckInCreate(BaseModel):
    day: int = Field(..., ge=0)
    reflection: str
    truth_rating: Optional[int] = Field(None, ge=0, le=10)
    text_input: Optional[str] = None
    numeric_input: Optional[float] = None
    photo_url: Optional[str] = None


class ReflectionGateComplete(BaseModel):
    response: str


# ---------------------------------------------------------------------------
# Records (frozen: snapshots hand these out and never patch them in place)
# ---------------------------------------------------------------------------

class JourneyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    user_id: int
    title: str
    description: str
    habit: str
    theme: str
    duration: int
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    current_day: int = 0
    streak: int = 0
    truth_score: int = 0
    version: int = 1


class CheckInOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    journey_id: int
    day: int
    reflection: str
    text_input: Optional[str] = None
    numeric_input: Optional[float] = None
    photo_url: Optional[str] = None
    truth_rating: int
    created_at: Optional[datetime] = None


class ReflectionGateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    journey_id: int
    day: int
    completed: bool
    prompt: str
    response: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# View model for the journey page
# ---------------------------------------------------------------------------

class Milestone(BaseModel):
    position: int
    reached: bool


class JourneyView(BaseModel):
    journey: JourneyOut
    status: str
    progress: int
    narrative: str
    reflection_prompt: str
    milestones: List[Milestone]
    is_active: bool
    can_check_in: bool
    next_action: str
    pending_gate: Optional[ReflectionGateOut] = None
    check_ins: List[CheckInOut]
    recent_check_ins: List[CheckInOut]
    reflection_gates: List[ReflectionGateOut]
