"""
Pure helpers for journey progress, eligibility and narrative text.

Nothing in here touches the database. Dates may be passed as datetimes,
ISO-8601 strings or None; naive datetimes are taken to be UTC. Calendar-day
comparisons ("is today") happen in QUESTLINE_TIMEZONE.
"""
import math
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from questline.core.config import QUESTLINE_TIMEZONE

DateLike = Union[datetime, date, str, None]

NARRATIVES = {
    "fantasy": [
        "Your journey begins in a mystical forest. The path ahead is shrouded in mist, but you feel a calling to move forward.",
        "You've discovered an ancient map leading to a forgotten temple. Your daily practice is like a torch illuminating the way.",
        "The village elder has recognized your dedication. Your quest gains momentum as you master new skills.",
        "Halfway through your quest, you've earned the respect of the woodland creatures. They guide you through shortcuts unknown to common travelers.",
        "The enchanted forest opens to reveal vistas beyond imagination. Your journey's end is in sight, but the greatest challenges await.",
        "You stand victorious! The habit you've mastered has transformed you into a legendary hero of your own tale.",
    ],
    "sci-fi": [
        "System initialization complete. Your neural enhancement program has begun. Each practice strengthens your connection.",
        "Upgrades detected in cognitive systems. Your consistent efforts are optimizing performance beyond expected parameters.",
        "You've reached Level 2 clearance. Advanced techniques are now available as your neural pathways strengthen.",
        "The AI core recognizes your dedication. You're halfway to full system integration with your new habit protocol.",
        "Your consistency has unlocked hidden subroutines. The full potential of your habit enhancement is becoming clear.",
        "Mission accomplished! Your habit is now fully integrated into your operating system. You've evolved beyond your former limitations.",
    ],
    "adventure": [
        "Your backpack is packed and your boots are laced. The journey of a thousand miles begins with this single step.",
        "You've crossed the first mountain range. The view from here shows how far you've come already.",
        "Local villagers speak of your determination. Your reputation as an adventurer grows with each consistent day.",
        "The halfway mark! You've adapted to the challenges of the trail, moving with newfound confidence.",
        "Seasoned travelers nod with respect as you pass. Your journey is inspiring others to begin their own.",
        "Summit reached! Standing atop the peak, you can see both where you began and the endless horizons now open to you.",
    ],
    "mystery": [
        "A mysterious letter has set you on this path. Each practice uncovers a new clue to the greater puzzle.",
        "Strange symbols begin to make sense. Your consistent investigation is yielding results.",
        "The plot thickens! Your dedication has revealed connections previously hidden from view.",
        "Halfway through the investigation, key witnesses are coming forward. Your reputation for thoroughness precedes you.",
        "The final pieces of the puzzle are within reach. Your persistence has unraveled most of the mystery.",
        "Case closed! Your methodical approach has solved what others thought unsolvable. This habit has transformed you.",
    ],
}

# (minimum progress percent, narrative index), highest first
NARRATIVE_THRESHOLDS = ((100, 5), (80, 4), (50, 3), (30, 2), (10, 1))

REFLECTION_PROMPTS = [
    "How has this practice affected your energy levels today?",
    "What obstacles did you overcome to maintain your habit today?",
    "How does this habit connect to your larger goals?",
    "What would make tomorrow's practice even better?",
    "How has your perspective changed since beginning this journey?",
    "What unexpected benefits have you noticed from this habit?",
    "How does this habit make you feel about yourself?",
    "What would you tell someone just starting this same habit?",
    "How has this practice affected your relationships with others?",
    "What have you learned about yourself through this practice?",
]

MILESTONE_MARKERS = (0, 25, 50, 75, 100)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def local_zone():
    try:
        return ZoneInfo(QUESTLINE_TIMEZONE)
    except ZoneInfoNotFoundError:
        return timezone.utc


def to_datetime(value: DateLike) -> Optional[datetime]:
    """Coerce a date-like value to an aware datetime (None / "" -> None)."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    elif not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _now(now: DateLike) -> datetime:
    return to_datetime(now) or datetime.now(timezone.utc)


def _local_date(value: datetime) -> date:
    return value.astimezone(local_zone()).date()


def format_date(value: DateLike) -> str:
    """Display date, e.g. 'Jan 1, 2024'. Empty string for no date."""
    moment = to_datetime(value)
    if moment is None:
        return ""
    moment = moment.astimezone(local_zone())
    return f"{moment.strftime('%b')} {moment.day}, {moment.year}"


def progress_percent(start_date: DateLike, current_day: int, total_days: int) -> int:
    """
    Percent of the journey done, driven by current_day rather than the clock.
    0 for a journey that has not started, capped at 100.
    """
    if not start_date:
        return 0
    if not total_days or total_days <= 0:
        return 0
    return min(round_half_up(current_day / total_days * 100), 100)


def is_active(start_date: DateLike, completed_date: DateLike, now: DateLike = None) -> bool:
    start = to_datetime(start_date)
    if start is None:
        return False
    if to_datetime(completed_date) is not None:
        return False
    return _now(now) >= start


def can_check_in_today(
    start_date: DateLike,
    current_day: int,
    last_check_in: DateLike,
    now: DateLike = None,
) -> bool:
    """
    At most one check-in per calendar day; otherwise allowed once the
    journey day being recorded has arrived. Past days are always open so
    missed days can be caught up.
    """
    start = to_datetime(start_date)
    if start is None:
        return False

    moment = _now(now)
    today = _local_date(moment)

    last = to_datetime(last_check_in)
    if last is not None and _local_date(last) == today:
        return False

    day_to_check = start + timedelta(days=current_day or 0)
    return _local_date(day_to_check) == today or day_to_check < moment


def narrative_for(theme: str, current_day: int, total_days: int) -> str:
    lines = NARRATIVES.get(theme) or NARRATIVES["adventure"]
    if not total_days or total_days <= 0:
        progress = 0
    else:
        progress = math.floor(current_day / total_days * 100)

    for threshold, index in NARRATIVE_THRESHOLDS:
        if progress >= threshold:
            return lines[index]
    return lines[0]


def reflection_prompt_for(day: int, theme: str) -> str:
    # TODO: theme-specific prompt sets; every theme shares one list for now
    return REFLECTION_PROMPTS[day % len(REFLECTION_PROMPTS)]


def progress_milestones(progress: int) -> list[dict]:
    return [{"position": marker, "reached": progress >= marker} for marker in MILESTONE_MARKERS]


def journey_status(started_at: DateLike, completed_at: DateLike) -> str:
    if to_datetime(completed_at) is not None:
        return "Completed"
    if to_datetime(started_at) is not None:
        return "In Progress"
    return "Not Started"
