from datetime import datetime, timedelta, timezone

from questline.journeys import progress
from questline.journeys.progress import (
    NARRATIVES,
    REFLECTION_PROMPTS,
    can_check_in_today,
    format_date,
    is_active,
    journey_status,
    narrative_for,
    progress_milestones,
    progress_percent,
    reflection_prompt_for,
    round_half_up,
)

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)
START = "2024-01-01T00:00:00Z"


def test_progress_percent_basic():
    assert progress_percent(START, 5, 10) == 50


def test_progress_percent_without_start_is_zero():
    assert progress_percent("", 5, 10) == 0
    assert progress_percent(None, 5, 10) == 0


def test_progress_percent_complete_and_clamped():
    assert progress_percent(START, 10, 10) == 100
    assert progress_percent(START, 15, 10) == 100


def test_progress_percent_rounds_half_up():
    # 1/8 = 12.5%; Python's round() would give 12
    assert progress_percent(START, 1, 8) == 13
    assert progress_percent(START, 1, 3) == 33


def test_progress_percent_stays_in_range():
    for total in (1, 7, 30, 90):
        for day in range(0, total * 2):
            assert 0 <= progress_percent(START, day, total) <= 100


def test_progress_percent_zero_duration():
    assert progress_percent(START, 3, 0) == 0


def test_round_half_up():
    assert round_half_up(6.5) == 7
    assert round_half_up(7.5) == 8
    assert round_half_up(7.49) == 7


def test_is_active():
    assert is_active(None, None) is False
    assert is_active("2024-01-01T00:00:00Z", None, now=NOW) is True
    assert is_active("2024-01-01T00:00:00Z", "2024-01-31T00:00:00Z", now=NOW) is False


def test_is_active_future_start():
    tomorrow = NOW + timedelta(days=1)
    assert is_active(tomorrow, None, now=NOW) is False
    assert is_active(NOW, None, now=NOW) is True


def test_can_check_in_without_start():
    for day in (0, 1, 5):
        assert can_check_in_today(None, day, None, now=NOW) is False
        assert can_check_in_today(None, day, NOW, now=NOW) is False


def test_cannot_check_in_twice_on_same_calendar_day():
    assert can_check_in_today(NOW, 1, NOW, now=NOW) is False
    earlier_today = NOW.replace(hour=0, minute=5)
    assert can_check_in_today("2024-05-01T00:00:00Z", 3, earlier_today, now=NOW) is False


def test_can_check_in_day_after_start():
    yesterday = NOW - timedelta(days=1)
    assert can_check_in_today(yesterday, 1, yesterday, now=NOW) is True


def test_missed_days_can_be_caught_up():
    week_ago = NOW - timedelta(days=7)
    assert can_check_in_today(week_ago, 2, week_ago + timedelta(days=1), now=NOW) is True


def test_future_journey_day_is_not_open_yet():
    assert can_check_in_today(NOW, 3, None, now=NOW) is False


def test_naive_timestamps_are_utc():
    assert can_check_in_today("2024-05-09 08:00:00", 1, "2024-05-10 01:00:00", now=NOW) is False


def test_narrative_thresholds():
    lines = NARRATIVES["fantasy"]
    assert narrative_for("fantasy", 0, 30) == lines[0]
    assert narrative_for("fantasy", 5, 30) == lines[1]
    assert narrative_for("fantasy", 10, 30) == lines[2]
    assert narrative_for("fantasy", 15, 30) == lines[3]
    assert narrative_for("fantasy", 25, 30) == lines[4]
    assert narrative_for("fantasy", 30, 30) == lines[5]


def test_narrative_every_theme():
    for theme in ("fantasy", "sci-fi", "adventure", "mystery"):
        narrative = narrative_for(theme, 5, 30)
        assert narrative in NARRATIVES[theme]


def test_narrative_unknown_theme_falls_back_to_adventure():
    assert narrative_for("western", 0, 30) == NARRATIVES["adventure"][0]


def test_reflection_prompts_cycle():
    size = len(REFLECTION_PROMPTS)
    assert size == 10
    assert reflection_prompt_for(1, "fantasy") == reflection_prompt_for(1 + size, "fantasy")
    assert reflection_prompt_for(1, "fantasy") != reflection_prompt_for(2, "fantasy")
    assert reflection_prompt_for(0, "mystery") == "How has this practice affected your energy levels today?"


def test_format_date():
    assert format_date("2024-01-01T00:00:00Z") == "Jan 1, 2024"
    assert format_date(None) == ""


def test_format_date_uses_configured_timezone(monkeypatch):
    monkeypatch.setattr(progress, "QUESTLINE_TIMEZONE", "America/New_York")
    # 03:00 UTC on Jan 1 is still New Year's Eve in New York
    assert format_date("2024-01-01T03:00:00Z") == "Dec 31, 2023"
    assert format_date("2024-01-01T12:00:00Z") == "Jan 1, 2024"


def test_progress_milestones():
    markers = progress_milestones(50)
    assert [m["position"] for m in markers] == [0, 25, 50, 75, 100]
    assert [m["reached"] for m in markers] == [True, True, True, False, False]


def test_journey_status():
    assert journey_status(None, None) == "Not Started"
    assert journey_status(START, None) == "In Progress"
    assert journey_status(START, "2024-01-31T00:00:00Z") == "Completed"
