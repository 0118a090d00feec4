"""
Configuration constants for the application.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
env_path = Path(__file__).resolve().parent.parent.parent / '.env'
load_dotenv(dotenv_path=env_path)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        print(f"[CONFIG] {name}={raw!r} is not an integer, using {default}", flush=True)
        return default


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


# Calendar-day comparisons (one check-in per day, "is today") use this zone.
QUESTLINE_TIMEZONE = os.getenv("QUESTLINE_TIMEZONE", "UTC").strip() or "UTC"

# Journey form bounds. The engine itself tolerates durations outside them.
MIN_JOURNEY_DURATION = 7
MAX_JOURNEY_DURATION = 90

# Check-in and reflection gate text policies
MIN_REFLECTION_LENGTH = _env_int("MIN_REFLECTION_LENGTH", 5)
MIN_GATE_RESPONSE_LENGTH = _env_int("MIN_GATE_RESPONSE_LENGTH", 20)
MAX_AUX_TEXT_LENGTH = _env_int("MAX_AUX_TEXT_LENGTH", 280)

# Photo uploads (JPG / PNG only)
MAX_PHOTO_BYTES = _env_int("MAX_PHOTO_BYTES", 5 * 1024 * 1024)
MEDIA_DIR = Path(os.getenv("MEDIA_DIR", "./media")).resolve()

# When on, aggregate writes carry the journey version they were computed from
# and a stale snapshot is rejected as a conflict. Off = last writer wins.
STRICT_AGGREGATE_UPDATES = _env_flag("STRICT_AGGREGATE_UPDATES", True)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

ENABLE_DEBUG_ROUTES = _env_flag("ENABLE_DEBUG_ROUTES", False)
