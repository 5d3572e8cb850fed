"""Input validation for usage sessions.

Everything entering the calculator passes through here first; the
segmenter and accumulator assume well-formed input.
"""

import logging
import math
import re
from datetime import date, datetime

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Above this a device reading is almost certainly a typo
PLAUSIBLE_MAX_WATTAGE = 50_000

# Sessions longer than this are allowed but probably mistyped
LONG_SESSION_HOURS = 12


class TouEnergyError(Exception):
    """Base exception for tou-energy errors."""
    pass


class UsageValidationError(TouEnergyError, ValueError):
    """Raised when caller-supplied usage input is malformed."""
    pass


class ScheduleError(TouEnergyError, ValueError):
    """Raised when a schedule or tariff config is malformed."""
    pass


def validate_time(time_str: str) -> str:
    """Check a HH:MM (24-hour) string and return it unchanged."""
    if not isinstance(time_str, str) or not time_str:
        raise UsageValidationError("Time is required")
    if not TIME_PATTERN.match(time_str):
        raise UsageValidationError(f"Invalid time format {time_str!r} (use HH:MM)")
    return time_str


def parse_time(time_str: str) -> int:
    """Parse a HH:MM string to minutes since midnight."""
    validate_time(time_str)
    hours, minutes = time_str.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Format minutes (possibly past midnight) as a HH:MM time of day."""
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def validate_time_range(start_time: str, end_time: str) -> tuple[int, int]:
    """Validate a start/end pair and return their minutes since midnight.

    An end at or before the start means the session runs past midnight,
    except that identical times are rejected outright.
    """
    start = parse_time(start_time)
    end = parse_time(end_time)
    if start == end:
        raise UsageValidationError("End time must be different from start time")
    duration_minutes = (end - start) % MINUTES_PER_DAY
    if duration_minutes > LONG_SESSION_HOURS * 60:
        logger.warning(
            "Usage %s-%s runs %.1f hours (over %s)",
            start_time,
            end_time,
            duration_minutes / 60,
            LONG_SESSION_HOURS,
        )
    return start, end


def validate_wattage(wattage: float) -> float:
    """Reject negative, non-numeric or non-finite wattage."""
    if isinstance(wattage, bool) or not isinstance(wattage, (int, float)):
        raise UsageValidationError(f"Wattage must be a number, got {wattage!r}")
    if not math.isfinite(wattage):
        raise UsageValidationError(f"Wattage must be finite, got {wattage}")
    if wattage < 0:
        raise UsageValidationError(f"Wattage cannot be negative, got {wattage}")
    if wattage > PLAUSIBLE_MAX_WATTAGE:
        logger.warning("Wattage %s W is unusually high (over %s W)", wattage, PLAUSIBLE_MAX_WATTAGE)
    return float(wattage)


def validate_schedule(name: str, periods) -> None:
    """Check that a schedule's periods cover every minute of the day exactly once."""
    if not periods:
        raise ScheduleError(f"Schedule '{name}' has no rate periods")

    coverage = [0] * MINUTES_PER_DAY
    for period in periods:
        label = getattr(period.name, "value", period.name)
        try:
            start = parse_time(period.start)
            end = parse_time(period.end)
        except UsageValidationError as e:
            raise ScheduleError(f"Schedule '{name}', {label}: {e}") from e
        if not isinstance(period.rate, (int, float)) or not math.isfinite(period.rate) or period.rate < 0:
            raise ScheduleError(f"Schedule '{name}', {label}: invalid rate {period.rate!r}")

        if start <= end:
            covered = range(start, end + 1)
        else:
            # Overnight period (e.g., 21:00 to 07:59)
            covered = [*range(start, MINUTES_PER_DAY), *range(0, end + 1)]
        for minute in covered:
            coverage[minute] += 1

    for minute, count in enumerate(coverage):
        if count == 0:
            raise ScheduleError(f"Schedule '{name}' has a gap at {minutes_to_time(minute)}")
        if count > 1:
            raise ScheduleError(f"Schedule '{name}' has overlapping periods at {minutes_to_time(minute)}")


def parse_usage_date(value: str | date) -> date:
    """Parse a YYYY-MM-DD string (or pass a date through)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise UsageValidationError(f"Invalid date {value!r} (use YYYY-MM-DD)")
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise UsageValidationError(f"Invalid date {value!r}: {e}") from e
