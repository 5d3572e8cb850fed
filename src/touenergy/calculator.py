"""Energy and cost calculation for device usage sessions."""

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from .models import MINUTES_PER_DAY, BreakdownRow, RawSegment, ScheduleTable, UsageCalculation, UsageSession
from .segmenter import segment_by_boundaries
from .tariffs import DEFAULT_SCHEDULE_TABLE, resolve_schedule
from .validation import (
    minutes_to_time,
    parse_usage_date,
    validate_time_range,
    validate_wattage,
)

logger = logging.getLogger(__name__)


def calculate_kwh(wattage: float, hours: float) -> float:
    """Energy in kWh for a constant draw over a number of hours."""
    return (wattage / 1000) * hours


def calculate_duration(start_time: str, end_time: str) -> float:
    """Hours between two HH:MM times, rolling past midnight when end <= start."""
    start, end = validate_time_range(start_time, end_time)
    if end <= start:
        end += MINUTES_PER_DAY
    return (end - start) / 60


def round_half_up(value: float, places: int) -> float:
    """Round to a number of decimal places with halves going up (0.25 -> 0.3)."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def accumulate(wattage: float, raw_segments: list[RawSegment]) -> UsageCalculation:
    """Sum raw segments into one breakdown row per rate period.

    Segments sharing a period name and rate are merged, so summer off-peak
    before and after the peak window ends up in one row. Rows keep the
    order in which each period was first touched.
    """
    # (name, rate) -> [minutes, first start minute, last end minute]
    rows: dict[tuple, list[int]] = {}
    for seg in raw_segments:
        key = (seg.period.name, seg.period.rate)
        if key not in rows:
            rows[key] = [0, seg.start_minute, seg.end_minute]
        entry = rows[key]
        entry[0] += seg.minutes
        entry[2] = seg.end_minute

    breakdown = []
    total_minutes = 0
    total_cost = 0.0
    for (name, rate), (minutes, first_start, last_end) in rows.items():
        hours = minutes / 60
        kwh = calculate_kwh(wattage, hours)
        cost = kwh * rate
        total_minutes += minutes
        total_cost += cost
        breakdown.append(
            BreakdownRow(
                rate_period=name,
                hours=round_half_up(hours, 1),
                kwh=round_half_up(kwh, 2),
                rate=rate,
                cost=round_half_up(cost, 2),
                start_time=minutes_to_time(first_start),
                end_time=minutes_to_time(last_end),
            )
        )

    total_hours = total_minutes / 60
    return UsageCalculation(
        total_kwh=round_half_up(calculate_kwh(wattage, total_hours), 2),
        total_cost=round_half_up(total_cost, 2),
        duration_hours=round_half_up(total_hours, 1),
        breakdown=breakdown,
    )


def calculate_usage_cost(
    wattage: float,
    start_time: str,
    end_time: str,
    usage_date: str | date,
    table: ScheduleTable = DEFAULT_SCHEDULE_TABLE,
) -> UsageCalculation:
    """Calculate energy and time-of-use cost for a usage session.

    The whole session is priced against the schedule for ``usage_date``,
    including any part that runs past midnight.

    Args:
        wattage: Device power draw in watts (0 allowed)
        start_time: Session start, HH:MM
        end_time: Session end, HH:MM; at or before start means the next day
        usage_date: Date the session started, YYYY-MM-DD or a date
        table: Schedule table to price against

    Returns:
        UsageCalculation with totals and a per-period breakdown

    Raises:
        UsageValidationError: If any input is malformed
    """
    wattage = validate_wattage(wattage)
    validate_time_range(start_time, end_time)
    day = parse_usage_date(usage_date)

    schedule = resolve_schedule(day, table)
    segments = segment_by_boundaries(start_time, end_time, schedule)
    result = accumulate(wattage, segments)

    logger.debug(
        "Costed %sW %s-%s on %s (%s): %s kWh, %s",
        wattage,
        start_time,
        end_time,
        day.isoformat(),
        schedule.name,
        result.total_kwh,
        result.total_cost,
    )
    return result


def calculate_session_cost(
    session: UsageSession, table: ScheduleTable = DEFAULT_SCHEDULE_TABLE
) -> UsageCalculation:
    """Calculate cost for a UsageSession record."""
    return calculate_usage_cost(
        session.wattage, session.start_time, session.end_time, session.usage_date, table
    )
