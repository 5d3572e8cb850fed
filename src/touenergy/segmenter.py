"""Split a usage window into runs that each sit under one rate period.

Two implementations are provided. ``segment`` walks the window a minute
at a time and is the reference behaviour. ``segment_by_boundaries`` jumps
straight from one period boundary to the next, which is what batch
recomputation over long sessions should use. Both return the same list.
"""

import bisect
from functools import lru_cache

from .models import MINUTES_PER_DAY, RatePeriod, RawSegment, Schedule
from .validation import parse_time


def period_covers(period: RatePeriod, minute_of_day: int) -> bool:
    """Check if a minute of the day falls within a period (handles overnight periods)."""
    start = period.start_minute
    end = period.end_minute
    if start <= end:
        return start <= minute_of_day <= end
    else:
        # Overnight period (e.g., 21:00 to 07:59)
        return minute_of_day >= start or minute_of_day <= end


def period_day_ranges(period: RatePeriod) -> list[tuple[int, int]]:
    """Half-open minute-of-day ranges covered by a period."""
    start = period.start_minute
    end = period.end_minute
    if start <= end:
        return [(start, end + 1)]
    return [(start, MINUTES_PER_DAY), (0, end + 1)]


def find_period_index(minute_of_day: int, schedule: Schedule) -> int | None:
    """Index of the first period covering a minute of the day, if any."""
    for index, period in enumerate(schedule.periods):
        if period_covers(period, minute_of_day):
            return index
    return None


def usage_window(start_time: str, end_time: str) -> tuple[int, int]:
    """Absolute minute range [start, end) for a session.

    An end at or before the start rolls over into the next day.
    """
    start = parse_time(start_time)
    end = parse_time(end_time)
    if end <= start:
        end += MINUTES_PER_DAY
    return start, end


def segment(start_time: str, end_time: str, schedule: Schedule) -> list[RawSegment]:
    """Partition a usage window minute by minute.

    Consecutive minutes under the same period form one segment. Minutes
    no period covers contribute nothing.
    """
    start, end = usage_window(start_time, end_time)
    segments = []
    current = None
    run_start = start

    for minute in range(start, end):
        index = find_period_index(minute % MINUTES_PER_DAY, schedule)
        if index != current:
            if current is not None:
                segments.append(RawSegment(schedule.periods[current], run_start, minute))
            current = index
            run_start = minute

    if current is not None:
        segments.append(RawSegment(schedule.periods[current], run_start, end))

    return segments


@lru_cache(maxsize=32)
def _day_ranges(schedule: Schedule) -> tuple[list[int], list[tuple[int, int, int]]]:
    ranges = sorted(
        (lo, hi, index)
        for index, period in enumerate(schedule.periods)
        for lo, hi in period_day_ranges(period)
    )
    return [lo for lo, _, _ in ranges], ranges


def segment_by_boundaries(start_time: str, end_time: str, schedule: Schedule) -> list[RawSegment]:
    """Partition a usage window by jumping between period boundaries.

    Stretches no period covers are skipped, as in ``segment``. Overlapping
    periods are not supported; Schedule rejects them on construction.
    """
    start, end = usage_window(start_time, end_time)
    starts, ranges = _day_ranges(schedule)
    segments = []
    last_index = None

    minute = start
    while minute < end:
        minute_of_day = minute % MINUTES_PER_DAY
        day_offset = minute - minute_of_day
        i = bisect.bisect_right(starts, minute_of_day) - 1

        if i < 0 or minute_of_day >= ranges[i][1]:
            # Gap: resume at the next range start or the next midnight
            next_start = starts[i + 1] if i + 1 < len(starts) else MINUTES_PER_DAY
            minute = min(end, day_offset + next_start)
            last_index = None
            continue

        _, hi, index = ranges[i]
        run_end = min(end, day_offset + hi)

        if index == last_index:
            # Same period continuing across midnight
            previous = segments[-1]
            segments[-1] = RawSegment(previous.period, previous.start_minute, run_end)
        else:
            segments.append(RawSegment(schedule.periods[index], minute, run_end))
            last_index = index
        minute = run_end

    return segments
