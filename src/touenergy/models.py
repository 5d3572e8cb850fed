"""Data models for tariffs, usage sessions and cost breakdowns."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from .validation import MINUTES_PER_DAY, ScheduleError, validate_schedule


class RatePeriodName(str, Enum):
    """Named tariff windows. Values are the display labels."""

    OFF_PEAK = "Off-Peak"
    MID_PEAK = "Mid-Peak"
    ON_PEAK = "On-Peak"
    SUPER_OFF_PEAK = "Super Off-Peak"


class Season(str, Enum):
    SUMMER = "summer"
    WINTER = "winter"


class DayType(str, Enum):
    WEEKDAY = "weekday"
    WEEKEND = "weekend"


@dataclass(frozen=True)
class RatePeriod:
    """A rate period within a schedule.

    Both ends are inclusive at minute resolution, so 16:00-20:59 covers
    five full hours. An end before the start crosses midnight.
    """

    name: RatePeriodName
    start: str  # HH:MM format
    end: str  # HH:MM format
    rate: float  # currency units per kWh

    def __post_init__(self):
        try:
            object.__setattr__(self, "name", RatePeriodName(self.name))
        except ValueError as e:
            raise ScheduleError(f"unknown rate period {self.name!r}") from e

    @property
    def start_minute(self) -> int:
        hours, minutes = self.start.split(":")
        return int(hours) * 60 + int(minutes)

    @property
    def end_minute(self) -> int:
        hours, minutes = self.end.split(":")
        return int(hours) * 60 + int(minutes)

    @property
    def crosses_midnight(self) -> bool:
        return self.end_minute < self.start_minute


@dataclass(frozen=True)
class Schedule:
    """An ordered list of rate periods covering one whole day.

    Construction fails with ScheduleError unless the periods tile all
    1440 minutes exactly once.
    """

    name: str
    periods: tuple[RatePeriod, ...]

    def __post_init__(self):
        object.__setattr__(self, "periods", tuple(self.periods))
        validate_schedule(self.name, self.periods)


@dataclass(frozen=True)
class ScheduleTable:
    """Fixed lookup of (season, day type) to schedule."""

    winter: Schedule
    summer_weekday: Schedule
    summer_weekend: Schedule
    summer_months: frozenset[int] = frozenset({6, 7, 8, 9})

    def schedules(self) -> dict[str, Schedule]:
        return {
            "winter": self.winter,
            "summer_weekday": self.summer_weekday,
            "summer_weekend": self.summer_weekend,
        }


@dataclass(frozen=True)
class RawSegment:
    """A contiguous run of minutes under one rate period.

    Minutes are absolute from the start of the usage date, so a session
    crossing midnight produces values above 1440.
    """

    period: RatePeriod
    start_minute: int
    end_minute: int  # exclusive

    @property
    def minutes(self) -> int:
        return self.end_minute - self.start_minute


@dataclass
class UsageSession:
    """A logged device usage session."""

    wattage: float
    start_time: str  # HH:MM format
    end_time: str  # HH:MM format
    usage_date: date


@dataclass
class BreakdownRow:
    """Energy and cost for one rate period within a session."""

    rate_period: RatePeriodName
    hours: float
    kwh: float
    rate: float
    cost: float
    start_time: str
    end_time: str

    def to_dict(self) -> dict:
        return {
            "ratePeriod": self.rate_period.value,
            "hours": self.hours,
            "kwh": self.kwh,
            "rate": self.rate,
            "cost": self.cost,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }


@dataclass
class UsageCalculation:
    """Result of costing a usage session."""

    total_kwh: float
    total_cost: float
    duration_hours: float
    breakdown: list[BreakdownRow] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Render as the camelCase record consumed by the application layer."""
        return {
            "totalKwh": self.total_kwh,
            "totalCost": self.total_cost,
            "durationHours": self.duration_hours,
            "breakdown": [row.to_dict() for row in self.breakdown],
        }
