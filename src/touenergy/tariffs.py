"""Tariff schedules: built-in table, loading and date resolution."""

import logging
import os
import threading
from datetime import date, datetime
from pathlib import Path

import yaml

from .models import (
    DayType,
    RatePeriod,
    RatePeriodName,
    Schedule,
    ScheduleTable,
    Season,
)
from .segmenter import find_period_index
from .validation import ScheduleError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TOU_TARIFFS_CONFIG"
SCHEDULE_KEYS = ("winter", "summer_weekday", "summer_weekend")


WINTER_SCHEDULE = Schedule(
    "winter",
    (
        RatePeriod(RatePeriodName.OFF_PEAK, "21:00", "07:59", 0.24),
        RatePeriod(RatePeriodName.SUPER_OFF_PEAK, "08:00", "15:59", 0.24),
        RatePeriod(RatePeriodName.MID_PEAK, "16:00", "20:59", 0.52),
    ),
)

SUMMER_WEEKDAY_SCHEDULE = Schedule(
    "summer_weekday",
    (
        RatePeriod(RatePeriodName.OFF_PEAK, "00:00", "16:00", 0.25),
        RatePeriod(RatePeriodName.ON_PEAK, "16:01", "21:00", 0.55),
        RatePeriod(RatePeriodName.OFF_PEAK, "21:01", "23:59", 0.25),
    ),
)

SUMMER_WEEKEND_SCHEDULE = Schedule(
    "summer_weekend",
    (
        RatePeriod(RatePeriodName.OFF_PEAK, "00:00", "16:00", 0.25),
        RatePeriod(RatePeriodName.MID_PEAK, "16:01", "21:00", 0.37),
        RatePeriod(RatePeriodName.OFF_PEAK, "21:01", "23:59", 0.25),
    ),
)

DEFAULT_SCHEDULE_TABLE = ScheduleTable(
    winter=WINTER_SCHEDULE,
    summer_weekday=SUMMER_WEEKDAY_SCHEDULE,
    summer_weekend=SUMMER_WEEKEND_SCHEDULE,
)


def get_season(usage_date: date, table: ScheduleTable = DEFAULT_SCHEDULE_TABLE) -> Season:
    """Summer for the table's summer months, winter otherwise."""
    return Season.SUMMER if usage_date.month in table.summer_months else Season.WINTER


def get_day_type(usage_date: date) -> DayType:
    """Weekend for Saturday and Sunday, weekday otherwise."""
    return DayType.WEEKEND if usage_date.weekday() >= 5 else DayType.WEEKDAY


def resolve_schedule(usage_date: date, table: ScheduleTable = DEFAULT_SCHEDULE_TABLE) -> Schedule:
    """Pick the schedule in force on a date. Winter uses one schedule for every day."""
    if get_season(usage_date, table) is Season.WINTER:
        return table.winter
    if get_day_type(usage_date) is DayType.WEEKEND:
        return table.summer_weekend
    return table.summer_weekday


def get_rate_period(dt: datetime, table: ScheduleTable = DEFAULT_SCHEDULE_TABLE) -> RatePeriod:
    """Get the rate period in force at a specific datetime."""
    schedule = resolve_schedule(dt.date(), table)
    index = find_period_index(dt.hour * 60 + dt.minute, schedule)
    # Validated schedules cover the whole day
    return schedule.periods[index]


def get_current_rate_period(
    table: ScheduleTable = DEFAULT_SCHEDULE_TABLE, now: datetime | None = None
) -> RatePeriod:
    """Get the rate period in force right now (local time)."""
    return get_rate_period(now or datetime.now(), table)


def _parse_schedule(name: str, raw_periods) -> Schedule:
    if not isinstance(raw_periods, list):
        raise ScheduleError(f"Schedule '{name}' must be a list of rate periods")
    periods = []
    for r in raw_periods:
        try:
            periods.append(
                RatePeriod(
                    name=r["name"],
                    start=str(r["start"]),
                    end=str(r["end"]),
                    rate=float(r["rate"]),
                )
            )
        except KeyError as e:
            raise ScheduleError(f"Schedule '{name}': rate period missing {e}") from e
        except (TypeError, ValueError) as e:
            raise ScheduleError(f"Schedule '{name}': {e}") from e
    return Schedule(name, tuple(periods))


def load_schedule_table_from_yaml(config_path: Path) -> ScheduleTable:
    """Load and validate a schedule table from a YAML config file."""
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ScheduleError(f"Could not read tariff config {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ScheduleError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ScheduleError(f"Tariff config {config_path} must be a mapping")

    schedules = data.get("schedules") or {}
    missing = [key for key in SCHEDULE_KEYS if key not in schedules]
    if missing:
        raise ScheduleError(f"Tariff config {config_path} is missing schedules: {', '.join(missing)}")

    summer_months = data.get("summer_months", [6, 7, 8, 9])
    if not isinstance(summer_months, list) or not all(
        isinstance(m, int) and 1 <= m <= 12 for m in summer_months
    ):
        raise ScheduleError(f"summer_months must be a list of month numbers, got {summer_months!r}")

    table = ScheduleTable(
        winter=_parse_schedule("winter", schedules["winter"]),
        summer_weekday=_parse_schedule("summer_weekday", schedules["summer_weekday"]),
        summer_weekend=_parse_schedule("summer_weekend", schedules["summer_weekend"]),
        summer_months=frozenset(summer_months),
    )
    logger.info("Loaded tariff schedules from %s", config_path)
    return table


def get_config_path(explicit: Path | None = None) -> Path | None:
    """Find the tariffs.yaml config file, or None to use the built-in table."""
    if explicit is not None:
        return explicit
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env)
    candidates = [
        Path.cwd() / "config" / "tariffs.yaml",
        Path.home() / ".config" / "tou-energy" / "tariffs.yaml",
    ]
    for path in candidates:
        if path.exists():
            return path
    return None


class TariffConfig:
    """Holds the active schedule table and swaps it atomically on reload.

    A reload builds and validates the new table in full before replacing
    the reference, so readers always see a complete table.
    """

    def __init__(self, config_path: Path | None = None):
        self._lock = threading.Lock()
        self.config_path = config_path
        self._table = self._build(config_path)

    @staticmethod
    def _build(config_path: Path | None) -> ScheduleTable:
        if config_path is None:
            return DEFAULT_SCHEDULE_TABLE
        return load_schedule_table_from_yaml(config_path)

    @property
    def table(self) -> ScheduleTable:
        return self._table

    def reload(self, config_path: Path | None = None) -> ScheduleTable:
        """Re-read the config (optionally from a new path). The old table stays on failure."""
        path = config_path or self.config_path
        table = self._build(path)
        with self._lock:
            self._table = table
            self.config_path = path
        return table
