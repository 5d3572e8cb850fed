"""Batch recomputation of session costs from CSV.

CSV format: wattage, start_time, end_time, usage_date
"""

import csv
import logging
from pathlib import Path

from .calculator import calculate_session_cost, round_half_up
from .models import ScheduleTable, UsageSession
from .tariffs import DEFAULT_SCHEDULE_TABLE
from .validation import UsageValidationError, parse_usage_date

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("wattage", "start_time", "end_time", "usage_date")


def session_from_row(row: dict) -> UsageSession:
    """Build a UsageSession from a CSV row."""
    missing = [col for col in REQUIRED_COLUMNS if not (row.get(col) or "").strip()]
    if missing:
        raise UsageValidationError(f"Missing value for {', '.join(missing)}")
    try:
        wattage = float(row["wattage"])
    except ValueError as e:
        raise UsageValidationError(f"Wattage must be a number, got {row['wattage']!r}") from e
    return UsageSession(
        wattage=wattage,
        start_time=row["start_time"].strip(),
        end_time=row["end_time"].strip(),
        usage_date=parse_usage_date(row["usage_date"].strip()),
    )


def calculate_from_csv(csv_path: Path, table: ScheduleTable = DEFAULT_SCHEDULE_TABLE) -> dict:
    """Cost every session in a CSV file.

    Invalid rows are skipped and reported under 'errors' with their line
    number. Returns dict with 'results', 'errors', 'total_kwh' and 'total_cost'.
    """
    results = []
    errors = []

    with open(csv_path, newline="") as f:
        reader = csv.DictReader(f)
        # Header is line 1
        for line_no, row in enumerate(reader, start=2):
            try:
                session = session_from_row(row)
                calculation = calculate_session_cost(session, table)
            except UsageValidationError as e:
                logger.warning("Skipping line %d of %s: %s", line_no, csv_path, e)
                errors.append({"line": line_no, "error": str(e)})
                continue
            results.append({"line": line_no, "session": session, "calculation": calculation})

    total_kwh = sum(r["calculation"].total_kwh for r in results)
    total_cost = sum(r["calculation"].total_cost for r in results)

    return {
        "results": results,
        "errors": errors,
        "total_kwh": round_half_up(total_kwh, 2),
        "total_cost": round_half_up(total_cost, 2),
    }
