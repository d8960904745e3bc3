"""
Duration derivation for leave requests.

Turns a start/end date pair into an inclusive day count, an hour count and
the display label shown on the form. Pure functions only: no logging of
state, no mutation, same inputs always give the same result.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime

from dateutil import parser

from data.leave_catalog import HOURS_PER_WORKDAY, INVALID_RANGE_WARNING
from leave_form.errors import ValidationError

# YYYY-MM-DD, optionally followed by a time part
FULL_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}(T.+)?$")


@dataclass(frozen=True)
class Duration:
    """Derived duration of a valid leave period."""

    days: int
    hours: float
    label: str


@dataclass(frozen=True)
class InvalidRange:
    """Signals that the end date precedes the start date."""

    start_date: date
    end_date: date
    warning: str = INVALID_RANGE_WARNING


def format_duration_label(days: int) -> str:
    return f"{days} días"


def parse_date(value: date | datetime | str, field: str = "date") -> date:
    """
    Coerce a form value into a calendar date.

    Accepts date objects, datetimes (time part dropped) and complete ISO
    strings such as "2024-03-01" or "2024-03-01T09:30". Partial dates like
    "2024-03" are rejected rather than completed from today's date.

    Raises:
        ValidationError: If the value is not a complete calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not FULL_DATE_PATTERN.match(text):
        raise ValidationError(f"Invalid date format: {value}. Please use YYYY-MM-DD.", field=field)

    try:
        return parser.isoparse(text).date()
    except (ValueError, OverflowError) as e:
        raise ValidationError(
            f"Invalid date format: {value}. Please use YYYY-MM-DD.", field=field
        ) from e


def derive_duration(
    start_date: date | datetime | str,
    end_date: date | datetime | str,
    hours_per_workday: float = HOURS_PER_WORKDAY,
) -> Duration | InvalidRange:
    """
    Compute the leave duration between two dates, both endpoints counted.

    Weekends and holidays are not excluded: the count is raw calendar days.

    Args:
        start_date: First day of leave
        end_date: Day of return (inclusive)
        hours_per_workday: Hours credited per day, must be positive

    Returns:
        Duration when start_date <= end_date, InvalidRange otherwise

    Example:
        >>> derive_duration("2024-03-01", "2024-03-05")
        Duration(days=5, hours=40.0, label='5 días')
    """
    if hours_per_workday <= 0:
        raise ValueError(f"hours_per_workday must be positive, got {hours_per_workday}")

    start = parse_date(start_date, field="start_date")
    end = parse_date(end_date, field="end_date")

    if start > end:
        return InvalidRange(start_date=start, end_date=end)

    days = (end - start).days + 1
    return Duration(
        days=days, hours=float(days * hours_per_workday), label=format_duration_label(days)
    )
