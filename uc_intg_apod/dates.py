"""
Date helpers for APOD entries.

APOD dates travel as plain "YYYY-MM-DD" strings and are shown on the widget
as a short month/day label ("Sep 25").

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import datetime
import re
from dataclasses import dataclass
from typing import Optional, Union

from uc_intg_apod.errors import InvalidDateError

_NUMERIC = re.compile(r"\+?[0-9]+")

_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

# First published Astronomy Picture of the Day.
FIRST_APOD_DATE = datetime.date(1995, 6, 16)


@dataclass(frozen=True)
class DateComponents:
    """Calendar components as published by APOD, without range checks."""

    year: int
    month: int
    day: int

    def as_date(self) -> Optional[datetime.date]:
        """Convert to a date, or None if the components are not a real day."""
        try:
            return datetime.date(self.year, self.month, self.day)
        except ValueError:
            return None

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


def parse_ymd(string: str) -> DateComponents:
    """
    Parse a "YYYY-MM-DD" string into date components.

    :param string: date string as found in the APOD payload
    :raises InvalidDateError: unless there are exactly three numeric parts
    """
    if not isinstance(string, str):
        raise InvalidDateError(str(string))

    parts = [part for part in string.split("-") if part]
    if len(parts) != 3 or not all(_NUMERIC.fullmatch(part) for part in parts):
        raise InvalidDateError(string)

    year, month, day = (int(part) for part in parts)
    return DateComponents(year=year, month=month, day=day)


def format_ymd(value: Union[datetime.date, DateComponents]) -> str:
    """Format a date as "YYYY-MM-DD" for the APOD API."""
    if isinstance(value, DateComponents):
        return str(value)
    return value.strftime("%Y-%m-%d")


def format_month_day(value: Union[datetime.date, DateComponents]) -> str:
    """Format a date as "MMM dd", e.g. "Sep 25"."""
    if isinstance(value, DateComponents):
        as_date = value.as_date()
        if as_date is None:
            # Not a calendar day; show what was published.
            if 1 <= value.month <= 12:
                return f"{_MONTHS[value.month - 1]} {value.day:02d}"
            return f"{value.month:02d}/{value.day:02d}"
        value = as_date
    return f"{_MONTHS[value.month - 1]} {value.day:02d}"
