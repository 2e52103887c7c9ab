from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable

from dateutil import parser as date_parser

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_DAY_MONTH = re.compile(r"^(\d{2})[-/](\d{2})$")
_DOTTED_DATE = re.compile(r"^(\d{2})\.(\d{2})\.(\d{2,4})$")
_ORDINAL_SUFFIX = re.compile(r"(\d+)(st|nd|rd|th)", re.IGNORECASE)

# Fixed English names so output does not follow the process locale.
_MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
_MONTH_ABBREVIATIONS = tuple(name[:3] for name in _MONTH_NAMES)

# Leap year so that 29 February survives month/day extraction.
_PARSER_DEFAULT = datetime(2000, 1, 1)

# Two defaults that differ in year, month and day. A text names a full calendar
# date only if it parses to the same day under both.
_COMPLETE_DATE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


@dataclass(frozen=True)
class MonthDay:
    """Calendar month (1-12) and day of an annually recurring date."""

    month: int
    day: int


def start_of_day(value: date | datetime) -> datetime:
    """Return a new datetime at local midnight of the given calendar day."""
    return datetime(value.year, value.month, value.day, tzinfo=getattr(value, "tzinfo", None))


def days_between(start: date | datetime, end: date | datetime) -> int:
    """
    Whole calendar days from `start` to `end`.

    Time of day is ignored; the result is negative when `end` precedes `start`.
    """

    delta = start_of_day(end) - start_of_day(start)
    return math.ceil(delta / timedelta(days=1))


def _month_day(month: int, day: int) -> MonthDay | None:
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return None
    return MonthDay(month=month, day=day)


def _parse_iso(text: str) -> MonthDay | None:
    match = _ISO_DATE.match(text)
    if not match:
        return None
    return _month_day(int(match.group(2)), int(match.group(3)))


def _parse_day_month(text: str) -> MonthDay | None:
    # Numeric forms with dashes or slashes are always day first.
    match = _DAY_MONTH.match(text)
    if not match:
        return None
    return _month_day(int(match.group(2)), int(match.group(1)))


def _parse_natural(text: str) -> MonthDay | None:
    cleaned = _ORDINAL_SUFFIX.sub(r"\1", text)
    parsed = _general_parse(cleaned, default=_PARSER_DEFAULT)
    if parsed is None:
        return None
    return MonthDay(month=parsed.month, day=parsed.day)


FLEXIBLE_DATE_PARSERS: tuple[Callable[[str], MonthDay | None], ...] = (
    _parse_iso,
    _parse_day_month,
    _parse_natural,
)
"""Parse attempts for birthday-style dates, tried in order; the first hit wins."""


def parse_flexible_date(text: str) -> MonthDay | None:
    """
    Extract month and day from a loosely formatted date.

    Accepts `YYYY-MM-DD`, `DD/MM`, `DD-MM` and natural language such as
    `March 3rd`. Returns None when no parser understands the input.
    """

    trimmed = text.strip()
    if not trimmed:
        return None
    for attempt in FLEXIBLE_DATE_PARSERS:
        parsed = attempt(trimmed)
        if parsed is not None:
            return parsed
    return None


def parse_drop_date(text: str) -> datetime | None:
    """
    Parse a roadmap drop date.

    `DD.MM.YY` and `DD.MM.YYYY` are tried first (two-digit years are 20YY);
    anything else goes through the general calendar parser and must name a
    year, month and day.
    """

    trimmed = text.strip()
    match = _DOTTED_DATE.match(trimmed)
    if not match:
        return _parse_complete_date(trimmed)

    day = int(match.group(1))
    month = int(match.group(2))
    year = int(match.group(3))
    if year < 100:
        year += 2000
    try:
        return datetime(year, month, day)
    except ValueError:
        return None


def parse_instant(value: date | datetime | str) -> datetime | None:
    """Resolve a version window bound (text or date) to a naive local datetime."""
    if isinstance(value, datetime):
        return _to_local(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return _parse_complete_date(value.strip())


def next_occurrence(text: str, today: date | datetime) -> datetime | None:
    """
    Next calendar day, on or after `today`, that matches the month/day in `text`.

    Returns None only if the text does not parse. A day past the end of the
    month rolls over into the next one, so 29 February falls on 1 March
    outside leap years.
    """

    parts = parse_flexible_date(text)
    if parts is None:
        return None

    today = start_of_day(today)
    candidate = _build_date(today.year, parts)
    if candidate >= today:
        return candidate
    return _build_date(today.year + 1, parts)


def format_annual_date(value: date | datetime) -> str:
    """Render as upper-cased month name and day, e.g. `JANUARY 15`."""
    return f"{_MONTH_NAMES[value.month - 1].upper()} {value.day}"


def format_short_date(value: date | datetime) -> str:
    """Render as two-digit day and abbreviated month, e.g. `15 Jan`."""
    return f"{value.day:02d} {_MONTH_ABBREVIATIONS[value.month - 1]}"


def _build_date(year: int, parts: MonthDay) -> datetime:
    return datetime(year, parts.month, 1) + timedelta(days=parts.day - 1)


def _parse_complete_date(text: str) -> datetime | None:
    first, second = (_general_parse(text, default=default) for default in _COMPLETE_DATE_DEFAULTS)
    if first is None or second is None or first.date() != second.date():
        return None
    return first


def _general_parse(text: str, default: datetime | None = None) -> datetime | None:
    if not text:
        return None
    try:
        parsed = date_parser.parse(text, default=default)
    except (ValueError, OverflowError):
        return None
    return _to_local(parsed)


def _to_local(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)
