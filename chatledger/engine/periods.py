"""Calendar period resolution.

Everything here works on local calendar dates. Nothing is converted between
time zones: a date typed by the user, a date stored in the ledger and a date
used in a query all mean the same wall-clock day.
"""

import calendar
import re
from datetime import date, timedelta

from chatledger.errors import InvalidDateFormat, InvalidPeriodError, InvalidRange
from chatledger.models.schemas import DateRange

NAMED_PERIODS = ("today", "this_week", "this_month", "last_week", "last_month")

_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def parse_calendar_date(text: str) -> date:
    match = _DATE_RE.match(text.strip()) if isinstance(text, str) else None
    if match is None:
        raise InvalidDateFormat(f"Expected a date like 2025-01-31, got {text!r}")
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as e:
        raise InvalidDateFormat(f"{text!r} is not a real calendar date") from e


def format_calendar_date(value: date) -> str:
    return value.isoformat()


def _week_start(day: date, first_weekday: int) -> date:
    offset = (day.weekday() - first_weekday) % 7
    return day - timedelta(days=offset)


def _month_range(year: int, month: int) -> DateRange:
    last_day = calendar.monthrange(year, month)[1]
    return DateRange(start=date(year, month, 1), end=date(year, month, last_day))


def resolve_named_period(
    name: str, today: date | None = None, first_weekday: int = 6
) -> DateRange:
    """Turn ``today``/``this_week``/``this_month``/``last_week``/``last_month`` into a range.

    ``first_weekday`` follows :func:`datetime.date.weekday` numbering and marks
    the day a week starts on (6, Sunday, by default).
    """
    today = today or date.today()

    if name == "today":
        return DateRange(start=today, end=today)
    if name == "this_week":
        start = _week_start(today, first_weekday)
        return DateRange(start=start, end=start + timedelta(days=6))
    if name == "last_week":
        end = _week_start(today, first_weekday) - timedelta(days=1)
        return DateRange(start=end - timedelta(days=6), end=end)
    if name == "this_month":
        return _month_range(today.year, today.month)
    if name == "last_month":
        previous = today.replace(day=1) - timedelta(days=1)
        return _month_range(previous.year, previous.month)

    raise InvalidPeriodError(f"Unknown period {name!r}; expected one of {', '.join(NAMED_PERIODS)}")


def resolve_explicit_range(
    start_text: str, end_text: str | None = None, today: date | None = None
) -> DateRange:
    start = parse_calendar_date(start_text)
    end = parse_calendar_date(end_text) if end_text else (today or date.today())
    if start > end:
        raise InvalidRange(
            f"Start date {format_calendar_date(start)} is after end date {format_calendar_date(end)}"
        )
    return DateRange(start=start, end=end)
