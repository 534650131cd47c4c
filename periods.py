import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from config import get_settings
from errors import InvalidInput
from models import BudgetPeriod


@dataclass(frozen=True)
class Period:
    slug: str
    start: date
    end: date


def local_now() -> datetime:
    settings = get_settings()
    return datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None)


def local_today() -> date:
    return local_now().date()


def add_months(base: date, months: int) -> date:
    total_months = base.month - 1 + months
    year = base.year + total_months // 12
    month = total_months % 12 + 1
    day = min(base.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def advance_period(start: date, period: BudgetPeriod) -> date:
    """Return the end date of a budget window that opens on ``start``.

    Months and years are calendar increments; a start day that does not exist
    in the target month snaps to that month's last day (Jan 31 -> Feb 28/29).
    """
    if period == BudgetPeriod.weekly:
        return start + timedelta(days=7)
    if period == BudgetPeriod.monthly:
        return add_months(start, 1)
    if period == BudgetPeriod.yearly:
        return add_months(start, 12)
    raise InvalidInput(f"Unsupported budget period: {period}")


def midpoint(start: date, end: date) -> datetime:
    opened = datetime.combine(start, datetime.min.time())
    closed = datetime.combine(end, datetime.min.time())
    return opened + (closed - opened) / 2


def resolve_period(
    start: Optional[str],
    end: Optional[str],
    *,
    today: Optional[date] = None,
) -> Period:
    """Report window: defaults to January 1st of the current year up to today."""
    today = today or local_today()
    start_date = date.fromisoformat(start) if start else date(today.year, 1, 1)
    end_date = date.fromisoformat(end) if end else today
    if start_date > end_date:
        raise InvalidInput("Start date must be before end date")
    slug = "custom" if start or end else "year_to_date"
    return Period(slug, start_date, end_date)


def trailing_months(months: int, *, today: Optional[date] = None) -> Period:
    if months < 1:
        raise InvalidInput("Months must be at least 1")
    today = today or local_today()
    return Period(f"last_{months}_months", add_months(today, -months), today)


def month_keys(period: Period) -> list[str]:
    keys: list[str] = []
    current = period.start.replace(day=1)
    while current <= period.end:
        keys.append(f"{current.year:04d}-{current.month:02d}")
        current = add_months(current, 1)
    return keys
