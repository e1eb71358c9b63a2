"""Date parsing utilities."""

from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

PERIODS = ("today", "yesterday", "this-week", "last-week", "this-month", "last-month", "this-year")


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and the
    relative words "today", "yesterday" and "tomorrow".

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a named reporting period.

    Args:
        period: One of ``PERIODS``

    Returns:
        Tuple of (start_date, end_date), both inclusive

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = date.today()

    if period == "today":
        return (today, today)
    elif period == "yesterday":
        yesterday = today - timedelta(days=1)
        return (yesterday, yesterday)
    elif period == "this-week":
        return (today - timedelta(days=today.weekday()), today)
    elif period == "last-week":
        start_date = today - timedelta(days=today.weekday() + 7)
        return (start_date, start_date + timedelta(days=6))
    elif period == "this-month":
        return (today.replace(day=1), today)
    elif period == "last-month":
        start_date = (today - relativedelta(months=1)).replace(day=1)
        # day before the first of this month
        end_date = today.replace(day=1) - timedelta(days=1)
        return (start_date, end_date)
    elif period == "this-year":
        return (today.replace(month=1, day=1), today)

    raise ValueError(f"Unknown period: '{period}'. Supported periods: {', '.join(PERIODS)}")
