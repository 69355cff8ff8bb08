"""Date manipulation utilities"""

from datetime import date, datetime

# Vendor reports use US-style dates, system of record uses ISO
DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y")


def parse_date(value) -> date:
    """
    Parse an ISO (YYYY-MM-DD) or vendor (MM/DD/YYYY) date.

    Raises:
        ValueError: If the value is not a date in a supported format
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected a date string, got {type(value).__name__}")

    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognized date format: {value!r}")


def days_between(start: date, end: date) -> int:
    """Signed number of days from start to end"""
    return (end - start).days


def months_between(start: date, end: date) -> int:
    """Whole calendar months elapsed from start to end (negative if end is earlier)"""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and end.day < start.day:
        months -= 1
    elif months < 0 and end.day > start.day:
        months += 1
    return months
