"""
Date handling for access conditions and resource policies.

Policy start and end dates are calendar dates normalized to UTC.  They are stored as ISO-formatted
strings (``YYYY-MM-DD``) and handled in code as :py:class:`datetime.date` instances.
"""
import re
from datetime import date, datetime, timezone
from typing import Union

DateLike = Union[date, datetime, str, None]

_limit_re = re.compile(r"^\s*\+?\s*(\d+)\s*(DAYS?|WEEKS?|MONTHS?|YEARS?)\s*$", re.IGNORECASE)

def parse_date(value: DateLike) -> date:
    """
    convert the given value into a UTC calendar date.  Datetime values (or ISO date-time strings)
    carrying a timezone are first converted to UTC.  None (or an empty string) is returned as None.

    :raise ValueError:  if the value cannot be interpreted as a date
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError("not a date: " + repr(value))

    value = value.strip()
    if not value:
        return None
    if len(value) == 10:
        return date.fromisoformat(value)
    if value.endswith('Z') or value.endswith('z'):
        value = value[:-1] + "+00:00"
    return parse_date(datetime.fromisoformat(value))

def format_date(value: date) -> str:
    """
    format a date for storage or display (``YYYY-MM-DD``); None is returned as None.
    """
    if value is None:
        return None
    return parse_date(value).isoformat()

def today() -> date:
    """
    return the current UTC date
    """
    return datetime.now(timezone.utc).date()

def add_months(start: date, months: int) -> date:
    """
    return the date that is the given number of months after ``start``.  When the resulting month
    is shorter than the start's day of month, the last day of that month is returned.
    """
    mon = start.month - 1 + months
    year = start.year + mon // 12
    mon = mon % 12 + 1
    day = start.day
    while day > 28:
        try:
            return date(year, mon, day)
        except ValueError:
            day -= 1
    return date(year, mon, day)

def resolve_limit(limit: str, start: date=None) -> date:
    """
    convert a relative date limit, like "+36MONTHS", "+2YEARS", or "+30DAYS", into an absolute date
    relative to ``start`` (default: today).  None or an empty string returns None.

    :raise ValueError:  if the limit is not of a recognized form
    """
    if not limit:
        return None
    m = _limit_re.match(str(limit))
    if not m:
        raise ValueError("unrecognized date limit: " + str(limit))
    if not start:
        start = today()
    count = int(m.group(1))
    unit = m.group(2).upper().rstrip('S')
    if unit == "DAY":
        return date.fromordinal(start.toordinal() + count)
    if unit == "WEEK":
        return date.fromordinal(start.toordinal() + 7 * count)
    if unit == "MONTH":
        return add_months(start, count)
    return add_months(start, 12 * count)
