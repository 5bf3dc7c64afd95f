"""
Time and date resolution for spoken event phrases.

resolve_time turns "5 pm", "10:30am" or "2 p.m." into a 24-hour (hour, minute)
pair. resolve_date turns "today", "tomorrow", "August 15th, 2026" or a weekday
name into a local-midnight datetime relative to an injectable "now".
"""

import re
from datetime import datetime, timedelta
from typing import Optional, Tuple

from dateutil import tz as dateutil_tz
from dateutil.relativedelta import relativedelta

# Month names and abbreviations -> calendar month (1-12)
MONTHS = {
    'january': 1, 'jan': 1,
    'february': 2, 'feb': 2,
    'march': 3, 'mar': 3,
    'april': 4, 'apr': 4,
    'may': 5,
    'june': 6, 'jun': 6,
    'july': 7, 'jul': 7,
    'august': 8, 'aug': 8,
    'september': 9, 'sep': 9, 'sept': 9,
    'october': 10, 'oct': 10,
    'november': 11, 'nov': 11,
    'december': 12, 'dec': 12,
}

# Sunday-first week numbering; dict order is the substring search order
WEEKDAYS = {
    'monday': 1, 'tuesday': 2, 'wednesday': 3, 'thursday': 4,
    'friday': 5, 'saturday': 6, 'sunday': 0,
}

_TIME_FORMATS = [
    re.compile(r'^(\d{1,2}):(\d{2})(am|pm)$'),  # 11:30am
    re.compile(r'^(\d{1,2})(am|pm)$'),          # 11am
]

_MONTH_DAY_RE = re.compile(r'^(\w+)\s+(\d{1,2})(?:st|nd|rd|th)?(?:\s*,\s*(\d{4}))?$')


def local_now() -> datetime:
    """Current instant in the system timezone."""
    return datetime.now(dateutil_tz.tzlocal())


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def sunday_first_weekday(dt: datetime) -> int:
    """Day of week with sunday=0 ... saturday=6."""
    return (dt.weekday() + 1) % 7


def to_24_hour(hour: int, period: str) -> int:
    """Convert a 12-hour clock hour with am/pm to 0-23."""
    if period == 'pm' and hour != 12:
        return hour + 12
    if period == 'am' and hour == 12:
        return 0
    return hour


def resolve_time(phrase: str) -> Optional[Tuple[int, int]]:
    """
    Resolve a 12-hour time phrase to (hour, minute).

    Periods and whitespace are removed first, so "2 p.m." matches the same
    shape as "2pm". Returns None for anything else, including 24-hour
    literals and out-of-range values like "13pm".
    """
    if not phrase:
        return None
    cleaned = re.sub(r'\s+', '', phrase.lower().replace('.', ''))

    for time_format in _TIME_FORMATS:
        match = time_format.match(cleaned)
        if not match:
            continue
        hour = int(match.group(1))
        if match.lastindex == 3:
            minute = int(match.group(2))
            period = match.group(3)
        else:
            minute = 0
            period = match.group(2)
        if not 1 <= hour <= 12 or minute > 59:
            return None
        return to_24_hour(hour, period), minute

    return None


def _resolve_month_day(phrase: str, today: datetime) -> Optional[datetime]:
    match = _MONTH_DAY_RE.match(phrase)
    if not match:
        return None
    month = MONTHS.get(match.group(1))
    if month is None:
        return None

    day = int(match.group(2))
    explicit_year = match.group(3)
    year = int(explicit_year) if explicit_year else today.year
    try:
        target = today.replace(year=year, month=month, day=day)
    except ValueError:
        return None

    # No year given and already passed this year: assume next year
    if not explicit_year and target < today:
        target = target + relativedelta(years=1)
    return target


def _resolve_weekday(phrase: str, today: datetime) -> Optional[datetime]:
    for day_name, day_num in WEEKDAYS.items():
        if day_name not in phrase:
            continue
        days_ahead = day_num - sunday_first_weekday(today)
        if 'next' in phrase:
            days_ahead += 7
        elif days_ahead <= 0:
            # Today or earlier this week: go to next week
            days_ahead += 7
        return today + timedelta(days=days_ahead)
    return None


def resolve_date(phrase: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Resolve a date phrase to local midnight of the matching day.

    Args:
        phrase: "today", "tomorrow", "<month> <day>[, <year>]" or a phrase
            containing a weekday name ("monday", "next friday")
        now: Reference instant; defaults to the current local time

    Returns:
        datetime at 00:00 with now's tzinfo, or None if the phrase is not a date
    """
    if not phrase:
        return None
    today = start_of_day(now if now is not None else local_now())
    lower_date = phrase.lower().strip()

    if lower_date == 'today':
        return today
    if lower_date == 'tomorrow':
        return today + timedelta(days=1)

    resolved = _resolve_month_day(lower_date, today)
    if resolved is not None:
        return resolved

    return _resolve_weekday(lower_date, today)
