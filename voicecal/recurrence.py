"""
Recurrence encoding for calendar providers.

A repeat descriptor is either a raw "RRULE:..." string or a mapping:

    {"frequency": "weekly", "interval": 2, "count": 10,
     "until": "2026-12-31", "days": ["monday", "wednesday"]}

Google Calendar and iCalendar take RFC 5545 RRULE lines; Microsoft Graph
takes a patternedRecurrence object. Occurrences are never expanded here.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from dateutil import rrule as dateutil_rrule
from dateutil import tz as dateutil_tz

from voicecal.event_models import STRICT_DATE_RE

FREQUENCIES = {
    "daily": "DAILY",
    "weekly": "WEEKLY",
    "monthly": "MONTHLY",
    "yearly": "YEARLY",
}

GRAPH_PATTERN_TYPES = {
    "daily": "daily",
    "weekly": "weekly",
    "monthly": "absoluteMonthly",
    "yearly": "absoluteYearly",
}

DAY_CODES = {
    "monday": "MO",
    "tuesday": "TU",
    "wednesday": "WE",
    "thursday": "TH",
    "friday": "FR",
    "saturday": "SA",
    "sunday": "SU",
}

_WEEKDAY_NAMES = list(DAY_CODES)

UTC_UNTIL_RE = re.compile(r"UNTIL=\d{8}T\d{6}Z", re.IGNORECASE)


class RecurrenceError(ValueError):
    """Raised when a repeat descriptor cannot be encoded."""


def _positive_int(descriptor: Mapping[str, Any], key: str) -> Optional[int]:
    value = descriptor.get(key)
    if value is None:
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise RecurrenceError(f"{key} must be an integer, got {value!r}")
    if number < 1:
        raise RecurrenceError(f"{key} must be at least 1, got {number}")
    return number


def _days(descriptor: Mapping[str, Any]) -> List[str]:
    days = descriptor.get("days") or []
    if isinstance(days, str):
        days = [days]
    names = []
    for day in days:
        name = str(day).lower()
        if name not in DAY_CODES:
            raise RecurrenceError(f"Unknown weekday: {day!r}")
        names.append(name)
    return names


def _until(descriptor: Mapping[str, Any]) -> Optional[str]:
    until = descriptor.get("until")
    if until is None:
        return None
    if not isinstance(until, str) or not STRICT_DATE_RE.fullmatch(until):
        raise RecurrenceError(f"until must be YYYY-MM-DD, got {until!r}")
    return until


def normalize_repeat(repeat: Any) -> Optional[Dict[str, Any]]:
    """
    Validate a repeat mapping and return it with canonical keys.
    Returns None for an empty descriptor.
    """
    if not repeat:
        return None
    if not isinstance(repeat, Mapping):
        raise RecurrenceError(f"Unsupported repeat descriptor: {repeat!r}")

    frequency = str(repeat.get("frequency", "")).lower()
    if frequency in ("", "none", "never"):
        return None
    if frequency not in FREQUENCIES:
        raise RecurrenceError(f"Unknown repeat frequency: {frequency!r}")

    count = _positive_int(repeat, "count")
    until = _until(repeat)
    if count is not None and until is not None:
        raise RecurrenceError("count and until cannot both be set")

    return {
        "frequency": frequency,
        "interval": _positive_int(repeat, "interval") or 1,
        "count": count,
        "until": until,
        "days": _days(repeat),
    }


def to_rrule(repeat: Any, start: datetime) -> Optional[str]:
    """
    Encode a repeat descriptor as an RFC 5545 "RRULE:..." line.

    Raw RRULE strings are validated and passed through. The result is
    checked with dateutil so providers never receive a malformed rule.
    """
    if isinstance(repeat, str):
        rule = repeat.strip()
        if not rule:
            return None
        if not rule.upper().startswith("RRULE:"):
            raise RecurrenceError(f"Expected an RRULE: line, got {repeat!r}")
    else:
        descriptor = normalize_repeat(repeat)
        if descriptor is None:
            return None
        parts = [f"FREQ={FREQUENCIES[descriptor['frequency']]}"]
        if descriptor["interval"] != 1:
            parts.append(f"INTERVAL={descriptor['interval']}")
        if descriptor["days"]:
            parts.append("BYDAY=" + ",".join(DAY_CODES[day] for day in descriptor["days"]))
        if descriptor["count"] is not None:
            parts.append(f"COUNT={descriptor['count']}")
        if descriptor["until"] is not None:
            parts.append(f"UNTIL={descriptor['until'].replace('-', '')}")
        rule = "RRULE:" + ";".join(parts)

    dtstart = start.replace(tzinfo=None)
    if UTC_UNTIL_RE.search(rule):
        # dateutil requires an aware DTSTART alongside a UTC UNTIL
        dtstart = dtstart.replace(tzinfo=dateutil_tz.tzutc())
    try:
        dateutil_rrule.rrulestr(rule, dtstart=dtstart)
    except (ValueError, TypeError) as err:
        raise RecurrenceError(f"Invalid recurrence rule {rule!r}: {err}")
    return rule


def to_graph_recurrence(repeat: Any, start: datetime) -> Optional[Dict[str, Any]]:
    """
    Encode a repeat mapping as a Microsoft Graph patternedRecurrence.
    Raw RRULE strings are not supported for Graph.
    """
    if isinstance(repeat, str):
        if not repeat.strip():
            return None
        raise RecurrenceError("Raw RRULE strings cannot be encoded for Outlook")
    descriptor = normalize_repeat(repeat)
    if descriptor is None:
        return None

    frequency = descriptor["frequency"]
    pattern: Dict[str, Any] = {
        "type": GRAPH_PATTERN_TYPES[frequency],
        "interval": descriptor["interval"],
    }
    if frequency == "weekly":
        pattern["daysOfWeek"] = descriptor["days"] or [_WEEKDAY_NAMES[start.weekday()]]
    elif frequency == "monthly":
        pattern["dayOfMonth"] = start.day
    elif frequency == "yearly":
        pattern["dayOfMonth"] = start.day
        pattern["month"] = start.month

    range_: Dict[str, Any] = {"startDate": start.date().isoformat()}
    if descriptor["until"] is not None:
        range_["type"] = "endDate"
        range_["endDate"] = descriptor["until"]
    elif descriptor["count"] is not None:
        range_["type"] = "numbered"
        range_["numberOfOccurrences"] = descriptor["count"]
    else:
        range_["type"] = "noEnd"

    return {"pattern": pattern, "range": range_}
