"""
Voice parser for turning a spoken transcript into a calendar event.

A cascade of regex patterns, most specific first, isolates the event, time
and date phrases. Each pattern declares which capture group holds which
field. The first pattern whose phrases resolve to a real time and date wins.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, List, Optional, Tuple

from voicecal.date_resolver import WEEKDAYS, local_now, resolve_date, resolve_time
from voicecal.event_models import DEFAULT_EVENT_DURATION, ParsedEvent
from voicecal.logging_helper import Log

TIME = r'\d{1,2}(?::\d{2})?\s*(?:am|pm|a\.m\.|p\.m\.)'
MONTH_DAY = r'\w+\s+\d{1,2}(?:st|nd|rd|th)?(?:\s*,\s*\d{4})?'
WEEKDAY = r'(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday)'
RELATIVE_DATE = rf'(?:tomorrow|today|{WEEKDAY})'
QUALIFIED_DATE = rf'(?:tomorrow|today|next\s+{WEEKDAY}|(?:this\s+)?{WEEKDAY})'
KNOWN_EVENT = r'(?:meeting|call|appointment|coffee|lunch|dinner|event)'
EVENT = r'[a-z]+(?:\s+[a-z]+)*'
DATE_LEAD_IN = r'(?:\s+(?:on|this|next|)?\s*)?'

MONTH_NAMES = [
    'january', 'february', 'march', 'april', 'may', 'june',
    'july', 'august', 'september', 'october', 'november', 'december',
]

# Whole words only, so "at" inside "meeting" or "in" inside "dinner" never
# starts a location.
_LOCATION_BOUNDARY = '|'.join(['on', 'at', 'tomorrow', 'today'] + list(WEEKDAYS) + MONTH_NAMES)
LOCATION_RE = re.compile(
    rf'\b(?:at|in)\s+([^,]+?)(?:\s+(?:(?:{_LOCATION_BOUNDARY})\b|\d))',
    re.IGNORECASE,
)

TRAILING_CONNECTOR_RE = re.compile(r'\s+(?:in|on|at)$', re.IGNORECASE)


@dataclass(frozen=True)
class EventPattern:
    """A regex plus the group index of each field it captures."""
    name: str
    regex: "re.Pattern"
    event_group: int
    date_group: int
    time_group: int


@dataclass(frozen=True)
class EventPhrases:
    """Raw phrases captured by one pattern."""
    pattern: str
    event: str
    time: str
    date: str


def _pattern(name: str, source: str, event_group: int, date_group: int, time_group: int) -> EventPattern:
    return EventPattern(name, re.compile(source, re.IGNORECASE), event_group, date_group, time_group)


EVENT_PATTERNS: List[EventPattern] = [
    # [event] in [month day] at [time]
    _pattern('in_month_day_at_time', rf'({EVENT})\s+in\s+({MONTH_DAY})\s+at\s+({TIME})', 1, 2, 3),
    # [event] on [month day] at [time]
    _pattern('on_month_day_at_time', rf'({EVENT})\s+on\s+({MONTH_DAY})\s+at\s+({TIME})', 1, 2, 3),
    # [event] [month day] at [time]
    _pattern('month_day_at_time', rf'({EVENT})\s+({MONTH_DAY})\s+at\s+({TIME})', 1, 2, 3),
    # [event] at [time] on [month day]
    _pattern('at_time_on_month_day', rf'({EVENT})\s+at\s+({TIME})\s+on\s+({MONTH_DAY})', 1, 3, 2),
    # [event] on [weekday] at [time]
    _pattern('on_weekday_at_time', rf'({EVENT})\s+on\s+({WEEKDAY})\s+at\s+({TIME})', 1, 2, 3),
    # [known event] at [time] [date]
    _pattern('known_event_at_time_date', rf'({KNOWN_EVENT})\s+at\s+({TIME}){DATE_LEAD_IN}({RELATIVE_DATE})', 1, 3, 2),
    # [known event] [date] at [time]
    _pattern('known_event_date_at_time', rf'({KNOWN_EVENT})\s+({QUALIFIED_DATE})(?:\s+at\s+)({TIME})', 1, 2, 3),
    # [up to four words] at [time] [date], unless "in <word>" follows
    _pattern(
        'any_event_at_time_date',
        rf'([a-z]+(?:\s+[a-z]+){{0,3}})\s+at\s+({TIME}){DATE_LEAD_IN}({RELATIVE_DATE})(?!\s+in\s+\w+)',
        1, 3, 2,
    ),
    # [known event] [date] at [time], alternate ordering fallback
    _pattern('known_event_date_at_time_alt', rf'({KNOWN_EVENT})\s+({QUALIFIED_DATE})\s+at\s+({TIME})', 1, 2, 3),
]


def iter_event_phrases(text: str) -> Iterator[EventPhrases]:
    """Yield the phrases captured by every matching pattern, in priority order."""
    lower_text = text.lower()
    for pattern in EVENT_PATTERNS:
        match = pattern.regex.search(lower_text)
        if match:
            yield EventPhrases(
                pattern=pattern.name,
                event=match.group(pattern.event_group),
                time=match.group(pattern.time_group),
                date=match.group(pattern.date_group),
            )


def match_event_phrases(text: str) -> Optional[EventPhrases]:
    """Return the phrases from the first matching pattern, or None."""
    return next(iter_event_phrases(text), None)


def clean_title(event_phrase: str) -> str:
    """Capitalize the first letter and drop one trailing in/on/at."""
    title = event_phrase[:1].upper() + event_phrase[1:]
    return TRAILING_CONNECTOR_RE.sub('', title)


def extract_location(
    text: str,
    date_phrase: Optional[str] = None,
    time_phrase: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """
    Find an "at <place>" / "in <place>" phrase followed by a date or time word.
    Fragments that are really dates or part of the captured date/time are rejected.
    """
    match = LOCATION_RE.search(text.lower())
    if not match:
        return None
    location = match.group(1).strip()
    if resolve_date(location, now) is not None:
        return None
    if date_phrase and location in date_phrase:
        return None
    # "Coffee at 3pm tomorrow" captures "3pm", which is the time, not a place
    if time_phrase and location in time_phrase:
        return None
    return location


def build_description(
    date_phrase: Optional[str],
    time_phrase: Optional[str],
    location: Optional[str],
) -> Optional[str]:
    parts = []
    if date_phrase:
        parts.append(f"Date: {date_phrase}")
    if time_phrase:
        parts.append(f"Time: {time_phrase}")
    if location:
        parts.append(f"Location: {location}")
    return ", ".join(parts) if parts else None


def assemble_event(
    phrases: EventPhrases,
    date: datetime,
    time: Tuple[int, int],
    text: str,
    now: Optional[datetime] = None,
) -> ParsedEvent:
    """Combine resolved date and time with the captured phrases into a ParsedEvent."""
    hour, minute = time
    start = date.replace(hour=hour, minute=minute, second=0, microsecond=0)
    end = start + DEFAULT_EVENT_DURATION
    location = extract_location(text, phrases.date, phrases.time, now)

    return ParsedEvent(
        title=clean_title(phrases.event),
        start=start,
        end=end,
        description=build_description(phrases.date, phrases.time, location),
        location=location,
    )


def parse_voice_to_event(text: str, now: Optional[datetime] = None) -> Optional[ParsedEvent]:
    """
    Parse a free-form transcript into a ParsedEvent.

    Args:
        text: Transcript such as "Team meeting on Monday at 10am"
        now: Reference instant for relative dates; defaults to local now

    Returns:
        ParsedEvent, or None if no pattern produced a usable date and time
    """
    Log.section("Voice Parser")
    Log.info(f"Parsing voice input: {text}")

    if not text or not text.strip():
        Log.kv({"stage": "parse", "result": "failed", "reason": "empty_input"})
        return None

    if now is None:
        now = local_now()

    for phrases in iter_event_phrases(text):
        Log.info(f"Pattern {phrases.pattern} matched: event='{phrases.event}', "
                 f"time='{phrases.time}', date='{phrases.date}'")

        time = resolve_time(phrases.time)
        if time is None:
            Log.info(f"Could not parse time: {phrases.time}")
            continue

        date = resolve_date(phrases.date, now)
        if date is None:
            Log.info(f"Could not parse date: {phrases.date}")
            continue

        event = assemble_event(phrases, date, time, text, now)
        Log.kv({
            "stage": "parse",
            "result": "success",
            "pattern": phrases.pattern,
            "title": event.title,
            "start": event.start.isoformat(),
            "end": event.end.isoformat(),
            "location": event.location,
        })
        return event

    Log.info(f"No patterns matched for text: {text}")
    Log.kv({"stage": "parse", "result": "failed", "reason": "no_match"})
    return None
