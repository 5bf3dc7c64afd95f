"""
Event normalizer for converting VoiceEventData to EventFormData.
Used when the caller already has structured fields (a form, or a previous
voice parse). Never fails: each strategy degrades to the next, ending at
"start now".
"""

import re
from datetime import datetime, timedelta
from typing import Optional

from voicecal.date_resolver import (
    WEEKDAYS,
    local_now,
    start_of_day,
    sunday_first_weekday,
    to_24_hour,
)
from voicecal.event_models import (
    DEFAULT_EVENT_DURATION,
    UNTITLED_EVENT,
    EventFormData,
    VoiceEventData,
)
from voicecal.logging_helper import Log
from voicecal.voice_parser import parse_voice_to_event

FORM_TIME_RE = re.compile(r'(\d{1,2}):(\d{2})\s*(AM|PM)', re.IGNORECASE)
LOOSE_TIME_RE = re.compile(r'(\d{1,2}):?(\d{2})?\s*(am|pm)', re.IGNORECASE)
TIME_RANGE_RE = re.compile(r'^\s*(\d{1,2}):(\d{2})\s*-\s*(\d{1,2}):(\d{2})\s*$')
EXACT_WEEKDAY_RE = re.compile(r'(monday|tuesday|wednesday|thursday|friday|saturday|sunday)')


def _strict_date(date_str: str, now: datetime) -> Optional[datetime]:
    """
    Build local midnight from YYYY-MM-DD components.
    Never goes through a generic date parser, which would treat the
    string as UTC and shift the day in negative-offset timezones.
    """
    year, month, day = (int(part) for part in date_str.split('-'))
    try:
        return datetime(year, month, day, tzinfo=now.tzinfo)
    except ValueError:
        return None


def _apply_clock(start: datetime, hour: int, minute: int) -> datetime:
    if not 0 <= hour <= 23 or not 0 <= minute <= 59:
        Log.warn(f"Ignoring out-of-range time {hour}:{minute:02d}")
        return start
    return start.replace(hour=hour, minute=minute, second=0, microsecond=0)


def _apply_form_time(start: datetime, time_str: Optional[str]) -> datetime:
    if not time_str:
        return start
    match = FORM_TIME_RE.search(time_str)
    if not match:
        return start
    hour = to_24_hour(int(match.group(1)), match.group(3).lower())
    return _apply_clock(start, hour, int(match.group(2)))


def parse_loose_datetime(
    date_str: Optional[str],
    time_str: Optional[str],
    now: datetime,
) -> datetime:
    """
    Best-effort date/time from loose phrases, starting from now.

    Only "today", "tomorrow" and an exact weekday name are understood for the
    date (today's own weekday means today here). The time needs an am/pm
    suffix. Whatever is not understood keeps its value from now.
    """
    target = now.replace(microsecond=0)

    if date_str:
        lower_date = date_str.lower()
        if lower_date == 'tomorrow':
            target = target + timedelta(days=1)
        else:
            weekday = EXACT_WEEKDAY_RE.fullmatch(lower_date)
            if weekday:
                days_to_add = (WEEKDAYS[weekday.group(1)] - sunday_first_weekday(now)) % 7
                target = target + timedelta(days=days_to_add)

    if time_str:
        match = LOOSE_TIME_RE.search(time_str)
        if match:
            minute = int(match.group(2)) if match.group(2) else 0
            hour = to_24_hour(int(match.group(1)), match.group(3).lower())
            target = _apply_clock(target, hour, minute)

    return target


def convert_voice_data_to_event_data(
    voice_data: VoiceEventData,
    now: Optional[datetime] = None,
) -> EventFormData:
    """
    Convert VoiceEventData into EventFormData for a calendar provider.

    Args:
        voice_data: Loose event fields from the voice or form UI
        now: Reference instant; defaults to local now

    Returns:
        EventFormData with ISO start/end one hour apart
    """
    Log.section("Event Normalizer")
    Log.info(f"Normalizing event: {voice_data.title}")

    if now is None:
        now = local_now()
    title = voice_data.title or UNTITLED_EVENT

    if voice_data.has_strict_date():
        start = _strict_date(voice_data.date, now)
        if start is not None:
            start = _apply_form_time(start, voice_data.time)
            end = start + DEFAULT_EVENT_DURATION
            Log.kv({"stage": "normalize", "result": "success", "strategy": "strict_date",
                    "start": start.isoformat(), "end": end.isoformat()})
            return EventFormData.from_datetimes(
                title, start, end,
                description=voice_data.description,
                location=voice_data.location,
                repeat=voice_data.repeat,
            )
        Log.warn(f"Invalid calendar date: {voice_data.date}")

    synthetic = f"{voice_data.title or ''} {voice_data.time or ''} {voice_data.date or ''}"
    parsed = parse_voice_to_event(synthetic, now)
    if parsed is not None:
        Log.kv({"stage": "normalize", "result": "success", "strategy": "reparse",
                "start": parsed.start.isoformat()})
        return EventFormData.from_datetimes(
            parsed.title, parsed.start, parsed.end,
            description=parsed.description,
            location=parsed.location,
            repeat=voice_data.repeat,
        )

    if voice_data.date or voice_data.time:
        start = parse_loose_datetime(voice_data.date, voice_data.time, now)
        strategy = "loose"
    else:
        start = now.replace(microsecond=0)
        strategy = "now"

    end = start + DEFAULT_EVENT_DURATION
    Log.kv({"stage": "normalize", "result": "success", "strategy": strategy,
            "start": start.isoformat(), "end": end.isoformat()})
    return EventFormData.from_datetimes(
        title, start, end,
        description=voice_data.description,
        location=voice_data.location,
        repeat=voice_data.repeat,
    )


def convert_form_data_to_event_data(
    voice_data: VoiceEventData,
    now: Optional[datetime] = None,
) -> EventFormData:
    """
    Convert manual form input (YYYY-MM-DD date plus optional "HH:MM - HH:MM"
    24-hour range) into EventFormData. Anything else goes through
    convert_voice_data_to_event_data.
    """
    if now is None:
        now = local_now()

    if not voice_data.has_strict_date():
        return convert_voice_data_to_event_data(voice_data, now)
    day = _strict_date(voice_data.date, now)
    if day is None:
        return convert_voice_data_to_event_data(voice_data, now)

    if voice_data.time:
        match = TIME_RANGE_RE.match(voice_data.time)
        if not match:
            return convert_voice_data_to_event_data(voice_data, now)
        start_hour, start_minute, end_hour, end_minute = (int(part) for part in match.groups())
        if max(start_hour, end_hour) > 23 or max(start_minute, end_minute) > 59:
            return convert_voice_data_to_event_data(voice_data, now)
        start = day.replace(hour=start_hour, minute=start_minute)
        end = day.replace(hour=end_hour, minute=end_minute)
        if end < start:
            # Range crosses midnight
            end = end + timedelta(days=1)
    else:
        start = start_of_day(day)
        end = start + DEFAULT_EVENT_DURATION

    Log.section("Form Event")
    Log.kv({"stage": "normalize", "result": "success", "strategy": "form_range",
            "start": start.isoformat(), "end": end.isoformat()})
    return EventFormData.from_datetimes(
        voice_data.title or UNTITLED_EVENT, start, end,
        description=voice_data.description,
        location=voice_data.location,
        repeat=voice_data.repeat,
    )
