"""
Speech-result handling: turn a finished transcript into VoiceEventData or
EventFormData.

The voice parser is tried first. When it finds nothing, a looser extractor
pulls out whatever time, date and location fragments it can and keeps the
rest of the transcript as the title.
"""

import re
from datetime import datetime
from typing import Optional

from voicecal.date_resolver import local_now
from voicecal.event_models import UNTITLED_EVENT, EventFormData, VoiceEventData
from voicecal.event_normalizer import convert_voice_data_to_event_data
from voicecal.logging_helper import Log
from voicecal.voice_parser import LOCATION_RE, build_description, parse_voice_to_event

LOOSE_TIME_PATTERNS = [
    re.compile(r'(\d{1,2}):?(\d{2})?\s*(am|pm)', re.IGNORECASE),
    re.compile(r'(\d{1,2})\s*(am|pm)', re.IGNORECASE),
    re.compile(r'at\s+(\d{1,2}):?(\d{2})?\s*(am|pm)', re.IGNORECASE),
    re.compile(r'at\s+(\d{1,2})\s*(am|pm)', re.IGNORECASE),
]

LOOSE_DATE_PATTERNS = [
    re.compile(r'(monday|tuesday|wednesday|thursday|friday|saturday|sunday)', re.IGNORECASE),
    re.compile(r'(january|february|march|april|may|june|july|august|september|october|november|december)\s+\d{1,2}',
               re.IGNORECASE),
    re.compile(r'(\d{1,2})/(\d{1,2})'),
    re.compile(r'today|tomorrow'),
]

TRAILING_EVENT_WORD_RE = re.compile(r'\s+(?:appointment|meeting|event|call)$', re.IGNORECASE)


def _first_match(patterns, text: str) -> str:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(0)
    return ''


def extract_voice_event_data(text: str) -> VoiceEventData:
    """
    Loosely extract event fields from a transcript the voice parser rejected.
    Always returns a record; the title falls back to "Untitled Event".
    """
    lower_text = text.lower()

    time = _first_match(LOOSE_TIME_PATTERNS, lower_text)
    date = _first_match(LOOSE_DATE_PATTERNS, lower_text)

    location = ''
    location_match = LOCATION_RE.search(lower_text)
    if location_match:
        location = location_match.group(1).strip()

    title = text
    if time:
        title = re.sub(re.escape(time), '', title, count=1, flags=re.IGNORECASE).strip()
    if date:
        title = re.sub(re.escape(date), '', title, count=1, flags=re.IGNORECASE).strip()
    if location:
        title = re.sub(rf'(?:at|in)\s+{re.escape(location)}', '', title, count=1, flags=re.IGNORECASE).strip()

    title = re.sub(r'\s+', ' ', title).strip()
    title = TRAILING_EVENT_WORD_RE.sub('', title)
    if not title:
        title = UNTITLED_EVENT

    return VoiceEventData(
        title=title,
        date=date or None,
        time=time or None,
        location=location or None,
        description=build_description(date, time, location),
    )


def transcript_to_voice_data(text: str, now: Optional[datetime] = None) -> VoiceEventData:
    """
    Build VoiceEventData from a speech transcript.

    On a successful parse the full transcript is carried in both time and
    date so later stages can parse it again.
    """
    parsed = parse_voice_to_event(text, now)
    if parsed is not None:
        return VoiceEventData(
            title=parsed.title,
            description=parsed.description,
            location=parsed.location,
            time=text,
            date=text,
        )

    voice_data = extract_voice_event_data(text)
    Log.info(f"Parsed event from voice (fallback): {voice_data}")
    return voice_data


def transcript_to_event_data(text: str, now: Optional[datetime] = None) -> EventFormData:
    """Run the full transcript flow and return what goes to the calendar provider."""
    if now is None:
        now = local_now()

    parsed = parse_voice_to_event(text, now)
    if parsed is not None:
        return EventFormData.from_datetimes(
            parsed.title, parsed.start, parsed.end,
            description=parsed.description,
            location=parsed.location,
        )

    voice_data = extract_voice_event_data(text)
    Log.info(f"Parsed event from voice (fallback): {voice_data}")
    return convert_voice_data_to_event_data(voice_data, now)
