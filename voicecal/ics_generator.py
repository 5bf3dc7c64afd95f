"""
ICS Generator for creating iCalendar (.ics) files.
Generates RFC5545-compliant ICS content for Apple Calendar and any other
client that imports .ics files.
"""

import hashlib
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from dateutil import tz as dateutil_tz

from voicecal.event_models import EventFormData
from voicecal.logging_helper import Log
from voicecal.recurrence import RecurrenceError, to_rrule

PRODID = "-//VoiceCal//VoiceCal//EN"


def escape_ical_text(text: Optional[str]) -> str:
    """
    Escape text for iCalendar format (RFC5545).
    Escapes commas, semicolons, backslashes, and newlines.

    Args:
        text: Text to escape

    Returns:
        Escaped text safe for iCalendar
    """
    if text is None:
        return ""

    # Replace backslashes first (before other replacements)
    text = text.replace('\\', '\\\\')
    text = text.replace(';', '\\;')
    text = text.replace(',', '\\,')
    text = text.replace('\n', '\\n')
    text = text.replace('\r', '')
    return text


def fold_line(line: str) -> str:
    """
    Fold a content line to 75 octets per physical line.
    Continuation lines start with a single space.
    """
    lines = []
    current_line = ""

    for char in line:
        # Continuation lines spend one octet on the leading space
        test_line = current_line + char
        if len(test_line.encode('utf-8')) <= 75:
            current_line = test_line
        else:
            lines.append(current_line)
            current_line = " " + char

    if current_line:
        lines.append(current_line)

    return '\r\n'.join(lines)


def format_ical_datetime(dt: datetime) -> str:
    """
    Format datetime to iCalendar format (UTC).
    Converts from system timezone to UTC if needed.

    Args:
        dt: datetime object (in system timezone or UTC)

    Returns:
        Formatted datetime string (YYYYMMDDTHHMMSSZ)
    """
    if dt.tzinfo is None:
        # If no timezone, assume it's local time (system timezone)
        system_tz = dateutil_tz.tzlocal()
        dt = dt.replace(tzinfo=system_tz)
        Log.warn(f"Datetime missing timezone info, assuming system timezone: {system_tz}")

    dt_utc = dt.astimezone(dateutil_tz.tzutc())
    return dt_utc.strftime('%Y%m%dT%H%M%SZ')


def event_uid(event: EventFormData) -> str:
    """Stable UID for an event, derived from its start and title."""
    uid_string = f"{event.start}_{event.title}"
    return hashlib.md5(uid_string.encode()).hexdigest() + "@voicecal.local"


def build_ics(event: EventFormData, now: Optional[datetime] = None) -> str:
    """
    Build the text of a single-event VCALENDAR.

    Args:
        event: EventFormData to export
        now: DTSTAMP instant; defaults to the current UTC time

    Returns:
        ICS content with CRLF line endings
    """
    start = event.start_datetime()
    end = event.end_datetime()
    created_time = now if now is not None else datetime.now(dateutil_tz.tzutc())

    ics_lines: List[str] = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{event_uid(event)}",
    ]

    if event.is_all_day:
        ics_lines.append(f"DTSTART;VALUE=DATE:{start.strftime('%Y%m%d')}")
        ics_lines.append(f"DTEND;VALUE=DATE:{end.strftime('%Y%m%d')}")
    else:
        ics_lines.append(f"DTSTART:{format_ical_datetime(start)}")
        ics_lines.append(f"DTEND:{format_ical_datetime(end)}")

    ics_lines.append(f"SUMMARY:{escape_ical_text(event.title)}")
    if event.description:
        ics_lines.append(f"DESCRIPTION:{escape_ical_text(event.description)}")
    if event.location:
        ics_lines.append(f"LOCATION:{escape_ical_text(event.location)}")

    try:
        rule = to_rrule(event.repeat, start)
    except RecurrenceError as err:
        Log.warn(f"Dropping recurrence from ICS export: {err}")
        rule = None
    if rule:
        ics_lines.append(rule)

    ics_lines.append(f"DTSTAMP:{format_ical_datetime(created_time)}")
    ics_lines.append("END:VEVENT")
    ics_lines.append("END:VCALENDAR")

    return '\r\n'.join(fold_line(line) for line in ics_lines) + '\r\n'


def ics_filename(event: EventFormData, timestamp: str) -> str:
    safe_title = re.sub(r'[^\w\s-]', '', event.title)[:50]
    safe_title = re.sub(r'[-\s]+', '_', safe_title)
    return f"VoiceCal_{safe_title}_{timestamp}.ics"


def generate_ics(event: EventFormData, directory: Optional[Path] = None) -> Optional[Path]:
    """
    Generate an ICS file for the event and save it (default: ~/Downloads).

    Args:
        event: EventFormData object
        directory: Target directory

    Returns:
        Path to generated ICS file, or None if generation fails
    """
    Log.section("ICS Generator")
    Log.info(f"Generating ICS file for: {event.title}")

    target_dir = Path(directory) if directory is not None else Path.home() / "Downloads"
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    ics_path = target_dir / ics_filename(event, timestamp)

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        # newline='' keeps the CRLF line endings intact on every platform
        with open(ics_path, 'w', encoding='utf-8', newline='') as ics_file:
            ics_file.write(build_ics(event))
    except OSError as e:
        Log.error(f"ICS generation failed: {e}")
        Log.kv({"stage": "ics", "result": "failed", "error": str(e)})
        return None

    Log.info(f"ICS file generated: {ics_path}")
    Log.kv({
        "stage": "ics",
        "result": "success",
        "ics_path": str(ics_path),
        "event_title": event.title,
    })
    return ics_path
