"""
Calendar Connector for handing parsed events to calendar providers.
Supports Google Calendar and Outlook (via prefilled browser URLs, or API
request bodies for an authenticated client) and Apple Calendar (via ICS files).
"""

import webbrowser
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

import tzlocal
from dateutil import tz as dateutil_tz

from voicecal.event_models import EventFormData
from voicecal.ics_generator import generate_ics
from voicecal.logging_helper import Log
from voicecal.recurrence import RecurrenceError, to_graph_recurrence, to_rrule
from voicecal.settings_manager import get_preferred_calendar

GOOGLE_TEMPLATE_URL = "https://calendar.google.com/calendar/r/eventedit"
OUTLOOK_COMPOSE_URL = "https://outlook.live.com/calendar/0/deeplink/compose"


@dataclass(frozen=True)
class CalendarHandoff:
    """Where an event was sent: a URL for web calendars, a file path for Apple."""
    calendar: str
    target: str


def _tzinfo_to_iana(tzinfo) -> Optional[str]:
    """
    Attempt to extract an IANA timezone identifier from a tzinfo object.
    """
    if tzinfo is None:
        return None

    # Common attributes exposed by zoneinfo.ZoneInfo or pytz timezones
    for attr in ("key", "zone"):
        value = getattr(tzinfo, attr, None)
        if isinstance(value, str) and value:
            # IANA identifiers typically contain '/' but "UTC" is also valid
            if "/" in value or value.upper() == "UTC":
                return value

    if isinstance(tzinfo, dateutil_tz.tzutc):
        return "UTC"
    return None


def resolve_iana_timezone(event: EventFormData) -> Optional[str]:
    """
    Resolve an IANA timezone identifier for Google Calendar URLs.

    Prefers timezone information carried by the event's start. Falls back to
    the system timezone via tzlocal.
    """
    iana = _tzinfo_to_iana(event.start_datetime().tzinfo)
    if iana:
        return iana

    try:
        iana = tzlocal.get_localzone_name()
    except Exception as tz_err:
        # tzlocal raises its own error types when the zone is misconfigured
        Log.warn(f"Failed to determine system IANA timezone: {tz_err}")
        return None
    return iana or None


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        # If no timezone, assume it's local time (system timezone)
        system_tz = dateutil_tz.tzlocal()
        dt = dt.replace(tzinfo=system_tz)
        Log.warn(f"Datetime missing timezone info, assuming system timezone: {system_tz}")
    return dt.astimezone(dateutil_tz.tzutc())


def format_google_calendar_datetime(dt: datetime) -> str:
    """
    Format datetime to Google Calendar URL format (YYYYMMDDTHHMMSSZ, UTC).
    """
    return _as_utc(dt).strftime('%Y%m%dT%H%M%SZ')


def format_utc_iso(dt: datetime) -> str:
    """Format datetime as ISO 8601 UTC without offset, as Graph expects with timeZone=UTC."""
    return _as_utc(dt).replace(tzinfo=None).strftime('%Y-%m-%dT%H:%M:%S')


def _safe_rrule(event: EventFormData) -> Optional[str]:
    try:
        return to_rrule(event.repeat, event.start_datetime())
    except RecurrenceError as err:
        Log.warn(f"Dropping recurrence: {err}")
        return None


def generate_google_calendar_url(event: EventFormData) -> str:
    """
    Generate a Google Calendar URL with pre-filled event details.

    Args:
        event: EventFormData object

    Returns:
        Google Calendar URL string
    """
    start = event.start_datetime()
    end = event.end_datetime()
    if event.is_all_day:
        dates = f"{start.strftime('%Y%m%d')}%2F{end.strftime('%Y%m%d')}"
    else:
        dates = f"{format_google_calendar_datetime(start)}%2F{format_google_calendar_datetime(end)}"

    title_encoded = quote(event.title, safe='')

    # Format: eventedit?action=TEMPLATE&dates=START%2FEND&text=TITLE&details=DESC&location=LOC
    url = f"{GOOGLE_TEMPLATE_URL}?action=TEMPLATE&dates={dates}&text={title_encoded}"

    if event.description:
        url += f"&details={quote(event.description, safe='')}"

    if event.location:
        url += f"&location={quote(event.location, safe='')}"

    # Include the timezone identifier so Google Calendar defaults correctly
    iana_timezone = resolve_iana_timezone(event)
    if iana_timezone:
        url += f"&ctz={quote(iana_timezone, safe='')}"
    else:
        Log.warn("Unable to determine IANA timezone for Google Calendar URL; defaulting to Google account settings")

    rule = _safe_rrule(event)
    if rule:
        url += f"&recur={quote(rule, safe='')}"

    Log.info(f"Generated Google Calendar URL: {url[:200]}...")
    return url


def generate_outlook_calendar_url(event: EventFormData) -> str:
    """
    Generate an Outlook on the web compose URL with pre-filled event details.
    Outlook deeplinks cannot carry recurrence; the user sets it in the form.
    """
    start = event.start_datetime()
    end = event.end_datetime()
    if event.is_all_day:
        start_str = start.strftime('%Y-%m-%d')
        end_str = end.strftime('%Y-%m-%d')
    else:
        start_str = _as_utc(start).strftime('%Y-%m-%dT%H:%M:%SZ')
        end_str = _as_utc(end).strftime('%Y-%m-%dT%H:%M:%SZ')

    params = [
        ("path", "/calendar/action/compose"),
        ("rru", "addevent"),
        ("subject", event.title),
        ("startdt", start_str),
        ("enddt", end_str),
        ("allday", "true" if event.is_all_day else "false"),
    ]
    if event.description:
        params.append(("body", event.description))
    if event.location:
        params.append(("location", event.location))

    url = OUTLOOK_COMPOSE_URL + "?" + "&".join(f"{key}={quote(value, safe='')}" for key, value in params)
    Log.info(f"Generated Outlook URL: {url[:200]}...")
    return url


def build_google_event_body(event: EventFormData) -> Dict[str, Any]:
    """
    Build a Google Calendar API v3 event resource.
    All-day events use "date", timed events "dateTime".
    """
    start = event.start_datetime()
    end = event.end_datetime()
    body: Dict[str, Any] = {"summary": event.title}
    if event.description is not None:
        body["description"] = event.description
    if event.is_all_day:
        body["start"] = {"date": start.date().isoformat()}
        body["end"] = {"date": end.date().isoformat()}
    else:
        body["start"] = {"dateTime": event.start}
        body["end"] = {"dateTime": event.end}
    if event.location is not None:
        body["location"] = event.location

    rule = _safe_rrule(event)
    if rule:
        body["recurrence"] = [rule]
    return body


def build_outlook_event_body(event: EventFormData) -> Dict[str, Any]:
    """
    Build a Microsoft Graph event resource with UTC start/end.
    """
    start = event.start_datetime()
    end = event.end_datetime()
    body: Dict[str, Any] = {
        "subject": event.title,
        "start": {"dateTime": format_utc_iso(start), "timeZone": "UTC"},
        "end": {"dateTime": format_utc_iso(end), "timeZone": "UTC"},
        "isAllDay": event.is_all_day,
    }
    if event.location:
        body["location"] = {"displayName": event.location}
    if event.description:
        body["body"] = {"content": event.description, "contentType": "text"}

    try:
        recurrence = to_graph_recurrence(event.repeat, start)
    except RecurrenceError as err:
        Log.warn(f"Dropping recurrence: {err}")
        recurrence = None
    if recurrence:
        body["recurrence"] = recurrence
    return body


def _open_url(url: str) -> None:
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        Log.warn(f"Error opening calendar URL: {e}")
        return
    if opened:
        Log.kv({"stage": "calendar", "action": "url_opened", "url": url})
    else:
        Log.warn("No browser available to open calendar URL")


def create_calendar_event(
    event: EventFormData,
    calendar_preference: Optional[str] = None,
    ics_directory: Optional[Path] = None,
    open_in_browser: bool = False,
) -> Optional[CalendarHandoff]:
    """
    Hand an event to the user's preferred calendar system.

    - google: Google Calendar template URL
    - outlook: Outlook on the web compose URL
    - apple: ICS file for Calendar import

    Args:
        event: EventFormData object
        calendar_preference: Overrides VOICECAL_CALENDAR and saved settings
        ics_directory: Where ICS files go (default ~/Downloads)
        open_in_browser: Open URLs with the default browser

    Returns:
        CalendarHandoff, or None if the ICS file could not be written
    """
    Log.section("Calendar Connector")
    calendar = get_preferred_calendar(calendar_preference)
    Log.info(f"Creating {calendar} calendar event for: {event.title}")

    if calendar == "apple":
        ics_path = generate_ics(event, ics_directory)
        if ics_path is None:
            Log.error("Failed to generate ICS file")
            return None
        return CalendarHandoff(calendar, str(ics_path))

    if calendar == "outlook":
        url = generate_outlook_calendar_url(event)
    else:
        url = generate_google_calendar_url(event)

    if open_in_browser:
        _open_url(url)

    Log.kv({
        "stage": "calendar",
        "result": "success",
        "calendar_type": calendar,
        "event_title": event.title,
    })
    return CalendarHandoff(calendar, url)
