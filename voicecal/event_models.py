"""
Event data models for voice/text calendar event extraction.
Defines VoiceEventData (loose input from voice or form), ParsedEvent (from the
voice parser) and EventFormData (what calendar providers receive).
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Mapping, Optional

from dateutil import parser as dateutil_parser

STRICT_DATE_RE = re.compile(r'\d{4}-\d{2}-\d{2}')

DEFAULT_EVENT_DURATION = timedelta(minutes=60)
UNTITLED_EVENT = "Untitled Event"


@dataclass(frozen=True)
class ParsedEvent:
    """
    Structured event produced by the voice parser.
    start is minute precision; end is always start + 60 minutes.
    """
    title: str
    start: datetime
    end: datetime
    description: Optional[str] = None
    location: Optional[str] = None

    def duration_minutes(self) -> int:
        """Get event duration in minutes."""
        delta = self.end - self.start
        return int(delta.total_seconds() / 60)


@dataclass
class VoiceEventData:
    """
    Loosely-typed event record from the voice or form UI.
    date is either a raw phrase or YYYY-MM-DD; time is a raw phrase,
    'H:MM AM' or an 'HH:MM - HH:MM' range.
    """
    title: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    duration: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    provider: Optional[str] = None
    repeat: Any = None

    def has_strict_date(self) -> bool:
        """Check if date is already in strict YYYY-MM-DD form."""
        return bool(self.date) and STRICT_DATE_RE.fullmatch(self.date) is not None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VoiceEventData":
        """Build from a loose mapping, ignoring unknown keys."""
        known = {name: data.get(name) for name in cls.__dataclass_fields__ if name in data}
        return cls(**known)


@dataclass
class EventFormData:
    """
    Event ready to hand to a calendar provider.
    start/end are ISO-8601 strings.
    """
    title: str
    start: str
    end: str
    description: Optional[str] = None
    location: Optional[str] = None
    is_all_day: bool = False
    repeat: Any = None

    @classmethod
    def from_datetimes(
        cls,
        title: str,
        start: datetime,
        end: datetime,
        description: Optional[str] = None,
        location: Optional[str] = None,
        repeat: Any = None,
    ) -> "EventFormData":
        return cls(
            title=title,
            start=start.isoformat(),
            end=end.isoformat(),
            description=description,
            location=location,
            is_all_day=False,
            repeat=repeat,
        )

    def start_datetime(self) -> datetime:
        return dateutil_parser.isoparse(self.start)

    def end_datetime(self) -> datetime:
        return dateutil_parser.isoparse(self.end)

    def to_dict(self) -> Dict[str, Any]:
        """Render the camelCase shape used by the provider integrations."""
        data: Dict[str, Any] = {
            "title": self.title,
            "start": self.start,
            "end": self.end,
        }
        if self.description is not None:
            data["description"] = self.description
        if self.location is not None:
            data["location"] = self.location
        data["isAllDay"] = self.is_all_day
        if self.repeat is not None:
            data["repeat"] = self.repeat
        return data
