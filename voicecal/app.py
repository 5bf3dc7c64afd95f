"""
Command-line entry point: turn a transcript into a calendar event and hand
it to Google Calendar, Outlook or Apple Calendar.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from dateutil import parser as dateutil_parser
from dateutil import tz as dateutil_tz

from voicecal.calendar_connector import create_calendar_event
from voicecal.date_resolver import local_now
from voicecal.logging_helper import Log
from voicecal.settings_manager import CALENDAR_CHOICES
from voicecal.transcript_fallback import transcript_to_event_data
from voicecal.voice_parser import parse_voice_to_event


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voicecal",
        description="Create a calendar event from a spoken or typed sentence.",
    )
    parser.add_argument("transcript", nargs="+", help='e.g. "Lunch tomorrow at 12pm"')
    parser.add_argument("--calendar", choices=CALENDAR_CHOICES,
                        help="Calendar to hand the event to (default: saved preference)")
    parser.add_argument("--now", help="Reference time as ISO 8601, for relative dates")
    parser.add_argument("--strict", action="store_true",
                        help="Fail instead of guessing when the sentence is not understood")
    parser.add_argument("--ics-dir", type=Path, help="Directory for Apple Calendar .ics files")
    parser.add_argument("--open", action="store_true", help="Open the calendar URL in a browser")
    parser.add_argument("--json", action="store_true", help="Print the event as JSON")
    return parser


def _reference_now(value: Optional[str]):
    if not value:
        return local_now()
    now = dateutil_parser.isoparse(value)
    if now.tzinfo is None:
        now = now.replace(tzinfo=dateutil_tz.tzlocal())
    return now


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    transcript = " ".join(args.transcript)

    try:
        now = _reference_now(args.now)
    except ValueError as err:
        parser.error(f"invalid --now value {args.now!r}: {err}")

    Log.section("VoiceCal")
    log_path = Log.get_log_path()
    if log_path:
        Log.info(f"Log file: {log_path}")

    if args.strict and parse_voice_to_event(transcript, now) is None:
        Log.warn("Could not understand the event; try e.g. 'Lunch tomorrow at 12pm'")
        return 1

    event = transcript_to_event_data(transcript, now)
    handoff = create_calendar_event(
        event,
        calendar_preference=args.calendar,
        ics_directory=args.ics_dir,
        open_in_browser=args.open,
    )
    if handoff is None:
        return 1

    if args.json:
        payload = event.to_dict()
        payload["calendar"] = handoff.calendar
        payload["target"] = handoff.target
        print(json.dumps(payload, indent=2, default=str))
    else:
        print(f"{event.title}: {event.start} -> {event.end}")
        print(f"{handoff.calendar}: {handoff.target}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
