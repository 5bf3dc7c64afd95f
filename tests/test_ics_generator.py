from datetime import datetime

from dateutil import tz as dateutil_tz

from voicecal.event_models import EventFormData
from voicecal.ics_generator import build_ics, escape_ical_text, fold_line, format_ical_datetime, generate_ics

STAMP = datetime(2026, 10, 21, 9, 30, tzinfo=dateutil_tz.tzutc())


def _event(**overrides):
    fields = dict(
        title="Lunch",
        start="2026-10-22T12:00:00-07:00",
        end="2026-10-22T13:00:00-07:00",
        description="Date: tomorrow, Time: 12pm",
        location="the deli",
    )
    fields.update(overrides)
    return EventFormData(**fields)


def _unfold(content):
    return content.replace("\r\n ", "")


def test_build_ics_structure():
    content = build_ics(_event(), STAMP)
    lines = content.split("\r\n")

    assert content.endswith("\r\n")
    assert lines[0] == "BEGIN:VCALENDAR"
    assert "BEGIN:VEVENT" in lines
    assert "DTSTART:20261022T190000Z" in lines
    assert "DTEND:20261022T200000Z" in lines
    assert "SUMMARY:Lunch" in lines
    assert "DESCRIPTION:Date: tomorrow\\, Time: 12pm" in lines
    assert "LOCATION:the deli" in lines
    assert "DTSTAMP:20261021T093000Z" in lines
    assert lines[-2] == "END:VCALENDAR"


def test_build_ics_omits_empty_fields():
    content = build_ics(_event(description=None, location=None), STAMP)

    assert "DESCRIPTION" not in content
    assert "LOCATION" not in content
    assert "RRULE" not in content


def test_build_ics_recurrence():
    content = build_ics(_event(repeat={"frequency": "weekly", "count": 4}), STAMP)

    assert "\r\nRRULE:FREQ=WEEKLY;COUNT=4\r\n" in content


def test_build_ics_drops_bad_recurrence():
    content = build_ics(_event(repeat={"frequency": "fortnightly"}), STAMP)

    assert "RRULE" not in content
    assert "SUMMARY:Lunch" in content


def test_build_ics_all_day():
    event = _event(start="2026-12-25T00:00:00+00:00", end="2026-12-26T00:00:00+00:00", is_all_day=True)

    content = build_ics(event, STAMP)

    assert "DTSTART;VALUE=DATE:20261225" in content
    assert "DTEND;VALUE=DATE:20261226" in content


def test_uid_is_stable():
    first = build_ics(_event(), STAMP)
    second = build_ics(_event(), STAMP)

    assert first == second
    assert "@voicecal.local" in first


def test_long_lines_are_folded():
    description = "Bring the quarterly report, the slide deck and a printed agenda for everyone " * 3
    content = build_ics(_event(description=description), STAMP)

    for line in content.split("\r\n"):
        assert len(line.encode("utf-8")) <= 75
    assert "DESCRIPTION:" + escape_ical_text(description) in _unfold(content)


def test_fold_line_multibyte():
    line = "SUMMARY:" + "é" * 80
    folded = fold_line(line)

    for physical in folded.split("\r\n"):
        assert len(physical.encode("utf-8")) <= 75
    assert folded.replace("\r\n ", "") == line


def test_escape_ical_text():
    assert escape_ical_text("a,b;c\\d\ne\r") == "a\\,b\\;c\\\\d\\ne"
    assert escape_ical_text(None) == ""


def test_format_naive_datetime_assumes_local():
    naive = datetime(2026, 10, 22, 12, 0)
    expected = naive.replace(tzinfo=dateutil_tz.tzlocal()).astimezone(dateutil_tz.tzutc())

    assert format_ical_datetime(naive) == expected.strftime("%Y%m%dT%H%M%SZ")


def test_generate_ics_writes_file(tmp_path):
    path = generate_ics(_event(title="Lunch with Sam!"), tmp_path)

    assert path is not None
    assert path.parent == tmp_path
    assert path.name.startswith("VoiceCal_Lunch_with_Sam_")
    assert path.suffix == ".ics"
    data = path.read_bytes()
    assert data.startswith(b"BEGIN:VCALENDAR\r\n")
    assert b"SUMMARY:Lunch with Sam!\r\n" in data


def test_generate_ics_reports_failure(tmp_path):
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("x")

    assert generate_ics(_event(), blocker) is None
