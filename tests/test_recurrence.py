from datetime import datetime

import pytest
from dateutil import tz as dateutil_tz

from voicecal.recurrence import RecurrenceError, normalize_repeat, to_graph_recurrence, to_rrule

# Wednesday
START = datetime(2026, 10, 21, 9, 0, tzinfo=dateutil_tz.tzutc())


def test_weekly_rule_with_days_and_count():
    rule = to_rrule({"frequency": "weekly", "days": ["Monday", "wednesday"], "count": 10}, START)

    assert rule == "RRULE:FREQ=WEEKLY;BYDAY=MO,WE;COUNT=10"


def test_interval_and_until():
    rule = to_rrule({"frequency": "daily", "interval": 2, "until": "2026-12-31"}, START)

    assert rule == "RRULE:FREQ=DAILY;INTERVAL=2;UNTIL=20261231"


@pytest.mark.parametrize("repeat", [None, {}, "", {"frequency": "none"}, {"frequency": "never"}])
def test_empty_repeat(repeat):
    assert to_rrule(repeat, START) is None
    assert to_graph_recurrence(repeat, START) is None


def test_raw_rrule_passes_through():
    assert to_rrule("RRULE:FREQ=MONTHLY;BYMONTHDAY=15", START) == "RRULE:FREQ=MONTHLY;BYMONTHDAY=15"
    assert to_rrule("RRULE:FREQ=WEEKLY;UNTIL=20261231T000000Z", START) == "RRULE:FREQ=WEEKLY;UNTIL=20261231T000000Z"


@pytest.mark.parametrize("repeat", [
    "FREQ=DAILY",
    "RRULE:FREQ=SOMETIMES",
    {"frequency": "hourly"},
    {"frequency": "daily", "interval": 0},
    {"frequency": "daily", "interval": "often"},
    {"frequency": "weekly", "days": ["funday"]},
    {"frequency": "daily", "count": 3, "until": "2026-12-31"},
    {"frequency": "daily", "until": "12/31/2026"},
    5,
])
def test_malformed_repeat(repeat):
    with pytest.raises(RecurrenceError):
        to_rrule(repeat, START)


def test_recurrence_error_is_value_error():
    assert issubclass(RecurrenceError, ValueError)


def test_normalize_repeat_defaults():
    assert normalize_repeat({"frequency": "Weekly", "days": "friday"}) == {
        "frequency": "weekly",
        "interval": 1,
        "count": None,
        "until": None,
        "days": ["friday"],
    }


def test_graph_weekly_defaults_to_start_weekday():
    assert to_graph_recurrence({"frequency": "weekly"}, START) == {
        "pattern": {"type": "weekly", "interval": 1, "daysOfWeek": ["wednesday"]},
        "range": {"startDate": "2026-10-21", "type": "noEnd"},
    }


def test_graph_monthly_numbered():
    recurrence = to_graph_recurrence({"frequency": "monthly", "count": 6}, START)

    assert recurrence["pattern"] == {"type": "absoluteMonthly", "interval": 1, "dayOfMonth": 21}
    assert recurrence["range"] == {"startDate": "2026-10-21", "type": "numbered", "numberOfOccurrences": 6}


def test_graph_yearly_end_date():
    recurrence = to_graph_recurrence({"frequency": "yearly", "until": "2030-10-21"}, START)

    assert recurrence["pattern"] == {"type": "absoluteYearly", "interval": 1, "dayOfMonth": 21, "month": 10}
    assert recurrence["range"]["type"] == "endDate"
    assert recurrence["range"]["endDate"] == "2030-10-21"


def test_graph_rejects_raw_rrule():
    with pytest.raises(RecurrenceError):
        to_graph_recurrence("RRULE:FREQ=DAILY", START)
