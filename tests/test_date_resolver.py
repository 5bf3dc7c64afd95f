from datetime import datetime, timedelta

import pytest
from dateutil import tz as dateutil_tz

from voicecal.date_resolver import resolve_date, resolve_time


@pytest.mark.parametrize("phrase, expected", [
    ("5 pm", (17, 0)),
    ("5pm", (17, 0)),
    ("10:30am", (10, 30)),
    ("10:30 AM", (10, 30)),
    ("2 p.m.", (14, 0)),
    ("2:05 P.M.", (14, 5)),
    ("9 a.m.", (9, 0)),
    ("12am", (0, 0)),
    ("12:45 A.M.", (0, 45)),
    ("12pm", (12, 0)),
    ("12:30 p.m.", (12, 30)),
    ("11 PM", (23, 0)),
])
def test_resolve_time_twelve_hour_literals(phrase, expected):
    assert resolve_time(phrase) == expected


@pytest.mark.parametrize("phrase", [
    "14:00",
    "17",
    "noon",
    "half past five",
    "13pm",
    "0am",
    "5:75pm",
    "",
    None,
])
def test_resolve_time_rejects_unsupported_shapes(phrase):
    assert resolve_time(phrase) is None


def test_today_is_local_midnight(now):
    assert resolve_date("today", now) == datetime(2026, 10, 21, tzinfo=dateutil_tz.tzutc())


def test_tomorrow_is_one_day_after_midnight(now):
    today = resolve_date("today", now)
    assert resolve_date("Tomorrow", now) == today + timedelta(days=1)


def test_naive_reference_stays_naive():
    resolved = resolve_date("tomorrow", datetime(2026, 12, 31, 23, 59))
    assert resolved == datetime(2027, 1, 1)
    assert resolved.tzinfo is None


def test_default_reference_is_local_time():
    resolved = resolve_date("today")
    assert resolved.tzinfo is not None
    assert (resolved.hour, resolved.minute, resolved.second) == (0, 0, 0)


@pytest.mark.parametrize("phrase, expected_day", [
    ("friday", 23),
    ("saturday", 24),
    ("sunday", 25),
    ("monday", 26),
    ("thursday", 22),
])
def test_weekday_resolves_to_next_occurrence(now, phrase, expected_day):
    assert resolve_date(phrase, now).date() == datetime(2026, 10, expected_day).date()


def test_own_weekday_rolls_a_full_week(now):
    # now is a Wednesday
    assert resolve_date("wednesday", now).date() == datetime(2026, 10, 28).date()


def test_next_weekday_adds_a_week(now):
    assert resolve_date("friday", now).day == 23
    assert resolve_date("next friday", now).day == 30


def test_next_weekday_already_passed_this_week(now):
    # Sunday-first delta for monday from wednesday is -2, plus 7
    assert resolve_date("next monday", now).date() == datetime(2026, 10, 26).date()


def test_this_weekday_is_plain_weekday(now):
    assert resolve_date("this monday", now) == resolve_date("monday", now)


def test_weekday_never_before_today(now):
    today = resolve_date("today", now)
    for name in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"):
        assert resolve_date(name, now) > today
        assert resolve_date(f"next {name}", now) > today


def test_month_day_after_it_passed_rolls_to_next_year(now):
    assert resolve_date("August 15", now).date() == datetime(2027, 8, 15).date()


def test_month_day_still_ahead_stays_this_year(now):
    assert resolve_date("December 25", now).date() == datetime(2026, 12, 25).date()


def test_month_day_today_is_not_rolled(now):
    assert resolve_date("october 21", now).date() == datetime(2026, 10, 21).date()
    assert resolve_date("oct 20", now).date() == datetime(2027, 10, 20).date()


@pytest.mark.parametrize("phrase, expected", [
    ("sept 3rd", (2027, 9, 3)),
    ("sep 3", (2027, 9, 3)),
    ("September 1st", (2027, 9, 1)),
    ("nov 2nd", (2026, 11, 2)),
    ("Jan 22nd", (2027, 1, 22)),
    ("dec 31st", (2026, 12, 31)),
])
def test_month_abbreviations_and_ordinals(now, phrase, expected):
    assert resolve_date(phrase, now).date() == datetime(*expected).date()


def test_explicit_year_is_never_rolled(now):
    assert resolve_date("August 15, 2025", now).date() == datetime(2025, 8, 15).date()
    assert resolve_date("march 3rd,2030", now).date() == datetime(2030, 3, 3).date()


def test_impossible_month_day_is_rejected(now):
    assert resolve_date("february 30", now) is None
    assert resolve_date("june 31, 2027", now) is None


def test_leap_day_rolled_into_common_year_clamps():
    reference = datetime(2028, 3, 1, 8, 0)
    assert resolve_date("february 29", reference) == datetime(2029, 2, 28)


@pytest.mark.parametrize("phrase", ["next week", "smarch 5", "soon", "", "   "])
def test_unknown_phrases(now, phrase):
    assert resolve_date(phrase, now) is None
