import json

from voicecal.app import main

NOW = "2026-10-21T09:30:00+00:00"


def test_google_handoff(capsys):
    assert main(["Lunch tomorrow at 12pm", "--now", NOW, "--calendar", "google"]) == 0

    out = capsys.readouterr().out
    assert "Lunch: 2026-10-22T12:00:00+00:00 -> 2026-10-22T13:00:00+00:00" in out
    assert "google: https://calendar.google.com/calendar/r/eventedit?action=TEMPLATE" in out


def test_words_are_joined(capsys):
    assert main(["Lunch", "tomorrow", "at", "12pm", "--now", NOW, "--calendar", "outlook"]) == 0

    assert "outlook: https://outlook.live.com/calendar/0/deeplink/compose?" in capsys.readouterr().out


def test_json_output(capsys):
    assert main(["Dentist appointment friday 3pm", "--now", NOW, "--json", "--calendar", "google"]) == 0

    out = capsys.readouterr().out
    payload = json.loads(out[out.index("{\n"):])
    assert payload["title"] == "Dentist"
    assert payload["start"] == "2026-10-23T15:00:00+00:00"
    assert payload["isAllDay"] is False
    assert payload["calendar"] == "google"


def test_apple_writes_ics(tmp_path, capsys):
    assert main(["Lunch tomorrow at 12pm", "--now", NOW, "--calendar", "apple", "--ics-dir", str(tmp_path)]) == 0

    files = list(tmp_path.glob("VoiceCal_Lunch_*.ics"))
    assert len(files) == 1
    assert f"apple: {files[0]}" in capsys.readouterr().out


def test_strict_rejects_unparsed(capsys):
    assert main(["hmm", "--now", NOW, "--strict"]) == 1

    assert "[WARN] Could not understand the event" in capsys.readouterr().out


def test_invalid_now_is_usage_error(capsys):
    try:
        main(["Lunch tomorrow at 12pm", "--now", "yesterday-ish"])
    except SystemExit as exit_:
        assert exit_.code == 2
    else:
        raise AssertionError("expected SystemExit")
    assert "invalid --now value" in capsys.readouterr().err
