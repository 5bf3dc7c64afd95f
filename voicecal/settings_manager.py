"""
Application settings management for user preferences.

Currently only tracks the preferred calendar provider (Google, Outlook or
Apple). Settings are persisted as JSON in VOICECAL_CONFIG_DIR (default
~/.config/voicecal) so the choice survives across runs.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Literal, Optional, TypedDict

from voicecal.logging_helper import Log

CalendarPreference = Literal["google", "outlook", "apple"]

CALENDAR_CHOICES = ("google", "outlook", "apple")


class SettingsSchema(TypedDict, total=False):
    preferred_calendar: CalendarPreference


DEFAULT_SETTINGS_DIR = Path.home() / ".config" / "voicecal"
SETTINGS_FILENAME = "settings.json"

DEFAULT_SETTINGS: SettingsSchema = {
    "preferred_calendar": "google",
}


def settings_dir() -> Path:
    env_dir = os.environ.get("VOICECAL_CONFIG_DIR")
    return Path(env_dir).expanduser() if env_dir else DEFAULT_SETTINGS_DIR


def settings_file() -> Path:
    return settings_dir() / SETTINGS_FILENAME


def _ensure_settings_dir() -> None:
    try:
        settings_dir().mkdir(parents=True, exist_ok=True)
    except OSError as err:
        Log.warn(f"Unable to create settings directory {settings_dir()}: {err}")


def load_settings() -> SettingsSchema:
    """
    Load settings from disk, falling back to defaults if anything fails.
    """
    path = settings_file()
    if not path.exists():
        Log.info(f"Settings file not found, using defaults: {path}")
        return DEFAULT_SETTINGS.copy()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("Settings data is not a JSON object")
    except (OSError, ValueError) as err:
        Log.warn(f"Failed to read settings file ({path}): {err}")
        return DEFAULT_SETTINGS.copy()

    merged: SettingsSchema = DEFAULT_SETTINGS.copy()
    # Merge only known keys
    for key in DEFAULT_SETTINGS:
        if key in data:
            merged[key] = data[key]  # type: ignore[literal-required]
    return merged


def save_settings(settings: SettingsSchema) -> None:
    """
    Persist settings to disk.
    """
    _ensure_settings_dir()
    path = settings_file()
    try:
        path.write_text(
            json.dumps(settings, indent=2, sort_keys=True),
            encoding="utf-8",
        )
    except OSError as err:
        Log.warn(f"Failed to write settings file ({path}): {err}")


def get_preferred_calendar(override: Optional[str] = None) -> CalendarPreference:
    """
    Resolve the calendar to use: explicit override, then VOICECAL_CALENDAR,
    then the saved setting.
    """
    preferred = override or os.environ.get("VOICECAL_CALENDAR")
    if not preferred:
        settings = load_settings()
        preferred = settings.get("preferred_calendar", DEFAULT_SETTINGS["preferred_calendar"])
    preferred = str(preferred).lower()
    if preferred not in CALENDAR_CHOICES:
        Log.warn(f"Invalid preferred_calendar value '{preferred}', defaulting to google")
        preferred = "google"
    return preferred  # type: ignore[return-value]


def set_preferred_calendar(value: CalendarPreference) -> None:
    if value not in CALENDAR_CHOICES:
        raise ValueError(f"Invalid calendar preference: {value}")
    settings = load_settings()
    settings["preferred_calendar"] = value
    save_settings(settings)
    Log.info(f"Saved preferred calendar setting: {value}")
