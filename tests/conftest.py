import os
from datetime import datetime

import pytest
from dateutil import tz as dateutil_tz

# Keep test runs on stdout only
os.environ["VOICECAL_LOG_FILE"] = "0"

# Wednesday
REFERENCE_NOW = datetime(2026, 10, 21, 9, 30, 45, 123456, tzinfo=dateutil_tz.tzutc())


@pytest.fixture
def now():
    return REFERENCE_NOW


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    config_dir = tmp_path / "config"
    monkeypatch.setenv("VOICECAL_CONFIG_DIR", str(config_dir))
    monkeypatch.delenv("VOICECAL_CALENDAR", raising=False)
    return config_dir
