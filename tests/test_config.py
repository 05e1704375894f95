"""Tests for environment-driven settings."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from orbtrack.config import Settings
from orbtrack.core.errors import InvalidParameters

VARIABLES = [
    "ORBTRACK_SNAPSHOT_LIMIT",
    "ORBTRACK_PASS_DURATION_MIN",
    "ORBTRACK_PASS_STEP_S",
    "ORBTRACK_MIN_ELEVATION_DEG",
    "ORBTRACK_MAX_PASS_SAMPLES",
    "ORBTRACK_REFINE_PASSES",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in VARIABLES:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_environment():
    settings = Settings.from_env()
    assert settings == Settings()
    assert settings.snapshot_limit == 500
    assert settings.pass_step_s == 15
    assert settings.min_elevation_deg == 10
    assert settings.refine_passes is False


def test_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ORBTRACK_SNAPSHOT_LIMIT", "25")
    monkeypatch.setenv("ORBTRACK_PASS_DURATION_MIN", "1440")
    monkeypatch.setenv("ORBTRACK_PASS_STEP_S", "5.5")
    monkeypatch.setenv("ORBTRACK_MIN_ELEVATION_DEG", "-2")
    monkeypatch.setenv("ORBTRACK_MAX_PASS_SAMPLES", "2000")
    monkeypatch.setenv("ORBTRACK_REFINE_PASSES", "yes")
    settings = Settings.from_env()
    assert settings.snapshot_limit == 25
    assert settings.pass_duration_min == 1440.0
    assert settings.pass_step_s == 5.5
    assert settings.min_elevation_deg == -2.0
    assert settings.max_pass_samples == 2000
    assert settings.refine_passes is True


def test_empty_value_keeps_default(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ORBTRACK_SNAPSHOT_LIMIT", "")
    assert Settings.from_env().snapshot_limit == 500


@pytest.mark.parametrize(
    "key,value",
    [
        ("ORBTRACK_SNAPSHOT_LIMIT", "many"),
        ("ORBTRACK_SNAPSHOT_LIMIT", "-1"),
        ("ORBTRACK_PASS_STEP_S", "fast"),
        ("ORBTRACK_PASS_STEP_S", "0"),
        ("ORBTRACK_MIN_ELEVATION_DEG", "95"),
        ("ORBTRACK_REFINE_PASSES", "maybe"),
    ],
)
def test_invalid_value_names_variable(monkeypatch: pytest.MonkeyPatch, key: str, value: str):
    monkeypatch.setenv(key, value)
    with pytest.raises(InvalidParameters, match=key):
        Settings.from_env()


def test_settings_are_immutable():
    settings = Settings()
    with pytest.raises(ValidationError):
        settings.snapshot_limit = 1
