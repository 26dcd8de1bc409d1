import logging

from app.core.config import _env_bool, _env_float, _env_int, settings
from app.core.logging import _parse_level


def test_env_float_falls_back_and_clamps(monkeypatch):
    monkeypatch.setenv("DRIFT_TOLERANCE", "0.5")
    assert _env_float("DRIFT_TOLERANCE", 0.01) == 0.5

    monkeypatch.setenv("DRIFT_TOLERANCE", "abc")
    assert _env_float("DRIFT_TOLERANCE", 0.01) == 0.01

    monkeypatch.setenv("DRIFT_TOLERANCE", "-1")
    assert _env_float("DRIFT_TOLERANCE", 0.01, min_value=0.0) == 0.0


def test_env_int_and_bool(monkeypatch):
    monkeypatch.setenv("MAINTENANCE_INTERVAL_MINUTES", "0")
    assert _env_int("MAINTENANCE_INTERVAL_MINUTES", 60, min_value=1) == 1

    monkeypatch.setenv("MAINTENANCE_ENABLED", "Yes")
    assert _env_bool("MAINTENANCE_ENABLED", False) is True
    monkeypatch.delenv("MAINTENANCE_ENABLED")
    assert _env_bool("MAINTENANCE_ENABLED", False) is False


def test_defaults():
    assert settings.drift_tolerance == 0.01
    assert settings.maintenance_enabled is False


def test_parse_level():
    assert _parse_level("debug") == logging.DEBUG
    assert _parse_level("30") == logging.WARNING
    assert _parse_level(logging.ERROR) == logging.ERROR
    assert _parse_level("loud") == logging.INFO
    assert _parse_level(None) == logging.INFO
