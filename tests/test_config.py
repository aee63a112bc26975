"""Unit tests for core/config.py -- SECRET_KEY policy and token window settings."""

import pytest
from pydantic import ValidationError

from core.config import DEFAULT_TOKEN_EXPIRE_SECONDS, Settings


def test_default_validity_window_is_eight_hours():
    s = Settings(_env_file=None, debug=True)
    assert s.token_expire_seconds == DEFAULT_TOKEN_EXPIRE_SECONDS == 8 * 3600


def test_debug_mode_generates_secret():
    s = Settings(_env_file=None, debug=True, secret_key="")
    assert len(s.secret_key) == 64


def test_production_requires_secret():
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(_env_file=None, debug=False, secret_key="")


def test_production_rejects_short_secret():
    with pytest.raises(ValidationError, match="at least 32"):
        Settings(_env_file=None, debug=False, secret_key="short")


def test_debug_mode_accepts_short_secret():
    assert Settings(_env_file=None, debug=True, secret_key="test-secret").secret_key == "test-secret"


@pytest.mark.parametrize("seconds", [0, -1])
def test_non_positive_validity_rejected(seconds):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, debug=True, token_expire_seconds=seconds)


def test_negative_clock_skew_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, debug=True, clock_skew_seconds=-5)


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "e" * 40)
    monkeypatch.setenv("TOKEN_EXPIRE_SECONDS", "600")
    monkeypatch.setenv("DEBUG", "false")
    s = Settings(_env_file=None)
    assert s.secret_key == "e" * 40
    assert s.token_expire_seconds == 600
    assert s.debug is False
