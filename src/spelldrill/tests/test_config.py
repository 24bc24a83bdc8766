"""Tests for configuration settings."""
import os
from dataclasses import fields

import pytest

from spelldrill.config import (
    DEFAULT_MAX_WRONG_ATTEMPTS,
    DEFAULT_WORDS_PER_GAME,
    Settings,
    settings,
)


def test_settings_defaults():
    """Test default settings values."""
    assert settings.game.max_wrong_attempts == DEFAULT_MAX_WRONG_ATTEMPTS
    assert settings.game.words_per_game == DEFAULT_WORDS_PER_GAME
    assert settings.monitoring.port == 0
    assert settings.database.url.startswith("sqlite:///")


def test_settings_sections():
    """Test that settings only carry the sections the game reads."""
    assert [f.name for f in fields(Settings)] == ["database", "logging", "game", "monitoring"]


def test_settings_from_env():
    """Test that settings are read from the test environment file."""
    assert os.environ["ENV"] == "test"
    assert settings.game.settle_delay == float(os.environ["SETTLE_DELAY"])
    assert settings.database.url == os.environ["DATABASE_URL"]


@pytest.mark.parametrize("section, field, value", [
    ("game", "max_wrong_attempts", 0),
    ("game", "words_per_game", 0),
    ("game", "settle_delay", -1.0),
    ("monitoring", "port", 70000),
])
def test_validate_rejects_bad_values(section: str, field: str, value) -> None:
    """Test that invalid settings are refused."""
    test_settings = Settings()
    setattr(getattr(test_settings, section), field, value)

    with pytest.raises(ValueError):
        test_settings.validate()


def test_validate_accepts_defaults() -> None:
    Settings().validate()
