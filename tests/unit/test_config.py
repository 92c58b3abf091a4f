"""Tests for settings and the rules they produce."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from warzone.config import Settings, build_rules, get_settings
from warzone.domain.rules_config import DEFAULT_RULES


def test_defaults_match_default_rules(tmp_path):
    settings = Settings(maps_dir=tmp_path, save_dir=tmp_path)
    assert build_rules(settings) == DEFAULT_RULES


def test_environment_overrides_rules(monkeypatch, tmp_path):
    monkeypatch.setenv("MAX_TURNS", "25")
    monkeypatch.setenv("ATTACKER_KILL_PROBABILITY", "0.5")
    monkeypatch.setenv("AUTO_EXECUTE_ORDERS", "false")

    rules = build_rules(Settings(maps_dir=tmp_path, save_dir=tmp_path))

    assert rules.turns.max_turns == 25
    assert rules.turns.auto_execute_orders is False
    assert rules.combat.attacker_kill_probability == 0.5
    assert rules.combat.defender_kill_probability == 0.7
    assert rules.reinforcement == DEFAULT_RULES.reinforcement


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_turns": 0},
        {"game_seed": -1},
        {"attacker_kill_probability": 1.5},
        {"defender_kill_probability": -0.1},
    ],
)
def test_out_of_range_settings_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(**overrides)


def test_get_settings_creates_directories(monkeypatch, tmp_path):
    monkeypatch.setenv("MAPS_DIR", str(tmp_path / "maps"))
    monkeypatch.setenv("SAVE_DIR", str(tmp_path / "saves"))
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.maps_dir.is_dir()
        assert settings.save_dir.is_dir()
        assert get_settings() is settings
    finally:
        get_settings.cache_clear()
