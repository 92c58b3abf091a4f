"""Lightweight configuration for the warzone tools."""

from __future__ import annotations

from dataclasses import replace
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from warzone.domain.rules_config import DEFAULT_RULES, RulesConfig


class Settings(BaseSettings):
    """Minimal application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    maps_dir: Path = Field(default=Path("maps"), description="Where map files are read and written")
    save_dir: Path = Field(default=Path("saves"), description="Where saved games live")
    log_level: str = Field(default="INFO", description="Logging level for the console tools")
    max_turns: int = Field(default=100, description="Turn after which a game is a draw", gt=0)
    game_seed: int = Field(default=0, description="Base seed for every random decision", ge=0)
    attacker_kill_probability: float = Field(
        default=0.6,
        description="Chance that one attacking army destroys one defending army",
        ge=0.0,
        le=1.0,
    )
    defender_kill_probability: float = Field(
        default=0.7,
        description="Chance that one defending army destroys one attacking army",
        ge=0.0,
        le=1.0,
    )
    auto_execute_orders: bool = Field(
        default=True,
        description="Execute orders as soon as every player has finished issuing",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"],
        description="Origins allowed to call the HTTP API",
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    settings = Settings()
    settings.maps_dir.mkdir(parents=True, exist_ok=True)
    settings.save_dir.mkdir(parents=True, exist_ok=True)
    return settings


def build_rules(settings: Settings, base: RulesConfig = DEFAULT_RULES) -> RulesConfig:
    """Overlay the tunable settings onto a rules configuration."""

    return replace(
        base,
        combat=replace(
            base.combat,
            attacker_kill_probability=settings.attacker_kill_probability,
            defender_kill_probability=settings.defender_kill_probability,
        ),
        turns=replace(
            base.turns,
            max_turns=settings.max_turns,
            auto_execute_orders=settings.auto_execute_orders,
        ),
    )
