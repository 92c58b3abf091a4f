"""Declarative rule configuration for the warzone domain."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ReinforcementRules:
    """Per-turn army grants."""

    minimum: int = 3
    territories_per_army: int = 3


@dataclass(frozen=True, slots=True)
class CombatRules:
    """Per-unit kill probabilities used when an advance meets resistance."""

    attacker_kill_probability: float = 0.6
    defender_kill_probability: float = 0.7


@dataclass(frozen=True, slots=True)
class StartupRules:
    """Territory assignment at the start of a game."""

    initial_armies: int = 1
    min_players: int = 2
    shuffle_territories: bool = True


@dataclass(frozen=True, slots=True)
class TurnRules:
    """Turn sequencing and end-of-game limits."""

    max_turns: int = 100
    auto_execute_orders: bool = True
    finish_when_pool_empty: bool = True  # an emptied pool ends the player's issuing


@dataclass(frozen=True, slots=True)
class CardRules:
    """Effects of the card orders."""

    bomb_divisor: int = 2
    blockade_multiplier: int = 3


@dataclass(frozen=True, slots=True)
class TournamentRules:
    """Bounds accepted by tournament mode."""

    max_maps: int = 5
    min_strategies: int = 2
    max_strategies: int = 4
    max_games: int = 5
    min_turns: int = 10
    max_turns: int = 50


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Top-level configuration container for all subsystems."""

    reinforcement: ReinforcementRules = ReinforcementRules()
    combat: CombatRules = CombatRules()
    startup: StartupRules = StartupRules()
    turns: TurnRules = TurnRules()
    cards: CardRules = CardRules()
    tournament: TournamentRules = TournamentRules()


DEFAULT_RULES = RulesConfig()
