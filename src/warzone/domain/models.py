"""Dataclasses describing every warzone game entity.

The game state owns every collection.  Territories and players refer to each
other by name only, so removing a territory while editing a map never leaves
a stale reference behind in another object.  Territories without an owner
belong to the neutral side.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Literal

from pydantic import Field

from .enums import CardType, GameOutcome, Phase, StrategyKind

NEUTRAL = "Neutral"


# --- Map ------------------------------------------------------------------------


@dataclass(slots=True)
class Continent:
    name: str
    bonus: int = 0


@dataclass(slots=True)
class Territory:
    name: str
    continent: str
    armies: int = 0
    owner: str | None = None
    neighbors: set[str] = field(default_factory=set)


@dataclass(slots=True)
class TerritoryGraph:
    """Territories and continents, both keyed by name in declaration order."""

    name: str | None = None
    continents: dict[str, Continent] = field(default_factory=dict)
    territories: dict[str, Territory] = field(default_factory=dict)
    has_unique_names: bool = True


# --- Orders ---------------------------------------------------------------------


@dataclass(slots=True)
class DeployOrder:
    player: str
    target: str
    armies: int
    kind: Literal["deploy"] = "deploy"


@dataclass(slots=True)
class AdvanceOrder:
    player: str
    source: str
    target: str
    armies: int
    kind: Literal["advance"] = "advance"


@dataclass(slots=True)
class AirliftOrder:
    player: str
    source: str
    target: str
    armies: int
    kind: Literal["airlift"] = "airlift"


@dataclass(slots=True)
class BombOrder:
    player: str
    target: str
    kind: Literal["bomb"] = "bomb"


@dataclass(slots=True)
class BlockadeOrder:
    player: str
    target: str
    kind: Literal["blockade"] = "blockade"


@dataclass(slots=True)
class NegotiateOrder:
    player: str
    opponent: str
    kind: Literal["negotiate"] = "negotiate"


Order = Annotated[
    DeployOrder | AdvanceOrder | AirliftOrder | BombOrder | BlockadeOrder | NegotiateOrder,
    Field(discriminator="kind"),
]

# Orders that take armies out of a source territory when they execute.
MovementOrder = AdvanceOrder | AirliftOrder


# --- Players and game -----------------------------------------------------------


@dataclass(slots=True)
class Player:
    name: str
    strategy: StrategyKind = StrategyKind.HUMAN
    reinforcement_pool: int = 0
    orders: list[Order] = field(default_factory=list)
    cards: dict[CardType, int] = field(default_factory=dict)
    conquered_this_turn: bool = False
    negotiating_with: set[str] = field(default_factory=set)
    finished_issuing: bool = False

    @property
    def is_human(self) -> bool:
        return self.strategy == StrategyKind.HUMAN


@dataclass(slots=True)
class GameState:
    """Everything needed to resume a game: map, players, phase and turn."""

    game_id: int = 0
    graph: TerritoryGraph = field(default_factory=TerritoryGraph)
    players: dict[str, Player] = field(default_factory=dict)
    phase: Phase = Phase.MAP_EDITING
    turn: int = 0
    current_player: str | None = None
    outcome: GameOutcome | None = None
    winner: str | None = None

    @property
    def is_over(self) -> bool:
        return self.outcome is not None
