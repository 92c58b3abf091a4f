"""Enumerations shared across the warzone domain."""

from __future__ import annotations

from enum import StrEnum


class Phase(StrEnum):
    """Stages of a game, in the order they are entered."""

    MAP_EDITING = "map_editing"
    STARTUP = "startup"
    ISSUE_ORDER = "issue_order"
    ORDER_EXECUTION = "order_execution"


class CardType(StrEnum):
    """Cards awarded for conquering at least one territory in a turn."""

    BOMB = "bomb"
    BLOCKADE = "blockade"
    AIRLIFT = "airlift"
    NEGOTIATE = "negotiate"


class OrderKind(StrEnum):
    """Discriminator values for the order variants."""

    DEPLOY = "deploy"
    ADVANCE = "advance"
    AIRLIFT = "airlift"
    BOMB = "bomb"
    BLOCKADE = "blockade"
    NEGOTIATE = "negotiate"


class OrderStatus(StrEnum):
    """Outcome of executing a queued order."""

    PENDING = "pending"
    COMPLETED = "completed"
    DROPPED = "dropped"


class StrategyKind(StrEnum):
    """Who decides a player's orders."""

    HUMAN = "human"
    AGGRESSIVE = "aggressive"
    BENEVOLENT = "benevolent"
    RANDOM = "random"


class GameOutcome(StrEnum):
    """How a finished game ended."""

    WIN = "win"
    DRAW = "draw"
