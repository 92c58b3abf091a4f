"""Structured game events and the bus that delivers them to sinks.

The engine never prints or logs game progress directly.  It emits events and
whoever owns the process (console, tournament runner, API) decides where
they go by subscribing sinks.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GameEvent:
    """Base event class. All events have a type and payload."""

    type: str
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameEvent:
        return cls(type=data["type"], payload=data["payload"])


EventSink = Callable[[GameEvent], None]

# ===== Event Type Constants =====

PHASE_ENTERED = "phase_entered"
REINFORCEMENTS_ASSIGNED = "reinforcements_assigned"
ORDER_ISSUED = "order_issued"
ORDER_EXECUTED = "order_executed"
ORDER_DROPPED = "order_dropped"
COMBAT_RESOLVED = "combat_resolved"
TERRITORY_CONQUERED = "territory_conquered"
CARD_AWARDED = "card_awarded"
GAME_ENDED = "game_ended"


# ===== Event Factory Functions =====


def phase_entered(phase: str, previous: str | None, turn: int) -> GameEvent:
    return GameEvent(PHASE_ENTERED, {"phase": phase, "previous": previous, "turn": turn})


def reinforcements_assigned(turn: int, grants: dict[str, int]) -> GameEvent:
    return GameEvent(REINFORCEMENTS_ASSIGNED, {"turn": turn, "grants": dict(grants)})


def order_issued(player: str, order: dict[str, Any]) -> GameEvent:
    return GameEvent(ORDER_ISSUED, {"player": player, "order": order})


def order_executed(player: str, order: dict[str, Any], detail: str | None) -> GameEvent:
    return GameEvent(ORDER_EXECUTED, {"player": player, "order": order, "detail": detail})


def order_dropped(player: str, order: dict[str, Any], reason: str) -> GameEvent:
    return GameEvent(ORDER_DROPPED, {"player": player, "order": order, "reason": reason})


def combat_resolved(
    attacker: str,
    defender: str | None,
    source: str,
    target: str,
    attacking: int,
    defending: int,
    attacker_losses: int,
    defender_losses: int,
    conquered: bool,
) -> GameEvent:
    return GameEvent(COMBAT_RESOLVED, {
        "attacker": attacker,
        "defender": defender,
        "source": source,
        "target": target,
        "attacking": attacking,
        "defending": defending,
        "attacker_losses": attacker_losses,
        "defender_losses": defender_losses,
        "conquered": conquered,
    })


def territory_conquered(
    territory: str, new_owner: str, old_owner: str | None, armies: int
) -> GameEvent:
    return GameEvent(TERRITORY_CONQUERED, {
        "territory": territory,
        "new_owner": new_owner,
        "old_owner": old_owner,
        "armies": armies,
    })


def card_awarded(player: str, card: str, turn: int) -> GameEvent:
    return GameEvent(CARD_AWARDED, {"player": player, "card": card, "turn": turn})


def game_ended(outcome: str, winner: str | None, turn: int) -> GameEvent:
    return GameEvent(GAME_ENDED, {"outcome": outcome, "winner": winner, "turn": turn})


# ===== Bus and sinks =====


class EventBus:
    """Fan out events to registered sinks in subscription order."""

    def __init__(self, sinks: list[EventSink] | None = None) -> None:
        self._sinks: list[EventSink] = list(sinks or [])

    def subscribe(self, sink: EventSink) -> Callable[[], None]:
        """Register ``sink`` and return a callable that unsubscribes it."""

        self._sinks.append(sink)

        def unsubscribe() -> None:
            if sink in self._sinks:
                self._sinks.remove(sink)

        return unsubscribe

    def emit(self, event: GameEvent) -> None:
        for sink in list(self._sinks):
            sink(event)

    def emit_all(self, events: list[GameEvent]) -> None:
        for event in events:
            self.emit(event)


class EventRecorder:
    """Sink that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[GameEvent] = []

    def __call__(self, event: GameEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[GameEvent]:
        return [event for event in self.events if event.type == event_type]


def logging_sink(event: GameEvent) -> None:
    """Write events to the module logger; drops are warnings, the rest is info."""

    level = logging.WARNING if event.type == ORDER_DROPPED else logging.INFO
    logger.log(level, "%s %s", event.type, event.payload)
