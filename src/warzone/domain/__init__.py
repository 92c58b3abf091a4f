"""Domain model for the warzone game engine.

This package holds every game rule and operates purely in memory.  It
exposes:

* Dataclasses describing the map, players, orders and game (see :mod:`models`).
* Enumerations used across the rules layer (see :mod:`enums`).
* Rule configuration objects (see :mod:`rules_config`).
* Pure rule functions for map editing, validation, reinforcements, combat
  and order execution.
* The phase state machine that sequences a game (see :mod:`phases`).

Persistence and presentation live outside this package and talk to it
through the collaborator protocols declared in :mod:`phases`.
"""

from . import (
    cards,
    combat,
    enums,
    errors,
    events,
    graph,
    models,
    orders,
    phases,
    reinforcement,
    reports,
    rules_config,
    strategies,
    tournament,
    turn,
    validation,
)

__all__ = [
    "cards",
    "combat",
    "enums",
    "errors",
    "events",
    "graph",
    "models",
    "orders",
    "phases",
    "reinforcement",
    "reports",
    "rules_config",
    "strategies",
    "tournament",
    "turn",
    "validation",
]
