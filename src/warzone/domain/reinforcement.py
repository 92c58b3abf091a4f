"""Per-turn reinforcement grants."""

from __future__ import annotations

from warzone.domain import graph as graph_ops
from warzone.domain.models import GameState, TerritoryGraph
from warzone.domain.rules_config import DEFAULT_RULES, RulesConfig


def base_reinforcement(territory_count: int, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Armies granted for holding ``territory_count`` territories, before bonuses."""

    if territory_count < 0:
        raise ValueError(f"territory_count must be non-negative, got {territory_count}")
    per_army = rules.reinforcement.territories_per_army
    return max(rules.reinforcement.minimum, territory_count // per_army)


def controlled_continents(graph: TerritoryGraph, player: str) -> list[str]:
    """Continents in which ``player`` owns every territory.

    Continents without territories are never controlled.
    """

    controlled: list[str] = []
    for name in graph.continents:
        members = graph_ops.territories_of(graph, name)
        if members and all(t.owner == player for t in members):
            controlled.append(name)
    return controlled


def reinforcement_for(
    graph: TerritoryGraph, player: str, *, rules: RulesConfig = DEFAULT_RULES
) -> int:
    owned = len(graph_ops.owned_territories(graph, player))
    bonus = sum(graph.continents[name].bonus for name in controlled_continents(graph, player))
    return base_reinforcement(owned, rules=rules) + bonus


def assign_reinforcements(
    state: GameState, *, rules: RulesConfig = DEFAULT_RULES
) -> dict[str, int]:
    """Refill every active player's pool at the start of an issuing phase.

    Players without territories are out of the game and receive nothing.
    """

    grants: dict[str, int] = {}
    for player in state.players.values():
        if not graph_ops.owned_territories(state.graph, player.name):
            player.reinforcement_pool = 0
            continue
        amount = reinforcement_for(state.graph, player.name, rules=rules)
        player.reinforcement_pool = amount
        grants[player.name] = amount
    return grants
