"""Computer player strategies.

A strategy only plans: it returns the command tokens a human would type, and
the phase state machine issues them through the same validated path.
"""

from __future__ import annotations

from collections.abc import Callable

from warzone.domain import graph as graph_ops
from warzone.domain.cards import has_card
from warzone.domain.enums import CardType, Phase, StrategyKind
from warzone.domain.models import GameState, Territory
from warzone.domain.rules_config import DEFAULT_RULES, RulesConfig
from warzone.utils.rng import generate_seed, random_choice, random_int

Planner = Callable[[GameState, str, RulesConfig], list[list[str]]]


def plan_orders(
    state: GameState, player: str, *, rules: RulesConfig = DEFAULT_RULES
) -> list[list[str]]:
    """Return the commands ``player``'s strategy wants to issue this turn."""

    strategy = state.players[player].strategy
    planner = _PLANNERS.get(strategy)
    if planner is None:
        raise ValueError(f"player {player!r} uses strategy {strategy}, which has no planner")
    return planner(state, player, rules)


def _strength(territory: Territory) -> tuple[int, str]:
    return territory.armies, territory.name


def _enemy_neighbors(state: GameState, territory: Territory, player: str) -> list[Territory]:
    graph = state.graph
    return [
        graph.territories[n]
        for n in sorted(territory.neighbors)
        if graph.territories[n].owner != player
    ]


def _friendly_neighbors(state: GameState, territory: Territory, player: str) -> list[Territory]:
    graph = state.graph
    return [
        graph.territories[n]
        for n in sorted(territory.neighbors)
        if graph.territories[n].owner == player
    ]


def _plan_aggressive(state: GameState, player: str, rules: RulesConfig) -> list[list[str]]:
    """Pile everything onto the strongest front and hit the weakest neighbor."""

    owned = graph_ops.owned_territories(state.graph, player)
    if not owned:
        return []
    me = state.players[player]
    frontier = [t for t in owned if _enemy_neighbors(state, t, player)]
    base = max(frontier or owned, key=_strength)

    commands: list[list[str]] = []
    pool = me.reinforcement_pool
    if pool > 0:
        commands.append(["deploy", base.name, str(pool)])

    enemies = _enemy_neighbors(state, base, player)
    if enemies:
        if has_card(me, CardType.BOMB):
            commands.append(["bomb", max(enemies, key=_strength).name])
        strength = base.armies + pool
        if strength > 0:
            commands.append(["advance", base.name, min(enemies, key=_strength).name, str(strength)])

    if has_card(me, CardType.AIRLIFT):
        donors = [t for t in owned if t is not base and t.armies > 0]
        targets = [t for t in state.graph.territories.values() if t.owner != player]
        if donors and targets:
            donor = max(donors, key=_strength)
            target = min(targets, key=_strength)
            commands.append(["airlift", donor.name, target.name, str(donor.armies)])
    return commands


def _plan_benevolent(state: GameState, player: str, rules: RulesConfig) -> list[list[str]]:
    """Reinforce the weakest territory and even out stacks; never attack."""

    owned = graph_ops.owned_territories(state.graph, player)
    if not owned:
        return []
    me = state.players[player]
    weakest = min(owned, key=_strength)

    commands: list[list[str]] = []
    planned = {t.name: t.armies for t in owned}
    available = dict(planned)
    if me.reinforcement_pool > 0:
        commands.append(["deploy", weakest.name, str(me.reinforcement_pool)])
        planned[weakest.name] += me.reinforcement_pool
        available[weakest.name] += me.reinforcement_pool

    for territory in sorted(owned, key=lambda t: (-planned[t.name], t.name)):
        weaker = [
            n
            for n in _friendly_neighbors(state, territory, player)
            if planned[n.name] < planned[territory.name]
        ]
        if not weaker:
            continue
        target = min(weaker, key=lambda t: (planned[t.name], t.name))
        amount = min(
            (planned[territory.name] - planned[target.name]) // 2, available[territory.name]
        )
        if amount <= 0:
            continue
        commands.append(["advance", territory.name, target.name, str(amount)])
        planned[territory.name] -= amount
        planned[target.name] += amount
        available[territory.name] -= amount

    if has_card(me, CardType.NEGOTIATE):
        rivals = [
            (len(graph_ops.owned_territories(state.graph, name)), name)
            for name in state.players
            if name != player
        ]
        rivals = [rival for rival in rivals if rival[0] > 0]
        if rivals:
            commands.append(["negotiate", max(rivals)[1]])
    return commands


def _plan_random(state: GameState, player: str, rules: RulesConfig) -> list[list[str]]:
    """Deploy somewhere at random and make one random advance."""

    owned = graph_ops.owned_territories(state.graph, player)
    if not owned:
        return []
    me = state.players[player]

    def seed(step: str) -> str:
        return generate_seed(state.game_id, state.turn, Phase.ISSUE_ORDER, f"{player}:{step}")

    commands: list[list[str]] = []
    available = {t.name: t.armies for t in owned}
    if me.reinforcement_pool > 0:
        target = random_choice(seed("deploy"), owned)["choice"]
        commands.append(["deploy", target.name, str(me.reinforcement_pool)])
        available[target.name] += me.reinforcement_pool

    sources = [t for t in owned if available[t.name] > 1 and t.neighbors]
    if sources:
        source = random_choice(seed("source"), sources)["choice"]
        target_name = random_choice(seed("target"), sorted(source.neighbors))["choice"]
        armies = random_int(seed("armies"), 1, available[source.name] - 1)["value"]
        commands.append(["advance", source.name, target_name, str(armies)])
    return commands


_PLANNERS: dict[StrategyKind, Planner] = {
    StrategyKind.AGGRESSIVE: _plan_aggressive,
    StrategyKind.BENEVOLENT: _plan_benevolent,
    StrategyKind.RANDOM: _plan_random,
}

COMPUTER_STRATEGIES: tuple[StrategyKind, ...] = tuple(_PLANNERS)
