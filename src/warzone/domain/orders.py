"""Order issuing and execution rules.

Issuing validates an order against the current state and queues it on the
player.  Execution happens later, once every player has finished issuing, so
each handler re-checks its preconditions and raises :class:`StaleOrderDrop`
when the map has changed underneath the order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from typing import Any

from warzone.domain import events
from warzone.domain.cards import spend_card
from warzone.domain.combat import CombatOptions, resolve_combat
from warzone.domain.enums import CardType, OrderKind, OrderStatus, Phase
from warzone.domain.errors import OrderValidationError, StaleOrderDrop
from warzone.domain.models import (
    AdvanceOrder,
    AirliftOrder,
    BlockadeOrder,
    BombOrder,
    DeployOrder,
    GameState,
    MovementOrder,
    NegotiateOrder,
    Order,
    Player,
    Territory,
)
from warzone.domain.rules_config import DEFAULT_RULES, RulesConfig
from warzone.utils.rng import generate_seed

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OrderContext:
    """Shared context passed to every order handler."""

    state: GameState
    rules: RulesConfig = DEFAULT_RULES
    sequence: int = 0
    combat_options: CombatOptions | None = None


@dataclass(slots=True)
class OrderExecutionResult:
    """Outcome of an order execution."""

    status: OrderStatus
    detail: str | None = None
    events: list[events.GameEvent] = field(default_factory=list)


OrderHandler = Callable[[OrderContext, Any], OrderExecutionResult]


def order_to_dict(order: Order) -> dict[str, Any]:
    return asdict(order)


# ---------------------------------------------------------------------------
# Issuing


def available_armies(state: GameState, player: str, territory: str) -> int:
    """Armies on ``territory`` that ``player`` has not already committed.

    Deploys queued earlier into the territory count as available because a
    player's own queue always executes in order.
    """

    stack = state.graph.territories[territory].armies
    queue = _player(state, player).orders
    incoming = sum(
        o.armies for o in queue if isinstance(o, DeployOrder) and o.target == territory
    )
    committed = sum(
        o.armies
        for o in queue
        if isinstance(o, AdvanceOrder | AirliftOrder) and o.source == territory
    )
    return stack + incoming - committed


def issue_deploy(state: GameState, player: str, target: str, armies: int) -> DeployOrder:
    """Queue a deploy and take the armies out of the reinforcement pool immediately."""

    issuer = _player(state, player)
    _require_positive(armies)
    _require_owned(state, issuer, target)
    if armies > issuer.reinforcement_pool:
        raise OrderValidationError(
            f"cannot deploy {armies} armies; only {issuer.reinforcement_pool} left in the pool"
        )
    order = DeployOrder(player=player, target=target, armies=armies)
    issuer.reinforcement_pool -= armies
    issuer.orders.append(order)
    return order


def issue_advance(
    state: GameState, player: str, source: str, target: str, armies: int
) -> AdvanceOrder:
    """Queue an advance of at most :func:`available_armies` out of ``source``.

    The limit counts the issuer's own queued deploys into ``source``; they
    always execute before this advance.
    """

    issuer = _player(state, player)
    _require_movement(state, issuer, source, target, armies, adjacent=True)
    order = AdvanceOrder(player=player, source=source, target=target, armies=armies)
    issuer.orders.append(order)
    return order


def issue_airlift(
    state: GameState, player: str, source: str, target: str, armies: int
) -> AirliftOrder:
    issuer = _player(state, player)
    _require_movement(state, issuer, source, target, armies, adjacent=False)
    spend_card(issuer, CardType.AIRLIFT)
    order = AirliftOrder(player=player, source=source, target=target, armies=armies)
    issuer.orders.append(order)
    return order


def issue_bomb(state: GameState, player: str, target: str) -> BombOrder:
    issuer = _player(state, player)
    territory = _require_territory(state, target)
    if territory.owner == player:
        raise OrderValidationError(f"cannot bomb your own territory {target!r}")
    if not any(state.graph.territories[n].owner == player for n in territory.neighbors):
        raise OrderValidationError(f"{target!r} does not border any territory of {player}")
    spend_card(issuer, CardType.BOMB)
    order = BombOrder(player=player, target=target)
    issuer.orders.append(order)
    return order


def issue_blockade(state: GameState, player: str, target: str) -> BlockadeOrder:
    issuer = _player(state, player)
    _require_owned(state, issuer, target)
    spend_card(issuer, CardType.BLOCKADE)
    order = BlockadeOrder(player=player, target=target)
    issuer.orders.append(order)
    return order


def issue_negotiate(state: GameState, player: str, opponent: str) -> NegotiateOrder:
    issuer = _player(state, player)
    if opponent == player:
        raise OrderValidationError("cannot negotiate with yourself")
    if opponent not in state.players:
        raise OrderValidationError(f"unknown player {opponent!r}")
    spend_card(issuer, CardType.NEGOTIATE)
    order = NegotiateOrder(player=player, opponent=opponent)
    issuer.orders.append(order)
    return order


def _player(state: GameState, name: str) -> Player:
    player = state.players.get(name)
    if player is None:
        raise OrderValidationError(f"unknown player {name!r}")
    return player


def _require_positive(armies: int) -> None:
    if armies < 1:
        raise OrderValidationError(f"army count must be at least 1, got {armies}")


def _require_territory(state: GameState, name: str) -> Territory:
    territory = state.graph.territories.get(name)
    if territory is None:
        raise OrderValidationError(f"territory {name!r} does not exist")
    return territory


def _require_owned(state: GameState, player: Player, name: str) -> Territory:
    territory = _require_territory(state, name)
    if territory.owner != player.name:
        raise OrderValidationError(f"{player.name} does not own {name!r}")
    return territory


def _require_movement(
    state: GameState, player: Player, source: str, target: str, armies: int, *, adjacent: bool
) -> None:
    _require_positive(armies)
    origin = _require_owned(state, player, source)
    _require_territory(state, target)
    if source == target:
        raise OrderValidationError("source and target must differ")
    if adjacent and target not in origin.neighbors:
        raise OrderValidationError(f"{target!r} is not adjacent to {source!r}")
    available = available_armies(state, player.name, source)
    if armies > available:
        raise OrderValidationError(
            f"cannot move {armies} armies out of {source!r}; only {available} available"
        )


# ---------------------------------------------------------------------------
# Execution


def execute_order(context: OrderContext, order: Order) -> OrderExecutionResult:
    """Execute a queued order using the registered handler."""

    payload = order_to_dict(order)
    handler = _ORDER_HANDLERS.get(order.kind)
    if handler is None:
        detail = f"unsupported order type: {order.kind}"
        return OrderExecutionResult(
            OrderStatus.DROPPED, detail, [events.order_dropped(order.player, payload, detail)]
        )

    try:
        result = handler(context, order)
    except StaleOrderDrop as exc:
        logger.debug("dropping %s order from %s: %s", order.kind, order.player, exc)
        return OrderExecutionResult(
            OrderStatus.DROPPED, str(exc), [events.order_dropped(order.player, payload, str(exc))]
        )

    result.events.append(events.order_executed(order.player, payload, result.detail))
    return result


# ---------------------------------------------------------------------------
# Registered order handlers


def _handle_deploy(context: OrderContext, order: DeployOrder) -> OrderExecutionResult:
    territory = _stale_territory(context.state, order.target)
    if territory.owner != order.player:
        raise StaleOrderDrop(f"{order.target!r} is no longer owned by {order.player}")
    territory.armies += order.armies
    return _success(f"deployed {order.armies} armies to {order.target}")


def _handle_advance(context: OrderContext, order: AdvanceOrder) -> OrderExecutionResult:
    return _execute_movement(context, order, adjacent=True)


def _handle_airlift(context: OrderContext, order: AirliftOrder) -> OrderExecutionResult:
    return _execute_movement(context, order, adjacent=False)


def _handle_bomb(context: OrderContext, order: BombOrder) -> OrderExecutionResult:
    territory = _stale_territory(context.state, order.target)
    if territory.owner == order.player:
        raise StaleOrderDrop(f"{order.target!r} now belongs to {order.player}")
    _check_negotiation(context.state, order.player, territory.owner)
    before = territory.armies
    territory.armies = before // context.rules.cards.bomb_divisor
    return _success(f"bombed {order.target}: {before} -> {territory.armies} armies")


def _handle_blockade(context: OrderContext, order: BlockadeOrder) -> OrderExecutionResult:
    territory = _stale_territory(context.state, order.target)
    if territory.owner != order.player:
        raise StaleOrderDrop(f"{order.target!r} is no longer owned by {order.player}")
    territory.armies *= context.rules.cards.blockade_multiplier
    territory.owner = None
    return _success(f"blockaded {order.target}: {territory.armies} neutral armies")


def _handle_negotiate(context: OrderContext, order: NegotiateOrder) -> OrderExecutionResult:
    opponent = context.state.players.get(order.opponent)
    if opponent is None:
        raise StaleOrderDrop(f"player {order.opponent!r} has left the game")
    issuer = context.state.players[order.player]
    issuer.negotiating_with.add(opponent.name)
    opponent.negotiating_with.add(issuer.name)
    return _success(f"{issuer.name} and {opponent.name} negotiate until the end of the turn")


_ORDER_HANDLERS: dict[str, OrderHandler] = {
    OrderKind.DEPLOY: _handle_deploy,
    OrderKind.ADVANCE: _handle_advance,
    OrderKind.AIRLIFT: _handle_airlift,
    OrderKind.BOMB: _handle_bomb,
    OrderKind.BLOCKADE: _handle_blockade,
    OrderKind.NEGOTIATE: _handle_negotiate,
}


def _success(detail: str, emitted: list[events.GameEvent] | None = None) -> OrderExecutionResult:
    return OrderExecutionResult(OrderStatus.COMPLETED, detail, emitted or [])


def _stale_territory(state: GameState, name: str) -> Territory:
    territory = state.graph.territories.get(name)
    if territory is None:
        raise StaleOrderDrop(f"territory {name!r} no longer exists")
    return territory


def _check_negotiation(state: GameState, player: str, other: str | None) -> None:
    if other is not None and other in state.players[player].negotiating_with:
        raise StaleOrderDrop(f"{player} is negotiating with {other}")


def _execute_movement(
    context: OrderContext, order: MovementOrder, *, adjacent: bool
) -> OrderExecutionResult:
    state = context.state
    source = _stale_territory(state, order.source)
    target = _stale_territory(state, order.target)
    if source.owner != order.player:
        raise StaleOrderDrop(f"{order.source!r} is no longer owned by {order.player}")
    if adjacent and target.name not in source.neighbors:
        raise StaleOrderDrop(f"{order.target!r} no longer borders {order.source!r}")

    moving = min(order.armies, source.armies)
    if moving == 0:
        raise StaleOrderDrop(f"no armies left on {order.source!r}")

    if target.owner == order.player:
        source.armies -= moving
        target.armies += moving
        return _success(f"moved {moving} armies from {source.name} to {target.name}")

    _check_negotiation(state, order.player, target.owner)
    return _attack(context, order, source, target, moving)


def _attack(
    context: OrderContext,
    order: MovementOrder,
    source: Territory,
    target: Territory,
    moving: int,
) -> OrderExecutionResult:
    state = context.state
    options = context.combat_options
    if options is None:
        seed = generate_seed(
            state.game_id,
            state.turn,
            Phase.ORDER_EXECUTION,
            f"combat:{context.sequence}:{source.name}->{target.name}",
        )
        options = CombatOptions(attacker_seed=f"{seed}:attacker", defender_seed=f"{seed}:defender")

    defender = target.owner
    outcome = resolve_combat(moving, target.armies, options=options, rules=context.rules)
    source.armies -= moving
    emitted = [
        events.combat_resolved(
            attacker=order.player,
            defender=defender,
            source=source.name,
            target=target.name,
            attacking=outcome.attacking,
            defending=outcome.defending,
            attacker_losses=outcome.attacker_losses,
            defender_losses=outcome.defender_losses,
            conquered=outcome.conquered,
        )
    ]

    if outcome.conquered:
        target.owner = order.player
        target.armies = outcome.attackers_remaining
        state.players[order.player].conquered_this_turn = True
        emitted.append(
            events.territory_conquered(target.name, order.player, defender, target.armies)
        )
        detail = f"conquered {target.name} with {target.armies} surviving armies"
    else:
        target.armies = outcome.defenders_remaining
        source.armies += outcome.attackers_remaining
        detail = (
            f"attack on {target.name} repelled; {outcome.attackers_remaining} armies "
            f"returned to {source.name}"
        )
    return _success(detail, emitted)
