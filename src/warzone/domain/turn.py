"""Order execution pass and end-of-game detection."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from warzone.domain import events
from warzone.domain import graph as graph_ops
from warzone.domain.cards import award_cards, reset_turn_flags
from warzone.domain.combat import CombatOptions
from warzone.domain.enums import CardType, GameOutcome, OrderStatus
from warzone.domain.events import EventBus
from warzone.domain.models import GameState, Order
from warzone.domain.orders import OrderContext, OrderExecutionResult, execute_order
from warzone.domain.rules_config import DEFAULT_RULES, RulesConfig


@dataclass(slots=True)
class TurnReport:
    """What happened during one execution pass."""

    turn: int
    results: list[OrderExecutionResult] = field(default_factory=list)
    awarded_cards: dict[str, CardType] = field(default_factory=dict)
    outcome: GameOutcome | None = None
    winner: str | None = None

    @property
    def executed(self) -> int:
        return sum(1 for r in self.results if r.status == OrderStatus.COMPLETED)

    @property
    def dropped(self) -> int:
        return sum(1 for r in self.results if r.status == OrderStatus.DROPPED)


def drain_orders(state: GameState) -> Iterator[Order]:
    """Pop queued orders one player at a time, cycling through the players.

    Each player's queue is consumed in the order it was issued.
    """

    queues = [player.orders for player in state.players.values()]
    while any(queues):
        for queue in queues:
            if queue:
                yield queue.pop(0)


def execute_orders(
    state: GameState,
    *,
    rules: RulesConfig = DEFAULT_RULES,
    bus: EventBus | None = None,
    combat_options: CombatOptions | None = None,
) -> TurnReport:
    """Run every queued order, award cards and decide whether the game is over."""

    report = TurnReport(turn=state.turn)
    context = OrderContext(state=state, rules=rules, combat_options=combat_options)
    for sequence, order in enumerate(drain_orders(state)):
        context.sequence = sequence
        result = execute_order(context, order)
        report.results.append(result)
        if bus is not None:
            bus.emit_all(result.events)

    graph_ops.check_integrity(state.graph)

    report.awarded_cards = award_cards(state)
    if bus is not None:
        for name, card in report.awarded_cards.items():
            bus.emit(events.card_awarded(name, card, state.turn))
    reset_turn_flags(state)

    outcome, winner = check_outcome(state, rules=rules)
    state.outcome, state.winner = outcome, winner
    report.outcome, report.winner = outcome, winner
    if outcome is not None and bus is not None:
        bus.emit(events.game_ended(outcome, winner, state.turn))
    return report


def find_winner(state: GameState) -> str | None:
    """Return the player who owns every territory, if there is one."""

    owners = {t.owner for t in state.graph.territories.values()}
    if len(owners) != 1:
        return None
    (owner,) = owners
    return owner if owner in state.players else None


def check_outcome(
    state: GameState, *, rules: RulesConfig = DEFAULT_RULES
) -> tuple[GameOutcome | None, str | None]:
    winner = find_winner(state)
    if winner is not None:
        return GameOutcome.WIN, winner
    if state.turn >= rules.turns.max_turns:
        return GameOutcome.DRAW, None
    return None, None
