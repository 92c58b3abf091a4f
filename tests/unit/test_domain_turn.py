"""Unit tests for the execution pass and end-of-game detection."""

from __future__ import annotations

from warzone.domain import events, orders, turn
from warzone.domain import graph as graph_ops
from warzone.domain.combat import CombatOptions
from warzone.domain.enums import GameOutcome, OrderStatus
from warzone.domain.models import DeployOrder, GameState, Player, TerritoryGraph
from warzone.domain.rules_config import RulesConfig, TurnRules


def _state(*, c_owner: str | None = "bob", turn_number: int = 1) -> GameState:
    graph = TerritoryGraph(name="line")
    graph_ops.add_continent(graph, "Main", 2)
    for name in ("A", "B", "C"):
        graph_ops.add_territory(graph, name, "Main")
    graph_ops.add_neighbor(graph, "A", "B")
    graph_ops.add_neighbor(graph, "B", "C")
    for name, owner, armies in (("A", "alice", 5), ("B", "alice", 5), ("C", c_owner, 1)):
        graph.territories[name].owner = owner
        graph.territories[name].armies = armies
    return GameState(
        game_id=11,
        turn=turn_number,
        graph=graph,
        players={
            "alice": Player(name="alice", reinforcement_pool=6),
            "bob": Player(name="bob", reinforcement_pool=3),
        },
    )


def test_orders_drain_round_robin():
    state = _state()
    first = orders.issue_deploy(state, "alice", "A", 1)
    second = orders.issue_deploy(state, "alice", "B", 1)
    third = orders.issue_deploy(state, "bob", "C", 1)

    assert list(turn.drain_orders(state)) == [first, third, second]
    assert all(not player.orders for player in state.players.values())


def test_execute_orders_applies_every_queue():
    state = _state()
    orders.issue_deploy(state, "alice", "A", 6)
    orders.issue_deploy(state, "bob", "C", 3)

    report = turn.execute_orders(state)

    assert report.executed == 2
    assert report.dropped == 0
    assert state.graph.territories["A"].armies == 11
    assert state.graph.territories["C"].armies == 4
    assert report.outcome is None
    assert not state.is_over


def test_conquest_of_last_enemy_territory_wins_the_game():
    state = _state()
    orders.issue_advance(state, "alice", "B", "C", 5)
    recorder = events.EventRecorder()

    report = turn.execute_orders(
        state,
        bus=events.EventBus([recorder]),
        combat_options=CombatOptions(attacker_fixed_hits=1, defender_fixed_hits=0),
    )

    assert state.graph.territories["C"].owner == "alice"
    assert report.outcome == GameOutcome.WIN
    assert state.winner == "alice"
    assert state.is_over
    assert list(report.awarded_cards) == ["alice"]
    assert recorder.of_type(events.CARD_AWARDED)[0].payload["player"] == "alice"
    assert recorder.of_type(events.GAME_ENDED)[0].payload["winner"] == "alice"
    # flags are cleared once the card has been handed out
    assert state.players["alice"].conquered_this_turn is False


def test_neutral_territory_prevents_a_win():
    state = _state(c_owner=None)
    assert turn.find_winner(state) is None
    assert turn.check_outcome(state) == (None, None)


def test_turn_limit_ends_in_draw():
    state = _state(turn_number=10)
    rules = RulesConfig(turns=TurnRules(max_turns=10))

    report = turn.execute_orders(state, rules=rules)

    assert report.outcome == GameOutcome.DRAW
    assert report.winner is None
    assert state.outcome == GameOutcome.DRAW


def test_dropped_orders_are_reported_and_emitted():
    state = _state()
    state.players["alice"].orders.append(DeployOrder(player="alice", target="C", armies=2))
    recorder = events.EventRecorder()

    report = turn.execute_orders(state, bus=events.EventBus([recorder]))

    assert [r.status for r in report.results] == [OrderStatus.DROPPED]
    assert len(recorder.of_type(events.ORDER_DROPPED)) == 1
    assert state.graph.territories["C"].armies == 1
