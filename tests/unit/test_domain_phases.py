"""Unit tests for the phase state machine."""

from __future__ import annotations

import copy

import pytest

from warzone.domain import events
from warzone.domain import graph as graph_ops
from warzone.domain.combat import CombatOptions
from warzone.domain.enums import GameOutcome, Phase, StrategyKind
from warzone.domain.errors import (
    CommandSyntaxError,
    GameRuleError,
    MapValidationError,
    UnknownCommandInPhase,
    UnknownContinent,
)
from warzone.domain.models import GameState, TerritoryGraph
from warzone.domain.phases import PhaseStateMachine
from warzone.domain.rules_config import RulesConfig, StartupRules, TurnRules

FIXED = RulesConfig(startup=StartupRules(shuffle_territories=False))


def _graph() -> TerritoryGraph:
    """N1-N2-S1-S2 in a line across two continents."""

    graph = TerritoryGraph(name="line")
    graph_ops.add_continent(graph, "North", 2)
    graph_ops.add_continent(graph, "South", 1)
    for name, continent in (("N1", "North"), ("N2", "North"), ("S1", "South"), ("S2", "South")):
        graph_ops.add_territory(graph, name, continent)
    graph_ops.add_neighbor(graph, "N1", "N2")
    graph_ops.add_neighbor(graph, "N2", "S1")
    graph_ops.add_neighbor(graph, "S1", "S2")
    return graph


def _machine(rules: RulesConfig = FIXED, **kwargs) -> PhaseStateMachine:
    return PhaseStateMachine(GameState(graph=_graph()), rules=rules, **kwargs)


def _started(rules: RulesConfig = FIXED, **kwargs) -> PhaseStateMachine:
    machine = _machine(rules, **kwargs)
    machine.handle(["gameplayer", "-add", "alice", "-add", "bob"])
    machine.handle(["startgame"])
    machine.handle(["assigncountries"])
    return machine


@pytest.mark.parametrize(
    ("phase", "tokens"),
    [
        (Phase.MAP_EDITING, ["deploy", "N1", "1"]),
        (Phase.MAP_EDITING, ["executeorders"]),
        (Phase.STARTUP, ["editcountry", "-add", "X", "North"]),
        (Phase.ISSUE_ORDER, ["assigncountries"]),
        (Phase.ISSUE_ORDER, ["executeorders"]),
        (Phase.ISSUE_ORDER, ["loadmap", "world"]),
        (Phase.ORDER_EXECUTION, ["advance", "N1", "N2", "1"]),
    ],
)
def test_commands_outside_their_phase_leave_state_unchanged(phase, tokens):
    machine = _machine()
    machine.state.phase = phase
    before = copy.deepcopy(machine.state)

    with pytest.raises(UnknownCommandInPhase, match="is not available"):
        machine.handle(tokens)

    assert machine.state == before


def test_empty_command_is_a_syntax_error():
    with pytest.raises(CommandSyntaxError, match="empty"):
        _machine().handle([])


def test_map_can_be_built_with_edit_commands():
    machine = PhaseStateMachine()
    machine.handle(["editcontinent", "-add", "Isles", "3"])
    machine.handle(["editcountry", "-add", "A", "Isles", "-add", "B", "Isles"])
    result = machine.handle(["editneighbor", "-add", "A", "B"])

    assert result.message == "connected A and B"
    assert machine.state.graph.territories["A"].neighbors == {"B"}
    assert machine.handle(["validatemap"]).message == "The map is valid."


def test_failed_edit_batch_is_not_applied():
    machine = _machine()
    with pytest.raises(UnknownContinent):
        machine.handle(["editcountry", "-add", "X", "North", "-add", "Y", "Atlantis"])
    assert "X" not in machine.state.graph.territories


def test_edit_options_are_checked():
    machine = _machine()
    with pytest.raises(CommandSyntaxError, match="unknown option"):
        machine.handle(["editcontinent", "-rename", "North"])
    with pytest.raises(CommandSyntaxError, match="expects 2"):
        machine.handle(["editneighbor", "-add", "N1"])
    with pytest.raises(CommandSyntaxError, match="must be an integer"):
        machine.handle(["editcontinent", "-add", "East", "lots"])


def test_removing_a_continent_removes_its_territories():
    machine = _machine()
    machine.handle(["editcontinent", "-remove", "South"])
    assert sorted(machine.state.graph.territories) == ["N1", "N2"]
    assert machine.state.graph.territories["N2"].neighbors == {"N1"}


def test_gameplayer_adds_and_removes_players():
    machine = _machine()
    machine.handle(["gameplayer", "-add", "alice", "-add", "hal", "aggressive"])
    assert machine.state.players["hal"].strategy == StrategyKind.AGGRESSIVE
    assert machine.state.players["alice"].is_human

    machine.handle(["gameplayer", "-remove", "hal"])
    assert list(machine.state.players) == ["alice"]


def test_gameplayer_rejects_duplicates_atomically():
    machine = _machine()
    machine.handle(["gameplayer", "-add", "alice"])
    with pytest.raises(GameRuleError, match="already taken"):
        machine.handle(["gameplayer", "-add", "bob", "-add", "alice"])
    assert list(machine.state.players) == ["alice"]

    with pytest.raises(CommandSyntaxError, match="unknown strategy"):
        machine.handle(["gameplayer", "-add", "carol", "cheater"])


def test_startgame_requires_enough_players():
    machine = _machine()
    machine.handle(["gameplayer", "-add", "alice"])
    with pytest.raises(GameRuleError, match="at least 2 players"):
        machine.handle(["startgame"])
    assert machine.phase == Phase.MAP_EDITING


def test_startgame_requires_a_valid_map():
    machine = _machine()
    machine.handle(["gameplayer", "-add", "alice", "-add", "bob"])
    machine.handle(["editneighbor", "-remove", "N2", "S1"])
    with pytest.raises(MapValidationError, match="unreachable"):
        machine.handle(["startgame"])
    assert machine.phase == Phase.MAP_EDITING


def test_startup_assigns_every_territory_and_opens_turn_one():
    recorder = events.EventRecorder()
    machine = _started(bus=events.EventBus([recorder]))

    owners = {t.name: t.owner for t in machine.state.graph.territories.values()}
    assert owners == {"N1": "alice", "N2": "bob", "S1": "alice", "S2": "bob"}
    assert all(t.armies == 1 for t in machine.state.graph.territories.values())
    assert machine.phase == Phase.ISSUE_ORDER
    assert machine.state.turn == 1
    assert machine.current_player().name == "alice"
    assert machine.state.players["alice"].reinforcement_pool == 3
    phases = [e.payload["phase"] for e in recorder.of_type(events.PHASE_ENTERED)]
    assert phases == [Phase.STARTUP, Phase.ISSUE_ORDER]


def test_shuffled_assignment_is_reproducible():
    first = _started(RulesConfig())
    second = _started(RulesConfig())
    assert first.state.graph == second.state.graph


def test_floor_passes_on_finish_and_turn_executes_automatically():
    machine = _started()
    machine.handle(["deploy", "N1", "2"])
    assert machine.current_player().name == "alice"
    result = machine.handle(["finish"])
    assert "bob is next" in result.message
    assert machine.current_player().name == "bob"

    machine.handle(["deploy", "N2", "2"])
    result = machine.handle(["finish"])

    assert "Turn 1: 2 orders executed" in result.message
    assert machine.state.graph.territories["N1"].armies == 3
    assert machine.state.graph.territories["N2"].armies == 3
    assert machine.phase == Phase.ISSUE_ORDER
    assert machine.state.turn == 2
    assert machine.current_player().name == "alice"
    assert machine.state.players["alice"].reinforcement_pool == 3


def test_emptying_the_pool_passes_the_floor_and_executes_the_turn():
    machine = _started(combat_options=CombatOptions(attacker_fixed_hits=0, defender_fixed_hits=1))
    machine.handle(["advance", "S1", "N2", "1"])
    result = machine.handle(["deploy", "N1", "3"])
    assert "bob is next" in result.message
    assert machine.current_player().name == "bob"

    result = machine.handle(["deploy", "N2", "3"])

    assert "Turn 1: 3 orders executed" in result.message
    assert machine.state.graph.territories["N1"].armies == 4
    assert machine.phase == Phase.ISSUE_ORDER
    assert machine.state.turn == 2
    assert machine.current_player().name == "alice"


def test_rejected_order_keeps_the_floor():
    machine = _started()
    with pytest.raises(GameRuleError, match="only 3 left"):
        machine.handle(["deploy", "N1", "4"])
    assert machine.current_player().name == "alice"
    assert machine.state.players["alice"].orders == []


def test_manual_execution_when_auto_execute_is_off():
    rules = RulesConfig(
        startup=StartupRules(shuffle_territories=False),
        turns=TurnRules(auto_execute_orders=False),
    )
    machine = _started(rules)
    machine.handle(["deploy", "N1", "3"])
    machine.handle(["finish"])
    assert machine.phase == Phase.ORDER_EXECUTION
    assert machine.allowed_commands() == ["executeorders", "showmap"]

    with pytest.raises(UnknownCommandInPhase):
        machine.handle(["deploy", "N1", "1"])

    result = machine.handle(["executeorders"])
    assert result.phase == Phase.ISSUE_ORDER
    assert machine.state.graph.territories["N1"].armies == 4


def test_empty_pool_keeps_the_floor_when_auto_finish_is_off():
    rules = RulesConfig(
        startup=StartupRules(shuffle_territories=False),
        turns=TurnRules(finish_when_pool_empty=False),
    )
    machine = _started(rules)
    machine.handle(["deploy", "N1", "3"])
    assert machine.current_player().name == "alice"
    assert "bob is next" in machine.handle(["finish"]).message


def test_computer_player_issues_its_whole_plan_before_passing():
    machine = _machine()
    machine.handle(["gameplayer", "-add", "hal", "aggressive", "-add", "bob"])
    machine.handle(["startgame"])
    machine.handle(["assigncountries"])

    messages = machine.play_computer_turn(machine.current_player())

    assert messages[0].startswith("hal will deploy 3 armies")
    assert any("will advance" in message for message in messages)
    assert machine.current_player().name == "bob"


def test_finished_game_rejects_every_command():
    machine = _started()
    machine.state.outcome = GameOutcome.DRAW

    assert machine.allowed_commands() == []
    with pytest.raises(UnknownCommandInPhase, match="the game is over"):
        machine.handle(["showmap"])


def test_showcards_and_savegame_need_context():
    machine = _started()
    assert machine.handle(["showcards"]).message == "alice holds no cards."
    with pytest.raises(GameRuleError, match="no save directory"):
        machine.handle(["savegame", "slot1"])


def test_run_requires_a_prompt_for_human_players():
    machine = _started()
    with pytest.raises(RuntimeError, match="prompt is required"):
        machine.run()


def test_run_reports_errors_and_stops_on_quit():
    machine = _started()
    lines = iter(["deploy N1 9", "deploy N1 3", "quit"])
    shown: list[str] = []

    machine.run(lambda player, phase: next(lines), shown.append)

    assert shown[0].startswith("error: ")
    assert shown[1].startswith("alice will deploy 3 armies to N1")
    assert machine.state.players["alice"].reinforcement_pool == 0
