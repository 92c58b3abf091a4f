"""Phase state machine sequencing a game from map editing to its end.

Each phase is described by a :class:`PhaseDefinition`: the commands it
accepts, mapped to their handlers, plus optional enter and exit hooks.  A
command missing from the current phase's table is rejected with
:class:`UnknownCommandInPhase` before anything is touched.  Handlers validate
their arguments before mutating state, so every rejected command leaves the
game exactly as it was.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from warzone.domain import events, orders, reports, validation
from warzone.domain import graph as graph_ops
from warzone.domain.combat import CombatOptions
from warzone.domain.enums import Phase, StrategyKind
from warzone.domain.errors import (
    CommandSyntaxError,
    GameRuleError,
    MapEditError,
    MapValidationError,
    UnknownCommandInPhase,
)
from warzone.domain.events import EventBus
from warzone.domain.models import NEUTRAL, GameState, Order, Player, TerritoryGraph
from warzone.domain.reinforcement import assign_reinforcements
from warzone.domain.rules_config import DEFAULT_RULES, RulesConfig
from warzone.domain.strategies import plan_orders
from warzone.domain.turn import TurnReport, execute_orders
from warzone.utils.rng import generate_seed, shuffled

logger = logging.getLogger(__name__)

Prompt = Callable[[str | None, Phase], str | None]
View = Callable[[str], None]


class MapStore(Protocol):
    """Reads and writes map files by name."""

    def load(self, name: str) -> TerritoryGraph: ...

    def save(self, graph: TerritoryGraph, name: str) -> Path: ...

    def exists(self, name: str) -> bool: ...


class GameStore(Protocol):
    """Reads and writes saved games by name."""

    def load(self, name: str) -> GameState: ...

    def save(self, state: GameState, name: str) -> Path: ...


@dataclass(slots=True)
class CommandResult:
    """Outcome of an accepted command."""

    command: str
    message: str
    phase: Phase


CommandHandler = Callable[["PhaseStateMachine", list[str]], str]
PhaseHook = Callable[["PhaseStateMachine"], None]


@dataclass(frozen=True, slots=True)
class PhaseDefinition:
    commands: Mapping[str, CommandHandler]
    enter: PhaseHook | None = None
    exit: PhaseHook | None = None


class PhaseStateMachine:
    """Drive a game by feeding it tokenized commands."""

    def __init__(
        self,
        state: GameState | None = None,
        *,
        rules: RulesConfig = DEFAULT_RULES,
        bus: EventBus | None = None,
        map_store: MapStore | None = None,
        game_store: GameStore | None = None,
        combat_options: CombatOptions | None = None,
    ) -> None:
        self.state = state or GameState()
        self.rules = rules
        self.bus = bus or EventBus()
        self.map_store = map_store
        self.game_store = game_store
        self.combat_options = combat_options
        self.last_report: TurnReport | None = None
        self._planning: str | None = None

    @property
    def phase(self) -> Phase:
        return self.state.phase

    def allowed_commands(self) -> list[str]:
        if self.state.is_over:
            return []
        return sorted(_PHASES[self.state.phase].commands)

    def current_player(self) -> Player | None:
        """The player holding the floor while orders are being issued."""

        if self.state.phase != Phase.ISSUE_ORDER or self.state.current_player is None:
            return None
        return self.state.players.get(self.state.current_player)

    def handle(self, tokens: Sequence[str]) -> CommandResult:
        """Validate and apply one command against the current phase."""

        if not tokens:
            raise CommandSyntaxError("empty command")
        command, args = tokens[0].lower(), list(tokens[1:])
        phase = self.state.phase
        if self.state.is_over:
            raise UnknownCommandInPhase(command, phase, reason="the game is over")
        handler = _PHASES[phase].commands.get(command)
        if handler is None:
            raise UnknownCommandInPhase(command, phase)
        message = handler(self, args)
        return CommandResult(command=command, message=message, phase=self.state.phase)

    def transition(self, target: Phase) -> None:
        previous = self.state.phase
        hook = _PHASES[previous].exit
        if hook is not None:
            hook(self)
        self.state.phase = target
        logger.info("phase %s -> %s (turn %d)", previous, target, self.state.turn)
        self.bus.emit(events.phase_entered(target, previous, self.state.turn))
        hook = _PHASES[target].enter
        if hook is not None:
            hook(self)

    def play_computer_turn(self, player: Player) -> list[str]:
        """Issue the planned orders of a computer player, then finish for it."""

        messages: list[str] = []
        # the whole plan is issued before an empty pool can pass the floor on
        self._planning = player.name
        try:
            for tokens in plan_orders(self.state, player.name, rules=self.rules):
                if self.state.current_player != player.name:
                    break
                try:
                    messages.append(self.handle(tokens).message)
                except GameRuleError as exc:
                    logger.warning(
                        "%s planned an invalid order %s: %s", player.name, tokens, exc
                    )
        finally:
            self._planning = None
        if self.state.current_player == player.name and self.state.phase == Phase.ISSUE_ORDER:
            messages.append(self.handle(["finish"]).message)
        return messages

    def run(self, prompt: Prompt | None = None, view: View | None = None) -> GameState:
        """Play until the game ends or the prompt runs out of input.

        Computer players act on their own; the prompt is only consulted when a
        human has to type the next command.
        """

        def show(message: str) -> None:
            if view is not None and message:
                view(message)

        while not self.state.is_over:
            player = self.current_player()
            if player is not None and not player.is_human:
                for message in self.play_computer_turn(player):
                    show(message)
                continue
            if self.state.phase == Phase.ORDER_EXECUTION and not self._has_humans():
                show(self.handle(["executeorders"]).message)
                continue
            if prompt is None:
                raise RuntimeError(f"a prompt is required to continue in phase {self.state.phase}")
            line = prompt(player.name if player else None, self.state.phase)
            if line is None:
                break
            tokens = line.split()
            if not tokens:
                continue
            if tokens[0].lower() in ("quit", "exit"):
                break
            try:
                show(self.handle(tokens).message)
            except GameRuleError as exc:
                show(f"error: {exc}")
        return self.state

    def _has_humans(self) -> bool:
        return any(player.is_human for player in self.state.players.values())

    def _issuer(self) -> Player:
        player = self.current_player()
        if player is None:
            raise CommandSyntaxError("no player is currently issuing orders")
        return player


# ---------------------------------------------------------------------------
# Argument helpers


def _expect(command: str, args: list[str], *names: str) -> list[str]:
    if len(args) != len(names):
        usage = " ".join(f"<{name}>" for name in names)
        raise CommandSyntaxError(f"usage: {command} {usage}".rstrip())
    return args


def _int(value: str, what: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise CommandSyntaxError(f"{what} must be an integer, got {value!r}") from None


def _options(
    command: str, args: list[str], arity: Mapping[str, int]
) -> list[tuple[str, list[str]]]:
    """Split ``-flag value...`` groups; a flag may repeat within one command."""

    operations: list[tuple[str, list[str]]] = []
    index = 0
    while index < len(args):
        flag = args[index].lower()
        count = arity.get(flag)
        if count is None:
            raise CommandSyntaxError(f"{command}: unknown option {args[index]!r}")
        values = args[index + 1 : index + 1 + count]
        if len(values) < count:
            raise CommandSyntaxError(f"{command}: {flag} expects {count} argument(s)")
        operations.append((flag, values))
        index += 1 + count
    if not operations:
        raise CommandSyntaxError(f"{command}: expected one of {', '.join(arity)}")
    return operations


def _edit_graph(
    machine: PhaseStateMachine, apply: Callable[[TerritoryGraph], list[str]]
) -> str:
    """Apply edits to a copy and swap it in only if every edit succeeds."""

    draft = copy.deepcopy(machine.state.graph)
    messages = apply(draft)
    machine.state.graph = draft
    return "; ".join(messages)


# ---------------------------------------------------------------------------
# Map editing


def _cmd_editcontinent(machine: PhaseStateMachine, args: list[str]) -> str:
    operations = _options("editcontinent", args, {"-add": 2, "-remove": 1})
    parsed = [
        (flag, values[0], _int(values[1], "continent bonus") if flag == "-add" else 0)
        for flag, values in operations
    ]

    def apply(graph: TerritoryGraph) -> list[str]:
        messages = []
        for flag, name, bonus in parsed:
            if flag == "-add":
                graph_ops.add_continent(graph, name, bonus)
                messages.append(f"added continent {name} (bonus {bonus})")
            else:
                removed = graph_ops.remove_continent(graph, name)
                messages.append(f"removed continent {name} and {len(removed)} territories")
        return messages

    return _edit_graph(machine, apply)


def _cmd_editcountry(machine: PhaseStateMachine, args: list[str]) -> str:
    operations = _options("editcountry", args, {"-add": 2, "-remove": 1})

    def apply(graph: TerritoryGraph) -> list[str]:
        messages = []
        for flag, values in operations:
            if flag == "-add":
                graph_ops.add_territory(graph, values[0], values[1])
                messages.append(f"added territory {values[0]} to {values[1]}")
            else:
                graph_ops.remove_territory(graph, values[0])
                messages.append(f"removed territory {values[0]}")
        return messages

    return _edit_graph(machine, apply)


def _cmd_editneighbor(machine: PhaseStateMachine, args: list[str]) -> str:
    operations = _options("editneighbor", args, {"-add": 2, "-remove": 2})

    def apply(graph: TerritoryGraph) -> list[str]:
        messages = []
        for flag, (first, second) in operations:
            if flag == "-add":
                graph_ops.add_neighbor(graph, first, second)
                messages.append(f"connected {first} and {second}")
            else:
                graph_ops.remove_neighbor(graph, first, second)
                messages.append(f"disconnected {first} and {second}")
        return messages

    return _edit_graph(machine, apply)


def _require_map_store(machine: PhaseStateMachine) -> MapStore:
    if machine.map_store is None:
        raise MapEditError("no map directory is configured")
    return machine.map_store


def _load_map(machine: PhaseStateMachine, name: str) -> TerritoryGraph:
    store = _require_map_store(machine)
    try:
        return store.load(name)
    except FileNotFoundError:
        raise MapEditError(f"map file {name!r} not found") from None


def _cmd_loadmap(machine: PhaseStateMachine, args: list[str]) -> str:
    (name,) = _expect("loadmap", args, "file")
    graph = _load_map(machine, name)
    machine.state.graph = graph
    result = validation.validate(graph)
    return (
        f"loaded map {name} with {len(graph.territories)} territories. "
        + reports.format_validation(result)
    )


def _cmd_editmap(machine: PhaseStateMachine, args: list[str]) -> str:
    (name,) = _expect("editmap", args, "file")
    store = _require_map_store(machine)
    if store.exists(name):
        machine.state.graph = _load_map(machine, name)
        return f"editing existing map {name}"
    machine.state.graph = TerritoryGraph(name=name)
    return f"editing new map {name}"


def _cmd_savemap(machine: PhaseStateMachine, args: list[str]) -> str:
    (name,) = _expect("savemap", args, "file")
    store = _require_map_store(machine)
    result = validation.validate(machine.state.graph)
    if not result.is_valid:
        raise MapValidationError(result)
    path = store.save(machine.state.graph, name)
    machine.state.graph.name = name
    return f"saved map to {path}"


def _cmd_validatemap(machine: PhaseStateMachine, args: list[str]) -> str:
    _expect("validatemap", args)
    return reports.format_validation(validation.validate(machine.state.graph))


def _cmd_showmap(machine: PhaseStateMachine, args: list[str]) -> str:
    _expect("showmap", args)
    return reports.format_state(machine.state)


def _cmd_gameplayer(machine: PhaseStateMachine, args: list[str]) -> str:
    """``gameplayer -add <name> [strategy] | -remove <name>``, repeatable."""

    operations: list[tuple[str, str, StrategyKind]] = []
    index = 0
    while index < len(args):
        flag = args[index].lower()
        if flag not in ("-add", "-remove") or index + 1 >= len(args):
            raise CommandSyntaxError("usage: gameplayer -add <name> [strategy] | -remove <name>")
        name = args[index + 1]
        index += 2
        strategy = StrategyKind.HUMAN
        if flag == "-add" and index < len(args) and not args[index].startswith("-"):
            try:
                strategy = StrategyKind(args[index].lower())
            except ValueError:
                raise CommandSyntaxError(f"unknown strategy {args[index]!r}") from None
            index += 1
        operations.append((flag, name, strategy))
    if not operations:
        raise CommandSyntaxError("usage: gameplayer -add <name> [strategy] | -remove <name>")

    players = dict(machine.state.players)
    messages = []
    for flag, name, strategy in operations:
        if flag == "-add":
            if name in players or name == NEUTRAL:
                raise GameRuleError(f"player name {name!r} is already taken")
            players[name] = Player(name=name, strategy=strategy)
            messages.append(f"added player {name} ({strategy})")
        else:
            if name not in players:
                raise GameRuleError(f"player {name!r} is not registered")
            del players[name]
            messages.append(f"removed player {name}")
    machine.state.players = players
    return "; ".join(messages)


def _require_player_count(machine: PhaseStateMachine) -> None:
    minimum = machine.rules.startup.min_players
    if len(machine.state.players) < minimum:
        raise GameRuleError(
            f"at least {minimum} players are required, {len(machine.state.players)} registered"
        )


def _cmd_startgame(machine: PhaseStateMachine, args: list[str]) -> str:
    _expect("startgame", args)
    result = validation.validate(machine.state.graph)
    if not result.is_valid:
        raise MapValidationError(result)
    _require_player_count(machine)
    graph_ops.check_integrity(machine.state.graph)
    machine.transition(Phase.STARTUP)
    return f"game started with {len(machine.state.players)} players; assign countries next"


def _cmd_loadgame(machine: PhaseStateMachine, args: list[str]) -> str:
    (name,) = _expect("loadgame", args, "file")
    if machine.game_store is None:
        raise GameRuleError("no save directory is configured")
    try:
        state = machine.game_store.load(name)
    except FileNotFoundError:
        raise GameRuleError(f"saved game {name!r} not found") from None
    graph_ops.check_integrity(state.graph)
    machine.state = state
    return f"loaded game {name}: phase {state.phase}, turn {state.turn}"


# ---------------------------------------------------------------------------
# Startup


def _cmd_assigncountries(machine: PhaseStateMachine, args: list[str]) -> str:
    _expect("assigncountries", args)
    _require_player_count(machine)
    state = machine.state
    names = list(state.graph.territories)
    if machine.rules.startup.shuffle_territories:
        seed = generate_seed(state.game_id, state.turn, Phase.STARTUP, "assigncountries")
        names = shuffled(seed, names)["order"]
    players = list(state.players)
    for index, name in enumerate(names):
        territory = state.graph.territories[name]
        territory.owner = players[index % len(players)]
        territory.armies = machine.rules.startup.initial_armies
    machine.transition(Phase.ISSUE_ORDER)
    return f"assigned {len(names)} territories to {len(players)} players"


# ---------------------------------------------------------------------------
# Issuing orders


def _enter_issue_order(machine: PhaseStateMachine) -> None:
    state = machine.state
    state.turn += 1
    grants = assign_reinforcements(state, rules=machine.rules)
    machine.bus.emit(events.reinforcements_assigned(state.turn, grants))
    for player in state.players.values():
        player.finished_issuing = player.name not in grants
    state.current_player = next(
        (p.name for p in state.players.values() if not p.finished_issuing), None
    )
    if state.current_player is None:
        machine.transition(Phase.ORDER_EXECUTION)


def _issued(machine: PhaseStateMachine, player: Player, order: Order, text: str) -> str:
    machine.bus.emit(events.order_issued(player.name, orders.order_to_dict(order)))
    if (
        machine.rules.turns.finish_when_pool_empty
        and player.reinforcement_pool == 0
        and machine._planning != player.name
    ):
        return f"{text}. {_finish(machine, player)}"
    return text


def _cmd_deploy(machine: PhaseStateMachine, args: list[str]) -> str:
    target, count = _expect("deploy", args, "territory", "armies")
    player = machine._issuer()
    order = orders.issue_deploy(machine.state, player.name, target, _int(count, "armies"))
    text = (
        f"{player.name} will deploy {order.armies} armies to {target} "
        f"({player.reinforcement_pool} left)"
    )
    return _issued(machine, player, order, text)


def _cmd_advance(machine: PhaseStateMachine, args: list[str]) -> str:
    source, target, count = _expect("advance", args, "source", "target", "armies")
    player = machine._issuer()
    order = orders.issue_advance(
        machine.state, player.name, source, target, _int(count, "armies")
    )
    text = f"{player.name} will advance {order.armies} armies from {source} to {target}"
    return _issued(machine, player, order, text)


def _cmd_airlift(machine: PhaseStateMachine, args: list[str]) -> str:
    source, target, count = _expect("airlift", args, "source", "target", "armies")
    player = machine._issuer()
    order = orders.issue_airlift(
        machine.state, player.name, source, target, _int(count, "armies")
    )
    text = f"{player.name} will airlift {order.armies} armies from {source} to {target}"
    return _issued(machine, player, order, text)


def _cmd_bomb(machine: PhaseStateMachine, args: list[str]) -> str:
    (target,) = _expect("bomb", args, "territory")
    player = machine._issuer()
    order = orders.issue_bomb(machine.state, player.name, target)
    return _issued(machine, player, order, f"{player.name} will bomb {target}")


def _cmd_blockade(machine: PhaseStateMachine, args: list[str]) -> str:
    (target,) = _expect("blockade", args, "territory")
    player = machine._issuer()
    order = orders.issue_blockade(machine.state, player.name, target)
    return _issued(machine, player, order, f"{player.name} will blockade {target}")


def _cmd_negotiate(machine: PhaseStateMachine, args: list[str]) -> str:
    (opponent,) = _expect("negotiate", args, "player")
    player = machine._issuer()
    order = orders.issue_negotiate(machine.state, player.name, opponent)
    return _issued(machine, player, order, f"{player.name} will negotiate with {opponent}")


def _finish(machine: PhaseStateMachine, player: Player) -> str:
    """Hand the floor to the next player, or start execution when all are done."""

    state = machine.state
    player.finished_issuing = True
    names = list(state.players)
    start = names.index(player.name)
    rotation = names[start + 1 :] + names[: start + 1]
    state.current_player = next(
        (name for name in rotation if not state.players[name].finished_issuing), None
    )
    if state.current_player is not None:
        return f"{player.name} has finished issuing orders; {state.current_player} is next"

    machine.last_report = None
    machine.transition(Phase.ORDER_EXECUTION)
    text = f"{player.name} has finished issuing orders; all orders are in"
    if machine.last_report is not None:
        text += "\n" + reports.format_turn_report(machine.last_report)
    return text


def _cmd_finish(machine: PhaseStateMachine, args: list[str]) -> str:
    _expect("finish", args)
    return _finish(machine, machine._issuer())


def _cmd_showcards(machine: PhaseStateMachine, args: list[str]) -> str:
    _expect("showcards", args)
    return reports.format_cards(machine._issuer())


def _cmd_savegame(machine: PhaseStateMachine, args: list[str]) -> str:
    (name,) = _expect("savegame", args, "file")
    if machine.game_store is None:
        raise GameRuleError("no save directory is configured")
    path = machine.game_store.save(machine.state, name)
    return f"game saved to {path}"


# ---------------------------------------------------------------------------
# Order execution


def _run_execution(machine: PhaseStateMachine) -> TurnReport:
    state = machine.state
    report = execute_orders(
        state, rules=machine.rules, bus=machine.bus, combat_options=machine.combat_options
    )
    machine.last_report = report
    if state.is_over:
        logger.info("game over after turn %d: %s %s", state.turn, state.outcome, state.winner)
    else:
        machine.transition(Phase.ISSUE_ORDER)
    return report


def _enter_order_execution(machine: PhaseStateMachine) -> None:
    if machine.rules.turns.auto_execute_orders:
        _run_execution(machine)


def _cmd_executeorders(machine: PhaseStateMachine, args: list[str]) -> str:
    _expect("executeorders", args)
    return reports.format_turn_report(_run_execution(machine))


_PHASES: dict[Phase, PhaseDefinition] = {
    Phase.MAP_EDITING: PhaseDefinition(
        commands={
            "editcontinent": _cmd_editcontinent,
            "editcountry": _cmd_editcountry,
            "editneighbor": _cmd_editneighbor,
            "loadmap": _cmd_loadmap,
            "editmap": _cmd_editmap,
            "savemap": _cmd_savemap,
            "validatemap": _cmd_validatemap,
            "showmap": _cmd_showmap,
            "gameplayer": _cmd_gameplayer,
            "startgame": _cmd_startgame,
            "loadgame": _cmd_loadgame,
        },
    ),
    Phase.STARTUP: PhaseDefinition(
        commands={
            "gameplayer": _cmd_gameplayer,
            "assigncountries": _cmd_assigncountries,
            "showmap": _cmd_showmap,
        },
    ),
    Phase.ISSUE_ORDER: PhaseDefinition(
        commands={
            "deploy": _cmd_deploy,
            "advance": _cmd_advance,
            "airlift": _cmd_airlift,
            "bomb": _cmd_bomb,
            "blockade": _cmd_blockade,
            "negotiate": _cmd_negotiate,
            "finish": _cmd_finish,
            "showmap": _cmd_showmap,
            "showcards": _cmd_showcards,
            "savegame": _cmd_savegame,
        },
        enter=_enter_issue_order,
    ),
    Phase.ORDER_EXECUTION: PhaseDefinition(
        commands={
            "executeorders": _cmd_executeorders,
            "showmap": _cmd_showmap,
        },
        enter=_enter_order_execution,
    ),
}
