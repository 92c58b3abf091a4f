"""Tournament mode: computer strategies playing each other across maps."""

from __future__ import annotations

import copy
import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from warzone.domain import validation
from warzone.domain.enums import GameOutcome, StrategyKind
from warzone.domain.errors import TournamentError
from warzone.domain.events import EventBus
from warzone.domain.models import GameState, TerritoryGraph
from warzone.domain.phases import PhaseStateMachine
from warzone.domain.rules_config import DEFAULT_RULES, RulesConfig
from warzone.domain.strategies import COMPUTER_STRATEGIES

logger = logging.getLogger(__name__)

DRAW = "Draw"


@dataclass(slots=True)
class TournamentResult:
    """Winner of every game, one row per map."""

    strategies: list[StrategyKind]
    games: int
    max_turns: int
    rows: dict[str, list[str]] = field(default_factory=dict)

    @property
    def wins(self) -> dict[str, int]:
        counts: Counter[str] = Counter({str(strategy): 0 for strategy in self.strategies})
        for winners in self.rows.values():
            for winner in winners:
                if winner != DRAW:
                    counts[player_strategy(winner)] += 1
        return dict(counts)

    def format_table(self) -> str:
        header = ["Map"] + [f"Game {n}" for n in range(1, self.games + 1)]
        table = [header] + [[name, *winners] for name, winners in self.rows.items()]
        widths = [max(len(row[col]) for row in table) for col in range(len(header))]
        lines = [" | ".join(cell.ljust(w) for cell, w in zip(row, widths)) for row in table]
        lines.insert(1, "-+-".join("-" * w for w in widths))
        lines.append("")
        lines.append("Wins: " + ", ".join(f"{name} {count}" for name, count in self.wins.items()))
        return "\n".join(lines)


def player_name(strategy: StrategyKind, index: int) -> str:
    return f"{strategy}_{index}"


def player_strategy(name: str) -> str:
    return name.rsplit("_", 1)[0]


def validate_parameters(
    map_count: int,
    strategies: Sequence[StrategyKind],
    games: int,
    max_turns: int,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> None:
    """Raise :class:`TournamentError` when a parameter is out of bounds."""

    bounds = rules.tournament
    if not 1 <= map_count <= bounds.max_maps:
        raise TournamentError(f"between 1 and {bounds.max_maps} maps are required, got {map_count}")
    if not bounds.min_strategies <= len(strategies) <= bounds.max_strategies:
        raise TournamentError(
            f"between {bounds.min_strategies} and {bounds.max_strategies} strategies are "
            f"required, got {len(strategies)}"
        )
    if len(set(strategies)) != len(strategies):
        raise TournamentError("each strategy may only appear once")
    for strategy in strategies:
        if strategy not in COMPUTER_STRATEGIES:
            raise TournamentError(f"strategy {strategy} cannot play in a tournament")
    if not 1 <= games <= bounds.max_games:
        raise TournamentError(f"between 1 and {bounds.max_games} games are required, got {games}")
    if not bounds.min_turns <= max_turns <= bounds.max_turns:
        raise TournamentError(
            f"max turns must be between {bounds.min_turns} and {bounds.max_turns}, got {max_turns}"
        )


def play_game(
    graph: TerritoryGraph,
    strategies: Sequence[StrategyKind],
    *,
    game_id: int = 0,
    rules: RulesConfig = DEFAULT_RULES,
    bus: EventBus | None = None,
) -> GameState:
    """Play one unattended game on a copy of ``graph`` and return the final state."""

    machine = PhaseStateMachine(
        GameState(game_id=game_id, graph=copy.deepcopy(graph)), rules=rules, bus=bus
    )
    for index, strategy in enumerate(strategies, start=1):
        machine.handle(["gameplayer", "-add", player_name(strategy, index), str(strategy)])
    machine.handle(["startgame"])
    machine.handle(["assigncountries"])
    return machine.run()


def run_tournament(
    maps: Sequence[TerritoryGraph],
    strategies: Sequence[StrategyKind],
    games: int,
    max_turns: int,
    *,
    rules: RulesConfig = DEFAULT_RULES,
    seed: int = 0,
    bus: EventBus | None = None,
) -> TournamentResult:
    try:
        strategies = [StrategyKind(s) for s in strategies]
    except ValueError as exc:
        raise TournamentError(str(exc)) from None
    validate_parameters(len(maps), strategies, games, max_turns, rules=rules)
    for index, graph in enumerate(maps, start=1):
        result = validation.validate(graph)
        if not result.is_valid:
            name = graph.name or f"map {index}"
            raise TournamentError(f"{name} is not valid: {'; '.join(result.errors())}")

    game_rules = replace(
        rules, turns=replace(rules.turns, max_turns=max_turns, auto_execute_orders=True)
    )
    outcome = TournamentResult(strategies=strategies, games=games, max_turns=max_turns)
    for map_index, graph in enumerate(maps):
        label = graph.name or f"Map {map_index + 1}"
        if label in outcome.rows:
            label = f"{label} ({map_index + 1})"
        winners: list[str] = []
        for game in range(games):
            # one block of game ids per map so no two games share seeds
            game_id = seed + map_index * rules.tournament.max_games + game
            final = play_game(graph, strategies, game_id=game_id, rules=game_rules, bus=bus)
            winner = final.winner if final.outcome == GameOutcome.WIN and final.winner else DRAW
            logger.info("%s game %d: %s after %d turns", label, game + 1, winner, final.turn)
            winners.append(winner)
        outcome.rows[label] = winners
    return outcome
