"""Unit tests for tournament mode."""

from __future__ import annotations

import pytest

from warzone.domain import graph as graph_ops
from warzone.domain import tournament
from warzone.domain.enums import GameOutcome, Phase, StrategyKind
from warzone.domain.errors import TournamentError
from warzone.domain.models import TerritoryGraph

AGGRESSIVE = StrategyKind.AGGRESSIVE
BENEVOLENT = StrategyKind.BENEVOLENT
RANDOM = StrategyKind.RANDOM


def _ring(name: str = "ring", size: int = 6) -> TerritoryGraph:
    graph = TerritoryGraph(name=name)
    graph_ops.add_continent(graph, "East", 2)
    graph_ops.add_continent(graph, "West", 1)
    for index in range(size):
        graph_ops.add_territory(graph, f"T{index}", "East" if index < size // 2 else "West")
    for index in range(size):
        graph_ops.add_neighbor(graph, f"T{index}", f"T{(index + 1) % size}")
    return graph


@pytest.mark.parametrize(
    ("maps", "strategies", "games", "turns", "message"),
    [
        (0, [AGGRESSIVE, RANDOM], 1, 10, "maps"),
        (6, [AGGRESSIVE, RANDOM], 1, 10, "maps"),
        (1, [AGGRESSIVE], 1, 10, "strategies"),
        (1, [AGGRESSIVE, AGGRESSIVE], 1, 10, "only appear once"),
        (1, [AGGRESSIVE, StrategyKind.HUMAN], 1, 10, "cannot play"),
        (1, [AGGRESSIVE, RANDOM], 0, 10, "games"),
        (1, [AGGRESSIVE, RANDOM], 6, 10, "games"),
        (1, [AGGRESSIVE, RANDOM], 1, 9, "max turns"),
        (1, [AGGRESSIVE, RANDOM], 1, 51, "max turns"),
    ],
)
def test_parameters_out_of_bounds_are_rejected(maps, strategies, games, turns, message):
    with pytest.raises(TournamentError, match=message):
        tournament.validate_parameters(maps, strategies, games, turns)


def test_unknown_strategy_name_is_rejected():
    with pytest.raises(TournamentError, match="cheater"):
        tournament.run_tournament([_ring()], ["aggressive", "cheater"], 1, 10)


def test_invalid_map_is_rejected_before_play():
    broken = _ring("broken")
    graph_ops.add_territory(broken, "Island", "East")
    with pytest.raises(TournamentError, match="broken is not valid"):
        tournament.run_tournament([broken], [AGGRESSIVE, RANDOM], 1, 10)


def test_player_names_carry_their_strategy():
    name = tournament.player_name(BENEVOLENT, 2)
    assert name == "benevolent_2"
    assert tournament.player_strategy(name) == "benevolent"


def test_play_game_runs_to_an_outcome_without_touching_the_map():
    graph = _ring()
    final = tournament.play_game(graph, [AGGRESSIVE, BENEVOLENT], game_id=3)

    assert final.is_over
    assert final.phase == Phase.ORDER_EXECUTION
    assert all(t.owner is None for t in graph.territories.values())
    if final.outcome == GameOutcome.WIN:
        assert {t.owner for t in final.graph.territories.values()} == {final.winner}


def test_tournament_fills_one_row_per_map():
    result = tournament.run_tournament(
        [_ring("alpha"), _ring("beta", 8)], [AGGRESSIVE, BENEVOLENT, RANDOM], 2, 10, seed=4
    )

    assert list(result.rows) == ["alpha", "beta"]
    valid = {tournament.DRAW, "aggressive_1", "benevolent_2", "random_3"}
    for winners in result.rows.values():
        assert len(winners) == 2
        assert set(winners) <= valid
    assert sum(result.wins.values()) == sum(
        1 for winners in result.rows.values() for w in winners if w != tournament.DRAW
    )


def test_tournament_is_reproducible():
    first = tournament.run_tournament([_ring()], [AGGRESSIVE, RANDOM], 2, 10, seed=1)
    second = tournament.run_tournament([_ring()], [AGGRESSIVE, RANDOM], 2, 10, seed=1)
    assert first.rows == second.rows


def test_duplicate_map_names_get_distinct_rows():
    result = tournament.run_tournament([_ring(), _ring()], [AGGRESSIVE, RANDOM], 1, 10)
    assert list(result.rows) == ["ring", "ring (2)"]


def test_format_table_lists_games_and_wins():
    result = tournament.TournamentResult(
        strategies=[AGGRESSIVE, BENEVOLENT],
        games=2,
        max_turns=10,
        rows={"ring": ["aggressive_1", tournament.DRAW]},
    )
    table = result.format_table()

    header = [cell.strip() for cell in table.splitlines()[0].split(" | ")]
    assert header == ["Map", "Game 1", "Game 2"]
    assert "ring | aggressive_1 | Draw" in table
    assert table.endswith("Wins: aggressive 1, benevolent 0")
