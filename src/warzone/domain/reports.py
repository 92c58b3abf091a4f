"""Plain-text rendering of game state for the console and the CLI."""

from __future__ import annotations

from warzone.domain.models import NEUTRAL, GameState, Player, TerritoryGraph
from warzone.domain.turn import TurnReport
from warzone.domain.validation import ValidationResult


def format_map(graph: TerritoryGraph, *, with_owners: bool = True) -> str:
    """List every continent with its territories, owners, armies and borders."""

    if not graph.continents and not graph.territories:
        return "The map is empty."
    lines = [f"--- Map: {graph.name or 'untitled'} ---"]
    for continent in graph.continents.values():
        lines.append(f"{continent.name} (bonus {continent.bonus})")
        members = [t for t in graph.territories.values() if t.continent == continent.name]
        if not members:
            lines.append("  - no territories")
        for territory in members:
            neighbors = ", ".join(sorted(territory.neighbors)) or "none"
            if with_owners:
                owner = territory.owner or NEUTRAL
                lines.append(
                    f"  - {territory.name} [{owner}, {territory.armies} armies] -> {neighbors}"
                )
            else:
                lines.append(f"  - {territory.name} -> {neighbors}")
    return "\n".join(lines)


def format_state(state: GameState) -> str:
    lines = [format_map(state.graph, with_owners=state.turn > 0)]
    if state.players:
        lines.append("--- Players ---")
        for player in state.players.values():
            owned = sum(1 for t in state.graph.territories.values() if t.owner == player.name)
            lines.append(
                f"  - {player.name} ({player.strategy}): {owned} territories, "
                f"{player.reinforcement_pool} armies in pool, {len(player.orders)} orders queued"
            )
    lines.append(f"Phase: {state.phase}, turn {state.turn}")
    return "\n".join(lines)


def format_validation(result: ValidationResult) -> str:
    if result.is_valid:
        return "The map is valid."
    return "The map is not valid:\n" + "\n".join(f"  - {error}" for error in result.errors())


def format_cards(player: Player) -> str:
    if not player.cards:
        return f"{player.name} holds no cards."
    held = ", ".join(f"{card} x{count}" for card, count in sorted(player.cards.items()))
    return f"{player.name} holds: {held}"


def format_turn_report(report: TurnReport) -> str:
    lines = [
        f"Turn {report.turn}: {report.executed} orders executed, {report.dropped} dropped."
    ]
    for result in report.results:
        if result.detail:
            lines.append(f"  - [{result.status}] {result.detail}")
    for player, card in report.awarded_cards.items():
        lines.append(f"  - {player} receives a {card} card")
    if report.winner is not None:
        lines.append(f"{report.winner} controls the whole map and wins the game.")
    elif report.outcome is not None:
        lines.append("The turn limit has been reached; the game is a draw.")
    return "\n".join(lines)
