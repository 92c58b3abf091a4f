"""Command-line entry point: console games, tournaments and map checks."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

import uvicorn

from warzone.config import Settings, build_rules, get_settings
from warzone.domain import reports, validation
from warzone.domain.enums import Phase, StrategyKind
from warzone.domain.errors import GameRuleError, MapFormatError
from warzone.domain.events import EventBus, logging_sink
from warzone.domain.models import GameState, TerritoryGraph
from warzone.domain.phases import PhaseStateMachine
from warzone.domain.strategies import COMPUTER_STRATEGIES
from warzone.domain.tournament import run_tournament
from warzone.repository.map_files import FileMapStore, parse
from warzone.savegame import ArchiveGameStore

logger = logging.getLogger(__name__)


def console_prompt(player: str | None, phase: Phase) -> str | None:
    """Read one command from stdin; ``None`` once input is exhausted."""

    label = f"{phase} {player}" if player else str(phase)
    try:
        return input(f"[{label}] > ")
    except EOFError:
        return None


def console_view(message: str) -> None:
    print(message)


def _load_graph(store: FileMapStore, name: str) -> TerritoryGraph:
    path = Path(name)
    if path.is_file():
        return parse(path.read_bytes(), name=path.stem)
    return store.load(name)


def _play(args: argparse.Namespace, settings: Settings) -> int:
    bus = EventBus([logging_sink])
    machine = PhaseStateMachine(
        GameState(game_id=args.seed if args.seed is not None else settings.game_seed),
        rules=build_rules(settings),
        bus=bus,
        map_store=FileMapStore(settings.maps_dir),
        game_store=ArchiveGameStore(settings.save_dir),
    )
    console_view("Commands: " + ", ".join(machine.allowed_commands()))
    if args.map:
        try:
            console_view(machine.handle(["loadmap", args.map]).message)
        except GameRuleError as exc:
            console_view(f"error: {exc}")
    state = machine.run(prompt=console_prompt, view=console_view)
    if state.winner is not None:
        console_view(f"{state.winner} wins after {state.turn} turns.")
    elif state.is_over:
        console_view(f"Draw after {state.turn} turns.")
    return 0


def _tournament(args: argparse.Namespace, settings: Settings) -> int:
    store = FileMapStore(settings.maps_dir)
    try:
        graphs = [_load_graph(store, name) for name in args.maps]
        result = run_tournament(
            graphs,
            [StrategyKind(s) for s in args.strategies],
            args.games,
            args.turns,
            rules=build_rules(settings),
            seed=settings.game_seed,
        )
    except (FileNotFoundError, GameRuleError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    console_view(result.format_table())
    return 0


def _validate(args: argparse.Namespace, settings: Settings) -> int:
    path = Path(args.file)
    try:
        graph = parse(path.read_bytes(), name=path.stem)
    except FileNotFoundError:
        print(f"error: {path} does not exist", file=sys.stderr)
        return 2
    except MapFormatError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    result = validation.validate(graph)
    console_view(reports.format_validation(result))
    return 0 if result.is_valid else 1


def _serve(args: argparse.Namespace, settings: Settings) -> int:
    uvicorn.run(
        "warzone.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        factory=False,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="warzone", description="Risk-style conquest game")
    commands = parser.add_subparsers(dest="command", required=True)

    play = commands.add_parser("play", help="Play an interactive game in the console")
    play.add_argument("--map", help="Map to load before the first prompt")
    play.add_argument("--seed", type=int, help="Game seed (defaults to GAME_SEED)")
    play.set_defaults(handler=_play)

    strategy_names = [str(s) for s in COMPUTER_STRATEGIES]
    tournament = commands.add_parser(
        "tournament", help="Pit computer strategies against each other"
    )
    tournament.add_argument("-M", dest="maps", nargs="+", required=True, help="Map names or files")
    tournament.add_argument(
        "-P", dest="strategies", nargs="+", required=True, choices=strategy_names
    )
    tournament.add_argument("-G", dest="games", type=int, required=True, help="Games per map")
    tournament.add_argument("-D", dest="turns", type=int, required=True, help="Turns per game")
    tournament.set_defaults(handler=_tournament)

    check = commands.add_parser("validate", help="Check that a map file is playable")
    check.add_argument("file")
    check.set_defaults(handler=_validate)

    serve = commands.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1", help="Host interface to bind")
    serve.add_argument("--port", type=int, default=8000, help="TCP port to listen on")
    serve.add_argument("--reload", action="store_true", help="Enable autoreload (dev mode)")
    serve.set_defaults(handler=_serve)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(), format="%(levelname)s %(name)s: %(message)s"
    )
    return args.handler(args, settings)


if __name__ == "__main__":
    sys.exit(main())
