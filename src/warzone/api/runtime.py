"""Runtime services backing the HTTP API."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from warzone.config import Settings, build_rules, get_settings
from warzone.domain import validation
from warzone.domain.enums import StrategyKind
from warzone.domain.models import TerritoryGraph
from warzone.domain.rules_config import RulesConfig
from warzone.domain.tournament import TournamentResult, run_tournament
from warzone.repository.map_files import FileMapStore

logger = logging.getLogger(__name__)


def map_summary(name: str, graph: TerritoryGraph) -> dict[str, Any]:
    result = validation.validate(graph)
    return {
        "name": name,
        "continents": len(graph.continents),
        "territories": len(graph.territories),
        "valid": result.is_valid,
    }


def map_detail(name: str, graph: TerritoryGraph) -> dict[str, Any]:
    result = validation.validate(graph)
    return {
        **map_summary(name, graph),
        "errors": result.errors(),
        "continent_bonuses": {c.name: c.bonus for c in graph.continents.values()},
        "borders": {
            t.name: {"continent": t.continent, "neighbors": sorted(t.neighbors)}
            for t in graph.territories.values()
        },
    }


@dataclass(slots=True)
class TournamentRecord:
    """A finished tournament kept in memory for later lookup."""

    id: int
    maps: list[str]
    result: TournamentResult
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class TournamentService:
    """Run tournaments off the event loop and remember their results."""

    def __init__(self, maps: FileMapStore, *, rules: RulesConfig, seed: int = 0) -> None:
        self._maps = maps
        self._rules = rules
        self._seed = seed
        self._records: dict[int, TournamentRecord] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def run(
        self,
        map_names: list[str],
        strategies: list[StrategyKind],
        games: int,
        max_turns: int,
    ) -> TournamentRecord:
        """Play a tournament on stored maps.

        Raises ``FileNotFoundError`` for unknown maps and ``GameRuleError``
        subclasses for malformed maps or out-of-range parameters.
        """

        graphs = [self._maps.load(name) for name in map_names]
        result = await asyncio.to_thread(
            run_tournament,
            graphs,
            strategies,
            games,
            max_turns,
            rules=self._rules,
            seed=self._seed,
        )
        async with self._lock:
            record = TournamentRecord(id=self._next_id, maps=list(map_names), result=result)
            self._records[record.id] = record
            self._next_id += 1
        logger.info("tournament %d finished on %s", record.id, ", ".join(map_names))
        return record

    def get(self, tournament_id: int) -> TournamentRecord:
        """Return a stored tournament; raises ``KeyError`` if it is unknown."""

        return self._records[tournament_id]

    @staticmethod
    def to_summary_dict(record: TournamentRecord) -> dict[str, Any]:
        result = record.result
        return {
            "id": record.id,
            "created_at": record.created_at,
            "maps": record.maps,
            "strategies": [str(s) for s in result.strategies],
            "games": result.games,
            "max_turns": result.max_turns,
            "results": result.rows,
            "wins": result.wins,
        }


class ApiState:
    """Aggregated services shared by the FastAPI layer."""

    def __init__(
        self, *, settings: Settings | None = None, rules: RulesConfig | None = None
    ) -> None:
        self.settings = settings or get_settings()
        self.rules = rules or build_rules(self.settings)
        self.maps = FileMapStore(self.settings.maps_dir)
        self.tournaments = TournamentService(
            self.maps, rules=self.rules, seed=self.settings.game_seed
        )

    async def shutdown(self) -> None:
        logger.info("shutting down API state")


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
