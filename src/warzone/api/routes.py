"""HTTP routes for the warzone API."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from warzone.api.runtime import ApiState, TournamentService, map_detail, map_summary
from warzone.domain import validation
from warzone.domain.enums import StrategyKind
from warzone.domain.errors import MapFormatError
from warzone.repository.map_files import parse

router = APIRouter()


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


ApiStateDep = Annotated[ApiState, Depends(get_state)]


class MapSummary(BaseModel):
    name: str
    continents: int
    territories: int
    valid: bool


class TerritoryBorders(BaseModel):
    continent: str
    neighbors: list[str]


class MapDetail(MapSummary):
    errors: list[str]
    continent_bonuses: dict[str, int]
    borders: dict[str, TerritoryBorders]


class MapValidationRequest(BaseModel):
    content: str = Field(min_length=1)


class MapValidationResponse(BaseModel):
    valid: bool
    errors: list[str]
    unreachable: list[str]
    disconnected_continents: list[str]
    continents: int
    territories: int


class TournamentRequest(BaseModel):
    maps: list[str] = Field(min_length=1)
    strategies: list[StrategyKind] = Field(min_length=1)
    games: int = Field(default=1, ge=1)
    max_turns: int = Field(default=10, ge=1)


class TournamentSummary(BaseModel):
    id: int
    created_at: datetime
    maps: list[str]
    strategies: list[str]
    games: int
    max_turns: int
    results: dict[str, list[str]]
    wins: dict[str, int]


@router.get("/health")
async def health(state: ApiStateDep) -> dict[str, object]:
    return {
        "status": "ok",
        "maps": len(state.maps.list_maps()),
        "max_turns": state.rules.turns.max_turns,
    }


@router.get("/rules")
async def get_rules(state: ApiStateDep) -> dict[str, object]:
    return asdict(state.rules)


@router.get("/maps", response_model=list[MapSummary])
async def list_maps(state: ApiStateDep) -> list[MapSummary]:
    summaries: list[MapSummary] = []
    for name in state.maps.list_maps():
        try:
            graph = state.maps.load(name)
        except MapFormatError:
            summaries.append(MapSummary(name=name, continents=0, territories=0, valid=False))
            continue
        summaries.append(MapSummary.model_validate(map_summary(name, graph)))
    return summaries


@router.get("/maps/{name}", response_model=MapDetail)
async def get_map(name: str, state: ApiStateDep) -> MapDetail:
    try:
        graph = state.maps.load(name)
    except FileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="map not found") from exc
    return MapDetail.model_validate(map_detail(name, graph))


@router.post("/maps/validate", response_model=MapValidationResponse)
async def validate_map(request: MapValidationRequest) -> MapValidationResponse:
    graph = parse(request.content)
    result = validation.validate(graph)
    return MapValidationResponse(
        valid=result.is_valid,
        errors=result.errors(),
        unreachable=list(result.unreachable),
        disconnected_continents=list(result.disconnected_continents),
        continents=len(graph.continents),
        territories=len(graph.territories),
    )


@router.post(
    "/tournaments",
    response_model=TournamentSummary,
    status_code=status.HTTP_201_CREATED,
)
async def create_tournament(request: TournamentRequest, state: ApiStateDep) -> TournamentSummary:
    try:
        record = await state.tournaments.run(
            request.maps, request.strategies, request.games, request.max_turns
        )
    except FileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="map not found") from exc
    return TournamentSummary.model_validate(TournamentService.to_summary_dict(record))


@router.get("/tournaments/{tournament_id}", response_model=TournamentSummary)
async def get_tournament(tournament_id: int, state: ApiStateDep) -> TournamentSummary:
    try:
        record = state.tournaments.get(tournament_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="tournament not found"
        ) from exc
    return TournamentSummary.model_validate(TournamentService.to_summary_dict(record))
