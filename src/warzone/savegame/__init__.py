"""Import and export helpers for warzone save files."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import UUID, uuid4
from zipfile import ZIP_DEFLATED, ZipFile

from pydantic import BaseModel, Field, TypeAdapter, model_validator

from warzone.domain import models as dm

GAME_ADAPTER: TypeAdapter[dm.GameState] = TypeAdapter(dm.GameState)

SAVE_SUFFIX = ".warzone"
MANIFEST_PATH = "warzone/manifest.json"


class SaveMetadata(BaseModel):
    """High-level information about the saved game."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    description: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    game_version: str = "0.1.0"


class SaveManifest(BaseModel):
    """Top-level manifest stored in a `.warzone` archive."""

    format_version: int = 1
    metadata: SaveMetadata
    game: dm.GameState
    rules_overrides: dict[str, Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _convert_game(cls, values: dict[str, Any]) -> dict[str, Any]:
        raw = values.get("game")
        if raw is not None and not isinstance(raw, dm.GameState):
            values["game"] = GAME_ADAPTER.validate_python(raw)
        return values

    def model_dump(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        data = super().model_dump(*args, **kwargs)
        data["game"] = GAME_ADAPTER.dump_python(self.game, mode="json")
        return data


def load_manifest(path: Path | str) -> SaveManifest:
    """Load a savegame manifest from a `.warzone` archive."""

    zip_path = Path(path)
    with ZipFile(zip_path, "r") as archive:
        try:
            with archive.open(MANIFEST_PATH) as manifest_file:
                payload = json.load(manifest_file)
        except KeyError as exc:  # pragma: no cover - invalid archive
            raise FileNotFoundError("manifest.json not found in archive") from exc
    return SaveManifest.model_validate(payload)


def save_manifest(manifest: SaveManifest, path: Path | str) -> Path:
    """Write a manifest to a `.warzone` archive."""

    payload = json.dumps(
        manifest.model_dump(mode="json", by_alias=True),
        indent=2,
        sort_keys=True,
    ).encode("utf-8")
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with ZipFile(target, "w", ZIP_DEFLATED) as archive:
        archive.writestr(MANIFEST_PATH, payload)
    return target


def export_game(
    state: dm.GameState,
    *,
    metadata: SaveMetadata | None = None,
    rules_overrides: dict[str, Any] | None = None,
) -> SaveManifest:
    """Produce a manifest from an in-memory game."""

    return SaveManifest(
        metadata=metadata or SaveMetadata(name=state.graph.name or f"game {state.game_id}"),
        game=state,
        rules_overrides=rules_overrides,
    )


class ArchiveGameStore:
    """Saved games kept as `.warzone` archives in one directory."""

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path

    def path_for(self, name: str) -> Path:
        filename = name if name.endswith(SAVE_SUFFIX) else f"{name}{SAVE_SUFFIX}"
        return self.base_path / Path(filename).name

    def save(self, state: dm.GameState, name: str) -> Path:
        manifest = export_game(state, metadata=SaveMetadata(name=name))
        return save_manifest(manifest, self.path_for(name))

    def load(self, name: str) -> dm.GameState:
        return load_manifest(self.path_for(name)).game
