"""Tests for the FastAPI layer."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from warzone.api.app import create_app
from warzone.api.runtime import ApiState
from warzone.config import Settings

RING = """\
[continents]
East 2
West 1

[countries]
1 A 1
2 B 1
3 C 2
4 D 2

[borders]
1 2 4
2 1 3
3 2 4
4 3 1
"""

BROKEN = RING.replace("4 3 1\n", "4\n").replace("3 2 4\n", "3 2\n").replace("1 2 4\n", "1 2\n")


def _make_app(tmp_path):
    maps_dir = tmp_path / "maps"
    maps_dir.mkdir()
    (maps_dir / "ring.map").write_text(RING)
    (maps_dir / "broken.map").write_text(BROKEN)
    (maps_dir / "garbage.map").write_text("no sections here\n")

    def factory() -> ApiState:
        settings = Settings(maps_dir=maps_dir, save_dir=tmp_path / "saves", game_seed=2)
        return ApiState(settings=settings)

    app = create_app(state_factory=factory)
    transport = ASGITransport(app=app)
    return app, transport


@pytest.mark.asyncio
async def test_health_and_rules(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "maps": 3, "max_turns": 100}

        response = await client.get("/rules")
        assert response.status_code == 200
        rules = response.json()
        assert rules["combat"] == {
            "attacker_kill_probability": 0.6,
            "defender_kill_probability": 0.7,
        }
        assert rules["reinforcement"]["minimum"] == 3


@pytest.mark.asyncio
async def test_map_listing_and_detail(tmp_path):
    app, transport = _make_app(tmp_path)
    (tmp_path / "maps" / "latin.map").write_bytes(b"[continents]\nNorth\xff 1\n")

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.get("/maps")
        assert response.status_code == 200
        listing = {item["name"]: item for item in response.json()}
        assert listing["ring"] == {"name": "ring", "continents": 2, "territories": 4, "valid": True}
        assert listing["broken"]["valid"] is False
        assert listing["garbage"]["valid"] is False
        assert listing["latin"]["valid"] is False

        response = await client.get("/maps/ring")
        assert response.status_code == 200
        detail = response.json()
        assert detail["continent_bonuses"] == {"East": 2, "West": 1}
        assert detail["borders"]["A"] == {"continent": "East", "neighbors": ["B", "D"]}
        assert detail["errors"] == []

        response = await client.get("/maps/broken")
        assert "unreachable territories: D" in response.json()["errors"]

        assert (await client.get("/maps/nowhere")).status_code == 404
        assert (await client.get("/maps/garbage")).status_code == 400

        response = await client.get("/maps/latin")
        assert response.status_code == 400
        assert response.json() == {"detail": "map file is not valid UTF-8"}


@pytest.mark.asyncio
async def test_validate_map_content(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.post("/maps/validate", json={"content": RING})
        assert response.status_code == 200
        assert response.json()["valid"] is True

        response = await client.post("/maps/validate", json={"content": BROKEN})
        payload = response.json()
        assert payload["valid"] is False
        assert payload["unreachable"] == ["D"]
        assert payload["territories"] == 4

        response = await client.post("/maps/validate", json={"content": "[oceans]\n"})
        assert response.status_code == 400
        assert "unknown section" in response.json()["detail"]


@pytest.mark.asyncio
async def test_tournament_lifecycle(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.post(
            "/tournaments",
            json={
                "maps": ["ring"],
                "strategies": ["aggressive", "benevolent"],
                "games": 2,
                "max_turns": 10,
            },
        )
        assert response.status_code == 201
        created = response.json()
        assert created["id"] == 1
        assert created["maps"] == ["ring"]
        assert len(created["results"]["ring"]) == 2
        assert set(created["wins"]) == {"aggressive", "benevolent"}

        response = await client.get("/tournaments/1")
        assert response.status_code == 200
        assert response.json()["results"] == created["results"]

        assert (await client.get("/tournaments/99")).status_code == 404


@pytest.mark.asyncio
async def test_tournament_rejections(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        base = {"strategies": ["aggressive", "random"], "games": 1, "max_turns": 10}

        response = await client.post("/tournaments", json={**base, "maps": ["nowhere"]})
        assert response.status_code == 404

        response = await client.post("/tournaments", json={**base, "maps": ["broken"]})
        assert response.status_code == 400
        assert "not valid" in response.json()["detail"]

        response = await client.post(
            "/tournaments", json={**base, "maps": ["ring"], "max_turns": 5}
        )
        assert response.status_code == 400

        response = await client.post(
            "/tournaments", json={**base, "maps": ["ring"], "strategies": ["cheater", "random"]}
        )
        assert response.status_code == 422
