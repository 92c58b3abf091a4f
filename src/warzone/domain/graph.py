"""Map editing operations over :class:`TerritoryGraph`."""

from __future__ import annotations

import logging

from warzone.domain.errors import (
    MapEditError,
    MapIntegrityError,
    TerritoryNotFound,
    UnknownContinent,
)
from warzone.domain.models import Continent, Territory, TerritoryGraph

logger = logging.getLogger(__name__)


def add_continent(graph: TerritoryGraph, name: str, bonus: int) -> Continent:
    """Register a continent worth ``bonus`` armies to whoever holds all of it."""

    if bonus < 0:
        raise MapEditError(f"continent bonus must be non-negative, got {bonus}")
    if name in graph.continents:
        raise MapEditError(f"continent {name!r} already exists")
    continent = Continent(name=name, bonus=bonus)
    graph.continents[name] = continent
    return continent


def remove_continent(graph: TerritoryGraph, name: str) -> list[str]:
    """Remove a continent and every territory that belongs to it.

    Returns the names of the removed territories.
    """

    if name not in graph.continents:
        raise UnknownContinent(name)
    removed = [t.name for t in graph.territories.values() if t.continent == name]
    for territory_name in removed:
        remove_territory(graph, territory_name)
    del graph.continents[name]
    return removed


def add_territory(graph: TerritoryGraph, name: str, continent: str) -> Territory:
    """Add a territory to an existing continent.

    Adding a name that is already present keeps the first territory and marks
    the map as having non-unique names, which fails validation until the map
    is reloaded.
    """

    if continent not in graph.continents:
        raise UnknownContinent(continent)
    existing = graph.territories.get(name)
    if existing is not None:
        logger.warning("duplicate territory name %r; map marked as non-unique", name)
        graph.has_unique_names = False
        return existing
    territory = Territory(name=name, continent=continent)
    graph.territories[name] = territory
    return territory


def remove_territory(graph: TerritoryGraph, name: str) -> Territory:
    territory = territory_by_name(graph, name)
    for neighbor in territory.neighbors:
        other = graph.territories.get(neighbor)
        if other is not None:
            other.neighbors.discard(name)
    del graph.territories[name]
    return territory


def add_neighbor(graph: TerritoryGraph, first: str, second: str) -> None:
    """Connect two territories in both directions."""

    if first == second:
        raise MapEditError(f"territory {first!r} cannot neighbor itself")
    a = territory_by_name(graph, first)
    b = territory_by_name(graph, second)
    a.neighbors.add(second)
    b.neighbors.add(first)


def remove_neighbor(graph: TerritoryGraph, first: str, second: str) -> None:
    """Disconnect two territories in both directions."""

    a = territory_by_name(graph, first)
    b = territory_by_name(graph, second)
    if second not in a.neighbors and first not in b.neighbors:
        raise MapEditError(f"{first!r} and {second!r} are not neighbors")
    a.neighbors.discard(second)
    b.neighbors.discard(first)


def territory_by_name(graph: TerritoryGraph, name: str) -> Territory:
    territory = graph.territories.get(name)
    if territory is None:
        raise TerritoryNotFound(name)
    return territory


def territories_of(graph: TerritoryGraph, continent: str) -> list[Territory]:
    return [t for t in graph.territories.values() if t.continent == continent]


def owned_territories(graph: TerritoryGraph, player: str) -> list[Territory]:
    return [t for t in graph.territories.values() if t.owner == player]


def are_neighbors(graph: TerritoryGraph, first: str, second: str) -> bool:
    territory = graph.territories.get(first)
    return territory is not None and second in territory.neighbors


def check_integrity(graph: TerritoryGraph) -> None:
    """Raise :class:`MapIntegrityError` if the graph's invariants are broken."""

    for key, territory in graph.territories.items():
        if key != territory.name:
            raise MapIntegrityError(f"territory stored as {key!r} is named {territory.name!r}")
        if territory.continent not in graph.continents:
            raise MapIntegrityError(
                f"territory {key!r} references missing continent {territory.continent!r}"
            )
        if territory.armies < 0:
            raise MapIntegrityError(f"territory {key!r} has {territory.armies} armies")
        for neighbor in territory.neighbors:
            other = graph.territories.get(neighbor)
            if other is None:
                raise MapIntegrityError(f"territory {key!r} borders missing {neighbor!r}")
            if key not in other.neighbors:
                raise MapIntegrityError(f"border {key!r} -> {neighbor!r} is not symmetric")
    for key, continent in graph.continents.items():
        if key != continent.name:
            raise MapIntegrityError(f"continent stored as {key!r} is named {continent.name!r}")
