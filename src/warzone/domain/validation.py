"""Connectivity and uniqueness checks that gate the start of a game."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from warzone.domain.models import TerritoryGraph


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of :func:`validate`; lists are sorted for reproducible output."""

    unique_names: bool
    has_territories: bool
    unreachable: tuple[str, ...] = ()
    disconnected_continents: tuple[str, ...] = ()

    @property
    def connected(self) -> bool:
        return self.has_territories and not self.unreachable

    @property
    def continents_connected(self) -> bool:
        return not self.disconnected_continents

    @property
    def is_valid(self) -> bool:
        return self.unique_names and self.connected and self.continents_connected

    def errors(self) -> list[str]:
        messages: list[str] = []
        if not self.has_territories:
            messages.append("map has no territories")
        if not self.unique_names:
            messages.append("territory names are not unique")
        if self.unreachable:
            messages.append("unreachable territories: " + ", ".join(self.unreachable))
        if self.disconnected_continents:
            messages.append(
                "continents not internally connected: " + ", ".join(self.disconnected_continents)
            )
        return messages


def _undirected(graph: TerritoryGraph, members: Iterable[str]) -> dict[str, set[str]]:
    """Adjacency restricted to ``members``, with every edge made bidirectional."""

    nodes = set(members)
    adjacency: dict[str, set[str]] = {name: set() for name in nodes}
    for name in nodes:
        for neighbor in graph.territories[name].neighbors:
            if neighbor in nodes:
                adjacency[name].add(neighbor)
                adjacency[neighbor].add(name)
    return adjacency


def _reachable(adjacency: Mapping[str, set[str]]) -> set[str]:
    if not adjacency:
        return set()
    start = min(adjacency)
    seen = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for neighbor in adjacency[current]:
            if neighbor not in seen:
                seen.add(neighbor)
                queue.append(neighbor)
    return seen


def unreachable_territories(graph: TerritoryGraph) -> list[str]:
    adjacency = _undirected(graph, graph.territories)
    return sorted(set(adjacency) - _reachable(adjacency))


def is_fully_connected(graph: TerritoryGraph) -> bool:
    """Return ``True`` when every territory is reachable from every other.

    A map without territories is not considered connected.
    """

    return bool(graph.territories) and not unreachable_territories(graph)


def disconnected_continents(graph: TerritoryGraph) -> list[str]:
    disconnected: list[str] = []
    for continent in sorted(graph.continents):
        members = [t.name for t in graph.territories.values() if t.continent == continent]
        if len(members) <= 1:
            continue
        adjacency = _undirected(graph, members)
        if len(_reachable(adjacency)) != len(members):
            disconnected.append(continent)
    return disconnected


def per_continent_connected(graph: TerritoryGraph) -> bool:
    """Return ``True`` when each continent's induced subgraph is connected."""

    return not disconnected_continents(graph)


def validate(graph: TerritoryGraph) -> ValidationResult:
    return ValidationResult(
        unique_names=graph.has_unique_names,
        has_territories=bool(graph.territories),
        unreachable=tuple(unreachable_territories(graph)),
        disconnected_continents=tuple(disconnected_continents(graph)),
    )
