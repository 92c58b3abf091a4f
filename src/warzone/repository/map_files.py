"""Reading and writing maps in the text format used by Domination-style map files.

A file is a sequence of bracketed sections::

    [continents]
    <name> <bonus>
    [countries]
    <index> <name> <continentIndex>
    [borders]
    <index> <neighborIndex> <neighborIndex> ...

Indices are 1-based positions in the declaration order of the preceding
section.  Lines starting with ``;`` are comments and trailing tokens beyond
the required ones (colours, coordinates) are ignored.  Preamble sections such
as ``[files]`` or ``[map]`` are skipped.
"""

from __future__ import annotations

import logging
from pathlib import Path

from warzone.domain import graph as graph_ops
from warzone.domain.errors import MapEditError, MapFormatError
from warzone.domain.models import TerritoryGraph

logger = logging.getLogger(__name__)

MAP_SUFFIX = ".map"
REQUIRED_SECTIONS = ("continents", "countries", "borders")
SKIPPED_SECTIONS = frozenset({"files", "map"})


def _int(token: str, what: str, line: int) -> int:
    try:
        return int(token)
    except ValueError:
        raise MapFormatError(f"{what} must be an integer, got {token!r}", line=line) from None


def parse(data: bytes | str, *, name: str | None = None) -> TerritoryGraph:
    """Parse map text into a new :class:`TerritoryGraph`.

    Raises :class:`MapFormatError` for malformed input.  Duplicate territory
    names are not a format error: they mark the graph as non-unique so that
    validation rejects it.
    """

    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MapFormatError("map file is not valid UTF-8") from exc
    else:
        text = data
    graph = TerritoryGraph(name=name)
    continents: list[str] = []
    countries: dict[int, str] = {}
    seen: set[str] = set()
    section: str | None = None

    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith(";"):
            continue
        if line.startswith("[") and line.endswith("]"):
            section = line[1:-1].strip().lower()
            if section not in REQUIRED_SECTIONS and section not in SKIPPED_SECTIONS:
                raise MapFormatError(f"unknown section [{section}]", line=number)
            if section in seen:
                raise MapFormatError(f"section [{section}] appears twice", line=number)
            seen.add(section)
            continue
        if section is None:
            raise MapFormatError("content before the first section", line=number)

        tokens = line.split()
        try:
            if section == "continents":
                _parse_continent(graph, continents, tokens, number)
            elif section == "countries":
                _parse_country(graph, continents, countries, tokens, number)
            elif section == "borders":
                _parse_border(graph, countries, tokens, number)
        except MapEditError as exc:
            raise MapFormatError(str(exc), line=number) from exc

    missing = [s for s in ("continents", "countries") if s not in seen]
    if missing:
        raise MapFormatError("missing section(s): " + ", ".join(f"[{s}]" for s in missing))
    return graph


def _parse_continent(
    graph: TerritoryGraph, continents: list[str], tokens: list[str], line: int
) -> None:
    if len(tokens) < 2:
        raise MapFormatError("continent lines need a name and a bonus", line=line)
    graph_ops.add_continent(graph, tokens[0], _int(tokens[1], "continent bonus", line))
    continents.append(tokens[0])


def _parse_country(
    graph: TerritoryGraph,
    continents: list[str],
    countries: dict[int, str],
    tokens: list[str],
    line: int,
) -> None:
    if len(tokens) < 3:
        raise MapFormatError("country lines need an index, a name and a continent", line=line)
    index = _int(tokens[0], "country index", line)
    if index in countries:
        raise MapFormatError(f"country index {index} is used twice", line=line)
    continent_index = _int(tokens[2], "continent index", line)
    if not 1 <= continent_index <= len(continents):
        raise MapFormatError(f"continent index {continent_index} is out of range", line=line)
    graph_ops.add_territory(graph, tokens[1], continents[continent_index - 1])
    countries[index] = tokens[1]


def _parse_border(
    graph: TerritoryGraph, countries: dict[int, str], tokens: list[str], line: int
) -> None:
    indices = [_int(token, "country index", line) for token in tokens]
    unknown = [index for index in indices if index not in countries]
    if unknown:
        raise MapFormatError(f"border references unknown country {unknown[0]}", line=line)
    source, *neighbors = indices
    for neighbor in neighbors:
        if countries[neighbor] == countries[source]:
            logger.warning("ignoring self-border of %s on line %d", countries[source], line)
            continue
        graph_ops.add_neighbor(graph, countries[source], countries[neighbor])


def serialize(graph: TerritoryGraph) -> bytes:
    """Render ``graph`` in the same text format :func:`parse` reads."""

    continent_index = {name: i for i, name in enumerate(graph.continents, start=1)}
    country_index = {name: i for i, name in enumerate(graph.territories, start=1)}

    lines: list[str] = []
    if graph.name:
        lines += [f"; map: {graph.name}", ""]
    lines.append("[continents]")
    lines += [f"{c.name} {c.bonus}" for c in graph.continents.values()]
    lines += ["", "[countries]"]
    lines += [
        f"{country_index[t.name]} {t.name} {continent_index[t.continent]}"
        for t in graph.territories.values()
    ]
    lines += ["", "[borders]"]
    for territory in graph.territories.values():
        neighbors = sorted(country_index[n] for n in territory.neighbors)
        lines.append(" ".join(str(i) for i in [country_index[territory.name], *neighbors]))
    return ("\n".join(lines) + "\n").encode("utf-8")


class FileMapStore:
    """Map files stored in a directory, addressed by name."""

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        filename = name if name.endswith(MAP_SUFFIX) else f"{name}{MAP_SUFFIX}"
        return self.base_path / Path(filename).name

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def load(self, name: str) -> TerritoryGraph:
        """Parse a stored map; raises ``FileNotFoundError`` if it is missing."""

        path = self.path_for(name)
        return parse(path.read_bytes(), name=path.stem)

    def save(self, graph: TerritoryGraph, name: str) -> Path:
        path = self.path_for(name)
        path.write_bytes(serialize(graph))
        return path

    def list_maps(self) -> list[str]:
        return sorted(path.stem for path in self.base_path.glob(f"*{MAP_SUFFIX}"))
