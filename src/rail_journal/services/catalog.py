"""Read-only station catalog."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

from rail_journal.domain.catalog import Line, Station
from rail_journal.errors import UnknownStationError

_DEFAULT_LINES: list[dict[str, Any]] = [
    {
        "id": "EWL",
        "name": "East-West Line",
        "colorClass": "bg-green-600",
        "stations": [
            ("EW1", "Pasir Ris"),
            ("EW2", "Tampines"),
            ("EW3", "Simei"),
            ("EW4", "Tanah Merah"),
            ("EW5", "Bedok"),
            ("EW6", "Kembangan"),
            ("EW7", "Eunos"),
            ("EW8", "Paya Lebar"),
            ("EW9", "Aljunied"),
            ("EW10", "Kallang"),
            ("EW11", "Lavender"),
            ("EW12", "Bugis"),
            ("EW13", "City Hall"),
            ("EW14", "Raffles Place"),
            ("EW15", "Tanjong Pagar"),
            ("EW16", "Outram Park"),
            ("EW17", "Tiong Bahru"),
            ("EW18", "Redhill"),
            ("EW19", "Queenstown"),
            ("EW20", "Commonwealth"),
            ("EW21", "Buona Vista"),
            ("EW22", "Dover"),
            ("EW23", "Clementi"),
            ("EW24", "Jurong East"),
            ("EW25", "Chinese Garden"),
            ("EW26", "Lakeside"),
            ("EW27", "Boon Lay"),
            ("EW28", "Pioneer"),
            ("EW29", "Joo Koon"),
            ("EW30", "Gul Circle"),
            ("EW31", "Tuas Crescent"),
            ("EW32", "Tuas West Road"),
            ("EW33", "Tuas Link"),
            ("CG1", "Expo"),
            ("CG2", "Changi Airport"),
        ],
    },
    {
        "id": "NSL",
        "name": "North-South Line",
        "colorClass": "bg-red-600",
        "stations": [
            ("NS1", "Jurong East"),
            ("NS2", "Bukit Batok"),
            ("NS3", "Bukit Gombak"),
            ("NS4", "Choa Chu Kang"),
            ("NS5", "Yew Tee"),
            ("NS7", "Kranji"),
            ("NS8", "Marsiling"),
            ("NS9", "Woodlands"),
            ("NS10", "Admiralty"),
            ("NS11", "Sembawang"),
            ("NS12", "Canberra"),
            ("NS13", "Yishun"),
            ("NS14", "Khatib"),
            ("NS15", "Yio Chu Kang"),
            ("NS16", "Ang Mo Kio"),
            ("NS17", "Bishan"),
            ("NS18", "Braddell"),
            ("NS19", "Toa Payoh"),
            ("NS20", "Novena"),
            ("NS21", "Newton"),
            ("NS22", "Orchard"),
            ("NS23", "Somerset"),
            ("NS24", "Dhoby Ghaut"),
            ("NS25", "City Hall"),
            ("NS26", "Raffles Place"),
            ("NS27", "Marina Bay"),
            ("NS28", "Marina South Pier"),
        ],
    },
    {
        "id": "NEL",
        "name": "North East Line",
        "colorClass": "bg-purple-600",
        "stations": [
            ("NE1", "HarbourFront"),
            ("NE3", "Outram Park"),
            ("NE4", "Chinatown"),
            ("NE5", "Clarke Quay"),
            ("NE6", "Dhoby Ghaut"),
            ("NE7", "Little India"),
            ("NE8", "Farrer Park"),
            ("NE9", "Boon Keng"),
            ("NE10", "Potong Pasir"),
            ("NE11", "Woodleigh"),
            ("NE12", "Serangoon"),
            ("NE13", "Kovan"),
            ("NE14", "Hougang"),
            ("NE15", "Buangkok"),
            ("NE16", "Sengkang"),
            ("NE17", "Punggol"),
            ("NE18", "Punggol Coast"),
        ],
    },
    {
        "id": "CCL",
        "name": "Circle Line",
        "colorClass": "bg-yellow-500",
        "stations": [
            ("CC1", "Dhoby Ghaut"),
            ("CC2", "Bras Basah"),
            ("CC3", "Esplanade"),
            ("CC4", "Promenade"),
            ("CC5", "Nicoll Highway"),
            ("CC6", "Stadium"),
            ("CC7", "Mountbatten"),
            ("CC8", "Dakota"),
            ("CC9", "Paya Lebar"),
            ("CC10", "MacPherson"),
            ("CC11", "Tai Seng"),
            ("CC12", "Bartley"),
            ("CC13", "Serangoon"),
            ("CC14", "Lorong Chuan"),
            ("CC15", "Bishan"),
            ("CC16", "Marymount"),
            ("CC17", "Caldecott"),
            ("CC19", "Botanic Gardens"),
            ("CC20", "Farrer Road"),
            ("CC21", "Holland Village"),
            ("CC22", "Buona Vista"),
            ("CC23", "one-north"),
            ("CC24", "Kent Ridge"),
            ("CC25", "Haw Par Villa"),
            ("CC26", "Pasir Panjang"),
            ("CC27", "Labrador Park"),
            ("CC28", "Telok Blangah"),
            ("CC29", "HarbourFront"),
            ("CE1", "Bayfront"),
            ("CE2", "Marina Bay"),
        ],
    },
]

_LINES_ADAPTER = TypeAdapter(list[Line])


@dataclass
class Catalog:
    """Ordered rail lines with lookup by station code."""

    lines: list[Line]
    _index: dict[str, tuple[Station, Line]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._index = {}
        for line in self.lines:
            for station in line.stations:
                self._index.setdefault(station.code, (station, line))

    @property
    def total_stations(self) -> int:
        """Return the number of stations summed across all lines."""
        return sum(len(line.stations) for line in self.lines)

    def station_codes(self) -> set[str]:
        """Return every station code in the catalog."""
        return set(self._index)

    def find(self, station_code: str) -> tuple[Station, Line]:
        """Return the station and its line for a code."""
        try:
            return self._index[station_code]
        except KeyError:
            raise UnknownStationError(f"Unknown station code: {station_code}") from None


def default_catalog() -> Catalog:
    """Build the built-in Singapore MRT catalog."""
    return Catalog(lines=_parse_lines(_DEFAULT_LINES))


def load_catalog(path: str | Path) -> Catalog:
    """Load a catalog from a JSON file of lines.

    Stations may be given as ``{"code": ..., "name": ...}`` objects or as
    ``[code, name]`` pairs.
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    return Catalog(lines=_parse_lines(raw))


def _parse_lines(raw: list[dict[str, Any]]) -> list[Line]:
    normalized = []
    for line in raw:
        stations = [_station_payload(s) for s in line.get("stations") or []]
        normalized.append({**line, "stations": stations})
    return _LINES_ADAPTER.validate_python(normalized)


def _station_payload(station: object) -> object:
    if isinstance(station, list | tuple) and len(station) == 2:  # noqa: PLR2004
        code, name = station
        return {"code": code, "name": name}
    return station
