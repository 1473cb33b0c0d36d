"""Committed visit records and their persistence."""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol

from pydantic import TypeAdapter, ValidationError

from rail_journal.domain.catalog import Line
from rail_journal.domain.visits import Progress, VisitRecord
from rail_journal.errors import LoadError
from rail_journal.services.catalog import Catalog

logger = logging.getLogger(__name__)

_VISITS_ADAPTER = TypeAdapter(dict[str, VisitRecord])


class VisitStorage(Protocol):
    """Durable storage for the serialized visit map."""

    def load(self) -> str | None:
        """Return the serialized visit map, or None if nothing is stored."""

    def save(self, payload: str) -> None:
        """Replace the stored serialized visit map."""


@dataclass
class VisitStore:
    """Single owner of committed visit records keyed by station code.

    Every mutation builds a new mapping, persists it in full and only then
    replaces the in-memory mapping, so a failed write leaves state unchanged.
    """

    storage: VisitStorage
    _visits: Mapping[str, VisitRecord] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def load(cls, storage: VisitStorage) -> "VisitStore":
        """Load persisted visits, falling back to an empty store."""
        try:
            payload = storage.load()
            visits = parse_visits(payload) if payload is not None else {}
        except LoadError:
            logger.warning("Discarding unreadable visit data", exc_info=True)
            visits = {}
        return cls(storage=storage, _visits=MappingProxyType(visits))

    @property
    def visits(self) -> Mapping[str, VisitRecord]:
        """Return a read-only view of the committed visits."""
        return self._visits

    def get(self, station_code: str) -> VisitRecord | None:
        """Return the committed visit for a station, if present."""
        return self._visits.get(station_code)

    def commit(self, record: VisitRecord) -> Mapping[str, VisitRecord]:
        """Insert or replace a visit and persist the full map."""
        updated = dict(self._visits)
        updated[record.station_code] = record
        return self._replace(updated)

    def remove(self, station_code: str) -> Mapping[str, VisitRecord]:
        """Remove a visit, if present, and persist the full map."""
        updated = dict(self._visits)
        updated.pop(station_code, None)
        return self._replace(updated)

    def progress(self, catalog: Catalog) -> Progress:
        """Return visited and total counts across the whole catalog."""
        codes = catalog.station_codes()
        visited = sum(1 for code in self._visits if code in codes)
        return Progress(visited=visited, total=catalog.total_stations)

    def line_progress(self, line: Line) -> Progress:
        """Return visited and total counts for a single line."""
        visited = sum(1 for station in line.stations if station.code in self._visits)
        return Progress(visited=visited, total=len(line.stations))

    def _replace(self, updated: dict[str, VisitRecord]) -> Mapping[str, VisitRecord]:
        self.storage.save(serialize_visits(updated))
        self._visits = MappingProxyType(updated)
        return self._visits


def serialize_visits(visits: Mapping[str, VisitRecord]) -> str:
    """Encode visits as a flat JSON object keyed by station code."""
    return json.dumps(
        {
            code: record.model_dump(mode="json", by_alias=True, exclude_none=True)
            for code, record in visits.items()
        }
    )


def parse_visits(payload: str | None) -> dict[str, VisitRecord]:
    """Decode a serialized visit map.

    Records are keyed by their own station code, whatever key they were
    stored under. Raises LoadError when the payload is missing or cannot be
    decoded.
    """
    if not payload:
        raise LoadError("No persisted visit data")
    try:
        visits = _VISITS_ADAPTER.validate_python(json.loads(payload))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise LoadError("Persisted visit data is corrupt") from exc
    return {record.station_code: record for record in visits.values()}
