"""Tests for visit storage adapters."""

from dataclasses import dataclass, field
from datetime import date

import pytest

from rail_journal.adapters.json_file_visit_storage import JsonFileVisitStorage
from rail_journal.adapters.supabase_visit_storage import SupabaseVisitStorage
from rail_journal.domain.visits import VisitRecord
from rail_journal.errors import LoadError, PersistenceError
from rail_journal.services.visits import VisitStore


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    rows: dict[str, dict[str, object]] = field(default_factory=dict)
    fail: bool = False
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    upsert_kwargs: dict[str, object] = field(default_factory=dict)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def upsert(self, payload, **kwargs) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self.last_payload = payload
        self.upsert_kwargs = kwargs
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        if self.fail:
            raise RuntimeError("network down")
        if self._action == "upsert":
            payload = dict(self.last_payload)  # type: ignore[call-overload]
            self.rows[str(payload["key"])] = payload
            return FakeResponse(data=[payload])
        key = self.last_filters[-1][1]
        row = self.rows.get(str(key))
        return FakeResponse(data=[row] if row else [])


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def test_json_file_storage_missing_file_returns_none(tmp_path) -> None:
    storage = JsonFileVisitStorage.create(tmp_path / "visits.json")

    assert storage.load() is None


def test_json_file_storage_round_trip(tmp_path) -> None:
    path = tmp_path / "nested" / "visits.json"
    storage = JsonFileVisitStorage.create(path)

    storage.save('{"EW18": {}}')

    assert path.read_text(encoding="utf-8") == '{"EW18": {}}'
    assert storage.load() == '{"EW18": {}}'
    assert [p.name for p in path.parent.iterdir()] == ["visits.json"]


def test_json_file_storage_wraps_write_errors(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    storage = JsonFileVisitStorage.create(blocker / "visits.json")

    with pytest.raises(PersistenceError):
        storage.save("{}")


def test_json_file_storage_wraps_read_errors(tmp_path) -> None:
    storage = JsonFileVisitStorage.create(tmp_path)

    with pytest.raises(LoadError):
        storage.load()


def test_store_over_unreadable_file_starts_empty(tmp_path) -> None:
    path = tmp_path / "visits.json"
    path.write_bytes(b"\xff\xfe garbage")

    store = VisitStore.load(JsonFileVisitStorage.create(path))

    assert dict(store.visits) == {}


def test_store_round_trip_through_json_file(tmp_path) -> None:
    path = tmp_path / "visits.json"
    record = VisitRecord(
        station_code="EW18",
        visited_date=date(2024, 4, 1),
        image_data="https://res.cloudinary.com/demo/image/upload/v1/a.jpg",
        caption="Quiet Sunday",
    )
    VisitStore.load(JsonFileVisitStorage.create(path)).commit(record)

    reloaded = VisitStore.load(JsonFileVisitStorage.create(path))

    assert reloaded.get("EW18") == record


def test_supabase_storage_upserts_and_loads() -> None:
    client = FakeSupabaseClient()
    storage = SupabaseVisitStorage(client=client, storage_key="sg_rail_journey_visits")  # type: ignore[arg-type]

    assert storage.load() is None
    storage.save('{"NS1": {}}')

    table = client.table("kv_store")
    assert table.upsert_kwargs == {"on_conflict": "key"}
    assert table.rows["sg_rail_journey_visits"]["value"] == '{"NS1": {}}'
    assert storage.load() == '{"NS1": {}}'
    assert ("key", "sg_rail_journey_visits") in table.last_filters


def test_supabase_storage_wraps_failures() -> None:
    client = FakeSupabaseClient()
    client.table("visits_kv").fail = True
    storage = SupabaseVisitStorage(
        client=client,  # type: ignore[arg-type]
        storage_key="sg_rail_journey_visits",
        table="visits_kv",
    )

    with pytest.raises(LoadError):
        storage.load()
    with pytest.raises(PersistenceError):
        storage.save("{}")


def test_store_over_failing_supabase_starts_empty() -> None:
    client = FakeSupabaseClient()
    client.table("kv_store").fail = True
    storage = SupabaseVisitStorage(client=client, storage_key="k")  # type: ignore[arg-type]

    store = VisitStore.load(storage)

    assert dict(store.visits) == {}
