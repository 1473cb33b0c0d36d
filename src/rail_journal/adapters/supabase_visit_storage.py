"""Supabase-backed storage for the visit map."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from rail_journal.errors import LoadError, PersistenceError
from rail_journal.services.visits import VisitStorage


@dataclass
class SupabaseVisitStorage(VisitStorage):
    """Stores the serialized visit map as one row of a key-value table."""

    client: Client
    storage_key: str
    table: str = "kv_store"

    def load(self) -> str | None:
        """Return the stored value for the storage key, if present."""
        try:
            response = (
                self.client.table(self.table)
                .select("key, value")
                .eq("key", self.storage_key)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            raise LoadError("Failed to read visits from Supabase") from exc
        if not response.data:
            return None
        value = response.data[0].get("value")
        return value if isinstance(value, str) else None

    def save(self, payload: str) -> None:
        """Upsert the serialized visit map under the storage key."""
        try:
            self.client.table(self.table).upsert(
                {
                    "key": self.storage_key,
                    "value": payload,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="key",
            ).execute()
        except Exception as exc:
            raise PersistenceError("Failed to write visits to Supabase") from exc
