"""Local JSON file storage for the visit map."""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from rail_journal.errors import LoadError, PersistenceError
from rail_journal.services.visits import VisitStorage


@dataclass
class JsonFileVisitStorage(VisitStorage):
    """Stores the serialized visit map in a single file on disk."""

    path: Path

    @classmethod
    def create(cls, path: str | Path) -> "JsonFileVisitStorage":
        """Create file storage for a path, expanding the user directory."""
        return cls(path=Path(path).expanduser())

    def load(self) -> str | None:
        """Return the file contents, or None if the file does not exist."""
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadError(f"Failed to read {self.path}") from exc

    def save(self, payload: str) -> None:
        """Atomically replace the file contents."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceError(f"Failed to write {self.path}") from exc
