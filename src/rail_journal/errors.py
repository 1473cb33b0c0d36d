"""Application error types."""


class RailJournalError(Exception):
    """Base error for the rail journal."""


class LoadError(RailJournalError):
    """Persisted visit data is missing or corrupt."""


class PersistenceError(RailJournalError):
    """Persisting visit data failed."""


class UploadError(RailJournalError):
    """Uploading an image to remote storage failed."""


class GenerationError(RailJournalError):
    """Caption generation failed or is unavailable."""


class UnknownStationError(RailJournalError):
    """Station code is not part of the catalog."""


class NoActiveDraftError(RailJournalError):
    """An entry operation was requested with no draft open."""
