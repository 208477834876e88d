class DcWatchError(Exception):
    """Base error for the ingestion pipeline."""


class SourceFetchError(DcWatchError):
    """A source query or a whole source failed. Never escapes the fan-out."""


class ClassificationError(DcWatchError):
    """The LLM reply could not be parsed into a valid classification."""


class EnrichmentUnavailable(DcWatchError):
    """Transcript, geocode or thumbnail could not be produced."""


class PersistenceError(DcWatchError):
    """A write to the clip store failed."""


class ConfigurationError(DcWatchError):
    """Startup cannot continue (e.g. the store cannot be opened)."""
