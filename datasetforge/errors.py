"""Error types raised by datasetforge."""


class DatasetForgeError(Exception):
    """Base class for all datasetforge errors."""


class ValidationError(DatasetForgeError, ValueError):
    """Rejected locally, before anything reaches the backend."""


class BackendError(DatasetForgeError):
    """A backend call failed or returned malformed/empty data."""


class PollError(BackendError):
    """Fetching run progress failed."""
