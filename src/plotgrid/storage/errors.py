"""Storage exceptions.

Absence is never an error: a missing row reads as the empty sentinel Plot.
These exceptions cover the backend itself failing.
"""


class PlotStorageError(Exception):
    """Base class for plot storage failures."""

    pass


class StorageUnavailableError(PlotStorageError):
    """Raised when the executor cannot connect or run a statement."""

    pass


class ProviderClosedError(PlotStorageError):
    """Raised when a provider is used before open() or after close()."""

    pass
