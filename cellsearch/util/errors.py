"""Exception taxonomy for cellsearch.

Per-candidate detection failures are not exceptions; they are carried as
``None`` fields on the candidate and handled by dropping it.
"""

from __future__ import annotations


class CellSearchError(Exception):
    """Base class for errors raised by cellsearch."""


class ConfigurationError(CellSearchError):
    """Invalid search parameters, raised before any capture happens."""


class CaptureError(CellSearchError):
    """Acquisition or playback failed for one center frequency."""


class DegenerateInputError(CellSearchError, ValueError):
    """Numeric input that makes a computation undefined (zero DOF, zero frequency)."""


class BackendError(CellSearchError):
    """The PHY backend could not be loaded or does not implement the protocol."""


class DeviceError(CellSearchError):
    """The radio could not be opened."""
