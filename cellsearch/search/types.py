"""Dataclasses shared across the planner, pipeline, deduplicator and reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class CpType(Enum):
    NORMAL = "normal"
    EXTENDED = "extended"
    UNKNOWN = "unknown"


class PhichDuration(Enum):
    NORMAL = "normal"
    EXTENDED = "extended"
    UNKNOWN = "unknown"


class PhichResource(Enum):
    UNKNOWN = "unknown"
    ONE_SIXTH = "1/6"
    HALF = "1/2"
    ONE = "one"
    TWO = "two"


@dataclass
class Cell:
    """One candidate or confirmed base station detection.

    ``n_id_1`` stays ``None`` until the SSS has been resolved and ``n_rb_dl``
    stays ``None`` until the MIB has been decoded; the PHY backend leaves them
    ``None`` when those stages fail.
    """

    fc: float
    freq: float = 0.0
    pss_pow: float = 0.0
    ind: int = 0
    n_id_2: int = 0
    freq_fine: Optional[float] = None
    freq_superfine: Optional[float] = None
    n_id_1: Optional[int] = None
    cp_type: CpType = CpType.UNKNOWN
    frame_start: Optional[float] = None
    n_rb_dl: Optional[int] = None
    phich_duration: PhichDuration = PhichDuration.UNKNOWN
    phich_resource: PhichResource = PhichResource.UNKNOWN
    n_ports: Optional[int] = None
    sfn: Optional[int] = None

    def __post_init__(self) -> None:
        if self.freq_superfine is None:
            self.freq_superfine = float(self.freq)

    @property
    def n_id_cell(self) -> Optional[int]:
        if self.n_id_1 is None:
            return None
        return 3 * int(self.n_id_1) + int(self.n_id_2)

    @property
    def carrier_hz(self) -> float:
        """Total estimated carrier frequency: tuned center plus residual offset."""
        return float(self.fc) + float(self.freq_superfine or 0.0)

    @property
    def confirmed(self) -> bool:
        return self.n_id_1 is not None and self.n_rb_dl is not None


@dataclass(frozen=True)
class RsDescriptor:
    """Downlink reference-signal model used by TFOEC and the MIB decoder."""

    n_id_cell: int
    n_rb_dl: int
    cp_type: CpType


@dataclass
class FrequencyResult:
    """Outcome of searching one center frequency."""

    fc: float
    index: int
    cells: List[Cell] = field(default_factory=list)
    n_peaks: int = 0
    n_rejected_sss: int = 0
    n_rejected_mib: int = 0
    skipped: bool = False
    skip_reason: Optional[str] = None


@dataclass
class DetectedCell:
    """A deduplicated cell with its updated oscillator correction factor."""

    cell: Cell
    correction: float


@dataclass
class SearchResult:
    cells: List[DetectedCell]
    frequencies: List[FrequencyResult]
    input_correction: float

    @property
    def skipped_frequencies(self) -> List[float]:
        return [res.fc for res in self.frequencies if res.skipped]
