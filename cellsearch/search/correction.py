"""Oscillator correction factor estimation from detected cells."""

from __future__ import annotations

from typing import Iterable, List

from cellsearch.search.types import Cell, DetectedCell
from cellsearch.util.errors import DegenerateInputError
from cellsearch.util.logging import get_logger

logger = get_logger(__name__)


def updated_correction(cell: Cell, correction: float) -> float:
    """Correction factor that would have tuned the receiver exactly onto ``cell``.

    The nominal center frequency is taken as ground truth, so the frequency the
    oscillator actually produced is ``fc - freq_superfine``.
    """
    true_location = float(cell.fc)
    crystal_freq_actual = true_location - float(cell.freq_superfine or 0.0)
    if crystal_freq_actual == 0.0:
        raise DegenerateInputError("actual tuned frequency is zero")
    return float(correction) * (true_location / crystal_freq_actual)


def estimate_corrections(cells: Iterable[Cell], correction: float) -> List[DetectedCell]:
    """Pair each cell with its updated correction; cells with no defined correction are dropped."""
    detected: List[DetectedCell] = []
    for cell in cells:
        try:
            detected.append(DetectedCell(cell=cell, correction=updated_correction(cell, correction)))
        except DegenerateInputError as exc:
            logger.warning(
                "Dropping cell %s at %.0f Hz: %s",
                cell.n_id_cell,
                cell.fc,
                exc,
                extra={"center_hz": cell.fc, "cell_id": cell.n_id_cell, "error_type": type(exc).__name__},
            )
    return detected
