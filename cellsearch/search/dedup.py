"""Merge cells detected on several center frequencies into one list.

In high SNR environments the same cell is often detected on neighbouring
center frequencies and with different frequency offsets. Only the strongest
detection of each physical cell is kept.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from cellsearch.search.types import Cell

# Two detections with the same cell ID closer than this in carrier frequency
# are the same physical cell.
DEDUP_DISTANCE_HZ = 1e6


def same_cell(a: Cell, b: Cell, max_distance_hz: float = DEDUP_DISTANCE_HZ) -> bool:
    return a.n_id_cell == b.n_id_cell and abs(a.carrier_hz - b.carrier_hz) < max_distance_hz


def _find_match(cells: Sequence[Cell], candidate: Cell, max_distance_hz: float) -> Optional[int]:
    for idx, existing in enumerate(cells):
        if same_cell(existing, candidate, max_distance_hz):
            return idx
    return None


def _absorb(cells: List[Cell], idx: int, max_distance_hz: float) -> None:
    """Merge every entry that now matches ``cells[idx]`` into one survivor.

    The stronger detection survives; ties go to the entry at ``idx``.
    """
    j = 0
    while j < len(cells):
        if j == idx or not same_cell(cells[idx], cells[j], max_distance_hz):
            j += 1
            continue
        if cells[j].pss_pow > cells[idx].pss_pow:
            cells[idx] = cells[j]
        del cells[j]
        if j < idx:
            idx -= 1
        j = 0


def dedup_cells(detected: Iterable[Iterable[Cell]], max_distance_hz: float = DEDUP_DISTANCE_HZ) -> List[Cell]:
    """Return one entry per physical cell from per-frequency cell lists.

    Lists are consumed in order. A later detection replaces an earlier match in
    place only if its ``pss_pow`` is strictly higher. No two entries of the
    result match each other, so deduplicating the result again is a no-op.
    """
    cells_final: List[Cell] = []
    for cells in detected:
        for cell in cells:
            idx = _find_match(cells_final, cell, max_distance_hz)
            if idx is None:
                cells_final.append(cell)
            elif cell.pss_pow > cells_final[idx].pss_pow:
                cells_final[idx] = cell
                _absorb(cells_final, idx, max_distance_hz)
    return cells_final
