"""Search-space planning: center frequencies and per-center frequency offsets."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Tuple

import numpy as np

CENTER_RASTER_HZ = 100e3
OFFSET_RASTER_HZ = 5e3


@dataclass(frozen=True)
class SearchPlan:
    """Read-only description of what a run will scan."""

    center_frequencies: np.ndarray
    frequency_offsets: np.ndarray
    n_extra: int

    def __iter__(self) -> Iterator[Tuple[int, float]]:
        for idx, fc in enumerate(self.center_frequencies):
            yield idx, float(fc)

    @property
    def count(self) -> int:
        return int(self.center_frequencies.size)


def offset_bins(freq_start: float, ppm: float) -> int:
    """Number of 5 kHz offset steps needed on each side of zero.

    The worst-case carrier error at ``freq_start`` is ``freq_start*ppm/1e6``;
    adding half a step before flooring keeps at least half a step of margin.
    """
    return int(math.floor((freq_start * ppm / 1e6 + OFFSET_RASTER_HZ / 2.0) / OFFSET_RASTER_HZ))


def frequency_offsets(freq_start: float, ppm: float) -> np.ndarray:
    n_extra = offset_bins(freq_start, ppm)
    return np.arange(-n_extra, n_extra + 1, dtype=np.float64) * OFFSET_RASTER_HZ


def center_frequencies(freq_start: float, freq_end: float) -> np.ndarray:
    # Index-based so that long ranges do not accumulate float error.
    n_steps = int(round((freq_end - freq_start) / CENTER_RASTER_HZ))
    return float(freq_start) + np.arange(n_steps + 1, dtype=np.float64) * CENTER_RASTER_HZ


def plan_search(freq_start: float, freq_end: float, ppm: float) -> SearchPlan:
    if freq_end < freq_start:
        raise ValueError("freq_end must be >= freq_start")
    if ppm < 0:
        raise ValueError("ppm must be non-negative")
    return SearchPlan(
        center_frequencies=center_frequencies(freq_start, freq_end),
        frequency_offsets=frequency_offsets(freq_start, ppm),
        n_extra=offset_bins(freq_start, ppm),
    )
