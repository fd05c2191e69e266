"""Numeric helper functions used across the search pipeline."""

import numpy as np


def db10(x):
    """Return 10 * log10(x) with floor to keep inputs positive."""
    return 10.0 * np.log10(np.maximum(x, 1e-20))


def round_to_raster(freq_hz: float, raster_hz: float) -> float:
    """Snap a frequency onto the nearest multiple of ``raster_hz``; halves round up."""
    return float(np.floor(freq_hz / raster_hz + 0.5) * raster_hz)


def on_raster(freq_hz: float, raster_hz: float) -> bool:
    return freq_hz / raster_hz == np.round(freq_hz / raster_hz)
