"""Acquire-or-load capture buffers for each center frequency."""

from __future__ import annotations

import threading
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import numpy as np

from cellsearch.drivers.rtlsdr import RTLSDRSource
from cellsearch.drivers.soapy import SDRSource, parse_soapy_args
from cellsearch.util.errors import CaptureError, DeviceError
from cellsearch.util.logging import get_logger

logger = get_logger(__name__)

# Nominal capture rate: 30.72 Msps / 16.
FS_PROGRAMMED = 1.92e6
# 80 ms at 1.92 Msps, enough for eight PSS/SSS occurrences and two MIB periods.
CAPLENGTH = 153600
# Samples thrown away after retuning while the tuner PLL settles.
SETTLE_SAMPLES = 16384


class CaptureMode(Enum):
    LIVE = "live"
    RECORD = "record"
    LOAD = "load"


def capture_path(data_dir: str | Path, index: int) -> Path:
    return Path(data_dir) / f"capbuf_{int(index):04d}.npy"


def open_radio(driver: str, samp_rate: float, gain: str | float = "auto", soapy_args: Optional[str] = None):
    """Open a radio by driver key; ``rtlsdr_native`` selects pyrtlsdr, anything else SoapySDR."""
    if driver == "rtlsdr_native":
        return RTLSDRSource(samp_rate=samp_rate, gain=gain)
    return SDRSource(driver=driver, samp_rate=samp_rate, gain=gain, soapy_args=parse_soapy_args(soapy_args))


class CaptureSource:
    """Produce one capture buffer per center frequency.

    In LIVE and RECORD modes the radio is opened lazily on first use and access
    to it is serialised, so concurrent searches never retune it mid-read.
    """

    def __init__(
        self,
        mode: CaptureMode,
        correction: float,
        *,
        data_dir: str | Path = ".",
        driver: str = "rtlsdr_native",
        gain: str | float = "auto",
        soapy_args: Optional[str] = None,
        radio_factory: Optional[Callable[[float], object]] = None,
    ) -> None:
        self.mode = mode
        self.correction = float(correction)
        self.data_dir = Path(data_dir)
        self.driver = driver
        self.gain = gain
        self.soapy_args = soapy_args
        self._radio_factory = radio_factory
        self._radio = None
        self._lock = threading.Lock()

    @property
    def samp_rate(self) -> float:
        return float(round(FS_PROGRAMMED * self.correction))

    def open(self):
        """Open the radio if it is not open yet; a no-op in LOAD mode."""
        if self.mode is CaptureMode.LOAD:
            return None
        if self._radio is None:
            if self._radio_factory is not None:
                self._radio = self._radio_factory(self.samp_rate)
            else:
                try:
                    self._radio = open_radio(self.driver, self.samp_rate, self.gain, self.soapy_args)
                except (RuntimeError, OSError) as exc:
                    raise DeviceError(f"Could not open {self.driver}: {exc}") from exc
            logger.debug("Opened %s at %.0f sps", getattr(self._radio, "device", self.driver), self.samp_rate)
        return self._radio

    def _read_radio(self, fc: float) -> np.ndarray:
        with self._lock:
            radio = self.open()
            try:
                radio.tune(float(round(fc * self.correction)))
                _ = radio.read(SETTLE_SAMPLES)
                samples = radio.read(CAPLENGTH)
            except (RuntimeError, OSError) as exc:
                raise CaptureError(f"Capture at {fc/1e6:.1f} MHz failed: {exc}") from exc
        return np.asarray(samples, dtype=np.complex64)

    def _load(self, index: int) -> np.ndarray:
        path = capture_path(self.data_dir, index)
        try:
            capbuf = np.load(path)
        except (OSError, ValueError) as exc:
            raise CaptureError(f"Could not load capture {path}: {exc}") from exc
        return np.asarray(capbuf, dtype=np.complex64).reshape(-1)

    def acquire(self, fc: float, index: int) -> np.ndarray:
        if self.mode is CaptureMode.LOAD:
            return self._load(index)
        capbuf = self._read_radio(fc)
        if capbuf.size < CAPLENGTH:
            raise CaptureError(f"Short capture at {fc/1e6:.1f} MHz: {capbuf.size} of {CAPLENGTH} samples")
        if self.mode is CaptureMode.RECORD:
            path = capture_path(self.data_dir, index)
            path.parent.mkdir(parents=True, exist_ok=True)
            np.save(path, capbuf)
            logger.debug("Saved capture to %s", path)
        return capbuf

    def close(self) -> None:
        radio, self._radio = self._radio, None
        if radio is not None and getattr(radio, "close", None):
            radio.close()
