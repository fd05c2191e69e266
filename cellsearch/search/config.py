"""Search configuration dataclass and parameter checks."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, List, Optional

from cellsearch.io.capture import CaptureMode
from cellsearch.search.dedup import DEDUP_DISTANCE_HZ
from cellsearch.search.planner import CENTER_RASTER_HZ
from cellsearch.util.errors import ConfigurationError
from cellsearch.util.math import on_raster, round_to_raster

MIN_FREQ_HZ = 1e6
PPM_WARN = 200.0
CORRECTION_WARN = 1000e-6


@dataclass
class SearchConfig:
    freq_start: float
    freq_end: Optional[float] = None
    ppm: float = 100.0
    correction: float = 1.0
    mode: CaptureMode = CaptureMode.LIVE
    data_dir: str = "."
    dedup_distance_hz: float = DEDUP_DISTANCE_HZ
    workers: int = 1
    log_level: str = "INFO"
    driver: str = "rtlsdr_native"
    soapy_args: Optional[str] = None
    gain: str | float = "auto"
    jsonl: Optional[str] = None
    backend: Optional[str] = None

    @classmethod
    def from_args(cls, args: Any) -> "SearchConfig":
        """Build a config from an argparse namespace."""
        record = bool(getattr(args, "record", False))
        load = bool(getattr(args, "load", False))
        if record and load:
            raise ConfigurationError("cannot read and write captured data at the same time")
        if load:
            mode = CaptureMode.LOAD
        elif record:
            mode = CaptureMode.RECORD
        else:
            mode = CaptureMode.LIVE
        gain = getattr(args, "gain", "auto")
        if isinstance(gain, str) and gain.lower() != "auto":
            try:
                gain = float(gain)
            except ValueError as exc:
                raise ConfigurationError(f"gain must be a number or 'auto', got '{gain}'") from exc
        return cls(
            freq_start=float(args.freq_start),
            freq_end=None if getattr(args, "freq_end", None) is None else float(args.freq_end),
            ppm=float(getattr(args, "ppm", 100.0)),
            correction=float(getattr(args, "correction", 1.0)),
            mode=mode,
            data_dir=str(getattr(args, "data_dir", ".")),
            dedup_distance_hz=float(getattr(args, "dedup_distance_hz", DEDUP_DISTANCE_HZ)),
            workers=int(getattr(args, "workers", 1)),
            log_level=str(getattr(args, "log_level", "INFO")).upper(),
            driver=str(getattr(args, "driver", "rtlsdr_native")),
            soapy_args=getattr(args, "soapy_args", None),
            gain=gain,
            jsonl=getattr(args, "jsonl", None),
            backend=getattr(args, "backend", None) or os.environ.get("CELLSEARCH_BACKEND"),
        )

    def normalize(self) -> List[str]:
        """Fill defaults and snap frequencies to the 100 kHz raster.

        Returns the warnings produced. Call ``validate`` afterwards.
        """
        warnings: List[str] = []
        if self.freq_start >= MIN_FREQ_HZ and not on_raster(self.freq_start, CENTER_RASTER_HZ):
            self.freq_start = round_to_raster(self.freq_start, CENTER_RASTER_HZ)
            warnings.append("start frequency has been rounded to the nearest multiple of 100kHz")
        if self.freq_end is None:
            self.freq_end = self.freq_start
        elif not on_raster(self.freq_end, CENTER_RASTER_HZ):
            self.freq_end = round_to_raster(self.freq_end, CENTER_RASTER_HZ)
            warnings.append("end frequency has been rounded to the nearest multiple of 100kHz")
        if self.ppm > PPM_WARN:
            warnings.append("ppm value appears to be set unreasonably high")
        if abs(self.correction - 1.0) > CORRECTION_WARN:
            warnings.append("crystal correction factor appears to be unreasonable")
        return warnings

    def validate(self) -> None:
        if self.freq_start < MIN_FREQ_HZ:
            raise ConfigurationError("start frequency must be greater than 1MHz")
        if self.freq_end is not None and self.freq_end < self.freq_start:
            raise ConfigurationError("end frequency must be >= start frequency")
        if self.ppm < 0:
            raise ConfigurationError("ppm value must be positive")
        if self.correction <= 0:
            raise ConfigurationError("correction factor must be positive")
        if self.dedup_distance_hz <= 0:
            raise ConfigurationError("dedup distance must be positive")
        if self.workers < 1:
            raise ConfigurationError("workers must be >= 1")
