"""Native librtlsdr (pyrtlsdr) capture source."""

from __future__ import annotations

from typing import Optional

import numpy as np

try:  # pragma: no cover - optional dependency
    from rtlsdr import RtlSdr  # type: ignore

    HAVE_RTLSDR = True
except (ImportError, OSError):  # pragma: no cover - optional dependency
    HAVE_RTLSDR = False
    RtlSdr = None  # type: ignore


class RTLSDRSource:
    """Tune-and-read wrapper around pyrtlsdr.RtlSdr."""

    device = "RTL-SDR (native)"

    def __init__(
        self,
        samp_rate: float,
        gain: str | float = "auto",
        *,
        device_index: Optional[int] = None,
        serial_number: Optional[str] = None,
    ):
        if not HAVE_RTLSDR:
            raise RuntimeError("pyrtlsdr not available")
        if serial_number:
            self.dev = RtlSdr(serial_number=str(serial_number))  # type: ignore[call-arg]
        elif device_index is not None:
            self.dev = RtlSdr(device_index=int(device_index))  # type: ignore[call-arg]
        else:
            self.dev = RtlSdr()  # type: ignore[call-arg]
        self.dev.sample_rate = samp_rate
        if isinstance(gain, str) and gain == "auto":
            self.dev.gain = "auto"
        else:
            self.dev.gain = float(gain)

    def tune(self, center_hz: float) -> None:
        self.dev.center_freq = center_hz

    def read(self, count: int) -> np.ndarray:
        return np.asarray(self.dev.read_samples(count), dtype=np.complex64)

    def close(self) -> None:
        self.dev.close()
