"""Scripted PHY backend used by the pipeline, runner and CLI tests."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional, Tuple

import numpy as np

from cellsearch.phy.backend import CorrelationResult
from cellsearch.search.types import Cell, CpType, PhichDuration, PhichResource, RsDescriptor
from cellsearch.util.errors import CaptureError


class ScriptedBackend:
    """Outcomes are keyed by the candidate's peak index ``ind``.

    ``sss`` maps ind -> n_id_1 (None fails SSS), ``mib`` maps ind -> n_rb_dl
    (None fails MIB) and ``foe`` maps ind -> refined residual offset.
    """

    def __init__(
        self,
        peaks_by_fc: Optional[Dict[float, List[Cell]]] = None,
        *,
        sss: Optional[Dict[int, Optional[int]]] = None,
        mib: Optional[Dict[int, Optional[int]]] = None,
        foe: Optional[Dict[int, float]] = None,
        n_comb_xc: int = 4,
        n_bins: int = 8,
    ):
        self.peaks_by_fc = peaks_by_fc or {}
        self.sss = sss or {}
        self.mib = mib or {}
        self.foe = foe or {}
        self.n_comb_xc = n_comb_xc
        self.n_bins = n_bins
        self.calls: List[Tuple[str, int]] = []
        self.thresholds: Dict[float, np.ndarray] = {}

    def xcorr_pss(self, capbuf, f_search_set, ds_comb_arm, fc):
        return CorrelationResult(
            xc_incoherent_collapsed_pow=np.zeros((3, self.n_bins)),
            xc_incoherent_collapsed_frq=np.zeros((3, self.n_bins), dtype=int),
            sp_incoherent=np.full(self.n_bins, 1e-3),
            n_comb_xc=self.n_comb_xc,
            n_comb_sp=self.n_comb_xc,
        )

    def peak_search(self, correlation, threshold, f_search_set, fc):
        self.thresholds[float(fc)] = np.asarray(threshold)
        return [replace(cell) for cell in self.peaks_by_fc.get(float(fc), [])]

    def sss_detect(self, cell, capbuf, thresh2_n_sigma, fc):
        self.calls.append(("sss", cell.ind))
        n_id_1 = self.sss.get(cell.ind, 10)
        if n_id_1 is None:
            return replace(cell, n_id_1=None)
        return replace(cell, n_id_1=n_id_1, cp_type=CpType.NORMAL, freq_fine=cell.freq)

    def pss_sss_foe(self, cell, capbuf, fc):
        self.calls.append(("foe", cell.ind))
        return replace(cell, freq_superfine=self.foe.get(cell.ind, cell.freq))

    def extract_tfg(self, cell, capbuf, fc):
        self.calls.append(("tfg", cell.ind))
        return np.zeros((12, 72), dtype=np.complex64), np.arange(12, dtype=np.float64)

    def tfoec(self, cell, tfg, tfg_timestamp, fc, rs_dl: RsDescriptor):
        self.calls.append(("tfoec", cell.ind))
        assert rs_dl.n_rb_dl == 6
        assert rs_dl.n_id_cell == cell.n_id_cell
        return replace(cell, frame_start=0.0), tfg, tfg_timestamp

    def decode_mib(self, cell, tfg_comp, rs_dl):
        self.calls.append(("mib", cell.ind))
        n_rb_dl = self.mib.get(cell.ind, 50)
        if n_rb_dl is None:
            return replace(cell, n_rb_dl=None)
        return replace(
            cell,
            n_rb_dl=n_rb_dl,
            phich_duration=PhichDuration.NORMAL,
            phich_resource=PhichResource.ONE,
            n_ports=2,
            sfn=0,
        )

    def stages_for(self, ind: int) -> List[str]:
        return [stage for stage, idx in self.calls if idx == ind]


class EmptyBackend(ScriptedBackend):
    """Backend that never finds a correlation peak."""

    def __init__(self):
        super().__init__()


class FakeCapture:
    """Capture source returning zeros, optionally failing on chosen indices."""

    def __init__(self, fail_indices=()):
        self.fail_indices = set(fail_indices)
        self.acquired: List[float] = []
        self.opened = False
        self.closed = False

    def open(self):
        self.opened = True

    def acquire(self, fc, index):
        if index in self.fail_indices:
            raise CaptureError(f"no capture for index {index}")
        self.acquired.append(fc)
        return np.zeros(1024, dtype=np.complex64)

    def close(self):
        self.closed = True


def raw_peak(fc: float, ind: int, *, freq: float = 0.0, pss_pow: float = 1e-3, n_id_2: int = 0) -> Cell:
    return Cell(fc=fc, freq=freq, pss_pow=pss_pow, ind=ind, n_id_2=n_id_2)


def make_backend() -> ScriptedBackend:
    return ScriptedBackend()
