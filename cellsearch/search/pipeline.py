"""Per-center-frequency search: correlate, threshold, peak search and refine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from cellsearch.dsp.threshold import DS_COMB_ARM, detection_threshold
from cellsearch.phy.backend import PhyBackend
from cellsearch.search.types import Cell, FrequencyResult, RsDescriptor
from cellsearch.util.logging import get_logger
from cellsearch.util.math import db10
from cellsearch.util.scan_logger import ScanLogger

logger = get_logger(__name__)

# SSS detection threshold in noise standard deviations.
THRESH2_N_SIGMA = 3
# The MIB is carried in the central 6 resource blocks whatever the cell bandwidth.
SEARCH_N_RB_DL = 6


@dataclass
class RefinementOutcome:
    confirmed: List[Cell] = field(default_factory=list)
    rejected_sss: int = 0
    rejected_mib: int = 0


def refine_candidate(
    cell: Cell,
    capbuf: np.ndarray,
    fc: float,
    backend: PhyBackend,
    *,
    thresh2_n_sigma: float = THRESH2_N_SIGMA,
) -> Tuple[Optional[Cell], Optional[str]]:
    """Run one candidate through SSS, FOE, grid extraction, TFOEC and MIB decode.

    Returns ``(cell, None)`` when every stage succeeds, otherwise ``(None, stage)``
    naming the stage that rejected it. Later stages are not run after a failure.
    """
    cell = backend.sss_detect(cell, capbuf, thresh2_n_sigma, fc)
    if cell.n_id_1 is None:
        return None, "sss"

    cell = backend.pss_sss_foe(cell, capbuf, fc)

    tfg, tfg_timestamp = backend.extract_tfg(cell, capbuf, fc)

    rs_dl = RsDescriptor(n_id_cell=int(cell.n_id_cell), n_rb_dl=SEARCH_N_RB_DL, cp_type=cell.cp_type)

    cell, tfg_comp, _tfg_comp_timestamp = backend.tfoec(cell, tfg, tfg_timestamp, fc, rs_dl)

    cell = backend.decode_mib(cell, tfg_comp, rs_dl)
    if cell.n_rb_dl is None:
        return None, "mib"
    return cell, None


def refine_candidates(
    candidates: Sequence[Cell],
    capbuf: np.ndarray,
    fc: float,
    backend: PhyBackend,
    *,
    thresh2_n_sigma: float = THRESH2_N_SIGMA,
) -> RefinementOutcome:
    """Refine raw peaks in order, keeping only the candidates that survive every stage."""
    outcome = RefinementOutcome()
    for candidate in candidates:
        cell, failed_stage = refine_candidate(candidate, capbuf, fc, backend, thresh2_n_sigma=thresh2_n_sigma)
        if cell is None:
            if failed_stage == "sss":
                outcome.rejected_sss += 1
            else:
                outcome.rejected_mib += 1
            logger.debug(
                "  candidate n_id_2=%d freq=%.1f Hz rejected at %s stage",
                candidate.n_id_2,
                candidate.freq,
                failed_stage,
                extra={"center_hz": fc, "stage": failed_stage},
            )
            continue
        logger.info(
            "  Detected a cell! cell ID: %d  RX power level: %.1f dB  residual frequency offset: %.1f Hz",
            cell.n_id_cell,
            float(db10(cell.pss_pow)),
            cell.freq_superfine,
            extra={"center_hz": fc, "cell_id": cell.n_id_cell},
        )
        outcome.confirmed.append(cell)
    return outcome


def search_center_frequency(
    capbuf: np.ndarray,
    fc: float,
    f_search_set: np.ndarray,
    backend: PhyBackend,
    *,
    index: int = 0,
    scan_logger: Optional[ScanLogger] = None,
) -> FrequencyResult:
    """Search one capture buffer and return the confirmed cells for ``fc``.

    Raises ``DegenerateInputError`` when the correlator reports no combinations.
    """
    logger.debug("  Calculating PSS correlations", extra={"center_hz": fc})
    correlation = backend.xcorr_pss(capbuf, f_search_set, DS_COMB_ARM, fc)

    z_th1 = detection_threshold(correlation.sp_incoherent, correlation.n_comb_xc, ds_comb_arm=DS_COMB_ARM)

    logger.debug("  Searching for and examining correlation peaks...", extra={"center_hz": fc})
    peaks = list(backend.peak_search(correlation, z_th1, f_search_set, fc))

    outcome = refine_candidates(peaks, capbuf, fc, backend)
    result = FrequencyResult(
        fc=float(fc),
        index=index,
        cells=outcome.confirmed,
        n_peaks=len(peaks),
        n_rejected_sss=outcome.rejected_sss,
        n_rejected_mib=outcome.rejected_mib,
    )
    if scan_logger:
        for cell in result.cells:
            scan_logger.log(
                "cell_confirmed",
                center_hz=result.fc,
                fc_index=index,
                cell_id=cell.n_id_cell,
                pss_pow_db=float(db10(cell.pss_pow)),
                freq_superfine_hz=cell.freq_superfine,
                n_rb_dl=cell.n_rb_dl,
            )
        scan_logger.log(
            "frequency_result",
            center_hz=result.fc,
            fc_index=index,
            peaks=result.n_peaks,
            confirmed=len(result.cells),
            rejected_sss=result.n_rejected_sss,
            rejected_mib=result.n_rejected_mib,
        )
    return result
