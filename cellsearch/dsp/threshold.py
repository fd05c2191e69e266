"""Chi-squared CFAR threshold for incoherently combined PSS correlations."""

from __future__ import annotations

import numpy as np
from scipy.stats import chi2

from cellsearch.util.errors import DegenerateInputError

FS_LTE = 30.72e6
# Differential combining arms used by the PSS correlator.
DS_COMB_ARM = 2
# False alarm probability is 10**-THRESH1_N_NINES.
THRESH1_N_NINES = 12
# Fraction of the 1.92 Msps Nyquist band occupied by the central 6 RBs plus guard.
RX_CUTOFF = (6 * 12 * 15e3 / 2 + 4 * 15e3) / (FS_LTE / 16 / 2)


def degrees_of_freedom(n_comb_xc: int, ds_comb_arm: int = DS_COMB_ARM) -> int:
    return 2 * int(n_comb_xc) * (2 * int(ds_comb_arm) + 1)


def chi2_threshold(k: int, n_nines: int = THRESH1_N_NINES) -> float:
    """Return x such that the chi-squared CDF with ``k`` DOF equals 1 - 10**-n_nines.

    Uses the survival-function inverse; ``1 - 1e-12`` is not representable
    precisely enough for ``ppf``.
    """
    if k <= 0:
        raise DegenerateInputError(f"chi-squared threshold needs positive degrees of freedom, got {k}")
    return float(chi2.isf(10.0 ** (-n_nines), k))


def detection_threshold(
    sp_incoherent: np.ndarray,
    n_comb_xc: int,
    *,
    ds_comb_arm: int = DS_COMB_ARM,
    n_nines: int = THRESH1_N_NINES,
) -> np.ndarray:
    """Per-frequency-bin detection threshold ``Z_th1`` from the measured noise power."""
    if int(n_comb_xc) < 1:
        raise DegenerateInputError(f"n_comb_xc must be >= 1, got {n_comb_xc}")
    sp = np.asarray(sp_incoherent, dtype=np.float64)
    arms = 2 * int(ds_comb_arm) + 1
    r_th1 = chi2_threshold(degrees_of_freedom(n_comb_xc, ds_comb_arm), n_nines)
    return r_th1 * sp / RX_CUTOFF / 137 / 2 / int(n_comb_xc) / arms
