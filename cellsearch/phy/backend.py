"""Interface to the LTE physical-layer primitives used by the search pipeline.

The correlator, SSS detector, fine FOE, grid extraction, TFOEC and MIB decoder
are provided by a backend object. A backend reports stage failures by returning
a cell whose ``n_id_1`` (SSS) or ``n_rb_dl`` (MIB) is ``None``.
"""

from __future__ import annotations

import importlib
import inspect
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol, Tuple, runtime_checkable

import numpy as np

from cellsearch.search.types import Cell, RsDescriptor
from cellsearch.util.errors import BackendError

REQUIRED_METHODS = (
    "xcorr_pss",
    "peak_search",
    "sss_detect",
    "pss_sss_foe",
    "extract_tfg",
    "tfoec",
    "decode_mib",
)


@dataclass
class CorrelationResult:
    """Output of the PSS correlator for one capture buffer."""

    xc_incoherent_collapsed_pow: np.ndarray
    xc_incoherent_collapsed_frq: np.ndarray
    sp_incoherent: np.ndarray
    n_comb_xc: int
    n_comb_sp: int
    extras: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class PhyBackend(Protocol):
    def xcorr_pss(
        self, capbuf: np.ndarray, f_search_set: np.ndarray, ds_comb_arm: int, fc: float
    ) -> CorrelationResult: ...

    def peak_search(
        self,
        correlation: CorrelationResult,
        threshold: np.ndarray,
        f_search_set: np.ndarray,
        fc: float,
    ) -> List[Cell]: ...

    def sss_detect(self, cell: Cell, capbuf: np.ndarray, thresh2_n_sigma: float, fc: float) -> Cell: ...

    def pss_sss_foe(self, cell: Cell, capbuf: np.ndarray, fc: float) -> Cell: ...

    def extract_tfg(self, cell: Cell, capbuf: np.ndarray, fc: float) -> Tuple[np.ndarray, np.ndarray]: ...

    def tfoec(
        self,
        cell: Cell,
        tfg: np.ndarray,
        tfg_timestamp: np.ndarray,
        fc: float,
        rs_dl: RsDescriptor,
    ) -> Tuple[Cell, np.ndarray, np.ndarray]: ...

    def decode_mib(self, cell: Cell, tfg_comp: np.ndarray, rs_dl: RsDescriptor) -> Cell: ...


def missing_methods(obj: Any) -> List[str]:
    return [name for name in REQUIRED_METHODS if not callable(getattr(obj, name, None))]


def load_backend(target: str) -> PhyBackend:
    """Import a backend from ``"package.module:attr"``.

    ``attr`` may name an instance, a class or a zero-argument factory; classes
    and factories are called to obtain the backend.
    """
    text = str(target or "").strip()
    if ":" not in text:
        raise BackendError(f"Backend '{target}' must look like 'package.module:attr'")
    module_name, attr_name = text.split(":", 1)
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise BackendError(f"Cannot import backend module '{module_name}': {exc}") from exc
    try:
        obj = getattr(module, attr_name)
    except AttributeError as exc:
        raise BackendError(f"Module '{module_name}' has no attribute '{attr_name}'") from exc
    if inspect.isclass(obj) or (callable(obj) and missing_methods(obj)):
        obj = obj()
    missing = missing_methods(obj)
    if missing:
        raise BackendError(f"Backend '{target}' is missing: {', '.join(missing)}")
    return obj
