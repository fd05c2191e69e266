"""High-level runner that searches every planned center frequency and merges the results."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from cellsearch.io.capture import CaptureSource
from cellsearch.phy.backend import PhyBackend
from cellsearch.search.config import SearchConfig
from cellsearch.search.correction import estimate_corrections
from cellsearch.search.dedup import dedup_cells
from cellsearch.search.pipeline import search_center_frequency
from cellsearch.search.planner import SearchPlan, plan_search
from cellsearch.search.types import FrequencyResult, SearchResult
from cellsearch.util.errors import CaptureError, DegenerateInputError
from cellsearch.util.logging import get_logger
from cellsearch.util.scan_logger import ScanLogger

logger = get_logger(__name__)


class CellSearchRunner:
    """Bind a search config to a capture source and a PHY backend.

    Each center frequency is searched independently; a capture failure or a
    degenerate correlator output skips that frequency only.
    """

    def __init__(
        self,
        config: SearchConfig,
        backend: PhyBackend,
        *,
        capture: Optional[CaptureSource] = None,
        scan_logger: Optional[ScanLogger] = None,
    ):
        self.config = config
        self.backend = backend
        self.capture = capture or CaptureSource(
            config.mode,
            config.correction,
            data_dir=config.data_dir,
            driver=config.driver,
            gain=config.gain,
            soapy_args=config.soapy_args,
        )
        self.scan_logger = scan_logger
        freq_end = config.freq_end if config.freq_end is not None else config.freq_start
        self.plan: SearchPlan = plan_search(config.freq_start, freq_end, config.ppm)

    def _log(self, event: str, **fields) -> None:
        if self.scan_logger:
            self.scan_logger.log(event, **fields)

    def _skipped(self, index: int, fc: float, reason: str) -> FrequencyResult:
        logger.warning("Skipping %.1f MHz: %s", fc / 1e6, reason, extra={"center_hz": fc, "fc_index": index})
        self._log("frequency_skipped", center_hz=fc, fc_index=index, reason=reason)
        return FrequencyResult(fc=fc, index=index, skipped=True, skip_reason=reason)

    def search_frequency(self, index: int, fc: float) -> FrequencyResult:
        logger.info("Examining center frequency %g MHz ...", fc / 1e6, extra={"center_hz": fc, "fc_index": index})
        self._log("frequency_start", center_hz=fc, fc_index=index)
        try:
            capbuf = self.capture.acquire(fc, index)
        except CaptureError as exc:
            return self._skipped(index, fc, str(exc))
        try:
            return search_center_frequency(
                capbuf,
                fc,
                self.plan.frequency_offsets,
                self.backend,
                index=index,
                scan_logger=self.scan_logger,
            )
        except DegenerateInputError as exc:
            return self._skipped(index, fc, str(exc))

    def _search_all(self) -> List[FrequencyResult]:
        workers = max(1, int(self.config.workers))
        if workers == 1 or self.plan.count == 1:
            return [self.search_frequency(idx, fc) for idx, fc in self.plan]
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self.search_frequency, idx, fc) for idx, fc in self.plan]
            # Gathered in plan order so deduplication sees the same order as a sequential run.
            return [fut.result() for fut in futures]

    def run(self) -> SearchResult:
        plan = self.plan
        self._log(
            "search_start",
            freq_start_hz=float(plan.center_frequencies[0]),
            freq_end_hz=float(plan.center_frequencies[-1]),
            n_center_frequencies=plan.count,
            n_frequency_offsets=int(plan.frequency_offsets.size),
            ppm=self.config.ppm,
            correction=self.config.correction,
            mode=self.config.mode.value,
            workers=self.config.workers,
        )
        try:
            self.capture.open()
            frequencies = self._search_all()
        finally:
            self.capture.close()

        cells_final = dedup_cells((res.cells for res in frequencies), self.config.dedup_distance_hz)
        result = SearchResult(
            cells=estimate_corrections(cells_final, self.config.correction),
            frequencies=frequencies,
            input_correction=self.config.correction,
        )
        skipped = result.skipped_frequencies
        if skipped:
            logger.warning("%d of %d center frequencies were skipped", len(skipped), plan.count)
        self._log(
            "search_summary",
            confirmed=sum(len(res.cells) for res in frequencies),
            unique_cells=len(result.cells),
            skipped_frequencies=skipped,
        )
        return result


def run_search(config: SearchConfig, backend: PhyBackend, scan_logger: Optional[ScanLogger] = None) -> SearchResult:
    return CellSearchRunner(config, backend, scan_logger=scan_logger).run()
