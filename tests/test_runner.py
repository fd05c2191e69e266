import json

import pytest

from cellsearch.io.capture import CaptureMode
from cellsearch.search.config import SearchConfig
from cellsearch.search.runner import CellSearchRunner
from cellsearch.util.scan_logger import ScanLogger
from phy_fakes import FakeCapture, ScriptedBackend, raw_peak


def _two_frequency_backend() -> ScriptedBackend:
    # Same cell (ID 42) seen from 800.0 MHz and 800.1 MHz, 98.5 kHz apart.
    return ScriptedBackend(
        {
            800e6: [raw_peak(800e6, 0, freq=1000.0, pss_pow=0.001)],
            800.1e6: [raw_peak(800.1e6, 1, freq=-500.0, pss_pow=0.01)],
        },
        sss={0: 14, 1: 14},
    )


def _config(**overrides) -> SearchConfig:
    params = dict(freq_start=800e6, freq_end=800.1e6, ppm=10.0, mode=CaptureMode.LOAD)
    params.update(overrides)
    return SearchConfig(**params)


def test_duplicate_detections_merge_to_strongest() -> None:
    capture = FakeCapture()
    result = CellSearchRunner(_config(), _two_frequency_backend(), capture=capture).run()
    assert len(result.cells) == 1
    cell = result.cells[0].cell
    assert cell.n_id_cell == 42
    assert cell.pss_pow == 0.01
    assert cell.fc == 800.1e6
    assert result.cells[0].correction == pytest.approx(800.1e6 / (800.1e6 + 500.0))
    assert capture.acquired == [800e6, 800.1e6]
    assert capture.opened and capture.closed
    assert result.skipped_frequencies == []


def test_parallel_workers_give_same_result() -> None:
    sequential = CellSearchRunner(_config(), _two_frequency_backend(), capture=FakeCapture()).run()
    parallel = CellSearchRunner(_config(workers=2), _two_frequency_backend(), capture=FakeCapture()).run()
    assert [d.cell for d in parallel.cells] == [d.cell for d in sequential.cells]
    assert [res.fc for res in parallel.frequencies] == [800e6, 800.1e6]


def test_dedup_distance_is_configurable() -> None:
    result = CellSearchRunner(
        _config(dedup_distance_hz=50e3), _two_frequency_backend(), capture=FakeCapture()
    ).run()
    assert len(result.cells) == 2


def test_capture_failure_skips_only_that_frequency() -> None:
    result = CellSearchRunner(_config(), _two_frequency_backend(), capture=FakeCapture(fail_indices={1})).run()
    assert result.skipped_frequencies == [800.1e6]
    assert len(result.cells) == 1
    assert result.cells[0].cell.fc == 800e6
    skipped = result.frequencies[1]
    assert skipped.skipped and "index 1" in skipped.skip_reason


def test_degenerate_correlation_skips_every_frequency() -> None:
    backend = _two_frequency_backend()
    backend.n_comb_xc = 0
    result = CellSearchRunner(_config(), backend, capture=FakeCapture()).run()
    assert result.cells == []
    assert result.skipped_frequencies == [800e6, 800.1e6]


def test_no_cells_is_a_normal_result() -> None:
    result = CellSearchRunner(_config(), ScriptedBackend(), capture=FakeCapture()).run()
    assert result.cells == []
    assert [res.n_peaks for res in result.frequencies] == [0, 0]


def test_events_are_written_to_scan_log(tmp_path) -> None:
    log_path = tmp_path / "events.jsonl"
    scan_logger = ScanLogger(log_path)
    CellSearchRunner(_config(), _two_frequency_backend(), capture=FakeCapture(), scan_logger=scan_logger).run()
    events = [json.loads(line) for line in log_path.read_text().splitlines()]
    names = [event["event"] for event in events]
    assert names[0] == "search_start"
    assert names[-1] == "search_summary"
    assert names.count("cell_confirmed") == 2
    assert events[-1]["unique_cells"] == 1
    assert all(event["run_id"] == scan_logger.run_id for event in events)
