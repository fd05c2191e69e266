import numpy as np
import pytest

from cellsearch.search.planner import center_frequencies, offset_bins, plan_search


def test_single_center_frequency_when_start_equals_end() -> None:
    plan = plan_search(806e6, 806e6, 100.0)
    assert plan.count == 1
    assert plan.center_frequencies[0] == 806e6


def test_center_frequencies_are_inclusive_on_100khz_raster() -> None:
    fcs = center_frequencies(800e6, 801e6)
    assert fcs.size == 11
    assert fcs[0] == 800e6
    assert fcs[-1] == 801e6
    assert np.allclose(np.diff(fcs), 100e3)


def test_long_range_has_no_drift() -> None:
    fcs = center_frequencies(700e6, 2700e6)
    assert fcs.size == 20001
    assert fcs[-1] == 2700e6


@pytest.mark.parametrize("freq_start,ppm", [(1e6, 0.0), (806e6, 10.0), (1.8e9, 100.0), (2.6e9, 250.0), (1e6, 1e5)])
def test_offsets_are_symmetric_odd_and_contain_zero(freq_start: float, ppm: float) -> None:
    plan = plan_search(freq_start, freq_start, ppm)
    offsets = plan.frequency_offsets
    assert offsets.size == 2 * plan.n_extra + 1
    assert 0.0 in offsets
    assert np.array_equal(offsets, -offsets[::-1])
    assert np.allclose(np.diff(offsets), 5e3) or offsets.size == 1


def test_offset_span_covers_worst_case_error() -> None:
    # 1 GHz at 100 ppm is 100 kHz of error: (100e3 + 2.5e3) / 5e3 floors to 20.
    plan = plan_search(1e9, 1e9, 100.0)
    assert plan.n_extra == 20
    assert plan.frequency_offsets[0] == -100e3
    assert plan.frequency_offsets[-1] == 100e3


def test_zero_ppm_searches_only_zero_offset() -> None:
    plan = plan_search(806e6, 806e6, 0.0)
    assert list(plan.frequency_offsets) == [0.0]


def test_n_extra_never_decreases_with_ppm() -> None:
    values = [offset_bins(1.8e9, ppm) for ppm in np.linspace(0.0, 300.0, 301)]
    assert all(b >= a for a, b in zip(values, values[1:]))


def test_plan_iterates_index_and_frequency() -> None:
    plan = plan_search(800e6, 800.2e6, 10.0)
    assert list(plan) == [(0, 800e6), (1, 800.1e6), (2, 800.2e6)]


def test_invalid_inputs_raise() -> None:
    with pytest.raises(ValueError):
        plan_search(801e6, 800e6, 10.0)
    with pytest.raises(ValueError):
        plan_search(800e6, 800e6, -1.0)
