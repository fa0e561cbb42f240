"""Peak search, band filter and reconciliation, with property tests."""
from __future__ import annotations

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from swd_detect.peaks import (
    PeakSet,
    band_mask,
    count_in_window,
    filter_by_band,
    find_peaks,
    reconcile_peaks,
)


def peakset(indices, values=None) -> PeakSet:
    idx = np.asarray(indices, dtype=np.int64)
    vals = np.asarray(values if values is not None else np.ones(idx.size), dtype=np.float64)
    return PeakSet(idx, vals)


class TestFindPeaks:
    def test_height_is_strict(self):
        x = np.zeros(50)
        x[10] = 3.0
        x[30] = 3.5
        got = find_peaks(x, 3.0, 1)
        assert got.indices.tolist() == [30]
        assert got.values.tolist() == [3.5]

    def test_taller_peak_wins_inside_min_distance(self):
        x = np.zeros(50)
        x[10] = 5.0
        x[14] = 7.0
        got = find_peaks(x, 1.0, 10)
        assert got.indices.tolist() == [14]

    def test_exact_tie_keeps_earliest(self):
        x = np.zeros(50)
        x[10] = 5.0
        x[14] = 5.0
        got = find_peaks(x, 1.0, 10)
        assert got.indices.tolist() == [10]

    def test_peaks_exactly_min_distance_apart_both_kept(self):
        x = np.zeros(50)
        x[10] = 5.0
        x[20] = 4.0
        got = find_peaks(x, 1.0, 10)
        assert got.indices.tolist() == [10, 20]

    def test_suppressed_peak_does_not_suppress_others(self):
        x = np.zeros(60)
        x[10] = 5.0
        x[18] = 7.0
        x[26] = 6.0
        got = find_peaks(x, 1.0, 10)
        # 18 removes 10 and 26
        assert got.indices.tolist() == [18]

    @pytest.mark.parametrize("width", [2, 3, 5])
    def test_flat_top_is_not_a_peak(self, width):
        x = np.zeros(40)
        x[10:10 + width] = 5.0
        assert len(find_peaks(x, 1.0, 1)) == 0

    def test_flat_shoulder_next_to_strict_maximum(self):
        x = np.zeros(40)
        x[10:13] = 5.0
        x[20] = 4.0
        x[21] = 6.0
        assert find_peaks(x, 1.0, 1).indices.tolist() == [21]

    def test_every_peak_is_strict_local_maximum(self):
        x = np.array([0, 1, 1, 0, 2, 0, 3, 3, 3, 0, 1, 0], dtype=float)
        got = find_peaks(x, 0.0, 1)
        assert got.indices.tolist() == [4, 10]

    def test_short_input(self):
        assert len(find_peaks(np.array([1.0, 2.0]), 0.0, 1)) == 0

    @given(
        values=st.lists(st.floats(min_value=-10, max_value=10, allow_nan=False), min_size=3, max_size=300),
        min_height=st.floats(min_value=-5, max_value=5),
        min_distance=st.integers(min_value=1, max_value=40),
    )
    @settings(max_examples=200, deadline=None)
    def test_distance_and_height_invariants(self, values, min_height, min_distance):
        x = np.asarray(values, dtype=np.float64)
        got = find_peaks(x, min_height, min_distance)
        assert np.all(np.diff(got.indices) > 0)
        assert np.all(got.values > min_height)
        np.testing.assert_array_equal(got.values, x[got.indices])
        if min_distance > 1 and len(got) > 1:
            assert np.min(np.diff(got.indices)) >= min_distance

        inner = np.arange(1, x.size - 1)
        cand = inner[(x[inner] > x[inner - 1]) & (x[inner] > x[inner + 1])]
        cand = cand[x[cand] > min_height]
        if cand.size:
            # tallest candidate (earliest on ties) always survives
            best = cand[np.argmax(x[cand])]
            assert best in got.indices.tolist()


class TestBandFilter:
    def test_keeps_peaks_with_in_band_neighbour(self):
        # lower 23, upper 81: 100 -> 164 is a 64-sample gap
        got = band_mask(np.array([100, 164, 400]), 23, 81)
        assert got.tolist() == [True, True, False]

    def test_bounds_are_exclusive(self):
        got = band_mask(np.array([1000, 1023, 1104]), 23, 81)
        assert got.tolist() == [False, False, False]

    def test_first_peak_can_use_start_of_recording(self):
        got = band_mask(np.array([50, 5000]), 23, 81)
        assert got.tolist() == [True, False]

    def test_last_peak_cannot_use_end_sentinel(self):
        assert band_mask(np.array([5000]), 23, 81).tolist() == [False]

    def test_empty(self):
        assert band_mask(np.array([], dtype=np.int64), 23, 81).size == 0

    def test_values_stay_in_lockstep(self):
        peaks = peakset([100, 164, 400, 460], [1.0, 2.0, 3.0, 4.0])
        got = filter_by_band(peaks, 23, 81)
        assert got.indices.tolist() == [100, 164, 400, 460]
        got = filter_by_band(peakset([100, 164, 1000], [1.0, 2.0, 3.0]), 23, 81)
        assert got.values.tolist() == [1.0, 2.0]

    @given(
        positions=st.sets(st.integers(min_value=0, max_value=5000), max_size=80),
        lower=st.integers(min_value=1, max_value=50),
        width=st.integers(min_value=1, max_value=150),
    )
    @settings(max_examples=200, deadline=None)
    def test_idempotent(self, positions, lower, width):
        idx = np.asarray(sorted(positions), dtype=np.int64)
        once = filter_by_band(peakset(idx), lower, lower + width)
        twice = filter_by_band(once, lower, lower + width)
        np.testing.assert_array_equal(once.indices, twice.indices)
        np.testing.assert_array_equal(once.values, twice.values)


class TestReconcile:
    def test_exactly_one_derivative_peak_keeps_raw_peak(self):
        got = reconcile_peaks(peakset([100]), np.array([105]), 15)
        assert got.indices.tolist() == [100]

    def test_no_derivative_peak_rejects(self):
        got = reconcile_peaks(peakset([100]), np.array([50, 116]), 15)
        assert len(got) == 0

    def test_two_derivative_peaks_reject(self):
        got = reconcile_peaks(peakset([100]), np.array([101, 112]), 15)
        assert len(got) == 0

    def test_window_is_inclusive_and_forward_only(self):
        assert len(reconcile_peaks(peakset([100]), np.array([100]), 15)) == 1
        assert len(reconcile_peaks(peakset([100]), np.array([115]), 15)) == 1
        assert len(reconcile_peaks(peakset([100]), np.array([99]), 15)) == 0

    def test_duplicate_positions_count_twice(self):
        assert count_in_window(np.array([105, 105]), 100, 15) == 2
        assert len(reconcile_peaks(peakset([100]), np.array([105, 105]), 15)) == 0

    def test_mixed_stream(self):
        raw = peakset([100, 200, 300], [4.0, 5.0, 6.0])
        deriv = np.array([101, 201, 210, 500])
        got = reconcile_peaks(raw, deriv, 15)
        assert got.indices.tolist() == [100]
        assert got.values.tolist() == [4.0]

    @pytest.mark.parametrize("n_hits", [0, 1, 2, 3])
    def test_only_single_hit_survives(self, n_hits):
        deriv = np.arange(n_hits) + 101
        got = reconcile_peaks(peakset([100]), deriv, 15)
        assert len(got) == (1 if n_hits == 1 else 0)
