"""Peak search, frequency-band filtering and raw/derivative reconciliation.

A SWD spike shows up twice: as an amplitude peak in the standardized EEG and,
just after it, as a trough in the first derivative (the steep falling edge).
Both streams are searched independently, each is thinned to peaks that recur
at a plausible SWD rate, and only raw peaks confirmed by exactly one
derivative peak survive.
"""

from dataclasses import dataclass

import numpy as np
from scipy import signal as sps


@dataclass(frozen=True, eq=False)
class PeakSet:
	"""Peak sample positions and their heights, in lockstep."""

	indices: np.ndarray
	values: np.ndarray

	def __len__(self):
		return int(self.indices.size)

	def take(self, mask: np.ndarray) -> "PeakSet":
		mask = np.asarray(mask, dtype=bool)
		return PeakSet(self.indices[mask], self.values[mask])

	@classmethod
	def empty(cls) -> "PeakSet":
		return cls(np.zeros((0,), dtype=np.int64), np.zeros((0,), dtype=np.float64))


def _enforce_min_distance(indices: np.ndarray, values: np.ndarray, min_distance: int) -> np.ndarray:
	# tallest first; stable sort keeps the earliest index ahead on ties
	order = np.argsort(-values, kind="stable")
	keep = np.ones(indices.size, dtype=bool)
	for k in order.tolist():
		if not keep[k]:
			continue
		j = k - 1
		while j >= 0 and indices[k] - indices[j] < min_distance:
			keep[j] = False
			j -= 1
		j = k + 1
		while j < indices.size and indices[j] - indices[k] < min_distance:
			keep[j] = False
			j += 1
	return keep


def find_peaks(series: np.ndarray, min_height: float, min_distance: int) -> PeakSet:
	"""Strict local maxima above ``min_height``, no two closer than ``min_distance``.

	Flat tops are not peaks. When candidates crowd each other the taller one
	wins, the earlier one on an exact tie.
	"""
	x = np.asarray(series, dtype=np.float64).ravel()
	if x.size < 3:
		return PeakSet.empty()
	idx, _ = sps.find_peaks(x)
	# scipy reports the middle of a plateau; keep only samples above both neighbours
	idx = idx[(x[idx] > x[idx - 1]) & (x[idx] > x[idx + 1])]
	idx = idx[x[idx] > min_height].astype(np.int64)
	vals = x[idx]
	if int(min_distance) > 1 and idx.size > 1:
		keep = _enforce_min_distance(idx, vals, int(min_distance))
		idx, vals = idx[keep], vals[keep]
	return PeakSet(idx, vals)


def band_mask(indices: np.ndarray, lower: int, upper: int) -> np.ndarray:
	"""True for peaks whose gap to the previous or next peak is inside (lower, upper).

	Sentinel peaks at position 0 stand before the first and after the last
	peak, so the first peak can qualify on its distance from the start of the
	recording while the last one can only qualify through its predecessor.
	"""
	idx = np.asarray(indices, dtype=np.int64).ravel()
	padded = np.concatenate(([0], idx, [0]))
	prev_gap = padded[1:-1] - padded[:-2]
	next_gap = padded[2:] - padded[1:-1]
	prev_ok = (prev_gap > lower) & (prev_gap < upper)
	next_ok = (next_gap > lower) & (next_gap < upper)
	return prev_ok | next_ok


def filter_by_band(peaks: PeakSet, lower: int, upper: int) -> PeakSet:
	return peaks.take(band_mask(peaks.indices, lower, upper))


def count_in_window(positions: np.ndarray, start: int, window: int) -> int:
	"""Number of entries of ``positions`` inside ``[start, start + window]``, duplicates included."""
	pos = np.asarray(positions)
	return int(np.count_nonzero((pos >= start) & (pos <= start + window)))


def reconcile_peaks(raw: PeakSet, deriv_indices: np.ndarray, window: int) -> PeakSet:
	"""Keep raw peaks followed by exactly one derivative peak within ``window`` samples."""
	keep = np.zeros(len(raw), dtype=bool)
	for k, p in enumerate(raw.indices.tolist()):
		keep[k] = count_in_window(deriv_indices, p, window) == 1
	return raw.take(keep)
