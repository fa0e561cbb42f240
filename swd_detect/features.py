"""Spectral bandpower and simple statistics features for candidate events.

Default bands: delta/theta/alpha/beta/gamma. For each event clip, compute the
Welch PSD, integrate band powers, add broadband power, time-domain RMS and
line length, then append event-shape statistics (duration, spike count, spike
rate, spike height mean/std) to form one fixed-width row per event.
"""
from typing import List, Sequence, Tuple

import numpy as np
from scipy.integrate import trapezoid
from scipy.signal import welch

from .events import CandidateEvent

EEG_BANDS = {
	'delta': (0.5, 4.0),
	'theta': (4.0, 8.0),
	'alpha': (8.0, 13.0),
	'beta': (13.0, 30.0),
	'gamma': (30.0, 45.0),
}
BROADBAND = (0.5, 45.0)

FEATURE_NAMES: List[str] = (
	[f"bp_{name}" for name in EEG_BANDS]
	+ ["bp_broad", "rms", "line_length", "ptp"]
	+ ["duration_sec", "n_peaks", "spike_rate_hz", "peak_mean", "peak_std"]
)


def _bandpower_from_psd(freqs: np.ndarray, psd: np.ndarray, band: Tuple[float, float]) -> float:
	idx = np.logical_and(freqs >= band[0], freqs < band[1])
	if np.count_nonzero(idx) < 2:
		return 0.0
	return float(trapezoid(psd[idx], freqs[idx]))


def clip_features(clip: np.ndarray, fs: float) -> np.ndarray:
	"""Spectral and time-domain features of one clip (first 9 entries of FEATURE_NAMES)."""
	seg = np.asarray(clip, dtype=np.float64)
	nperseg = min(seg.size, int(2 * fs))
	f, p = welch(seg, fs=fs, nperseg=nperseg, noverlap=nperseg // 2, scaling='density')
	row = [_bandpower_from_psd(f, p, band) for band in EEG_BANDS.values()]
	row.append(_bandpower_from_psd(f, p, BROADBAND))
	row.append(float(np.sqrt(np.mean(seg ** 2))))
	# 线长：相邻样本差的绝对值之和（每秒）
	row.append(float(np.sum(np.abs(np.diff(seg)))) * fs / max(seg.size, 1))
	row.append(float(np.ptp(seg)))
	return np.asarray(row, dtype=np.float64)


def event_shape_features(event: CandidateEvent, fs: float) -> np.ndarray:
	dur = event.duration_samples / float(fs)
	n = event.n_peaks
	rate = (n - 1) / dur if dur > 0 else 0.0
	vals = np.asarray(event.peak_values, dtype=np.float64)
	return np.asarray([dur, float(n), rate, float(vals.mean()), float(vals.std())], dtype=np.float64)


def extract_event_features(events: Sequence[CandidateEvent], fs: float) -> np.ndarray:
	"""Feature matrix [N, len(FEATURE_NAMES)] for events that already carry a clip."""
	X = np.zeros((len(events), len(FEATURE_NAMES)), dtype=np.float32)
	for i, ev in enumerate(events):
		if ev.clip is None:
			raise ValueError("event has no clip; run edge exclusion first")
		X[i] = np.concatenate([clip_features(ev.clip, fs), event_shape_features(ev, fs)])
	return X
