"""Noise-model fit used to standardize EEG and to gate on signal quality.

The amplitude distribution of background EEG is close to Gaussian. A Gaussian
is fitted to the density histogram of the samples; the R^2 of that fit is the
quality score, and the fitted mean/sd are the offset/scale for z-scoring.

Samples that are exactly 0 are recording dropouts and are ignored.
"""

import logging
from typing import NamedTuple, Optional

import numpy as np
from scipy.optimize import curve_fit

logger = logging.getLogger(__name__)

MAD_TO_SD = 1.4826


class NormalizationResult(NamedTuple):
	quality: float
	scale: float
	offset: float


def _gaussian(x, amp, mu, sigma):
	return amp * np.exp(-0.5 * ((x - mu) / sigma) ** 2)


def valid_sample_mask(signal: np.ndarray) -> np.ndarray:
	"""True where a sample may contribute to statistics (finite and not a dropout)."""
	x = np.asarray(signal)
	return np.isfinite(x) & (x != 0)


def fit_noise_model(
	signal: np.ndarray,
	fs: float,
	n_bins: int = 200,
	range_sd: float = 5.0,
	mask: Optional[np.ndarray] = None,
) -> NormalizationResult:
	"""Fit a Gaussian to the amplitude histogram of ``signal``.

	``mask`` selects the samples to use; by default all finite non-zero samples.
	Degenerate inputs (too few samples, no spread) and non-converging fits
	return quality 0.
	"""
	x = np.asarray(signal, dtype=np.float64).ravel()
	if mask is None:
		mask = valid_sample_mask(x)
	x = x[np.asarray(mask, dtype=bool).ravel() & np.isfinite(x)]
	if x.size < 3:
		logger.debug("noise fit: only %d usable samples", x.size)
		return NormalizationResult(0.0, 0.0, 0.0)

	center = float(np.median(x))
	spread = MAD_TO_SD * float(np.median(np.abs(x - center)))
	if not spread > 0:
		spread = float(np.std(x))
	# np.std of a constant is round-off, not always exactly 0
	if np.ptp(x) == 0 or not spread > np.finfo(np.float64).eps * max(1.0, abs(center)):
		# 常数信号：分布退化
		return NormalizationResult(0.0, 0.0, center)

	lo = center - range_sd * spread
	hi = center + range_sd * spread
	try:
		counts, edges = np.histogram(x, bins=int(n_bins), range=(lo, hi))
	except ValueError as exc:
		logger.warning("noise fit: cannot bin samples: %s", exc)
		return NormalizationResult(0.0, 0.0, center)
	bc = (edges[:-1] + edges[1:]) / 2
	bw = edges[1] - edges[0]
	density = counts / (x.size * bw)

	p0 = [float(density.max()), center, spread]
	try:
		popt, _ = curve_fit(_gaussian, bc, density, p0=p0, maxfev=5000)
	except (RuntimeError, ValueError) as exc:
		logger.warning("noise fit did not converge: %s", exc)
		return NormalizationResult(0.0, 0.0, center)

	fitted = _gaussian(bc, *popt)
	ss_res = float(np.sum((density - fitted) ** 2))
	ss_tot = float(np.sum((density - np.mean(density)) ** 2))
	quality = 1.0 - ss_res / ss_tot if ss_tot > 0 else 0.0
	logger.debug(
		"noise fit over %.1fs of usable signal: quality=%.4f mu=%.4g sigma=%.4g",
		x.size / float(fs), quality, popt[1], popt[2],
	)
	return NormalizationResult(float(quality), float(abs(popt[2])), float(popt[1]))


def standardize(signal: np.ndarray, result: NormalizationResult) -> np.ndarray:
	"""Return ``(signal - offset) / scale`` as a new float64 array."""
	if not result.scale > 0:
		raise ValueError("cannot standardize with a non-positive scale")
	return (np.asarray(signal, dtype=np.float64) - result.offset) / result.scale
