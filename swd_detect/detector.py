"""Spike-and-wave discharge detection pipeline for one EEG channel.

Candidate events are found with a peak strategy on the standardized EEG and
on its standardized first derivative, then accepted or rejected by a
pretrained event classifier:

1. fit a Gaussian noise model to the raw samples (dropout zeros excluded) and
   abort on a poor fit or non-positive statistics;
2. find amplitude peaks (raw) and trough peaks (negated derivative);
3. keep peaks that recur at 3.16-11.13 Hz within each stream;
4. keep raw peaks confirmed by exactly one derivative peak just after them;
5. split the surviving peaks into events at long gaps and drop events too
   close to either end of the recording;
6. extract features from an 8 s raw clip around each event and classify it.
"""

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from .classify import classify_events
from .config import DetectionConfig
from .errors import DetectionTimeout, InvalidStatistics, PoorSignalFit
from .events import CandidateEvent, ScoredEvent
from .features import FEATURE_NAMES
from .normalize import NormalizationResult, fit_noise_model, standardize, valid_sample_mask
from .peaks import PeakSet, filter_by_band, find_peaks, reconcile_peaks
from .segment import attach_clips, segment_events

logger = logging.getLogger(__name__)


class PipelineState(enum.IntEnum):
	LOADED = 0
	NORMALIZED = 1
	PEAKS_FOUND = 2
	PEAKS_FILTERED = 3
	RECONCILED = 4
	SEGMENTED = 5
	CLASSIFIED = 6
	DONE = 7
	REJECTED_POOR_FIT = 8
	REJECTED_INVALID_STATISTICS = 9


TERMINAL_REJECTIONS = (PipelineState.REJECTED_POOR_FIT, PipelineState.REJECTED_INVALID_STATISTICS)


@dataclass
class CandidateSearch:
	"""Everything the peak pipeline produced for one recording, before classification."""

	raw_fit: NormalizationResult
	raw_check: NormalizationResult
	deriv_fit: NormalizationResult
	deriv_check: NormalizationResult
	raw_peaks: PeakSet
	deriv_peaks: PeakSet
	reconciled: PeakSet
	events: List[CandidateEvent]
	stats: Dict[str, int] = field(default_factory=dict)


@dataclass
class DetectionResult:
	fs: float
	n_samples: int
	quality: float
	events: List[ScoredEvent]
	features: np.ndarray
	stats: Dict[str, int]
	state: PipelineState = PipelineState.DONE

	@property
	def n_swd(self) -> int:
		return sum(1 for ev in self.events if ev.is_swd)

	@property
	def empty(self) -> bool:
		return not self.events


class SWDDetector:
	"""Runs the detection pipeline; one instance may serve many recordings in turn."""

	def __init__(self, config: Optional[DetectionConfig] = None):
		self.config = config if config is not None else DetectionConfig()
		self.config.validate()
		self.state = PipelineState.LOADED
		self._deadline: Optional[float] = None

	# ------------------------------------------------------------------
	# state handling
	# ------------------------------------------------------------------
	def _reset(self):
		self.state = PipelineState.LOADED
		if self.config.timeout_sec is not None:
			self._deadline = time.monotonic() + float(self.config.timeout_sec)
		else:
			self._deadline = None

	def _advance(self, new_state: PipelineState):
		if self.state in TERMINAL_REJECTIONS or self.state == PipelineState.DONE:
			raise RuntimeError(f"pipeline already finished in state {self.state.name}")
		if new_state in TERMINAL_REJECTIONS:
			if self.state != PipelineState.NORMALIZED:
				raise RuntimeError(f"cannot reject from state {self.state.name}")
		elif new_state <= self.state:
			raise RuntimeError(f"illegal transition {self.state.name} -> {new_state.name}")
		logger.debug("state %s -> %s", self.state.name, new_state.name)
		self.state = new_state
		if (
			new_state not in TERMINAL_REJECTIONS
			and self._deadline is not None
			and time.monotonic() > self._deadline
		):
			raise DetectionTimeout(self.config.timeout_sec, state=new_state.name)

	def _reject_invalid(self, which: str, scale: float, reason: Optional[str] = None):
		self._advance(PipelineState.REJECTED_INVALID_STATISTICS)
		raise InvalidStatistics(which, scale, reason=reason, state=self.state.name)

	# ------------------------------------------------------------------
	# normalization
	# ------------------------------------------------------------------
	def _fit(self, x: np.ndarray, fs: float, mask: np.ndarray) -> NormalizationResult:
		cfg = self.config
		return fit_noise_model(x, fs, n_bins=cfg.fit_bins, range_sd=cfg.fit_range_sd, mask=mask)

	def _check_unit_scale(self, which: str, check: NormalizationResult):
		if not check.scale > 0:
			self._reject_invalid(which, check.scale)
		deviation = abs(check.scale - 1.0)
		if deviation > self.config.unit_scale_tolerance:
			if self.config.strict_unit_scale:
				self._reject_invalid(which, check.scale, reason=f"standardized scale deviates from 1 by {deviation:.3f}")
			logger.warning("%s: standardized scale is %.4f, expected ~1", which, check.scale)

	def _normalize(self, x: np.ndarray, fs: float, good: np.ndarray):
		cfg = self.config
		raw_fit = self._fit(x, fs, good)
		logger.info("model fit quality %.4f (threshold %.2f)", raw_fit.quality, cfg.fit_quality_threshold)
		self._advance(PipelineState.NORMALIZED)
		if raw_fit.quality < cfg.fit_quality_threshold:
			self._advance(PipelineState.REJECTED_POOR_FIT)
			raise PoorSignalFit(raw_fit.quality, cfg.fit_quality_threshold, state=self.state.name)
		if not raw_fit.scale > 0:
			self._reject_invalid("raw signal", raw_fit.scale)
		z = standardize(x, raw_fit)
		raw_check = self._fit(z, fs, good)

		g = np.gradient(z)
		deriv_fit = self._fit(g, fs, good)
		if not deriv_fit.scale > 0:
			self._reject_invalid("first derivative", deriv_fit.scale)
		gz = standardize(g, deriv_fit)
		deriv_check = self._fit(gz, fs, good)

		self._check_unit_scale("raw signal", raw_check)
		self._check_unit_scale("first derivative", deriv_check)
		return z, gz, raw_fit, raw_check, deriv_fit, deriv_check

	# ------------------------------------------------------------------
	# candidate search
	# ------------------------------------------------------------------
	def find_candidates(self, signal: np.ndarray, fs: float) -> CandidateSearch:
		"""Run stages 1-5; raises PoorSignalFit / InvalidStatistics on rejection."""
		cfg = self.config
		self._reset()
		x = np.asarray(signal, dtype=np.float64).ravel()
		if x.size == 0:
			raise ValueError("signal must be a non-empty 1D array")
		if not fs or fs <= 0:
			raise ValueError("fs must be > 0")
		good = valid_sample_mask(x)
		logger.info("analysing %d samples (%.1fs), %d dropout samples excluded from statistics",
			x.size, x.size / float(fs), int(x.size - np.count_nonzero(good)))

		z, gz, raw_fit, raw_check, deriv_fit, deriv_check = self._normalize(x, fs, good)

		raw_peaks = find_peaks(z, cfg.raw_height_sd * raw_check.scale, cfg.raw_min_distance(fs))
		deriv_peaks = find_peaks(-gz, cfg.deriv_height_sd * deriv_check.scale, cfg.deriv_min_distance(fs))
		self._advance(PipelineState.PEAKS_FOUND)

		lower, upper = cfg.band_bounds(fs)
		raw_band = filter_by_band(raw_peaks, lower, upper)
		deriv_band = filter_by_band(deriv_peaks, lower, upper)
		self._advance(PipelineState.PEAKS_FILTERED)

		reconciled = reconcile_peaks(raw_band, deriv_band.indices, cfg.joint_window(fs))
		self._advance(PipelineState.RECONCILED)

		events = segment_events(reconciled, cfg.event_gap(fs))
		kept, excluded = attach_clips(events, x, cfg.clip_samples(fs))
		self._advance(PipelineState.SEGMENTED)

		stats = {
			"raw_peaks": len(raw_peaks),
			"deriv_peaks": len(deriv_peaks),
			"raw_peaks_in_band": len(raw_band),
			"deriv_peaks_in_band": len(deriv_band),
			"reconciled_peaks": len(reconciled),
			"candidate_events": len(events),
			"edge_excluded": excluded,
		}
		logger.info("peak pipeline: %s", stats)
		if excluded:
			logger.info("dropped %d event(s) closer than %.1fs to the recording edges", excluded, cfg.clip_sec)
		return CandidateSearch(
			raw_fit=raw_fit,
			raw_check=raw_check,
			deriv_fit=deriv_fit,
			deriv_check=deriv_check,
			raw_peaks=raw_peaks,
			deriv_peaks=deriv_peaks,
			reconciled=reconciled,
			events=kept,
			stats=stats,
		)

	def detect(self, signal: np.ndarray, fs: float, classifier) -> DetectionResult:
		"""Full pipeline. ``classifier`` needs ``predict(X) -> (labels, scores)``."""
		search = self.find_candidates(signal, fs)
		if not search.events:
			logger.info("No events found. Check model fit if you expected events.")
		scored, X = classify_events(search.events, classifier, fs, positive_label=self.config.positive_label)
		self._advance(PipelineState.CLASSIFIED)
		self._advance(PipelineState.DONE)
		stats = dict(search.stats)
		stats["scored_events"] = len(scored)
		stats["swd_events"] = sum(1 for ev in scored if ev.is_swd)
		return DetectionResult(
			fs=float(fs),
			n_samples=int(np.asarray(signal).size),
			quality=search.raw_fit.quality,
			events=scored,
			features=X if X.size else np.zeros((0, len(FEATURE_NAMES)), dtype=np.float32),
			stats=stats,
			state=self.state,
		)
