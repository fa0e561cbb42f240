"""Detection parameters and YAML config loading.

All frequency thresholds are empirically tuned values expressed in Hz; the
sample-domain quantities the pipeline needs are derived from them per sample
rate with ``floor(fs / freq)``.
"""

import math
import os
from dataclasses import asdict, dataclass, fields
from typing import Dict, Optional, Tuple

import yaml


def load_config(path: str) -> Dict:
	if not path or not os.path.exists(path):
		return {}
	with open(path, "r", encoding="utf-8") as f:
		return yaml.safe_load(f) or {}


def _samples_for(fs: float, freq_hz: float) -> int:
	return int(math.floor(float(fs) / float(freq_hz)))


@dataclass
class DetectionConfig:
	# normalization / quality gate
	fit_quality_threshold: float = 0.85
	fit_bins: int = 200
	fit_range_sd: float = 5.0
	strict_unit_scale: bool = False
	unit_scale_tolerance: float = 0.25
	# peak detection
	raw_height_sd: float = 3.0
	deriv_height_sd: float = 3.0
	raw_max_freq_hz: float = 11.13
	deriv_max_freq_hz: float = 21.33
	# band filter / reconciliation / segmentation
	band_min_freq_hz: float = 3.16
	joint_peak_freq_hz: float = 17.0
	event_gap_freq_hz: float = 10.24
	clip_sec: float = 8.0
	# classification
	positive_label: int = 1
	timeout_sec: Optional[float] = None

	@classmethod
	def from_dict(cls, values: Optional[Dict]) -> "DetectionConfig":
		cfg = cls()
		if values:
			cfg.update(**values)
		return cfg

	@classmethod
	def from_yaml(cls, path: str) -> "DetectionConfig":
		return cls.from_dict(load_config(path).get("detection", {}))

	def update(self, **kwargs) -> "DetectionConfig":
		known = {f.name for f in fields(self)}
		for key, value in kwargs.items():
			if key not in known:
				raise ValueError(f"Invalid detection parameter: {key}")
			setattr(self, key, value)
		self.validate()
		return self

	def to_dict(self) -> Dict:
		return asdict(self)

	def validate(self) -> None:
		if not 0.0 <= self.fit_quality_threshold <= 1.0:
			raise ValueError("fit_quality_threshold must be within [0, 1]")
		if int(self.fit_bins) < 10:
			raise ValueError("fit_bins must be >= 10")
		if self.fit_range_sd <= 0 or self.unit_scale_tolerance < 0:
			raise ValueError("fit_range_sd must be > 0 and unit_scale_tolerance >= 0")
		if self.raw_height_sd <= 0 or self.deriv_height_sd <= 0:
			raise ValueError("peak height multipliers must be > 0")
		for name in ("raw_max_freq_hz", "deriv_max_freq_hz", "band_min_freq_hz", "joint_peak_freq_hz", "event_gap_freq_hz"):
			if getattr(self, name) <= 0:
				raise ValueError(f"{name} must be > 0")
		if self.band_min_freq_hz >= self.raw_max_freq_hz:
			raise ValueError("band_min_freq_hz must be < raw_max_freq_hz")
		if self.clip_sec <= 0:
			raise ValueError("clip_sec must be > 0")
		if self.timeout_sec is not None and self.timeout_sec < 0:
			raise ValueError("timeout_sec must be >= 0")

	# 采样点域的派生量
	def raw_min_distance(self, fs: float) -> int:
		return _samples_for(fs, self.raw_max_freq_hz)

	def deriv_min_distance(self, fs: float) -> int:
		return _samples_for(fs, self.deriv_max_freq_hz)

	def band_bounds(self, fs: float) -> Tuple[int, int]:
		"""(lower, upper) inter-peak gaps in samples; lower is the raw min distance."""
		return self.raw_min_distance(fs), _samples_for(fs, self.band_min_freq_hz)

	def joint_window(self, fs: float) -> int:
		return _samples_for(fs, self.joint_peak_freq_hz)

	def event_gap(self, fs: float) -> int:
		return self.band_bounds(fs)[1] + _samples_for(fs, self.event_gap_freq_hz)

	def clip_samples(self, fs: float) -> int:
		return int(round(self.clip_sec * float(fs)))
