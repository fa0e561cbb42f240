"""Event records produced by segmentation and classification."""

import enum
import math
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np


class EventLabel(str, enum.Enum):
	SWD = "SWD"
	NOT_SWD = "not-SWD"


@dataclass(eq=False)
class CandidateEvent:
	"""A run of reconciled raw-signal peaks hypothesized to be one SWD episode."""

	peak_indices: np.ndarray
	peak_values: np.ndarray
	clip: Optional[np.ndarray] = None

	@property
	def first_peak(self) -> int:
		return int(self.peak_indices[0])

	@property
	def last_peak(self) -> int:
		return int(self.peak_indices[-1])

	@property
	def duration_samples(self) -> int:
		return self.last_peak - self.first_peak

	@property
	def center(self) -> int:
		return int(math.ceil((self.first_peak + self.last_peak) / 2.0))

	@property
	def n_peaks(self) -> int:
		return int(self.peak_indices.size)


@dataclass(eq=False)
class ScoredEvent:
	peak_indices: np.ndarray
	peak_values: np.ndarray
	duration_samples: int
	clip: np.ndarray
	label: EventLabel
	raw_label: object
	confidence: float

	@classmethod
	def from_candidate(cls, event: CandidateEvent, label: EventLabel, raw_label, confidence: float) -> "ScoredEvent":
		if event.clip is None:
			raise ValueError("candidate event has no clip; it did not pass edge exclusion")
		return cls(
			peak_indices=event.peak_indices,
			peak_values=event.peak_values,
			duration_samples=event.duration_samples,
			clip=event.clip,
			label=label,
			raw_label=raw_label,
			confidence=float(confidence),
		)

	@property
	def is_swd(self) -> bool:
		return self.label is EventLabel.SWD

	def to_dict(self, fs: float) -> Dict:
		"""JSON-safe summary; the clip itself goes to the .npz artifact."""
		first = int(self.peak_indices[0])
		last = int(self.peak_indices[-1])
		raw_label = self.raw_label.item() if isinstance(self.raw_label, np.generic) else self.raw_label
		return {
			"first_peak": first,
			"last_peak": last,
			"start_sec": first / float(fs),
			"end_sec": last / float(fs),
			"duration_samples": int(self.duration_samples),
			"duration_sec": int(self.duration_samples) / float(fs),
			"n_peaks": int(self.peak_indices.size),
			"peak_indices": [int(i) for i in self.peak_indices.tolist()],
			"peak_values": [float(v) for v in self.peak_values.tolist()],
			"label": self.label.value,
			"raw_label": raw_label,
			"confidence": float(self.confidence),
		}
