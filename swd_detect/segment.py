"""Group reconciled peaks into candidate events and cut fixed-width clips."""

import logging
from typing import List, Tuple

import numpy as np

from .events import CandidateEvent
from .peaks import PeakSet

logger = logging.getLogger(__name__)


def segment_events(peaks: PeakSet, gap_samples: int) -> List[CandidateEvent]:
	"""Split the peak stream wherever two successive peaks are more than ``gap_samples`` apart."""
	if len(peaks) == 0:
		return []
	gaps = np.diff(peaks.indices)
	breaks = (np.flatnonzero(gaps > gap_samples) + 1).tolist()
	bounds = [0] + breaks + [len(peaks)]
	events: List[CandidateEvent] = []
	for s, e in zip(bounds[:-1], bounds[1:]):
		events.append(CandidateEvent(
			peak_indices=peaks.indices[s:e].copy(),
			peak_values=peaks.values[s:e].copy(),
		))
	return events


def clip_bounds(event: CandidateEvent, clip_len: int) -> Tuple[int, int]:
	start = event.center - clip_len // 2
	return start, start + clip_len


def is_clear_of_edges(event: CandidateEvent, n_samples: int, clip_len: int) -> bool:
	"""First peak farther than ``clip_len`` from both ends and the whole clip inside the record."""
	first = event.first_peak
	if not (clip_len < first < n_samples - clip_len):
		return False
	start, end = clip_bounds(event, clip_len)
	return start >= 0 and end <= n_samples


def attach_clips(
	events: List[CandidateEvent],
	signal: np.ndarray,
	clip_len: int,
) -> Tuple[List[CandidateEvent], int]:
	"""Drop events too close to the recording edges and give the rest their clip.

	Clips are copied out of ``signal`` as given (the caller passes the
	un-normalized recording). Returns ``(kept, n_excluded)``.
	"""
	x = np.asarray(signal)
	kept: List[CandidateEvent] = []
	excluded = 0
	for ev in events:
		if not is_clear_of_edges(ev, x.size, clip_len):
			excluded += 1
			logger.debug("edge exclusion: event at samples %d-%d", ev.first_peak, ev.last_peak)
			continue
		start, end = clip_bounds(ev, clip_len)
		ev.clip = np.array(x[start:end], dtype=np.float64)
		kept.append(ev)
	return kept, excluded
