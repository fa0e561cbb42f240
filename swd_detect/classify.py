"""Classification stage: features -> classifier -> signed confidence per event."""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .events import CandidateEvent, EventLabel, ScoredEvent
from .features import FEATURE_NAMES, extract_event_features

logger = logging.getLogger(__name__)


def _score_column(classes: Optional[Sequence], label, fallback: int) -> int:
	if classes is not None:
		values = list(classes)
		if label in values:
			return values.index(label)
	return fallback


def signed_confidence(
	labels: np.ndarray,
	scores: np.ndarray,
	positive_label=1,
	classes: Optional[Sequence] = None,
) -> np.ndarray:
	"""Collapse two-sided classifier scores into one signed scalar per event.

	Positive predictions take the positive-class score, everything else the
	negated score of the predicted (negative) class. Magnitudes are used so
	that the sign always follows the predicted class, whatever the score scale.
	Without ``classes`` the positive class is taken to be column 0 and the
	negative class column 1.
	"""
	labels = np.asarray(labels).ravel()
	scores = np.asarray(scores, dtype=np.float64)
	if scores.ndim == 1:
		scores = scores[:, None]
	if scores.shape[0] != labels.size:
		raise ValueError(f"{labels.size} labels but {scores.shape[0]} score rows")
	pos_col = _score_column(classes, positive_label, 0)
	conf = np.zeros(labels.size, dtype=np.float64)
	for i, lab in enumerate(labels.tolist()):
		if lab == positive_label:
			conf[i] = abs(scores[i, pos_col])
		else:
			neg_col = _score_column(classes, lab, 1 if scores.shape[1] > 1 else 0)
			conf[i] = -abs(scores[i, neg_col])
	return conf


def classify_events(
	events: Sequence[CandidateEvent],
	classifier,
	fs: float,
	positive_label=1,
) -> Tuple[List[ScoredEvent], np.ndarray]:
	"""Score clipped candidate events. Returns (scored events, feature matrix)."""
	if not events:
		return [], np.zeros((0, len(FEATURE_NAMES)), dtype=np.float32)
	X = extract_event_features(events, fs)
	labels, scores = classifier.predict(X)
	labels = np.asarray(labels).ravel()
	if labels.size != len(events):
		raise RuntimeError(f"classifier returned {labels.size} labels for {len(events)} events")
	conf = signed_confidence(labels, scores, positive_label=positive_label, classes=getattr(classifier, "classes", None))
	scored: List[ScoredEvent] = []
	for ev, lab, c in zip(events, labels.tolist(), conf.tolist()):
		label = EventLabel.SWD if lab == positive_label else EventLabel.NOT_SWD
		scored.append(ScoredEvent.from_candidate(ev, label=label, raw_label=lab, confidence=c))
	n_swd = sum(1 for s in scored if s.is_swd)
	logger.info("classified %d candidate events: %d SWD, %d not-SWD", len(scored), n_swd, len(scored) - n_swd)
	return scored, X
