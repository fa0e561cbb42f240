"""Writing and reading detection results.

For a recording ``<dir>/<stem>.edf`` two files are written to the output
folder (the recording's folder by default):

- ``<stem>_swd_events.json``: run metadata, stage counts and one record per
  scored event (location, duration, peaks, label, signed confidence);
- ``<stem>_swd_clips.npz``: event clips [N, L] and the feature matrix [N, F].
"""

import os
from typing import Dict, Optional, Tuple

import numpy as np

from .features import FEATURE_NAMES
from .utils import ensure_dir, load_json, recording_stem, save_json

EVENTS_SUFFIX = "_swd_events.json"
CLIPS_SUFFIX = "_swd_clips.npz"


def output_paths(recording_path: str, out_dir: Optional[str] = None) -> Tuple[str, str]:
	folder = out_dir or os.path.dirname(os.path.abspath(recording_path))
	stem = recording_stem(recording_path)
	return os.path.join(folder, stem + EVENTS_SUFFIX), os.path.join(folder, stem + CLIPS_SUFFIX)


def summarize(result, recording_path: str, channel: Optional[int] = None) -> Dict:
	return {
		"recording": recording_path,
		"channel": channel,
		"fs": result.fs,
		"n_samples": result.n_samples,
		"fit_quality": result.quality,
		"stats": dict(result.stats),
		"num_events": len(result.events),
		"num_swd": result.n_swd,
		"events": [ev.to_dict(result.fs) for ev in result.events],
	}


def save_detection(result, recording_path: str, out_dir: Optional[str] = None, channel: Optional[int] = None) -> Tuple[str, str]:
	"""Write both artifacts; returns their paths."""
	json_path, npz_path = output_paths(recording_path, out_dir)
	ensure_dir(os.path.dirname(json_path))
	save_json(summarize(result, recording_path, channel), json_path)
	if result.events:
		clips = np.stack([ev.clip for ev in result.events]).astype(np.float32)
	else:
		clips = np.zeros((0, 0), dtype=np.float32)
	np.savez_compressed(
		npz_path,
		clips=clips,
		features=np.asarray(result.features, dtype=np.float32),
		feature_names=np.asarray(FEATURE_NAMES),
		confidence=np.asarray([ev.confidence for ev in result.events], dtype=np.float64),
		label=np.asarray([ev.label.value for ev in result.events]),
	)
	return json_path, npz_path


def load_events(json_path: str) -> Dict:
	return load_json(json_path)
