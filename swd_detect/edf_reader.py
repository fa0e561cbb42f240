"""EDF I/O for single-channel analysis.

Reads one channel as float64 without filtering or re-referencing: exact-zero
samples mark recording dropouts and must stay exactly zero.
"""

import os
from typing import List, Tuple

import numpy as np
import pyedflib

from .errors import (
	ChannelOutOfRangeError,
	RecordingFormatError,
	RecordingNotFoundError,
	SampleRateMismatchError,
)


def _open(filepath: str) -> pyedflib.EdfReader:
	if not os.path.isfile(filepath):
		raise RecordingNotFoundError(f"recording not found: {filepath}")
	try:
		return pyedflib.EdfReader(filepath)
	except OSError as exc:
		raise RecordingFormatError(f"cannot read {filepath} as EDF: {exc}") from exc


def list_channels(filepath: str) -> List[Tuple[str, float]]:
	"""(label, sample rate) of every signal in the file."""
	with _open(filepath) as r:
		return [(r.getLabel(i), float(r.getSampleFrequency(i))) for i in range(r.signals_in_file)]


def load_channel(filepath: str, channel: int, fs: float, tolerance_hz: float = 1e-6) -> np.ndarray:
	"""读取单个通道，并校验采样率与调用方给定的 fs 一致。

	``channel`` is 0-based.
	"""
	with _open(filepath) as r:
		n_sig = r.signals_in_file
		if not 0 <= int(channel) < n_sig:
			raise ChannelOutOfRangeError(f"channel {channel} out of range: {filepath} has {n_sig} signal(s)")
		file_fs = float(r.getSampleFrequency(int(channel)))
		if abs(file_fs - float(fs)) > tolerance_hz:
			raise SampleRateMismatchError(
				f"{filepath} channel {channel} ({r.getLabel(int(channel))}) is sampled at {file_fs:g} Hz, expected {float(fs):g} Hz"
			)
		x = r.readSignal(int(channel)).astype(np.float64)
	return x
