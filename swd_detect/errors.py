"""Exceptions raised by the detection pipeline and the recording loader."""

from typing import Optional


class DetectionError(RuntimeError):
	"""A recording was rejected; nothing is written for it."""

	exit_code = 1

	def __init__(self, message: str, state=None):
		super().__init__(message)
		self.state = state


class PoorSignalFit(DetectionError):
	exit_code = 2

	def __init__(self, quality: float, threshold: float, state=None):
		super().__init__(
			f"Did not process data. Model fit for signal is poor "
			f"(quality={quality:.4f} < {threshold:.4f}). Check signal for quality issues.",
			state=state,
		)
		self.quality = float(quality)
		self.threshold = float(threshold)


class InvalidStatistics(DetectionError):
	exit_code = 3

	def __init__(self, which: str, scale: float, reason: Optional[str] = None, state=None):
		msg = reason or "fitted standard deviation is not positive"
		super().__init__(f"Did not process data. {which}: {msg} (scale={scale!r}).", state=state)
		self.which = which
		self.scale = float(scale)


class DetectionTimeout(DetectionError):
	exit_code = 5

	def __init__(self, timeout_sec: float, state=None):
		super().__init__(f"Recording exceeded the {timeout_sec:g}s time limit (at {state}).", state=state)
		self.timeout_sec = float(timeout_sec)


class RecordingError(ValueError):
	"""Base class for loader failures."""

	exit_code = 4


class RecordingNotFoundError(RecordingError, FileNotFoundError):
	pass


class ChannelOutOfRangeError(RecordingError):
	pass


class RecordingFormatError(RecordingError):
	pass


class SampleRateMismatchError(RecordingError):
	pass
