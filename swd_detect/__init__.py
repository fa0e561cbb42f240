"""Spike-and-wave discharge (SWD) detection for single-channel EEG.

This package contains:
- signal quality and standardization: `normalize`
- candidate search: `peaks`, `segment`, `detector`
- classification: `features`, `model`, `classify`
- I/O and entry points: `edf_reader`, `event_io`, `predict`, `batch`

Conventions:
- detection parameters live in the `detection:` section of `configs/config.yaml`;
- samples that are exactly 0 are recording dropouts and never enter statistics;
- a recording that fails the fit-quality gate produces no output files.
"""
__all__ = [
	'batch',
	'classify',
	'config',
	'detector',
	'edf_reader',
	'errors',
	'event_io',
	'events',
	'features',
	'model',
	'normalize',
	'peaks',
	'predict',
	'segment',
	'utils']
