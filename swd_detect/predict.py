"""Single-EDF SWD detection.

Loads one channel of one EDF file, runs the detection pipeline with a trained
event classifier, and writes ``<stem>_swd_events.json`` / ``<stem>_swd_clips.npz``
next to the recording (or to --out_dir). Detection parameters come from the
``detection:`` section of configs/config.yaml.

Exit codes: 0 done (also when no events were found), 2 poor model fit,
3 invalid statistics, 4 recording could not be loaded, 5 timeout.
"""

import argparse
import json
import logging
from typing import Dict, Optional

from .config import DetectionConfig, load_config
from .detector import SWDDetector
from .edf_reader import load_channel
from .errors import DetectionError, RecordingError
from .event_io import save_detection
from .features import FEATURE_NAMES
from .model import load_classifier
from .utils import setup_logger

logger = logging.getLogger(__name__)


def run_recording(
	edf_path: str,
	classifier,
	fs: float,
	channel: int,
	config: Optional[DetectionConfig] = None,
	out_dir: Optional[str] = None,
) -> Dict:
	"""Process one recording end to end and report its outcome.

	Rejections and loader failures are reported, not raised; nothing is
	written for them.
	"""
	outcome = {"edf": edf_path, "channel": channel, "status": "done", "exit_code": 0}
	try:
		signal = load_channel(edf_path, channel, fs)
		result = SWDDetector(config).detect(signal, fs, classifier)
	except (DetectionError, RecordingError) as exc:
		logger.error("%s: %s", edf_path, exc)
		outcome.update(status=type(exc).__name__, exit_code=exc.exit_code, message=str(exc))
		quality = getattr(exc, "quality", None)
		if quality is not None:
			outcome["fit_quality"] = quality
		return outcome

	outcome.update(fit_quality=result.quality, num_events=len(result.events), num_swd=result.n_swd, stats=result.stats)
	if result.empty:
		outcome["status"] = "no_events"
		return outcome
	json_path, npz_path = save_detection(result, edf_path, out_dir=out_dir, channel=channel)
	logger.info("wrote %s and %s", json_path, npz_path)
	outcome.update(events_json=json_path, clips_npz=npz_path)
	return outcome


def main(argv=None):
	parser = argparse.ArgumentParser()
	parser.add_argument("--edf", type=str, required=True)
	parser.add_argument("--classifier", type=str, required=True, help="trained event classifier checkpoint (.pt)")
	parser.add_argument("--fs", type=float, required=True, help="expected sample rate of the channel in Hz")
	parser.add_argument("--channel", type=int, required=True, help="0-based channel index")
	parser.add_argument("--config", type=str, default="configs/config.yaml")
	parser.add_argument("--out_dir", type=str, default=None, help="defaults to the folder of --edf")
	parser.add_argument("--log_file", type=str, default=None)
	args = parser.parse_args(argv)

	setup_logger(args.log_file)
	cfg_all = load_config(args.config)
	config = DetectionConfig.from_dict(cfg_all.get("detection", {}))
	classifier = load_classifier(args.classifier, expected_input_dim=len(FEATURE_NAMES))

	outcome = run_recording(args.edf, classifier, args.fs, args.channel, config=config, out_dir=args.out_dir)
	print(json.dumps({k: v for k, v in outcome.items() if k != "stats"}, indent=2))
	return int(outcome["exit_code"])


if __name__ == "__main__":
	raise SystemExit(main())
