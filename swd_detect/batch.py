"""Run SWD detection over every EDF in a folder.

Recordings are independent, so they are processed in a process pool. Each
worker loads the classifier once and only ever reads it. A JSON summary with
one outcome per recording is written at the end.
"""

import argparse
import json
import logging
import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Dict, List, Optional

from tqdm import tqdm

from .config import DetectionConfig, load_config
from .features import FEATURE_NAMES
from .model import load_classifier
from .predict import run_recording
from .utils import list_recordings, save_json, setup_logger

logger = logging.getLogger(__name__)

_worker_classifier = None


def _init_worker(classifier_path: str, log_path: Optional[str]):
	global _worker_classifier
	setup_logger(log_path)
	_worker_classifier = load_classifier(classifier_path, expected_input_dim=len(FEATURE_NAMES))


def _process(edf_path: str, fs: float, channel: int, config_dict: Dict, out_dir: Optional[str]) -> Dict:
	config = DetectionConfig.from_dict(config_dict)
	try:
		return run_recording(edf_path, _worker_classifier, fs, channel, config=config, out_dir=out_dir)
	except Exception as exc:
		# 单个文件失败不影响整批汇总
		logger.exception("%s: unexpected failure", edf_path)
		return {"edf": edf_path, "channel": channel, "status": type(exc).__name__, "exit_code": 1, "message": str(exc)}


def run_batch(
	edf_paths: List[str],
	classifier_path: str,
	fs: float,
	channel: int,
	config: Optional[DetectionConfig] = None,
	out_dir: Optional[str] = None,
	workers: int = 1,
	log_path: Optional[str] = None,
	progress: bool = True,
) -> List[Dict]:
	config = config if config is not None else DetectionConfig()
	config_dict = config.to_dict()
	outcomes: List[Dict] = []
	if workers <= 1:
		_init_worker(classifier_path, log_path)
		for path in tqdm(edf_paths, desc="recordings", disable=not progress):
			outcomes.append(_process(path, fs, channel, config_dict, out_dir))
		return outcomes
	with ProcessPoolExecutor(max_workers=workers, initializer=_init_worker, initargs=(classifier_path, log_path)) as ex:
		futures = {ex.submit(_process, p, fs, channel, config_dict, out_dir): p for p in edf_paths}
		for fut in tqdm(as_completed(futures), total=len(futures), desc="recordings", disable=not progress):
			outcomes.append(fut.result())
	order = {p: i for i, p in enumerate(edf_paths)}
	outcomes.sort(key=lambda o: order[o["edf"]])
	return outcomes


def main(argv=None):
	parser = argparse.ArgumentParser()
	parser.add_argument("--data_dir", type=str, required=True)
	parser.add_argument("--classifier", type=str, required=True)
	parser.add_argument("--fs", type=float, required=True)
	parser.add_argument("--channel", type=int, required=True, help="0-based channel index")
	parser.add_argument("--config", type=str, default="configs/config.yaml")
	parser.add_argument("--out_dir", type=str, default=None)
	parser.add_argument("--workers", type=int, default=1)
	parser.add_argument("--summary", type=str, default=None, help="defaults to <data_dir>/swd_batch_summary.json")
	parser.add_argument("--log_file", type=str, default=None)
	parser.add_argument("--progress", type=str, choices=["none", "bar"], default="bar")
	args = parser.parse_args(argv)

	setup_logger(args.log_file)
	cfg_all = load_config(args.config)
	config = DetectionConfig.from_dict(cfg_all.get("detection", {}))
	edf_paths = list_recordings(args.data_dir)
	logger.info("found %d recording(s) in %s", len(edf_paths), args.data_dir)

	outcomes = run_batch(
		edf_paths,
		args.classifier,
		args.fs,
		args.channel,
		config=config,
		out_dir=args.out_dir,
		workers=args.workers,
		log_path=args.log_file,
		progress=args.progress == "bar",
	)
	counts: Dict[str, int] = {}
	for o in outcomes:
		counts[o["status"]] = counts.get(o["status"], 0) + 1
	summary_path = args.summary or os.path.join(args.data_dir, "swd_batch_summary.json")
	save_json({"config": config.to_dict(), "counts": counts, "recordings": outcomes}, summary_path)
	print(json.dumps(counts, indent=2))
	return 0


if __name__ == "__main__":
	raise SystemExit(main())
