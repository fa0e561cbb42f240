"""Utility helpers: file discovery, JSON I/O, logging setup."""

import json
import logging
import os
from typing import List, Optional

LOGGER_NAME = "swd_detect"


def list_recordings(data_dir: str, ext: str = ".edf") -> List[str]:
	"""扫描目录，返回按文件名排序的记录路径。"""
	paths: List[str] = []
	for name in sorted(os.listdir(data_dir)):
		base, e = os.path.splitext(name)
		path = os.path.join(data_dir, name)
		if e.lower() == ext and os.path.isfile(path):
			paths.append(path)
	return paths


def recording_stem(path: str) -> str:
	return os.path.splitext(os.path.basename(path))[0]


def ensure_dir(path: str) -> None:
	os.makedirs(path, exist_ok=True)


def save_json(obj, path: str) -> None:
	ensure_dir(os.path.dirname(path) or ".")
	with open(path, "w", encoding="utf-8") as f:
		json.dump(obj, f, ensure_ascii=False, indent=2)


def load_json(path: str):
	with open(path, "r", encoding="utf-8") as f:
		return json.load(f)


def setup_logger(log_path: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
	logger = logging.getLogger(LOGGER_NAME)
	logger.setLevel(level)
	logger.handlers.clear()
	fmt = logging.Formatter("%(asctime)s %(levelname)s: %(message)s")
	ch = logging.StreamHandler()
	ch.setFormatter(fmt)
	logger.addHandler(ch)
	if log_path:
		ensure_dir(os.path.dirname(log_path) or ".")
		fh = logging.FileHandler(log_path, encoding="utf-8")
		fh.setFormatter(fmt)
		logger.addHandler(fh)
	return logger
