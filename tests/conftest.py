from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

TESTS_STR = str(Path(__file__).resolve().parent)
if TESTS_STR not in sys.path:
    sys.path.insert(0, TESTS_STR)

from signal_generators import make_swd_recording  # noqa: E402

CONFIG_PATH = ROOT / "configs" / "config.yaml"


class FixedClassifier:
    """Stand-in for a trained classifier: every event gets the same answer."""

    def __init__(self, label=1, scores=(0.9, 0.1), classes=None):
        self.label = label
        self.scores = scores
        if classes is not None:
            self.classes = list(classes)
        self.calls = 0

    def predict(self, X):
        self.calls += 1
        n = np.asarray(X).shape[0]
        return np.full(n, self.label), np.tile(np.asarray(self.scores, dtype=float), (n, 1))


@pytest.fixture
def fs() -> float:
    return 256.0


@pytest.fixture
def swd_recording(fs):
    return make_swd_recording(sample_rate=fs)


@pytest.fixture
def fixed_classifier():
    return FixedClassifier()


@pytest.fixture
def config_path() -> Path:
    return CONFIG_PATH
