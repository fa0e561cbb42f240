"""Command-line entry points, artifacts and batch outcomes."""
from __future__ import annotations

import json
import os

import numpy as np
import pytest

from conftest import CONFIG_PATH, FixedClassifier
from signal_generators import make_background, make_swd_recording, write_edf_recording
from swd_detect import batch, predict
from swd_detect.event_io import CLIPS_SUFFIX, EVENTS_SUFFIX, load_events, output_paths
from swd_detect.features import FEATURE_NAMES
from swd_detect.model import EventClassifierNet, save_classifier


@pytest.fixture
def classifier_path(tmp_path):
    path = str(tmp_path / "models" / "classifier.pt")
    save_classifier(path, EventClassifierNet(input_dim=len(FEATURE_NAMES)))
    return path


@pytest.fixture
def data_dir(tmp_path):
    d = tmp_path / "data"
    d.mkdir()
    signal, _ = make_swd_recording()
    write_edf_recording(d / "a_swd.edf", [signal])
    write_edf_recording(d / "b_flat.edf", [np.zeros_like(signal)])
    write_edf_recording(d / "c_quiet.edf", [make_background(60.0, 256.0, seed=7)])
    return d


def cli_args(edf, classifier_path, out_dir, channel=0):
    return [
        "--edf", str(edf),
        "--classifier", classifier_path,
        "--fs", "256",
        "--channel", str(channel),
        "--config", str(CONFIG_PATH),
        "--out_dir", str(out_dir),
    ]


def test_output_paths_default_to_recording_folder(tmp_path):
    events, clips = output_paths(str(tmp_path / "rec1.edf"))
    assert events == str(tmp_path / ("rec1" + EVENTS_SUFFIX))
    assert clips == str(tmp_path / ("rec1" + CLIPS_SUFFIX))


def test_run_recording_writes_artifacts(data_dir, tmp_path):
    out = tmp_path / "out"
    outcome = predict.run_recording(str(data_dir / "a_swd.edf"), FixedClassifier(), 256.0, 0, out_dir=str(out))
    assert outcome["status"] == "done"
    assert outcome["exit_code"] == 0
    assert outcome["num_events"] == 1

    saved = load_events(outcome["events_json"])
    assert saved["num_swd"] == 1
    assert saved["events"][0]["label"] == "SWD"
    assert saved["events"][0]["n_peaks"] == 5
    assert saved["events"][0]["confidence"] == pytest.approx(0.9)

    with np.load(outcome["clips_npz"]) as npz:
        assert npz["clips"].shape == (1, 2048)
        assert npz["features"].shape == (1, len(FEATURE_NAMES))
        assert npz["feature_names"].tolist() == FEATURE_NAMES
        assert npz["label"].tolist() == ["SWD"]


def test_no_events_writes_nothing(data_dir, tmp_path):
    out = tmp_path / "out"
    outcome = predict.run_recording(str(data_dir / "c_quiet.edf"), FixedClassifier(), 256.0, 0, out_dir=str(out))
    assert outcome["status"] == "no_events"
    assert outcome["exit_code"] == 0
    assert not out.exists()


def test_cli_success(data_dir, tmp_path, classifier_path, capsys):
    out = tmp_path / "out"
    code = predict.main(cli_args(data_dir / "a_swd.edf", classifier_path, out))
    assert code == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed["status"] == "done"
    assert os.path.isfile(out / ("a_swd" + EVENTS_SUFFIX))
    assert os.path.isfile(out / ("a_swd" + CLIPS_SUFFIX))


def test_cli_poor_fit(data_dir, tmp_path, classifier_path, capsys):
    out = tmp_path / "out"
    code = predict.main(cli_args(data_dir / "b_flat.edf", classifier_path, out))
    assert code == 2
    printed = json.loads(capsys.readouterr().out)
    assert printed["status"] == "PoorSignalFit"
    assert not out.exists()


@pytest.mark.parametrize("edf, channel", [("missing.edf", 0), ("a_swd.edf", 3)])
def test_cli_loader_failures(data_dir, tmp_path, classifier_path, edf, channel, capsys):
    code = predict.main(cli_args(data_dir / edf, classifier_path, tmp_path / "out", channel=channel))
    assert code == 4


def test_run_batch_outcomes(data_dir, tmp_path, classifier_path):
    paths = [str(data_dir / name) for name in ("a_swd.edf", "b_flat.edf", "c_quiet.edf")]
    outcomes = batch.run_batch(paths, classifier_path, 256.0, 0, out_dir=str(tmp_path / "out"), progress=False)
    assert [o["edf"] for o in outcomes] == paths
    assert [o["status"] for o in outcomes] == ["done", "PoorSignalFit", "no_events"]
    assert [o["exit_code"] for o in outcomes] == [0, 2, 0]


def test_run_batch_process_pool(data_dir, tmp_path, classifier_path):
    names = ("c_quiet.edf", "a_swd.edf", "missing.edf", "b_flat.edf")
    paths = [str(data_dir / name) for name in names]
    outcomes = batch.run_batch(paths, classifier_path, 256.0, 0, out_dir=str(tmp_path / "out"), workers=2, progress=False)
    assert [o["edf"] for o in outcomes] == paths
    assert [o["status"] for o in outcomes] == ["no_events", "done", "RecordingNotFoundError", "PoorSignalFit"]
    assert [o["exit_code"] for o in outcomes] == [0, 0, 4, 2]
    assert os.path.isfile(outcomes[1]["events_json"])


def test_unexpected_failure_does_not_stop_batch(data_dir, tmp_path, classifier_path, monkeypatch):
    real_run = batch.run_recording

    def flaky_run(edf_path, *args, **kwargs):
        if edf_path.endswith("a_swd.edf"):
            raise ZeroDivisionError("broken recording")
        return real_run(edf_path, *args, **kwargs)

    monkeypatch.setattr(batch, "run_recording", flaky_run)
    paths = [str(data_dir / name) for name in ("a_swd.edf", "b_flat.edf", "c_quiet.edf")]
    outcomes = batch.run_batch(paths, classifier_path, 256.0, 0, out_dir=str(tmp_path / "out"), progress=False)
    assert [o["status"] for o in outcomes] == ["ZeroDivisionError", "PoorSignalFit", "no_events"]
    assert outcomes[0]["exit_code"] == 1
    assert outcomes[0]["message"] == "broken recording"


def test_batch_cli_writes_summary(data_dir, tmp_path, classifier_path, capsys):
    summary = tmp_path / "summary.json"
    code = batch.main([
        "--data_dir", str(data_dir),
        "--classifier", classifier_path,
        "--fs", "256",
        "--channel", "0",
        "--config", str(CONFIG_PATH),
        "--out_dir", str(tmp_path / "out"),
        "--summary", str(summary),
        "--progress", "none",
    ])
    assert code == 0
    saved = json.loads(summary.read_text(encoding="utf-8"))
    assert saved["counts"] == {"done": 1, "PoorSignalFit": 1, "no_events": 1}
    assert len(saved["recordings"]) == 3
