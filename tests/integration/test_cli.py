import csv
import json
import os
import subprocess
import sys
from pathlib import Path

import numpy as np
import pytest
import yaml
from PIL import Image

from cli.main import main, run_cli


def _write_split(path, rows=20, seed=0):
    # 2x2 "images": class 0 is dark on the left, class 1 dark on the right
    rng = np.random.default_rng(seed)
    lines = []
    for idx in range(rows):
        label = idx % 2
        pixels = rng.uniform(0, 40, size=4)
        if label == 0:
            pixels[[0, 2]] += 200
        else:
            pixels[[1, 3]] += 200
        lines.append(",".join([str(label)] + [f"{p:.1f}" for p in pixels]))
    path.write_text("\n".join(lines) + "\n")
    return path


def _write_config(path, epochs=3, resume=False):
    config = {
        "network": {"architecture": [4, 3, 2], "activation": "sigmoid"},
        "training": {"learning_rate": 0.5, "epochs": epochs, "resume": resume, "seed": 0},
    }
    path.write_text(yaml.safe_dump(config))
    return path


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _write_split(tmp_path / "train.csv", seed=0)
    _write_split(tmp_path / "test.csv", rows=10, seed=1)
    _write_config(tmp_path / "net.yaml")
    return tmp_path


def test_cli_train_test_predict(workspace, capsys):
    summary = run_cli(
        [
            "--train",
            "--test",
            "--config",
            "net.yaml",
            "--traindata",
            "train.csv",
            "--testdata",
            "test.csv",
            "--scale",
            "--run-dir",
            "runs/demo",
            "--enable-plots",
            "--quiet",
        ]
    )
    manifest = Path("model/manifest.json")
    assert manifest.exists()
    assert Path("model/manifest.weights.npz").exists()
    assert summary.epochs_completed == 3
    assert 0.0 <= summary.accuracy <= 1.0

    payload = json.loads(manifest.read_text())
    assert payload["architecture"] == [4, 3, 2]
    assert payload["epochs_completed"] == 3
    assert payload["hyperparameters"]["epochs"] == 0

    records = [json.loads(line) for line in Path("runs/demo/metrics.jsonl").read_text().splitlines()]
    assert [r["epoch"] for r in records] == [1, 2, 3]
    assert all("accuracy" in r for r in records)
    assert records[0]["architecture"] == [4, 3, 2]
    assert records[0]["learning_rate"] == 0.5
    with Path("runs/demo/metrics.csv").open() as handle:
        assert len(list(csv.DictReader(handle))) == 3
    assert Path("runs/demo/training.png").exists()

    out = capsys.readouterr().out
    assert "=== nnclassify run ===" in out
    assert "Neural net accuracy" in out

    # A second invocation classifies from the saved checkpoint only.
    summary = run_cli(["--test", "--testdata", "test.csv", "--sample", "3", "--quiet"])
    assert 0.0 <= summary.accuracy <= 1.0
    assert summary.sample_prediction.shape == (2,)
    out = capsys.readouterr().out
    assert "For known value(label) of the sample, 1" in out

    Image.fromarray(np.array([[0, 255], [0, 255]], dtype=np.uint8)).save("digit.png")
    summary = run_cli(["--predict", "digit.png", "--show-image", "--quiet"])
    assert summary.prediction.shape == (2,)
    assert summary.predicted_label in (0, 1)
    out = capsys.readouterr().out
    assert "\x1b]1337;File=inline=1:" in out
    assert f"Predicted digit: {summary.predicted_label}" in out


def test_cli_resume_continues_epoch_count(workspace):
    main(["--train", "--config", "net.yaml", "--traindata", "train.csv", "--quiet"])
    _write_config(Path("resume.yaml"), epochs=2, resume=True)
    summary = run_cli(
        ["--train", "--config", "resume.yaml", "--traindata", "train.csv", "--quiet"]
    )
    assert summary.epochs_completed == 5


def test_cli_resume_without_config_runs_remaining_epochs(workspace):
    _write_config(Path("net.yaml"), epochs=2, resume=True)
    main(["--train", "--config", "net.yaml", "--traindata", "train.csv", "--quiet"])

    # simulate a run that stopped with one epoch left
    manifest = Path("model/manifest.json")
    payload = json.loads(manifest.read_text())
    payload["hyperparameters"]["epochs"] = 1
    manifest.write_text(json.dumps(payload))
    summary = run_cli(["--train", "--traindata", "train.csv", "--quiet"])
    assert summary.epochs_completed == 3

    # every epoch was consumed, so there is nothing left to resume
    with pytest.raises(SystemExit) as excinfo:
        main(["--train", "--traindata", "train.csv", "--quiet"])
    assert excinfo.value.code == 1


def test_cli_welcome_banner(workspace, capsys):
    main(["--train", "--config", "net.yaml", "--traindata", "train.csv"])
    assert "recognizes handwritten numbers" in capsys.readouterr().out


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["--train"],
        ["--test"],
        ["--sample", "0"],
        ["--predict", "digit.png"],
        ["--test", "--testdata", "test.csv"],
        ["--train", "--traindata", "train.csv"],
        ["--train", "--config", "net.yaml", "--traindata", "missing.csv"],
        ["--train", "--config", "net.yaml", "--traindata", "train.csv", "--no-labeled"],
    ],
)
def test_cli_failures_exit_nonzero(workspace, argv, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(argv + ["--quiet"])
    assert excinfo.value.code == 1
    assert capsys.readouterr().err.strip()


def test_cli_rejects_mismatched_checkpoint(workspace):
    main(["--train", "--config", "net.yaml", "--traindata", "train.csv", "--quiet"])
    Path("bad.yaml").write_text(
        yaml.safe_dump(
            {
                "network": {"architecture": [4, 5, 2]},
                "training": {"learning_rate": 0.5, "epochs": 1, "resume": True},
            }
        )
    )
    with pytest.raises(SystemExit) as excinfo:
        main(["--train", "--config", "bad.yaml", "--traindata", "train.csv", "--quiet"])
    assert excinfo.value.code == 1


@pytest.mark.parametrize("index", ["10", "99", "-1"])
def test_sample_index_out_of_range_is_reported(workspace, capsys, index):
    main(["--train", "--config", "net.yaml", "--traindata", "train.csv", "--quiet"])
    capsys.readouterr()
    with pytest.raises(SystemExit) as excinfo:
        main(["--test", "--testdata", "test.csv", "--sample", index, "--quiet"])
    assert excinfo.value.code == 1
    assert "10 rows" in capsys.readouterr().err


def test_main_returns_none_for_console_script(workspace):
    assert main(["--train", "--config", "net.yaml", "--traindata", "train.csv", "--quiet"]) is None


def test_entry_point_exits_zero_on_success(workspace):
    root = Path(__file__).resolve().parents[2]
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(root), env.get("PYTHONPATH")]))
    args = ["--train", "--config", "net.yaml", "--traindata", "train.csv", "--quiet"]
    completed = subprocess.run(
        [sys.executable, "-m", "cli.main", *args],
        cwd=workspace,
        env=env,
        capture_output=True,
        text=True,
    )
    assert completed.returncode == 0, completed.stderr
    assert "RunSummary" not in completed.stderr
    assert (workspace / "model" / "manifest.json").exists()

    failed = subprocess.run(
        [sys.executable, "-m", "cli.main", "--quiet"],
        cwd=workspace,
        env=env,
        capture_output=True,
        text=True,
    )
    assert failed.returncode == 1
