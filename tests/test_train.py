import os
import sys

import pandas as pd
import pytest
import torch

from models import FeedforwardNetwork, LogisticRegression
from models_rnn import GRU, LSTM, SimpleRNN
from train import (MODEL_REGISTRY, build_model, evaluate_classifier, evaluate_regressor,
                   make_separable_dataset, plot_learning_curves, plot_predictions, timed_fit)

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(ROOT, "train_exp"))

import price  # noqa: E402
import stroke  # noqa: E402


# ---------- registry ----------

@pytest.mark.parametrize("kind,cls,kwargs", [
    ("linear", LogisticRegression, dict(n_features=5)),
    ("ffnn", FeedforwardNetwork, dict(input_size=5, hidden_size=4, verbose=False)),
    ("rnn", SimpleRNN, dict(input_size=1, hidden_size=4, verbose=False)),
    ("gru", GRU, dict(input_size=1, hidden_size=4, learning_rate=0.01, verbose=False)),
    ("lstm", LSTM, dict(input_size=1, hidden_size=4, learning_rate=0.01, verbose=False)),
])
def test_build_model(kind, cls, kwargs):
    assert isinstance(build_model(kind, **kwargs), cls)


def test_registry_covers_all_variants():
    assert sorted(MODEL_REGISTRY) == ["ffnn", "gru", "linear", "lstm", "rnn"]


def test_unknown_kind():
    with pytest.raises(ValueError, match="transformer"):
        build_model("transformer")


# ---------- evaluation helpers ----------

def test_evaluate_classifier_keys_and_ranges():
    X, y = make_separable_dataset(n=80, seed=0)
    model = FeedforwardNetwork(2, 4, learning_rate=0.1, epochs=200, seed=0, verbose=False)
    history, seconds = timed_fit(model.fit, X, y)
    assert len(history) == 200 and seconds >= 0

    res = evaluate_classifier(model, X, y.to(torch.uint8))
    for key in ("accuracy", "precision", "recall", "f1"):
        assert 0.0 <= res[key] <= 1.0
    assert res["y_pred"].shape == (80,)
    assert res["y_proba"].shape == (80,)


def test_evaluate_regressor(sequences):
    X, y = sequences
    model = LSTM(1, 4, 0.01, seed=0, verbose=False)
    value, y_pred = evaluate_regressor(model, X, y)
    assert y_pred.shape == (16,)
    assert value == pytest.approx(float(((y_pred - y) ** 2).mean()))


def test_plots_are_written(tmp_path):
    p1 = plot_learning_curves("t", [0.7, 0.5, 0.4], "bce", "c.png", outdir=str(tmp_path))
    p2 = plot_predictions("t", [1.0, 2.0], [1.1, 1.9], "p.png", outdir=str(tmp_path))
    assert os.path.basename(p1) == "c_bce.png"
    assert os.path.exists(p1) and os.path.exists(p2)


# ---------- experiment scripts ----------

@pytest.mark.parametrize("model", ["logreg", "nn", "rnn"])
def test_stroke_script(stroke_csv, tmp_path, capsys, model):
    code = stroke.main(["--model", model, "--data", stroke_csv, "--epochs", "50",
                        "--quiet", "--plots", str(tmp_path)])
    out = capsys.readouterr().out
    assert code == 0
    assert "Train set: 96 samples" in out
    assert "Test set:  24 samples" in out
    assert "F1-Score:" in out
    assert os.path.exists(tmp_path / f"stroke_{model}_bce.png")


@pytest.mark.parametrize("model, epochs, hidden", [("logreg", 2000, None), ("nn", 1000, 10),
                                                   ("rnn", 1800, 32)])
def test_stroke_overrides_fall_back_only_when_omitted(model, epochs, hidden):
    built = stroke.build_stroke_model(stroke.parse_args(["--model", model]), 5)
    assert built.epochs == epochs
    if hidden is not None:
        assert built.hidden_size == hidden

    built = stroke.build_stroke_model(
        stroke.parse_args(["--model", model, "--epochs", "0", "--hidden", "3"]), 5)
    assert built.epochs == 0
    with pytest.raises(ValueError, match="learning_rate"):
        stroke.build_stroke_model(stroke.parse_args(["--model", model, "--lr", "0"]), 5)


def test_stroke_script_reports_missing_file(tmp_path, capsys):
    code = stroke.main(["--data", str(tmp_path / "missing.csv")])
    assert code == 1
    assert "not found" in capsys.readouterr().err


@pytest.mark.parametrize("model", ["gru", "lstm"])
def test_price_script_writes_predictions(price_csv, tmp_path, capsys, model):
    out_csv = tmp_path / "predictions.csv"
    code = price.main(["--model", model, "--data", price_csv, "--epochs", "20",
                       "--hidden", "8", "--out", str(out_csv), "--quiet"])
    out = capsys.readouterr().out
    assert code == 0
    # 200 rows, 24-step windows -> 176 samples, last ceil(17.6) = 18 are test
    assert "Samples: total=176, train=158, test=18" in out

    df = pd.read_csv(out_csv)
    assert list(df.columns) == ["Timestamp", "True", "Pred"]
    assert len(df) == 18
    assert df["Timestamp"].iloc[-1] == "2024-01-09 07:00:00"


def test_price_script_rejects_short_series(tmp_path, capsys):
    path = tmp_path / "short.csv"
    path.write_text("Timestamp,Close\n" + "".join(f"t{i},{i}.0\n" for i in range(10)))
    code = price.main(["--data", str(path), "--quiet", "--out", str(tmp_path / "p.csv")])
    assert code == 1
    assert "too short" in capsys.readouterr().err
