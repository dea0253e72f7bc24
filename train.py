# train.py - shared training / evaluation helpers + synthetic sanity demos
# Works with the manual engines in models.py / models_rnn.py (no autograd).
# Produces:
#  - Learning curves (loss per epoch) saved as PNGs
#  - Console reports: metrics, sample predictions, class distribution
#
# HOW TO RUN (inside your venv):
#   python train.py
#
import math
import os
import time

import torch

# Matplotlib is only for plots (evidence). Models still do manual backward.
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from dataset import make_windowed_dataset, split_series
from metrics import accuracy, f1_score, mse, precision, recall
from models import FeedforwardNetwork, LogisticRegression
from models_rnn import GRU, LSTM, SimpleRNN


MODEL_REGISTRY = {
    "linear": LogisticRegression,
    "ffnn": FeedforwardNetwork,
    "rnn": SimpleRNN,
    "gru": GRU,
    "lstm": LSTM,
}


def build_model(kind: str, **kwargs):
    """Construct one engine by tag: linear | ffnn | rnn | gru | lstm."""
    try:
        cls = MODEL_REGISTRY[kind]
    except KeyError:
        raise ValueError(f"Unknown model kind {kind!r}; expected one of {sorted(MODEL_REGISTRY)}") from None
    return cls(**kwargs)


def timed_fit(fit_fn, *args):
    """Runs fit_fn(*args); returns (history, seconds)."""
    start = time.perf_counter()
    history = fit_fn(*args)
    return history, time.perf_counter() - start


def evaluate_classifier(model, X, y_label, threshold: float = 0.5):
    """
    Hard predictions at `threshold` and the four counting metrics.
    Returns:
        dict with accuracy, precision, recall, f1, y_pred, y_proba
    """
    y_proba = model.predict_proba(X)
    y_pred = model.predict(X, threshold)
    prec = precision(y_label, y_pred)
    rec = recall(y_label, y_pred)
    return {
        "accuracy": accuracy(y_label, y_pred),
        "precision": prec,
        "recall": rec,
        "f1": f1_score(prec, rec),
        "y_pred": y_pred,
        "y_proba": y_proba,
    }


def evaluate_regressor(model, X, y):
    """Returns (mse, y_pred) for a raw-output regressor."""
    y_pred = model.predict(X)
    return mse(y_pred, y), y_pred


def print_classification_report(results, y_label, num_samples: int = 5):
    print("\n=== Model Evaluation ===")
    print(f"Accuracy:  {results['accuracy']:.4f}")
    print(f"Precision: {results['precision']:.4f}")
    print(f"Recall:    {results['recall']:.4f}")
    print(f"F1-Score:  {results['f1']:.4f}")

    print("\n=== Sample Predictions ===")
    for i in range(min(num_samples, len(y_label))):
        print(f"Sample {i + 1}: True={int(y_label[i])}, Pred={int(results['y_pred'][i])}, "
              f"Prob={float(results['y_proba'][i]):.4f}")

    positives = int((torch.as_tensor(y_label) == 1).sum().item())
    print("\n=== Test Set Distribution ===")
    print(f"Negative (No Stroke): {len(y_label) - positives} samples")
    print(f"Positive (Stroke):    {positives} samples")


def plot_learning_curves(title, train_losses, metric_name, outfile, outdir="graphs_toy"):
    """
    Plots and saves the per-epoch training loss.
    Args:
        title: Plot title.
        train_losses: List of loss values per epoch (model.history).
        metric_name: Name of the loss ('bce' or 'mse').
        outfile: Base filename (placed in outdir/).
    Returns:
        path of the saved PNG
    """
    os.makedirs(outdir, exist_ok=True)
    base = os.path.join(outdir, os.path.basename(outfile))
    loss_path = base.replace(".png", f"_{metric_name}.png")

    plt.figure()
    plt.plot(train_losses, label=f"train {metric_name}")
    plt.xlabel("epoch"); plt.ylabel(metric_name); plt.title(f"{title} - {metric_name}"); plt.legend()
    plt.tight_layout()
    plt.savefig(loss_path); plt.close()
    print(f"Saved plot to: {loss_path}")
    return loss_path


def plot_predictions(title, y_true, y_pred, outfile, outdir="graphs_toy"):
    """True vs predicted series for the regression test window."""
    os.makedirs(outdir, exist_ok=True)
    path = os.path.join(outdir, os.path.basename(outfile))
    plt.figure()
    plt.plot(torch.as_tensor(y_true).numpy(), label="true")
    plt.plot(torch.as_tensor(y_pred).numpy(), label="pred")
    plt.xlabel("test sample"); plt.ylabel("standardised value"); plt.title(title); plt.legend()
    plt.tight_layout()
    plt.savefig(path); plt.close()
    print(f"Saved plot to: {path}")
    return path


def make_separable_dataset(n: int = 400, n_features: int = 2, seed: int = 0):
    """Standard normal points labelled by sum(x) > 0, then pushed apart (labels 0/1)."""
    g = torch.Generator().manual_seed(seed)
    X = torch.randn(n, n_features, generator=g, dtype=torch.float64)
    y = (X.sum(dim=1) > 0).to(torch.float64)
    # push each point away from the boundary so the classes do not touch
    X = X + (2.0 * y - 1.0).unsqueeze(1) * 0.5
    return X, y


def make_sine_series(n: int = 500, seed: int = 0):
    g = torch.Generator().manual_seed(seed)
    t = torch.arange(n, dtype=torch.float64)
    return 100.0 + 10.0 * torch.sin(2 * math.pi * t / 24.0) \
        + 0.5 * torch.randn(n, generator=g, dtype=torch.float64)


def run_classification_demo():
    """Binary classification: linearly separable blobs, 2 -> 12 (ReLU) -> 1."""
    X, y = make_separable_dataset(n=400)
    n_tr = int(0.8 * X.shape[0])
    Xtr, ytr, Xte, yte = X[:n_tr], y[:n_tr], X[n_tr:], y[n_tr:]

    model = FeedforwardNetwork(input_size=2, hidden_size=12, learning_rate=0.1,
                               epochs=1000, seed=0)
    history = model.fit(Xtr, ytr)

    results = evaluate_classifier(model, Xte, yte.to(torch.uint8))
    print_classification_report(results, yte.to(torch.uint8))
    plot_learning_curves("Classification (separable blobs)", history, "bce", "clf_curves.png")


def run_regression_demo():
    """Regression: next value of a noisy 24-step sine with a frozen GRU core."""
    X, y, _, _ = make_windowed_dataset(make_sine_series(), seq_len=24)
    Xtr, ytr, Xte, yte = split_series(X, y, test_ratio=0.1)

    model = GRU(input_size=1, hidden_size=32, learning_rate=0.05, seed=0)
    history = model.fit_output_only(Xtr, ytr, 300)

    tr_mse, _ = evaluate_regressor(model, Xtr, ytr)
    te_mse, y_pred = evaluate_regressor(model, Xte, yte)
    print(f"Train MSE: {tr_mse:.6f}")
    print(f"Test  MSE: {te_mse:.6f}")
    plot_learning_curves("Regression (sine, GRU readout)", history, "mse", "reg_curves.png")
    plot_predictions("Regression (sine) - test window", yte, y_pred, "reg_predictions.png")


if __name__ == "__main__":
    run_classification_demo()
    run_regression_demo()

    print("\nDone. You should see PNGs in graphs_toy/:\n"
          " - clf_curves_bce.png\n"
          " - reg_curves_mse.png, reg_predictions.png\n")
