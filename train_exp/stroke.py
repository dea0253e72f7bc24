# stroke.py - stroke risk classification (logistic regression / NN / RNN)
# ----------------------------------------------------------------------
# - Loads BMI_Stroke.csv (age, hypertension, heart_disease, avg_glucose_level, bmi, stroke)
# - Chronological 80/20 split, z-score with training statistics
# - Trains one engine full-batch and prints accuracy / precision / recall / F1
#
# Usage:
#   python train_exp/stroke.py --model nn --data BMI_Stroke.csv
#
import argparse
import os
import sys

# Add project root to Python path so we can import models, train, dataset
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from config import StrokeConfig
from dataset import load_stroke_csv, prepare_tabular
from errors import NetworkError
from train import (build_model, evaluate_classifier, plot_learning_curves,
                   print_classification_report, timed_fit)


TITLES = {
    "logreg": "Logistic Regression",
    "nn": "Neural Network",
    "rnn": "RNN",
}


def parse_args(argv=None):
    cfg = StrokeConfig
    p = argparse.ArgumentParser(description="Stroke risk classification")
    p.add_argument("--model", choices=sorted(TITLES), default="nn")
    p.add_argument("--data", default=cfg.data_path)
    p.add_argument("--epochs", type=int, default=None, help="override the per-model default")
    p.add_argument("--lr", type=float, default=None, help="override the per-model default")
    p.add_argument("--hidden", type=int, default=None, help="hidden units (nn / rnn)")
    p.add_argument("--l2", type=float, default=cfg.logreg_l2, help="L2 strength (logreg)")
    p.add_argument("--threshold", type=float, default=cfg.threshold)
    p.add_argument("--seed", type=int, default=cfg.seed)
    p.add_argument("--plots", default=None, help="directory for learning-curve PNGs")
    p.add_argument("--quiet", action="store_true", help="no per-epoch loss lines")
    return p.parse_args(argv)


def _or_default(value, default):
    return default if value is None else value


def build_stroke_model(args, n_features: int):
    cfg = StrokeConfig
    common = dict(seed=args.seed, verbose=not args.quiet)
    if args.model == "logreg":
        return build_model(
            "linear", n_features=n_features,
            learning_rate=_or_default(args.lr, cfg.logreg_lr), l2=args.l2,
            epochs=_or_default(args.epochs, cfg.logreg_epochs), **common)
    if args.model == "nn":
        return build_model(
            "ffnn", input_size=n_features,
            hidden_size=_or_default(args.hidden, cfg.nn_hidden),
            learning_rate=_or_default(args.lr, cfg.nn_lr),
            epochs=_or_default(args.epochs, cfg.nn_epochs), **common)
    # each feature is one timestep of width 1
    return build_model(
        "rnn", input_size=1, hidden_size=_or_default(args.hidden, cfg.rnn_hidden),
        learning_rate=_or_default(args.lr, cfg.rnn_lr),
        epochs=_or_default(args.epochs, cfg.rnn_epochs), **common)


def main(argv=None) -> int:
    args = parse_args(argv)
    print(f"=== {TITLES[args.model]} for Stroke Prediction ===\n")

    # 1) Load data
    try:
        X, y, y_label = load_stroke_csv(args.data)
    except NetworkError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Loaded dataset with {X.shape[0]} samples and {X.shape[1]} features")

    # 2) Split + standardise
    X_tr, y_tr, _, X_te, _, ylab_te = prepare_tabular(X, y, y_label, StrokeConfig.train_ratio)
    print(f"Train set: {X_tr.shape[0]} samples")
    print(f"Test set:  {X_te.shape[0]} samples\n")

    # 3) Train
    model = build_stroke_model(args, X.shape[1])
    print(f"Training {model!r}...\n")
    history, seconds = timed_fit(model.fit, X_tr, y_tr)
    print(f"Training finished in {seconds:.2f}s")

    if args.model == "logreg":
        print(f"Weights  : {model.weights.tolist()}")
        print(f"Bias     : {float(model.bias)}")

    # 4) Evaluate
    results = evaluate_classifier(model, X_te, ylab_te, args.threshold)
    print_classification_report(results, ylab_te, StrokeConfig.num_sample_predictions)

    if args.plots:
        plot_learning_curves(f"Stroke ({TITLES[args.model]})", history, "bce",
                             f"stroke_{args.model}.png", outdir=args.plots)
    return 0


if __name__ == "__main__":
    sys.exit(main())
