# price.py - next-hour price regression with a frozen GRU / LSTM core
# -------------------------------------------------------------------
# - Loads a (Timestamp, Close) CSV, builds 24-step sliding windows
# - Last 10% of windows are the test set (chronological)
# - Trains only the linear readout, reports train / test MSE
# - Saves test predictions as Timestamp,True,Pred
#
# Usage:
#   python train_exp/price.py --model lstm --data btc_close_hourly.csv
#
import argparse
import os
import sys

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from config import PriceConfig
from dataset import load_price_series, make_windowed_dataset, save_predictions, split_series
from errors import NetworkError
from train import build_model, evaluate_regressor, plot_learning_curves, plot_predictions, timed_fit


def parse_args(argv=None):
    cfg = PriceConfig
    p = argparse.ArgumentParser(description="Hourly price regression (output-only training)")
    p.add_argument("--model", choices=["gru", "lstm"], default="lstm")
    p.add_argument("--data", default=cfg.data_path)
    p.add_argument("--seq-len", type=int, default=cfg.seq_len)
    p.add_argument("--hidden", type=int, default=cfg.hidden_size)
    p.add_argument("--lr", type=float, default=cfg.learning_rate)
    p.add_argument("--epochs", type=int, default=cfg.epochs)
    p.add_argument("--seed", type=int, default=cfg.seed)
    p.add_argument("--out", default=cfg.predictions_path, help="predictions CSV")
    p.add_argument("--plots", default=None, help="directory for PNGs")
    p.add_argument("--quiet", action="store_true")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    print(f"=== {args.model.upper()} (output-only training) for BTC hourly regression ===")

    # 1) Load series + windows
    try:
        series, timestamps = load_price_series(args.data)
        X_all, y_all, _, _ = make_windowed_dataset(series, args.seq_len)
    except NetworkError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    X_tr, y_tr, X_te, y_te = split_series(X_all, y_all, PriceConfig.test_ratio)
    print(f"Samples: total={X_all.shape[0]}, train={X_tr.shape[0]}, test={X_te.shape[0]}")

    # 2) Model + readout training
    model = build_model(args.model, input_size=1, hidden_size=args.hidden,
                        learning_rate=args.lr, seed=args.seed, verbose=not args.quiet)
    history, seconds = timed_fit(model.fit_output_only, X_tr, y_tr, args.epochs)
    print(f"Training finished in {seconds:.2f}s")

    # 3) Evaluate
    tr_mse, _ = evaluate_regressor(model, X_tr, y_tr)
    te_mse, y_pred = evaluate_regressor(model, X_te, y_te)
    print(f"Train MSE: {tr_mse:.6f}")
    print(f"Test  MSE: {te_mse:.6f}")

    # 4) Save predictions; window i targets row i + seq_len of the file
    test_stamps = timestamps[args.seq_len:][X_tr.shape[0]:]
    save_predictions(args.out, test_stamps, y_te, y_pred)
    print(f"Predictions saved to {args.out}")

    if args.plots:
        plot_learning_curves(f"Price ({args.model.upper()})", history, "mse",
                             f"price_{args.model}.png", outdir=args.plots)
        plot_predictions(f"Price ({args.model.upper()}) - test window", y_te, y_pred,
                         f"price_{args.model}_predictions.png", outdir=args.plots)
    return 0


if __name__ == "__main__":
    sys.exit(main())
