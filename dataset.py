# dataset.py
# Stroke (tabular) and hourly price (time series) helpers.
#
# Two families:
#   1) load_stroke_csv(...) + prepare_tabular(...)          -> train/test tensors
#   2) load_price_series(...) + make_windowed_dataset(...)  -> (batch, seq_len, 1) windows
#
# Splits are chronological: rows keep their file order, nothing is shuffled.

import math
import os
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
import torch

from errors import DataLoadError, InsufficientDataError, ShapeError

Tensor = torch.Tensor

STROKE_FEATURES = ["age", "hypertension", "heart_disease", "avg_glucose_level", "bmi"]
STROKE_LABEL = "stroke"


def _read_csv(path: str) -> pd.DataFrame:
    if not os.path.exists(path):
        raise DataLoadError(f"CSV file not found at {path}")
    try:
        return pd.read_csv(path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DataLoadError(f"Could not parse {path}: {e}") from e


def _numeric_column(df: pd.DataFrame, col, path: str) -> np.ndarray:
    try:
        values = pd.to_numeric(df[col], errors="raise").to_numpy(dtype=np.float64, copy=True)
    except (ValueError, TypeError) as e:
        raise DataLoadError(f"Non-numeric value in column {col!r} of {path}: {e}") from e
    if np.isnan(values).any():
        row = int(np.flatnonzero(np.isnan(values))[0])
        raise DataLoadError(f"Missing value in column {col!r} of {path} (data row {row})")
    return values


# -------- 1) Tabular stroke dataset --------

def load_stroke_csv(path: str = "BMI_Stroke.csv") -> Tuple[Tensor, Tensor, Tensor]:
    """
    Read the stroke CSV (headered; extra columns are ignored).

    Returns:
        X       (torch.float64): [N, 5]  age, hypertension, heart_disease, avg_glucose_level, bmi
        y       (torch.float64): [N]     stroke as 0.0 / 1.0
        y_label (torch.uint8):   [N]     stroke as 0 / 1
    """
    df = _read_csv(path)

    missing = [c for c in STROKE_FEATURES + [STROKE_LABEL] if c not in df.columns]
    if missing:
        raise DataLoadError(f"Expected columns {missing} in {path}")

    X = np.stack([_numeric_column(df, c, path) for c in STROKE_FEATURES], axis=1)
    labels = _numeric_column(df, STROKE_LABEL, path)
    if not np.isin(labels, (0.0, 1.0)).all():
        raise DataLoadError(f"Column {STROKE_LABEL!r} in {path} must hold 0/1 labels")

    X_t = torch.from_numpy(X)
    y_t = torch.from_numpy(labels)
    return X_t, y_t, y_t.to(torch.uint8)


def standardize(
    X: Tensor,
    mean: Optional[Tensor] = None,
    std: Optional[Tensor] = None,
    eps: float = 1e-9,
) -> Tuple[Tensor, Tensor, Tensor]:
    """
    Per-column z-score: (x - mean) / (std + eps), population std.
    Pass the training mean/std back in to transform held-out rows.
    """
    X = torch.as_tensor(X, dtype=torch.float64)
    if mean is None:
        mean = X.mean(dim=0)
    if std is None:
        std = X.std(dim=0, unbiased=False)
    return (X - mean) / (std + eps), mean, std


def train_test_split(*arrays, train_ratio: float = 0.8) -> List[Tensor]:
    """First int(n * train_ratio) rows train, the rest test, for every array."""
    if not arrays:
        return []
    if not 0.0 < train_ratio <= 1.0:
        raise ValueError(f"train_ratio must be in (0, 1], got {train_ratio}")
    n = arrays[0].shape[0]
    for a in arrays[1:]:
        if a.shape[0] != n:
            raise ShapeError(f"Arrays disagree on length: {n} vs {a.shape[0]}")
    n_train = int(n * train_ratio)
    out: List[Tensor] = []
    for a in arrays:
        out += [a[:n_train], a[n_train:]]
    return out


def prepare_tabular(X: Tensor, y: Tensor, y_label: Tensor, train_ratio: float = 0.8):
    """
    Chronological split, then standardise both halves with training statistics.

    Returns:
        X_tr, y_tr, ylab_tr, X_te, y_te, ylab_te
    """
    X_tr, X_te, y_tr, y_te, l_tr, l_te = train_test_split(X, y, y_label, train_ratio=train_ratio)
    X_tr, mean, std = standardize(X_tr)
    X_te, _, _ = standardize(X_te, mean, std)
    return X_tr, y_tr, l_tr, X_te, y_te, l_te


# -------- 2) Hourly price series --------

def load_price_series(path: str = "btc_close_hourly.csv") -> Tuple[Tensor, List[str]]:
    """
    Read a headered (Timestamp, Close) CSV. Column index 1 holds the values.

    Returns:
        series     (torch.float64): [N]
        timestamps (list[str]):     [N]  column 0 as text
    """
    df = _read_csv(path)
    if df.shape[1] < 2:
        raise DataLoadError(f"Missing Close column (index 1) in {path}")
    values = _numeric_column(df, df.columns[1], path)
    timestamps = df.iloc[:, 0].astype(str).tolist()
    return torch.from_numpy(values), timestamps


def make_windowed_dataset(series, seq_len: int) -> Tuple[Tensor, Tensor, float, float]:
    """
    Sliding windows: X[i] = series[i : i+seq_len], y[i] = series[i+seq_len].
    Inputs and targets share one global z-score fitted on all window values.

    Returns:
        X    [N - seq_len, seq_len, 1]
        y    [N - seq_len]
        mean, std (floats; std floored at 1e-8)
    """
    s = torch.as_tensor(series, dtype=torch.float64).reshape(-1)
    if seq_len <= 0:
        raise ValueError("seq_len must be positive")
    if s.shape[0] <= seq_len + 1:
        raise InsufficientDataError(
            f"Series too short: {s.shape[0]} values for a window of {seq_len} (+1 target)"
        )

    n_samples = s.shape[0] - seq_len
    X = s.unfold(0, seq_len, 1)[:n_samples].unsqueeze(-1).clone()
    y = s[seq_len:].clone()

    mean = float(X.mean())
    std = max(float(X.std(unbiased=False)), 1e-8)
    return (X - mean) / std, (y - mean) / std, mean, std


def split_series(X: Tensor, y: Tensor, test_ratio: float = 0.1):
    """Last ceil(n * test_ratio) samples are the test set. Returns X_tr, y_tr, X_te, y_te."""
    n = X.shape[0]
    n_test = math.ceil(n * test_ratio)
    n_train = n - n_test
    return X[:n_train], y[:n_train], X[n_train:], y[n_train:]


def save_predictions(path: str, timestamps, y_true, y_pred) -> str:
    """Write Timestamp,True,Pred rows with 6 decimals. Returns path."""
    y_true = torch.as_tensor(y_true).reshape(-1)
    y_pred = torch.as_tensor(y_pred).reshape(-1)
    timestamps = list(timestamps)
    if not (len(timestamps) == y_true.shape[0] == y_pred.shape[0]):
        raise ShapeError(
            f"timestamps/true/pred lengths differ: "
            f"{len(timestamps)}, {y_true.shape[0]}, {y_pred.shape[0]}"
        )

    out_dir = os.path.dirname(path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    df = pd.DataFrame({
        "Timestamp": timestamps,
        "True": y_true.numpy().astype(np.float64),
        "Pred": y_pred.numpy().astype(np.float64),
    })
    df.to_csv(path, index=False, float_format="%.6f")
    return path
