# metrics.py
# Counting metrics over hard {0,1} predictions, plus MSE for regression reports.

import torch
from typing import Tuple

from errors import ShapeError
from models import mse_loss

Tensor = torch.Tensor


def _pair(y_true, y_pred) -> Tuple[Tensor, Tensor]:
    t = torch.as_tensor(y_true).reshape(-1).to(torch.int64)
    p = torch.as_tensor(y_pred).reshape(-1).to(torch.int64)
    if t.shape[0] != p.shape[0]:
        raise ShapeError(f"y_true has {t.shape[0]} labels but y_pred has {p.shape[0]}")
    return t, p


def accuracy(y_true, y_pred) -> float:
    t, p = _pair(y_true, y_pred)
    if t.numel() == 0:
        return 0.0
    return float((t == p).sum().item()) / t.numel()


def precision(y_true, y_pred) -> float:
    """tp / (tp + fp); 0 when nothing was predicted positive."""
    t, p = _pair(y_true, y_pred)
    tp = int(((t == 1) & (p == 1)).sum().item())
    fp = int(((t == 0) & (p == 1)).sum().item())
    return 0.0 if tp + fp == 0 else tp / (tp + fp)


def recall(y_true, y_pred) -> float:
    """tp / (tp + fn); 0 when there are no actual positives."""
    t, p = _pair(y_true, y_pred)
    tp = int(((t == 1) & (p == 1)).sum().item())
    fn = int(((t == 1) & (p == 0)).sum().item())
    return 0.0 if tp + fn == 0 else tp / (tp + fn)


def f1_score(precision: float, recall: float) -> float:
    if precision + recall == 0:
        return 0.0
    return 2.0 * (precision * recall) / (precision + recall)


def mse(y_pred, y_true) -> float:
    y_pred = torch.as_tensor(y_pred, dtype=torch.float64).reshape(-1)
    y_true = torch.as_tensor(y_true, dtype=torch.float64).reshape(-1)
    if y_pred.shape[0] != y_true.shape[0]:
        raise ShapeError(f"{y_pred.shape[0]} predictions for {y_true.shape[0]} targets")
    return float(mse_loss(y_pred, y_true))
