# tests/conftest.py
import os
import sys

import numpy as np
import pandas as pd
import pytest
import torch

# Add project root to Python path so we can import models, train, dataset
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


@pytest.fixture
def stroke_csv(tmp_path):
    """120 synthetic patients; stroke depends mostly on age and glucose."""
    rs = np.random.RandomState(0)
    n = 120
    age = rs.uniform(20, 85, n).round(1)
    hypertension = rs.randint(0, 2, n)
    heart_disease = rs.randint(0, 2, n)
    glucose = rs.uniform(60, 250, n).round(2)
    bmi = rs.uniform(18, 40, n).round(1)
    score = 0.05 * (age - 55) + 0.02 * (glucose - 150) + hypertension
    stroke = (score > 0).astype(int)

    path = tmp_path / "BMI_Stroke.csv"
    pd.DataFrame({
        "age": age,
        "hypertension": hypertension,
        "heart_disease": heart_disease,
        "avg_glucose_level": glucose,
        "bmi": bmi,
        "stroke": stroke,
    }).to_csv(path, index=False)
    return str(path)


@pytest.fixture
def price_csv(tmp_path):
    """200 hourly closes of a noisy daily cycle."""
    rs = np.random.RandomState(1)
    n = 200
    t = np.arange(n)
    close = 30000 + 500 * np.sin(2 * np.pi * t / 24) + rs.normal(0, 50, n)
    stamps = pd.date_range("2024-01-01", periods=n, freq="h").strftime("%Y-%m-%d %H:%M:%S")
    path = tmp_path / "btc_close_hourly.csv"
    pd.DataFrame({"Timestamp": stamps, "Close": close}).to_csv(path, index=False)
    return str(path)


@pytest.fixture
def sequences():
    """(batch=16, seq_len=6, input=1) standard normal windows + targets."""
    g = torch.Generator().manual_seed(3)
    X = torch.randn(16, 6, 1, generator=g, dtype=torch.float64)
    y = X[:, -1, 0] * 0.8 + 0.1
    return X, y
