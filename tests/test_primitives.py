import math

import pytest
import torch

from models import (binary_cross_entropy, mse_loss, relu, relu_backward, relu_derivative,
                    sigmoid, sigmoid_derivative, tanh_derivative, uniform_init,
                    xavier_uniform_init)


def t(values):
    return torch.tensor(values, dtype=torch.float64)


def test_sigmoid_at_zero_is_half():
    assert sigmoid(t([0.0])).item() == 0.5


def test_sigmoid_stays_in_open_interval_for_moderate_inputs():
    z = torch.linspace(-30, 30, 601, dtype=torch.float64)
    s = sigmoid(z)
    assert bool(((s > 0) & (s < 1)).all())


def test_sigmoid_is_finite_for_large_magnitudes():
    s = sigmoid(t([-1000.0, 1000.0]))
    assert bool(torch.isfinite(s).all())
    assert s[0].item() == pytest.approx(0.0, abs=1e-300)
    assert s[1].item() == pytest.approx(1.0)


def test_sigmoid_matches_closed_form():
    z = t([-3.0, -0.5, 0.7, 4.0])
    expected = 1.0 / (1.0 + torch.exp(-z))
    assert torch.allclose(sigmoid(z), expected)


def test_sigmoid_is_symmetric():
    z = t([0.1, 2.0, 15.0])
    assert torch.allclose(sigmoid(-z), 1.0 - sigmoid(z))


def test_sigmoid_derivative_peak():
    assert sigmoid_derivative(t([0.0])).item() == pytest.approx(0.25)


def test_relu_and_derivative():
    z = t([-2.0, 0.0, 3.0])
    assert relu(z).tolist() == [0.0, 0.0, 3.0]
    assert relu_derivative(z).tolist() == [0.0, 0.0, 1.0]
    assert relu_backward(t([5.0, 5.0, 5.0]), z).tolist() == [0.0, 0.0, 5.0]


def test_tanh_derivative():
    z = t([0.0, 1.0])
    assert tanh_derivative(z)[0].item() == 1.0
    assert tanh_derivative(z)[1].item() == pytest.approx(1 - math.tanh(1.0) ** 2)


def test_bce_is_finite_for_saturated_predictions():
    loss = binary_cross_entropy(t([0.0, 1.0]), t([1.0, 0.0]))
    assert math.isfinite(loss.item())
    # clipped at 1e-15 -> -log(1e-15)
    assert loss.item() == pytest.approx(-math.log(1e-15), rel=1e-3)


def test_bce_of_perfect_predictions_is_near_zero():
    loss = binary_cross_entropy(t([1.0, 0.0]), t([1.0, 0.0]))
    assert loss.item() == pytest.approx(0.0, abs=1e-12)


def test_bce_at_half_is_log2():
    loss = binary_cross_entropy(t([0.5, 0.5]), t([0.0, 1.0]))
    assert loss.item() == pytest.approx(math.log(2.0))


def test_mse():
    assert mse_loss(t([1.0, 2.0, 3.0]), t([1.0, 0.0, 3.0])).item() == pytest.approx(4.0 / 3.0)


def test_xavier_uniform_bounds_and_shape():
    g = torch.Generator().manual_seed(0)
    W = xavier_uniform_init(5, 10, g)
    limit = math.sqrt(6.0 / 15.0)
    assert W.shape == (5, 10)
    assert W.dtype == torch.float64
    assert bool((W.abs() <= limit).all())


def test_uniform_init_is_reproducible_with_same_generator_seed():
    a = uniform_init(3, 4, 0.08, torch.Generator().manual_seed(7))
    b = uniform_init(3, 4, 0.08, torch.Generator().manual_seed(7))
    assert torch.equal(a, b)
    assert bool((a.abs() <= 0.08).all())
