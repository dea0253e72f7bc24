# models.py
# From-scratch engines using ONLY tensor ops (no autograd, no nn.Module).
# Covers: Xavier / fixed-range init, stable activations, BCE / MSE losses,
# a shared full-batch training engine, logistic regression and a
# single-hidden-layer network with manual backward and SGD step.

import torch
from typing import Dict, List, Optional, Tuple

from errors import DivergenceError, ShapeError

Tensor = torch.Tensor

# ---------- Init helpers ----------
# Weights are in R^{fan_in x fan_out}

def uniform_init(fan_in: int, fan_out: int, limit: float,
                 generator: Optional[torch.Generator] = None,
                 dtype: torch.dtype = torch.float64) -> Tensor:
    """IID uniform in [-limit, limit)."""
    u = torch.rand(fan_in, fan_out, generator=generator, dtype=dtype)
    return (u * 2.0 - 1.0) * limit

def xavier_uniform_init(fan_in: int, fan_out: int,
                        generator: Optional[torch.Generator] = None,
                        dtype: torch.dtype = torch.float64) -> Tensor:
    """Xavier (Glorot) uniform init: limit = sqrt(6 / (fan_in + fan_out))."""
    limit = (6.0 / (fan_in + fan_out)) ** 0.5
    return uniform_init(fan_in, fan_out, limit, generator, dtype)

# ---------- Activations ----------

def sigmoid(z: Tensor) -> Tensor:
    # two-branch form: exp() only ever sees non-positive arguments
    e = torch.exp(-z.abs())
    return torch.where(z >= 0, 1.0 / (1.0 + e), e / (1.0 + e))

def sigmoid_derivative(z: Tensor) -> Tensor:
    s = sigmoid(z)
    return s * (1.0 - s)

def tanh(z: Tensor) -> Tensor:
    return torch.tanh(z)

def tanh_derivative(z: Tensor) -> Tensor:
    t = torch.tanh(z)
    return 1.0 - t * t

def relu(z: Tensor) -> Tensor:
    return torch.maximum(z, torch.zeros_like(z))

def relu_derivative(z: Tensor) -> Tensor:
    return (z > 0).to(z.dtype)

def relu_backward(da: Tensor, cache_z: Tensor) -> Tensor:
    dz = da.clone()
    dz[cache_z <= 0] = 0.0
    return dz

# ---------- Losses ----------

def binary_cross_entropy(y_pred: Tensor, y_true: Tensor, eps: float = 1e-15) -> Tensor:
    """Mean BCE with predictions clipped to [eps, 1 - eps] so log() stays finite."""
    p = y_pred.clamp(eps, 1.0 - eps)
    return -(y_true * torch.log(p) + (1.0 - y_true) * torch.log(1.0 - p)).mean()

def mse_loss(y_pred: Tensor, y_true: Tensor) -> Tensor:
    diff = y_pred - y_true
    return (diff * diff).mean()

# ---------- Base engine (shared logic) ----------

class BaseModel:
    """
    Shared training engine:
      - named parameter tensors owned by the instance
      - a seeded torch.Generator for every random draw
      - full-batch loop: loss_and_grads -> SGD step on `trainable`
      - per-epoch loss history, printed every `log_every` epochs

    Subclasses must implement:
      - loss_and_grads(X, y) -> (loss float, {param name: gradient})
    and set `param_names` / `trainable`.
    """

    param_names: Tuple[str, ...] = ()
    trainable: Tuple[str, ...] = ()
    log_every: int = 200
    epoch_format: str = "Epoch {epoch}: Loss = {loss:.6f}"

    def __init__(
        self,
        learning_rate: float,
        seed: Optional[int] = None,
        log_every: Optional[int] = None,
        verbose: bool = True,
        dtype: torch.dtype = torch.float64,
    ):
        if learning_rate <= 0:
            raise ValueError(f"learning_rate must be positive, got {learning_rate}")
        self.lr = learning_rate
        self.dtype = dtype
        self.verbose = verbose
        if log_every is not None:
            self.log_every = log_every

        self.generator = torch.Generator()
        if seed is None:
            self.seed = self.generator.seed()
        else:
            self.generator.manual_seed(seed)
            self.seed = seed

        self.history: List[float] = []

    # ---- parameters ----

    def parameters(self) -> Dict[str, Tensor]:
        return {name: getattr(self, name) for name in self.param_names}

    def step(self, grads: Dict[str, Tensor]) -> None:
        """
        SGD update p -= lr * grad on the trainable params.
        All-or-nothing: if any new value is non-finite, nothing is written.
        """
        updates = {}
        for name in self.trainable:
            new = getattr(self, name) - self.lr * grads[name]
            if not bool(torch.isfinite(new).all()):
                raise DivergenceError(
                    f"{type(self).__name__}.{name} became non-finite (lr={self.lr})"
                )
            updates[name] = new
        for name, new in updates.items():
            getattr(self, name).copy_(new)

    # ---- hooks for subclasses ----

    def loss_and_grads(self, X: Tensor, y: Tensor) -> Tuple[float, Dict[str, Tensor]]:
        raise NotImplementedError

    # ---- training loop ----

    def _as_tensor(self, a) -> Tensor:
        return torch.as_tensor(a, dtype=self.dtype)

    def _train(self, X, y, epochs: int) -> List[float]:
        X = self._as_tensor(X)
        y = self._as_tensor(y).reshape(-1)
        if X.shape[0] != y.shape[0]:
            raise ShapeError(f"X has {X.shape[0]} rows but y has {y.shape[0]}")

        self.history = []
        for epoch in range(epochs):
            loss, grads = self.loss_and_grads(X, y)
            self.step(grads)
            self.history.append(loss)
            if self.verbose and self.log_every and epoch % self.log_every == 0:
                print(self.epoch_format.format(epoch=epoch, loss=loss))
        return self.history


class ClassifierMixin:
    """predict() thresholds predict_proba() into {0, 1}."""

    def predict_proba(self, X) -> Tensor:
        raise NotImplementedError

    def predict(self, X, threshold: float = 0.5) -> Tensor:
        return (self.predict_proba(X) >= threshold).to(torch.uint8)


def _check_width(X: Tensor, expected: int) -> Tensor:
    if X.dim() != 2 or X.shape[1] != expected:
        raise ShapeError(f"expected input of shape (n, {expected}), got {tuple(X.shape)}")
    return X

# ---------- Logistic regression ----------

class LogisticRegression(ClassifierMixin, BaseModel):
    """
    sigmoid(X.w + b), zero-initialised, trained with L2-penalised BCE.
    No random draws, so fit() is fully deterministic.
    """

    param_names = ("weights", "bias")
    trainable = ("weights", "bias")

    def __init__(
        self,
        n_features: int,
        learning_rate: float = 0.1,
        l2: float = 0.01,
        epochs: int = 2000,
        seed: Optional[int] = None,
        log_every: Optional[int] = None,
        verbose: bool = False,
        dtype: torch.dtype = torch.float64,
    ):
        if n_features <= 0:
            raise ValueError("n_features must be positive")
        if l2 < 0:
            raise ValueError("l2 must be non-negative")
        super().__init__(learning_rate, seed, log_every, verbose, dtype)
        self.n_features = n_features
        self.l2 = l2
        self.epochs = epochs
        self.weights = torch.zeros(n_features, dtype=dtype)
        self.bias = torch.zeros((), dtype=dtype)

    def __repr__(self):
        return f"<LogisticRegression n_features={self.n_features}, l2={self.l2}>"

    def forward(self, X) -> Tensor:
        X = _check_width(self._as_tensor(X), self.n_features)
        return sigmoid(X @ self.weights + self.bias)

    def loss_and_grads(self, X: Tensor, y: Tensor) -> Tuple[float, Dict[str, Tensor]]:
        n = X.shape[0]
        y_hat = self.forward(X)
        error = y_hat - y
        grad_w = X.t() @ error / n + self.l2 * self.weights / n
        grad_b = error.sum() / n
        loss = binary_cross_entropy(y_hat, y)
        return float(loss), {"weights": grad_w, "bias": grad_b}

    def fit(self, X, y) -> List[float]:
        return self._train(X, y, self.epochs)

    def predict_proba(self, X) -> Tensor:
        return self.forward(X)

# ---------- Feedforward network: ReLU hidden + sigmoid output ----------

class FeedforwardNetwork(ClassifierMixin, BaseModel):
    """
    input -> hidden (ReLU) -> 1 (sigmoid), binary classification.

    params: W1 (input x hidden), b1 (hidden), W2 (hidden x 1), b2 scalar.
    Both weight matrices are Xavier-uniform, biases start at zero.
    """

    param_names = ("W1", "b1", "W2", "b2")
    trainable = ("W1", "b1", "W2", "b2")

    def __init__(
        self,
        input_size: int,
        hidden_size: int,
        learning_rate: float = 0.01,
        epochs: int = 1000,
        seed: Optional[int] = None,
        log_every: Optional[int] = None,
        verbose: bool = True,
        dtype: torch.dtype = torch.float64,
    ):
        if input_size <= 0 or hidden_size <= 0:
            raise ValueError("input_size and hidden_size must be positive")
        super().__init__(learning_rate, seed, log_every, verbose, dtype)
        self.input_size = input_size
        self.hidden_size = hidden_size
        self.epochs = epochs

        g = self.generator
        self.W1 = xavier_uniform_init(input_size, hidden_size, g, dtype)
        self.b1 = torch.zeros(hidden_size, dtype=dtype)
        self.W2 = xavier_uniform_init(hidden_size, 1, g, dtype)
        self.b2 = torch.zeros((), dtype=dtype)

    def __repr__(self):
        return (f"<FeedforwardNetwork input_size={self.input_size}, "
                f"hidden_size={self.hidden_size}>")

    # ---- Forward ----

    def _forward(self, X: Tensor) -> Dict[str, Tensor]:
        z1 = X @ self.W1 + self.b1
        a1 = relu(z1)
        z2 = a1 @ self.W2 + self.b2
        a2 = sigmoid(z2)
        return {"z1": z1, "a1": a1, "z2": z2, "a2": a2}

    def forward(self, X) -> Tuple[Tensor, Tensor, Tensor]:
        """Returns (a1, z2, a2); a2 has shape (n, 1)."""
        X = _check_width(self._as_tensor(X), self.input_size)
        cache = self._forward(X)
        return cache["a1"], cache["z2"], cache["a2"]

    # ---- Backward ----

    def loss_and_grads(self, X: Tensor, y: Tensor) -> Tuple[float, Dict[str, Tensor]]:
        X = _check_width(X, self.input_size)
        n = X.shape[0]
        cache = self._forward(X)
        y_col = y.reshape(-1, 1)

        # Output layer
        dz2 = cache["a2"] - y_col
        dW2 = cache["a1"].t() @ dz2 / n
        db2 = dz2.sum() / n

        # Hidden layer
        da1 = dz2 @ self.W2.t()
        dz1 = relu_backward(da1, cache["z1"])
        dW1 = X.t() @ dz1 / n
        db1 = dz1.mean(dim=0)

        loss = binary_cross_entropy(cache["a2"], y_col)
        return float(loss), {"W1": dW1, "b1": db1, "W2": dW2, "b2": db2}

    def fit(self, X, y) -> List[float]:
        return self._train(X, y, self.epochs)

    def predict_proba(self, X) -> Tensor:
        _, _, a2 = self.forward(X)
        return a2[:, 0]
