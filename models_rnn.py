# models_rnn.py
# Recurrent engines (vanilla RNN, GRU, LSTM) reusing init + activations from models.py.
# The recurrent core is randomised once and left frozen; only the linear
# readout h_last -> 1 is trained, by full-batch gradient descent.

import torch
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from errors import ShapeError
from models import (BaseModel, ClassifierMixin, binary_cross_entropy, mse_loss,
                    sigmoid, tanh, uniform_init, xavier_uniform_init)

Tensor = torch.Tensor
State = Tuple[Tensor, ...]


@dataclass(frozen=True)
class GateSpec:
    """One affine transform x.W + h.U + b followed by `activation`."""
    name: str
    activation: Callable[[Tensor], Tensor]


class RecurrentNetwork(BaseModel):
    """
    Shared recurrent core:
      - one (W_g, U_g, b_g) triple per gate in `gates`
      - readout W_hy (hidden x 1) and scalar b_y
      - init: Xavier-uniform when `init_limit` is None, else U(-limit, limit)

    Subclasses must implement:
      - cell(x_t, state) -> new state  (state[0] is always the hidden vector)
    """

    gates: Tuple[GateSpec, ...] = ()
    state_size: int = 1
    init_limit: Optional[float] = None
    trainable = ("W_hy", "b_y")

    def __init__(
        self,
        input_size: int,
        hidden_size: int,
        learning_rate: float,
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
        self._gate_by_name: Dict[str, GateSpec] = {g.name: g for g in self.gates}

        names: List[str] = []
        for gate in self.gates:
            setattr(self, f"W_{gate.name}", self._init_weight(input_size, hidden_size))
            setattr(self, f"U_{gate.name}", self._init_weight(hidden_size, hidden_size))
            setattr(self, f"b_{gate.name}", torch.zeros(hidden_size, dtype=dtype))
            names += [f"W_{gate.name}", f"U_{gate.name}", f"b_{gate.name}"]

        self.W_hy = self._init_weight(hidden_size, 1)
        self.b_y = torch.zeros((), dtype=dtype)
        self.param_names = tuple(names) + ("W_hy", "b_y")

    def __repr__(self):
        return (f"<{type(self).__name__} input_size={self.input_size}, "
                f"hidden_size={self.hidden_size}>")

    def _init_weight(self, fan_in: int, fan_out: int) -> Tensor:
        if self.init_limit is None:
            return xavier_uniform_init(fan_in, fan_out, self.generator, self.dtype)
        return uniform_init(fan_in, fan_out, self.init_limit, self.generator, self.dtype)

    # ---- cell pieces ----

    def gate(self, name: str, x_t: Tensor, h: Tensor) -> Tensor:
        gate = self._gate_by_name[name]
        W = getattr(self, f"W_{name}")
        U = getattr(self, f"U_{name}")
        b = getattr(self, f"b_{name}")
        return gate.activation(x_t @ W + h @ U + b)

    def cell(self, x_t: Tensor, state: State) -> State:
        raise NotImplementedError

    # ---- forward ----

    def _check_sequence(self, X) -> Tensor:
        X = self._as_tensor(X)
        if X.dim() == 2 and self.input_size == 1:
            X = X.unsqueeze(-1)  # (n, F) -> F timesteps of width 1
        if X.dim() != 3 or X.shape[2] != self.input_size:
            raise ShapeError(
                f"expected (batch, seq_len, {self.input_size}), got {tuple(X.shape)}"
            )
        return X

    def scan(self, X) -> List[State]:
        """Run the cell over every timestep; returns one state per step."""
        X = self._check_sequence(X)
        batch, seq_len = X.shape[0], X.shape[1]
        state: State = tuple(
            torch.zeros(batch, self.hidden_size, dtype=self.dtype)
            for _ in range(self.state_size)
        )
        states: List[State] = []
        for t in range(seq_len):
            state = self.cell(X[:, t, :], state)
            states.append(state)
        return states

    def _last_hidden(self, X) -> Tuple[Tensor, List[Tensor]]:
        states = self.scan(X)
        if not states:
            raise ShapeError("sequence length must be at least 1")
        hs = [s[0] for s in states]
        return hs[-1], hs

    def readout(self, h_last: Tensor) -> Tensor:
        return h_last @ self.W_hy + self.b_y

    def readout_grads(self, h_last: Tensor, dz: Tensor) -> Dict[str, Tensor]:
        n = h_last.shape[0]
        return {"W_hy": h_last.t() @ dz / n, "b_y": dz.sum() / n}

# ---------- Vanilla RNN: binary classification, one feature per timestep ----------

class SimpleRNN(ClassifierMixin, RecurrentNetwork):
    """
    h_t = tanh(x_t.W_xh + h_{t-1}.W_hh + b_h), y = sigmoid(h_last.W_hy + b_y).

    A 2-D batch (n, F) is read as F timesteps of one scalar each.
    fit() trains W_hy and b_y only; the recurrent weights act as a fixed
    random feature extractor.
    """

    gates = (GateSpec("h", tanh),)

    def __init__(
        self,
        input_size: int = 1,
        hidden_size: int = 32,
        learning_rate: float = 0.01,
        epochs: int = 1800,
        seed: Optional[int] = None,
        log_every: Optional[int] = None,
        verbose: bool = True,
        dtype: torch.dtype = torch.float64,
    ):
        super().__init__(input_size, hidden_size, learning_rate, seed,
                         log_every, verbose, dtype)
        self.epochs = epochs

    # names used for the single recurrent transform
    @property
    def W_xh(self) -> Tensor:
        return self.W_h

    @property
    def W_hh(self) -> Tensor:
        return self.U_h

    def cell(self, x_t: Tensor, state: State) -> State:
        return (self.gate("h", x_t, state[0]),)

    def forward(self, X) -> Tuple[List[Tensor], Tensor]:
        """Returns (hs, y_pred) with y_pred of shape (n, 1)."""
        h_last, hs = self._last_hidden(X)
        return hs, sigmoid(self.readout(h_last))

    def loss_and_grads(self, X: Tensor, y: Tensor) -> Tuple[float, Dict[str, Tensor]]:
        hs, y_pred = self.forward(X)
        y_col = y.reshape(-1, 1)
        dz = y_pred - y_col
        loss = binary_cross_entropy(y_pred, y_col)
        return float(loss), self.readout_grads(hs[-1], dz)

    def fit(self, X, y) -> List[float]:
        return self._train(X, y, self.epochs)

    def predict_proba(self, X) -> Tensor:
        _, y_pred = self.forward(X)
        return y_pred[:, 0]

# ---------- Gated regressors: GRU / LSTM over a sliding window ----------

class RecurrentRegressor(RecurrentNetwork):
    """Raw linear readout trained against MSE; gates stay as initialised."""

    init_limit = 0.08
    log_every = 100
    epoch_format = "Epoch {epoch}: MSE={loss:.6f}"

    def forward(self, X) -> Tuple[Tensor, List[Tensor]]:
        """Returns (h_last, hs); every hidden vector is (batch, hidden)."""
        return self._last_hidden(X)

    def loss_and_grads(self, X: Tensor, y: Tensor) -> Tuple[float, Dict[str, Tensor]]:
        h_last, _ = self.forward(X)
        y_pred = self.readout(h_last)
        y_col = y.reshape(-1, 1)
        diff = y_pred - y_col
        loss = mse_loss(y_pred, y_col)
        return float(loss), self.readout_grads(h_last, diff)

    def fit_output_only(self, X, y, epochs: int) -> List[float]:
        return self._train(X, y, epochs)

    def predict(self, X) -> Tensor:
        h_last, _ = self.forward(X)
        return self.readout(h_last)[:, 0]


class GRU(RecurrentRegressor):
    """
    z = sigmoid(x.W_z + h.U_z + b_z)          update gate
    r = sigmoid(x.W_r + h.U_r + b_r)          reset gate
    h~ = tanh(x.W_h + (r*h).U_h + b_h)        candidate
    h' = (1 - z) * h + z * h~
    """

    gates = (GateSpec("z", sigmoid), GateSpec("r", sigmoid), GateSpec("h", tanh))

    def cell(self, x_t: Tensor, state: State) -> State:
        h = state[0]
        z_t = self.gate("z", x_t, h)
        r_t = self.gate("r", x_t, h)
        h_tilde = self.gate("h", x_t, r_t * h)
        return ((1.0 - z_t) * h + z_t * h_tilde,)


class LSTM(RecurrentRegressor):
    """
    i, f, o = sigmoid(x.W + h.U + b)          input / forget / output gates
    g = tanh(x.W_g + h.U_g + b_g)             candidate
    c' = f * c + i * g,  h' = o * tanh(c')
    """

    gates = (GateSpec("i", sigmoid), GateSpec("f", sigmoid),
             GateSpec("o", sigmoid), GateSpec("g", tanh))
    state_size = 2

    def cell(self, x_t: Tensor, state: State) -> State:
        h, c = state
        i_t = self.gate("i", x_t, h)
        f_t = self.gate("f", x_t, h)
        o_t = self.gate("o", x_t, h)
        g_t = self.gate("g", x_t, h)
        c_t = f_t * c + i_t * g_t
        return (o_t * tanh(c_t), c_t)

    def forward_with_cells(self, X) -> Tuple[Tensor, List[Tensor], List[Tensor]]:
        states = self.scan(X)
        if not states:
            raise ShapeError("sequence length must be at least 1")
        hs = [s[0] for s in states]
        cs = [s[1] for s in states]
        return hs[-1], hs, cs
