"""Experiment configuration. Scripts in train_exp/ override these with CLI flags."""


class BaseConfig:
    """Shared configuration across all experiments."""

    # Reproducibility (None -> fresh non-deterministic seed per model)
    seed = 0

    # Classification
    threshold = 0.5
    num_sample_predictions = 5

    # Telemetry
    verbose = True

    # Paths
    plots_dir = "graphs_exp"


class StrokeConfig(BaseConfig):
    """Stroke risk classification (tabular, 5 features)."""

    data_path = "BMI_Stroke.csv"
    train_ratio = 0.8

    # Logistic regression
    logreg_lr = 0.1
    logreg_l2 = 0.01
    logreg_epochs = 2000

    # Feedforward network: 5 -> 10 (ReLU) -> 1 (sigmoid)
    nn_hidden = 10
    nn_lr = 0.01
    nn_epochs = 1000

    # Vanilla RNN: 5 timesteps of 1 feature -> 32 hidden (tanh) -> 1 (sigmoid)
    rnn_hidden = 32
    rnn_lr = 0.01
    rnn_epochs = 1800


class PriceConfig(BaseConfig):
    """Next-hour price regression with a frozen GRU / LSTM core."""

    data_path = "btc_close_hourly.csv"
    seq_len = 24          # past 24 hours predict the next one
    hidden_size = 64
    learning_rate = 0.001
    epochs = 1000
    test_ratio = 0.1      # last 10% of windows
    predictions_path = "predictions.csv"
