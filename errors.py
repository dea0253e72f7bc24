# errors.py
# Error taxonomy shared by the loaders and the training engines.


class NetworkError(Exception):
    """Base class for every error raised by this project."""


class DataLoadError(NetworkError, ValueError):
    """File missing, malformed CSV row, absent column or unparsable number."""


class ShapeError(NetworkError, ValueError):
    """Feature / input width does not match what the caller expects."""


class InsufficientDataError(NetworkError, ValueError):
    """Series too short to build at least one training window."""


class DivergenceError(NetworkError, ArithmeticError):
    """A parameter update produced NaN or inf."""
