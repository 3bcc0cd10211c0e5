# stock_forecast/utils.py
from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

import numpy as np
from sklearn.preprocessing import MinMaxScaler

from .config import TRAINING_WINDOW, WINDOW_SIZE
from .errors import InsufficientDataError
from .series import PriceSeries

# Normalized value used for every point of a flat (max == min) window.
DEGENERATE_VALUE = 0.5


@dataclass(frozen=True)
class ScalingParameters:
    """Min/max of the trailing window one training set was built from."""
    min: float
    max: float
    degenerate: bool = False

    def normalize(self, value):
        if self.degenerate:
            return np.full_like(np.asarray(value, dtype=float), DEGENERATE_VALUE)
        return (np.asarray(value, dtype=float) - self.min) / (self.max - self.min)

    def denormalize(self, value):
        return np.asarray(value, dtype=float) * (self.max - self.min) + self.min


@dataclass
class TrainingSet:
    """
    Sliding-window examples over the normalized trailing window.
      X: (num_samples, window_size)
      y: (num_samples,)
    """
    X: np.ndarray
    y: np.ndarray
    normalized: np.ndarray
    scaling: ScalingParameters
    window_size: int

    def __len__(self):
        return len(self.y)

    @property
    def degenerate(self) -> bool:
        return self.scaling.degenerate

    def examples(self) -> List[Tuple[np.ndarray, float]]:
        return [(x, float(t)) for x, t in zip(self.X, self.y)]

    def last_window(self) -> np.ndarray:
        """Most recent window_size normalized closes: the seed of a forecast."""
        return self.normalized[-self.window_size:].copy()


def create_sequences(values: np.ndarray, window: int = WINDOW_SIZE):
    """
    Input:
      values: (n,) array of normalized prices
    Return:
      X shape (num_samples, window), y shape (num_samples,)
    """
    X, y = [], []
    for i in range(window, len(values)):
        X.append(values[i - window:i])
        y.append(values[i])
    return np.array(X, dtype=float).reshape(-1, window), np.array(y, dtype=float)


def prepare_training_set(series: Union[PriceSeries, Sequence[float]],
                         trailing_length: int = TRAINING_WINDOW,
                         window_size: int = WINDOW_SIZE) -> TrainingSet:
    """
    Scale the trailing window of ``series`` into [0, 1] and slice it into
    next-value examples. The scaling parameters come from that trailing window
    alone and are the only ones valid for denormalizing predictions made from it.
    """
    if window_size < 1:
        raise ValueError("window_size must be >= 1")
    prices = series.values() if isinstance(series, PriceSeries) else np.asarray(series, dtype=float)

    if len(prices) >= trailing_length:
        trailing = prices[-trailing_length:]
    elif len(prices) > window_size + 1:
        trailing = prices
    else:
        raise InsufficientDataError(
            f"Need more than {window_size + 1} closes to build training windows. Received {len(prices)}."
        )

    scaler = MinMaxScaler(clip=True)
    scaler.fit(trailing.reshape(-1, 1))
    lo, hi = float(scaler.data_min_[0]), float(scaler.data_max_[0])

    if hi == lo:
        scaling = ScalingParameters(lo, hi, degenerate=True)
        normalized = np.full(len(trailing), DEGENERATE_VALUE)
    else:
        scaling = ScalingParameters(lo, hi)
        normalized = scaler.transform(trailing.reshape(-1, 1))[:, 0]

    X, y = create_sequences(normalized, window_size)
    if len(y) == 0:
        raise InsufficientDataError(
            f"Trailing window of {len(trailing)} closes yields no {window_size}-day training examples."
        )
    return TrainingSet(X=X, y=y, normalized=normalized, scaling=scaling, window_size=window_size)
