import numpy as np
import pandas as pd
import pytest

from stock_forecast.series import PriceSeries


class PersistenceRegressor:
    """Predicts the last value of the window: tomorrow looks like today."""

    def __init__(self, *args, **kwargs):
        self.fitted = False
        self.windows = []

    def fit(self, training_set):
        self.fitted = True
        return self

    def predict(self, window):
        self.windows.append(np.array(window, dtype=float))
        return float(window[-1])


class ConstantRegressor(PersistenceRegressor):
    def __init__(self, value):
        super().__init__()
        self.value = value

    def predict(self, window):
        self.windows.append(np.array(window, dtype=float))
        return self.value


def persistence_factory(settings, seed=None, cancel_event=None):
    return PersistenceRegressor()


def make_series(closes, start="2024-01-01", symbol="TEST"):
    dates = pd.date_range(start=start, periods=len(closes), freq="D")
    return PriceSeries.from_pairs(zip(dates, closes), symbol=symbol)


@pytest.fixture
def linear_series():
    """65 daily closes rising 100.00 -> 164.00 by 1.00/day."""
    return make_series([100.0 + i for i in range(65)])


@pytest.fixture
def flat_series():
    return make_series([42.0] * 65)


@pytest.fixture
def noisy_series():
    rng = np.random.default_rng(7)
    closes = 100 * np.exp(np.cumsum(rng.normal(0, 0.02, size=250)))
    return make_series(closes.tolist())
