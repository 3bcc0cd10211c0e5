"""
Tests for the autoregressive forecaster, driven by stub regressors.
"""

import threading

import numpy as np
import pandas as pd
import pytest

from stock_forecast.errors import ForecastCancelled, ModelTrainingError
from stock_forecast.predictor import (
    forecast_dates,
    forecast_step,
    iter_forecast,
    predict_prices,
    sentiment_bias,
)
from stock_forecast.utils import ScalingParameters

from conftest import ConstantRegressor, PersistenceRegressor

WINDOW = np.array([0.1, 0.2, 0.3, 0.4, 0.5])


def test_sentiment_bias_scales_score():
    assert sentiment_bias(1.0) == pytest.approx(0.05)
    assert sentiment_bias(-0.5) == pytest.approx(-0.025)
    assert sentiment_bias(0.5, drift=0.1) == pytest.approx(0.05)
    with pytest.raises(ValueError):
        sentiment_bias(1.5)


def test_forecast_step_slides_window():
    value, new_window = forecast_step(ConstantRegressor(0.6), WINDOW, 0.01)
    assert value == pytest.approx(0.61)
    np.testing.assert_allclose(new_window, [0.2, 0.3, 0.4, 0.5, 0.61])
    # input window untouched
    np.testing.assert_allclose(WINDOW, [0.1, 0.2, 0.3, 0.4, 0.5])


def test_forecast_step_rejects_non_finite():
    with pytest.raises(ModelTrainingError):
        forecast_step(ConstantRegressor(float("nan")), WINDOW, 0.0)


def test_bias_grows_with_step_index():
    values = list(iter_forecast(ConstantRegressor(0.5), WINDOW, 1.0, 4))
    # 0.5 + 0.05 * i * 0.01
    np.testing.assert_allclose(values, [0.5005, 0.501, 0.5015, 0.502])


def test_negative_sentiment_pushes_down():
    values = list(iter_forecast(ConstantRegressor(0.5), WINDOW, -1.0, 3))
    assert all(v < 0.5 for v in values)


def test_feedback_uses_own_predictions():
    reg = PersistenceRegressor()
    values = list(iter_forecast(reg, WINDOW, 1.0, 6))
    # persistence: each step adds only the bias on top of the previous output
    expected, last = [], 0.5
    for day in range(1, 7):
        last = last + 0.05 * day * 0.01
        expected.append(last)
    np.testing.assert_allclose(values, expected)
    # second call sees the first adjusted value at the end of its window
    assert reg.windows[1][-1] == pytest.approx(values[0])
    # after window_size steps the window holds predictions only
    np.testing.assert_allclose(reg.windows[5], values[:5])


def test_iter_forecast_checks_cancellation():
    event = threading.Event()
    gen = iter_forecast(ConstantRegressor(0.5), WINDOW, 0.0, 10, cancel_event=event)
    next(gen)
    event.set()
    with pytest.raises(ForecastCancelled):
        next(gen)


def test_iter_forecast_requires_positive_horizon():
    with pytest.raises(ValueError):
        list(iter_forecast(ConstantRegressor(0.5), WINDOW, 0.0, 0))


@pytest.mark.parametrize("days", [1, 7, 30, 90])
def test_predict_prices_length_and_finiteness(days):
    scaling = ScalingParameters(100.0, 200.0)
    prices = predict_prices(PersistenceRegressor(), WINDOW, scaling, 0.3, days)
    assert len(prices) == days
    assert all(np.isfinite(prices))


def test_predict_prices_denormalizes_with_given_scaling():
    scaling = ScalingParameters(100.0, 200.0)
    prices = predict_prices(ConstantRegressor(0.25), WINDOW, scaling, 0.0, 3)
    assert prices == pytest.approx([125.0, 125.0, 125.0])


def test_forecast_dates_start_next_day():
    dates = forecast_dates(pd.Timestamp("2024-03-01"), 3)
    assert [d.strftime("%Y-%m-%d") for d in dates] == ["2024-03-02", "2024-03-03", "2024-03-04"]
