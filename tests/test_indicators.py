"""
Tests for the indicator suite: SMA, RSI and the qualitative summary.
"""

import numpy as np
import pytest

from stock_forecast.errors import InsufficientDataError
from stock_forecast.indicators import (
    compute_indicator_set,
    momentum_oscillator,
    moving_average,
    qualitative_signals,
)

from conftest import make_series


# ============================================================================
# moving_average
# ============================================================================

def test_moving_average_uses_most_recent_closes():
    assert moving_average([1, 2, 3, 4, 5], 2) == pytest.approx(4.5)
    assert moving_average([1, 2, 3, 4, 5], 5) == pytest.approx(3.0)


def test_moving_average_too_short_raises():
    with pytest.raises(InsufficientDataError):
        moving_average([1.0, 2.0, 3.0], 4)


def test_moving_average_flat_series_returns_value(flat_series):
    assert moving_average(flat_series, 50) == 42.0


def test_moving_average_rejects_bad_period():
    with pytest.raises(ValueError):
        moving_average([1.0, 2.0], 0)


# ============================================================================
# momentum_oscillator (RSI)
# ============================================================================

def test_rsi_requires_period_plus_one():
    with pytest.raises(InsufficientDataError):
        momentum_oscillator(list(range(1, 15)), 14)
    # exactly period + 1 closes is enough
    assert momentum_oscillator(list(range(1, 16)), 14) == 100.0


def test_rsi_strict_uptrend_is_100(linear_series):
    assert momentum_oscillator(linear_series) == 100.0


def test_rsi_flat_series_is_100(flat_series):
    assert momentum_oscillator(flat_series) == 100.0


def test_rsi_strict_downtrend_is_0():
    assert momentum_oscillator([200.0 - i for i in range(30)]) == 0.0


def test_rsi_stays_in_bounds(noisy_series):
    closes = noisy_series.values()
    for end in range(15, len(closes), 10):
        rsi = momentum_oscillator(closes[:end])
        assert 0.0 <= rsi <= 100.0


def test_rsi_matches_wilder_smoothing():
    closes = [44.0, 44.5, 44.0, 45.0, 44.5, 45.5]
    period = 3
    deltas = np.diff(closes)
    gains = np.clip(deltas, 0, None)
    losses = np.clip(-deltas, 0, None)
    avg_gain, avg_loss = gains[:3].mean(), losses[:3].mean()
    for g, l in zip(gains[3:], losses[3:]):
        avg_gain = (avg_gain * 2 + g) / 3
        avg_loss = (avg_loss * 2 + l) / 3
    expected = round(100 - 100 / (1 + avg_gain / avg_loss), 2)
    assert momentum_oscillator(closes, period) == expected


# ============================================================================
# qualitative_signals
# ============================================================================

@pytest.mark.parametrize("rsi, expected", [
    (75.0, "overbought"),
    (25.0, "oversold"),
    (70.0, "neutral"),
    (30.0, "neutral"),
    (50.0, "neutral"),
])
def test_rsi_signal_comes_first(rsi, expected):
    assert qualitative_signals(100.0, None, None, rsi) == [expected]


def test_crossover_and_price_signals_order():
    assert qualitative_signals(110.0, 105.0, 100.0, 50.0) == ["neutral", "bullish crossover", "strong"]
    assert qualitative_signals(90.0, 95.0, 100.0, 50.0) == ["neutral", "bearish crossover", "weak"]


def test_ties_emit_nothing():
    assert qualitative_signals(100.0, 100.0, 100.0, 50.0) == ["neutral"]


def test_crossover_needs_both_averages():
    assert qualitative_signals(110.0, 105.0, None, 50.0) == ["neutral", "strong"]


# ============================================================================
# compute_indicator_set
# ============================================================================

def test_linear_scenario(linear_series):
    ind = compute_indicator_set(linear_series)
    # last 50 closes are 115..164
    assert ind.sma50 == pytest.approx(np.mean(np.arange(115.0, 165.0)))
    assert ind.sma50 == pytest.approx(139.5)
    assert ind.sma200 is None
    assert ind.current_price == 164.0
    assert "strong" in ind.qualitative_signals
    assert ind.qualitative_signals == ["overbought", "strong"]


def test_flat_indicator_set(flat_series):
    ind = compute_indicator_set(flat_series)
    assert ind.rsi == 100.0
    assert ind.sma50 == 42.0
    assert ind.qualitative_signals == ["overbought"]


def test_indicator_set_too_short_raises():
    with pytest.raises(InsufficientDataError):
        compute_indicator_set(make_series([10.0] * 10))
