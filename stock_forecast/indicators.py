"""
Technical Indicators
====================

Pure functions over a series of daily closes (oldest first):

- moving_average: simple moving average of the most recent closes
- momentum_oscillator: RSI with Wilder's smoothing
- qualitative_signals: fixed-rule text summary of the two above

Nothing here is cached; every call recomputes from the series it is given.
"""

import logging
from typing import List, Optional, Sequence, Union

import numpy as np

from .config import RSI_PERIOD, SMA_LONG, SMA_SHORT
from .errors import InsufficientDataError
from .series import IndicatorSet, PriceSeries

logger = logging.getLogger(__name__)

SeriesLike = Union[PriceSeries, Sequence[float], np.ndarray]

RSI_OVERBOUGHT = 70
RSI_OVERSOLD = 30


def _closes(series: SeriesLike) -> np.ndarray:
    if isinstance(series, PriceSeries):
        return series.values()
    return np.asarray(series, dtype=float)


def moving_average(series: SeriesLike, period: int) -> float:
    """Arithmetic mean of the last ``period`` closes."""
    closes = _closes(series)
    if period < 1:
        raise ValueError("period must be >= 1")
    if len(closes) < period:
        raise InsufficientDataError(
            f"Need at least {period} closes for a {period}-day average. Received {len(closes)}."
        )
    return float(np.mean(closes[-period:]))


def momentum_oscillator(series: SeriesLike, period: int = RSI_PERIOD) -> float:
    """
    Relative Strength Index.

    Seeds the average gain/loss with the plain mean of the first ``period``
    deltas, then applies Wilder's smoothing ``avg = (avg*(period-1) + cur)/period``
    to every later delta. A series with no losses at all (including a flat one)
    reports 100.
    """
    closes = _closes(series)
    if period < 1:
        raise ValueError("period must be >= 1")
    if len(closes) < period + 1:
        raise InsufficientDataError(
            f"Need at least {period + 1} closes for RSI({period}). Received {len(closes)}."
        )

    deltas = np.diff(closes)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = gains[:period].sum() / period
    avg_loss = losses[:period].sum() / period
    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return round(float(100 - 100 / (1 + rs)), 2)


def qualitative_signals(current_price: float, sma50: Optional[float],
                        sma200: Optional[float], rsi: float) -> List[str]:
    """RSI signal, then SMA crossover, then price against sma50. Ties emit nothing."""
    signals = []

    if rsi > RSI_OVERBOUGHT:
        signals.append("overbought")
    elif rsi < RSI_OVERSOLD:
        signals.append("oversold")
    else:
        signals.append("neutral")

    if sma50 is not None and sma200 is not None:
        if sma50 > sma200:
            signals.append("bullish crossover")
        elif sma50 < sma200:
            signals.append("bearish crossover")

    if sma50 is not None:
        if current_price > sma50:
            signals.append("strong")
        elif current_price < sma50:
            signals.append("weak")

    return signals


def _optional_average(closes: np.ndarray, period: int) -> Optional[float]:
    try:
        return moving_average(closes, period)
    except InsufficientDataError:
        logger.debug("Skipping SMA(%d): only %d closes", period, len(closes))
        return None


def compute_indicator_set(series: SeriesLike, rsi_period: int = RSI_PERIOD,
                          short_period: int = SMA_SHORT, long_period: int = SMA_LONG) -> IndicatorSet:
    """
    Build an IndicatorSet. Averages whose period exceeds the history come back
    as None; RSI is mandatory, so a series too short for it raises.
    """
    closes = _closes(series)
    rsi = momentum_oscillator(closes, rsi_period)
    sma50 = _optional_average(closes, short_period)
    sma200 = _optional_average(closes, long_period)
    current_price = float(closes[-1])
    return IndicatorSet(
        current_price=current_price,
        sma50=sma50,
        sma200=sma200,
        rsi=rsi,
        qualitative_signals=qualitative_signals(current_price, sma50, sma200, rsi),
    )
