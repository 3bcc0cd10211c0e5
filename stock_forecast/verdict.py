"""
Verdict Engine
==============

Reduces a forecast path to BUY / SELL / HOLD plus a confidence score.

The confidence is NOT a probability. It is the size of the forecast move
scaled by CONFIDENCE_SCALE and capped at CONFIDENCE_CAP, with no calibration
against realized outcomes. Present it as "strength of the predicted move".
"""

import math
from enum import Enum
from typing import Sequence, Tuple

from .config import CONFIDENCE_CAP, CONFIDENCE_SCALE, VERDICT_THRESHOLD


class Verdict(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


def percent_change(predicted_prices: Sequence[float], current_price: float) -> float:
    if len(predicted_prices) == 0:
        raise ValueError("predicted_prices must not be empty")
    if current_price <= 0:
        raise ValueError(f"current_price must be > 0 (got {current_price})")
    return (predicted_prices[-1] - current_price) / current_price * 100


def classify(change: float, threshold: float = VERDICT_THRESHOLD) -> Verdict:
    # +-threshold itself is HOLD
    if change > threshold:
        return Verdict.BUY
    if change < -threshold:
        return Verdict.SELL
    return Verdict.HOLD


def confidence(change: float, scale: float = CONFIDENCE_SCALE, cap: int = CONFIDENCE_CAP) -> int:
    """Integer percent in [0, cap], halves rounded up."""
    return int(math.floor(min(abs(change) * scale, cap) + 0.5))


def evaluate(predicted_prices: Sequence[float], current_price: float,
             threshold: float = VERDICT_THRESHOLD, scale: float = CONFIDENCE_SCALE,
             cap: int = CONFIDENCE_CAP) -> Tuple[Verdict, int, float]:
    """Return (verdict, confidence, percent_change) for a forecast path."""
    change = percent_change(predicted_prices, current_price)
    return classify(change, threshold), confidence(change, scale, cap), change
