"""
Domain types
============

Plain per-request values passed between the data providers, the forecasting
core and the HTTP layer. None of them is cached or shared between requests.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class PriceSeries:
    """
    Daily closes ordered by timestamp.

    Timestamps must be strictly ascending (so no duplicates) and every close
    must be finite and positive. Storage is tuples, so a series cannot be
    mutated once the engine has it.
    """
    timestamps: Tuple[pd.Timestamp, ...]
    closes: Tuple[float, ...]
    symbol: str = ""

    def __post_init__(self):
        if len(self.timestamps) != len(self.closes):
            raise ValueError("timestamps and closes must be same length")
        for prev, cur in zip(self.timestamps, self.timestamps[1:]):
            if cur <= prev:
                raise ValueError(f"timestamps must be strictly ascending (got {prev} then {cur})")
        for price in self.closes:
            if not math.isfinite(price) or price <= 0:
                raise ValueError(f"closing prices must be finite and > 0 (got {price})")

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[Any, float]], symbol: str = "") -> "PriceSeries":
        pairs = list(pairs)
        return cls(
            timestamps=tuple(pd.Timestamp(ts) for ts, _ in pairs),
            closes=tuple(float(p) for _, p in pairs),
            symbol=symbol,
        )

    @classmethod
    def from_frame(cls, df: pd.DataFrame, date_col: str = "Date", close_col: str = "Close",
                   symbol: str = "") -> "PriceSeries":
        df = df[[date_col, close_col]].dropna()
        return cls(
            timestamps=tuple(pd.to_datetime(df[date_col])),
            closes=tuple(df[close_col].astype(float)),
            symbol=symbol,
        )

    def __len__(self) -> int:
        return len(self.closes)

    def values(self) -> np.ndarray:
        """Closes as a fresh float array (callers may modify it freely)."""
        return np.asarray(self.closes, dtype=float)

    @property
    def last_close(self) -> float:
        return self.closes[-1]

    @property
    def last_timestamp(self) -> pd.Timestamp:
        return self.timestamps[-1]

    def tail(self, n: int) -> "PriceSeries":
        return PriceSeries(self.timestamps[-n:], self.closes[-n:], self.symbol)

    def to_records(self) -> List[Dict[str, Any]]:
        return [
            {"date": ts.strftime("%Y-%m-%d"), "close": close}
            for ts, close in zip(self.timestamps, self.closes)
        ]


@dataclass(frozen=True)
class SentimentSignal:
    """News sentiment in [-1, 1] with a human readable rationale."""
    score: float
    rationale: str
    available: bool = True

    def __post_init__(self):
        if not -1.0 <= self.score <= 1.0:
            raise ValueError(f"sentiment score must be within [-1, 1] (got {self.score})")

    @classmethod
    def unavailable(cls, reason: str) -> "SentimentSignal":
        return cls(0.0, f"Sentiment unavailable: {reason}", available=False)


@dataclass
class IndicatorSet:
    current_price: float
    sma50: Optional[float]
    sma200: Optional[float]
    rsi: float
    qualitative_signals: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_price": self.current_price,
            "sma50": self.sma50,
            "sma200": self.sma200,
            "rsi": self.rsi,
            "qualitative_signals": list(self.qualitative_signals),
        }


@dataclass
class ForecastResult:
    predicted_prices: List[float]
    dates: List[pd.Timestamp]
    verdict: str
    confidence: int
    current_price: float
    percent_change: float
    sentiment_score: float = 0.0
    degenerate: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "predicted_prices": [float(p) for p in self.predicted_prices],
            "dates": [d.strftime("%Y-%m-%d") for d in self.dates],
            "verdict": self.verdict,
            "confidence": self.confidence,
            "current_price": self.current_price,
            "percent_change": self.percent_change,
            "sentiment_score": self.sentiment_score,
            "degenerate": self.degenerate,
        }
