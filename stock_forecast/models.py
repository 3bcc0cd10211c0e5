# stock_forecast/models.py
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .config import CONFIDENCE_CAP


class ForecastRequest(BaseModel):
    ticker: str = Field(default="AAPL", min_length=1)
    days_to_predict: int = Field(default=30, ge=1, le=365)
    # when omitted, sentiment is fetched from the news provider
    sentiment_score: Optional[float] = Field(default=None, ge=-1.0, le=1.0)


class CompareRequest(BaseModel):
    tickers: List[str] = Field(min_length=2, max_length=5)
    days_to_predict: int = Field(default=30, ge=1, le=365)


class PricePoint(BaseModel):
    date: str
    close: float


class SentimentResponse(BaseModel):
    score: float
    rationale: str
    available: bool


class IndicatorResponse(BaseModel):
    ticker: str
    current_price: float
    sma50: Optional[float] = None
    sma200: Optional[float] = None
    rsi: float
    qualitative_signals: List[str]


class ForecastResponse(BaseModel):
    ticker: str
    verdict: str
    confidence: int = Field(
        ge=0, le=CONFIDENCE_CAP,
        description="Size of the predicted move scaled to a percent. Uncalibrated, not a probability.",
    )
    percent_change: float
    current_price: float
    predicted_prices: List[float]
    dates: List[str]
    sentiment: SentimentResponse
    degenerate: bool = False
    history: List[PricePoint] = []


class CompareEntry(BaseModel):
    forecast: Optional[ForecastResponse] = None
    error: Optional[str] = None


class CompareResponse(BaseModel):
    results: Dict[str, CompareEntry]
    stronger: Optional[str] = None
