"""Stock price forecasting: technical indicators, an LSTM autoregressive forecast and a trading verdict."""

from .engine import ForecastSettings, compute_indicators, forecast, forecast_many
from .errors import (ExternalDataUnavailable, ForecastCancelled, ForecastEngineError,
                     InsufficientDataError, ModelTrainingError)
from .series import ForecastResult, IndicatorSet, PriceSeries, SentimentSignal

__version__ = "1.0.0"
