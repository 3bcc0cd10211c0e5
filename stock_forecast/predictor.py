# stock_forecast/predictor.py
import logging
import math
from typing import Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd

from .config import SENTIMENT_DRIFT, SENTIMENT_STEP_SCALE
from .errors import ModelTrainingError
from .trainer import CancelEvent, Regressor, check_cancelled
from .utils import ScalingParameters

logger = logging.getLogger(__name__)


def sentiment_bias(sentiment_score: float, drift: float = SENTIMENT_DRIFT) -> float:
    if not -1.0 <= sentiment_score <= 1.0:
        raise ValueError(f'sentiment_score must be within [-1, 1] (got {sentiment_score})')
    return sentiment_score * drift


def forecast_step(regressor: Regressor, window: np.ndarray, bias_term: float) -> Tuple[float, np.ndarray]:
    """
    One autoregressive step: predict from ``window``, nudge by ``bias_term``,
    then slide the window forward with the nudged value.
    """
    next_value = regressor.predict(window) + bias_term
    if not math.isfinite(next_value):
        raise ModelTrainingError(f'Model produced a non-finite prediction ({next_value})')
    new_window = np.append(np.asarray(window, dtype=float)[1:], next_value)
    return next_value, new_window


def iter_forecast(regressor: Regressor, last_window: np.ndarray, sentiment_score: float,
                  days_to_predict: int, drift: float = SENTIMENT_DRIFT,
                  step_scale: float = SENTIMENT_STEP_SCALE,
                  cancel_event: Optional[CancelEvent] = None) -> Iterator[float]:
    """
    Yield ``days_to_predict`` normalized predictions. Each step sees only the
    previous predictions once the history window has rolled off, so errors
    compound over long horizons.
    """
    if days_to_predict < 1:
        raise ValueError('days_to_predict must be >= 1')
    bias = sentiment_bias(sentiment_score, drift)
    window = np.asarray(last_window, dtype=float).copy()
    for day in range(1, days_to_predict + 1):
        check_cancelled(cancel_event)
        value, window = forecast_step(regressor, window, bias * day * step_scale)
        yield value


def forecast_dates(last_date, days_to_predict: int) -> List[pd.Timestamp]:
    """Calendar days following ``last_date``."""
    start = pd.Timestamp(last_date).normalize() + pd.Timedelta(days=1)
    return list(pd.date_range(start=start, periods=days_to_predict, freq='D'))


def predict_prices(regressor: Regressor, last_window: np.ndarray, scaling: ScalingParameters,
                   sentiment_score: float, days_to_predict: int, drift: float = SENTIMENT_DRIFT,
                   step_scale: float = SENTIMENT_STEP_SCALE,
                   cancel_event: Optional[CancelEvent] = None) -> List[float]:
    """Run the autoregressive loop and map the path back to prices with ``scaling``."""
    normalized = list(iter_forecast(regressor, last_window, sentiment_score, days_to_predict,
                                    drift=drift, step_scale=step_scale, cancel_event=cancel_event))
    prices = scaling.denormalize(normalized)
    if not np.all(np.isfinite(prices)):
        raise ModelTrainingError('Denormalized forecast contains non-finite values')
    logger.debug('Forecast %d steps, last normalized value %.4f', days_to_predict, normalized[-1])
    return [float(p) for p in prices]
