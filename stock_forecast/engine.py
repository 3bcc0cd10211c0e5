"""
Forecast Engine
===============

The two entry points callers use:

- compute_indicators(series) -> IndicatorSet
- forecast(series, sentiment_score, days_to_predict) -> ForecastResult

plus forecast_many() for several symbols at once.

Every call builds and exclusively owns its ScalingParameters and its
regressor; neither is returned, stored or reused, so concurrent calls share
nothing and need no locking.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from numbers import Integral
from typing import Callable, Dict, Mapping, Optional, Tuple, Union

from . import config
from .errors import ForecastEngineError
from .indicators import compute_indicator_set
from .predictor import forecast_dates, predict_prices
from .series import ForecastResult, IndicatorSet, PriceSeries
from .trainer import CancelEvent, LSTMRegressor, Regressor, check_cancelled
from .utils import prepare_training_set
from .verdict import evaluate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForecastSettings:
    window_size: int = config.WINDOW_SIZE
    trailing_length: int = config.TRAINING_WINDOW
    epochs: int = config.EPOCHS
    batch_size: int = config.BATCH_SIZE
    learning_rate: float = config.LEARNING_RATE
    sentiment_drift: float = config.SENTIMENT_DRIFT
    sentiment_step_scale: float = config.SENTIMENT_STEP_SCALE
    verdict_threshold: float = config.VERDICT_THRESHOLD
    confidence_scale: float = config.CONFIDENCE_SCALE
    confidence_cap: int = config.CONFIDENCE_CAP


RegressorFactory = Callable[[ForecastSettings, Optional[int], Optional[CancelEvent]], Regressor]


def lstm_factory(settings: ForecastSettings, seed: Optional[int] = None,
                 cancel_event: Optional[CancelEvent] = None) -> Regressor:
    return LSTMRegressor(
        window_size=settings.window_size,
        epochs=settings.epochs,
        batch_size=settings.batch_size,
        learning_rate=settings.learning_rate,
        seed=seed,
        cancel_event=cancel_event,
    )


def compute_indicators(series: PriceSeries) -> IndicatorSet:
    return compute_indicator_set(series)


def forecast(series: PriceSeries, sentiment_score: float = 0.0, days_to_predict: int = 30,
             settings: Optional[ForecastSettings] = None, seed: Optional[int] = None,
             cancel_event: Optional[CancelEvent] = None,
             regressor_factory: Optional[RegressorFactory] = None) -> ForecastResult:
    """
    Train a fresh regressor on the trailing window of ``series`` and roll it
    forward ``days_to_predict`` days, nudged by ``sentiment_score``.

    Raises InsufficientDataError, ModelTrainingError or ForecastCancelled.
    """
    settings = settings or ForecastSettings()
    if isinstance(days_to_predict, bool) or not isinstance(days_to_predict, Integral):
        raise ValueError(f'days_to_predict must be an integer (got {days_to_predict!r})')
    days_to_predict = int(days_to_predict)
    if days_to_predict < 1:
        raise ValueError('days_to_predict must be >= 1')
    if not -1.0 <= sentiment_score <= 1.0:
        raise ValueError(f'sentiment_score must be within [-1, 1] (got {sentiment_score})')
    check_cancelled(cancel_event)

    training_set = prepare_training_set(series, settings.trailing_length, settings.window_size)
    if training_set.degenerate:
        logger.info('%s: flat trailing window, normalizing to constant', series.symbol or 'series')

    regressor = (regressor_factory or lstm_factory)(settings, seed, cancel_event)
    try:
        regressor.fit(training_set)
        prices = predict_prices(
            regressor,
            training_set.last_window(),
            training_set.scaling,
            sentiment_score,
            days_to_predict,
            drift=settings.sentiment_drift,
            step_scale=settings.sentiment_step_scale,
            cancel_event=cancel_event,
        )
    finally:
        release = getattr(regressor, 'release', None)
        if release is not None:
            release()

    verdict, confidence, change = evaluate(
        prices,
        series.last_close,
        threshold=settings.verdict_threshold,
        scale=settings.confidence_scale,
        cap=settings.confidence_cap,
    )
    logger.info('%s: %d-day forecast %s (%.2f%%, confidence %d)',
                series.symbol or 'series', days_to_predict, verdict.value, change, confidence)
    return ForecastResult(
        predicted_prices=prices,
        dates=forecast_dates(series.last_timestamp, days_to_predict),
        verdict=verdict.value,
        confidence=confidence,
        current_price=series.last_close,
        percent_change=change,
        sentiment_score=sentiment_score,
        degenerate=training_set.degenerate,
    )


def forecast_many(jobs: Mapping[str, Tuple[PriceSeries, float]], days_to_predict: int = 30,
                  settings: Optional[ForecastSettings] = None,
                  max_workers: int = config.MAX_WORKERS,
                  cancel_event: Optional[CancelEvent] = None,
                  regressor_factory: Optional[RegressorFactory] = None,
                  ) -> Dict[str, Union[ForecastResult, ForecastEngineError, ValueError]]:
    """
    Forecast several symbols in parallel. ``jobs`` maps symbol to
    (series, sentiment_score). A symbol that fails maps to its exception;
    the others are unaffected.
    """
    results = {}
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(jobs) or 1))) as pool:
        futures = {
            symbol: pool.submit(forecast, series, score, days_to_predict, settings,
                                None, cancel_event, regressor_factory)
            for symbol, (series, score) in jobs.items()
        }
        for symbol, future in futures.items():
            try:
                results[symbol] = future.result()
            except (ForecastEngineError, ValueError) as e:
                logger.warning('%s: forecast failed: %s', symbol, e)
                results[symbol] = e
    return results
