# stock_forecast/main.py
import asyncio
import logging
import threading
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from . import engine
from .config import (EPOCHS, FORECAST_TIMEOUT, HISTORY_DAYS_RETURNED, HISTORY_START, LOG_LEVEL,
                     MIN_FORECAST_HISTORY, TRAINING_WINDOW, WINDOW_SIZE)
from .errors import (ExternalDataUnavailable, ForecastCancelled, ForecastEngineError,
                     InsufficientDataError, ModelTrainingError)
from .market_data import fetch_price_series
from .models import (CompareEntry, CompareRequest, CompareResponse, ForecastRequest,
                     ForecastResponse, IndicatorResponse, PricePoint, SentimentResponse)
from .news_client import get_sentiment
from .series import ForecastResult, PriceSeries, SentimentSignal

logging.basicConfig(level=LOG_LEVEL, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
logger = logging.getLogger(__name__)

app = FastAPI(title='Stock Forecast API', version='1.0')

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS = {
    InsufficientDataError: 422,
    ExternalDataUnavailable: 502,
    ModelTrainingError: 500,
    ForecastCancelled: 504,
}


def _http_error(e: Exception) -> HTTPException:
    for exc_type, status in ERROR_STATUS.items():
        if isinstance(e, exc_type):
            return HTTPException(status_code=status, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


async def _run_with_timeout(fn, *args, **kwargs):
    """
    Run a blocking core call in a worker thread. On timeout the call's cancel
    event is set, so training stops at its next epoch boundary.
    """
    cancel_event = threading.Event()
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(fn, *args, cancel_event=cancel_event, **kwargs),
            timeout=FORECAST_TIMEOUT,
        )
    except asyncio.TimeoutError:
        cancel_event.set()
        raise ForecastCancelled(f'Forecast exceeded {FORECAST_TIMEOUT:.0f}s and was cancelled')


async def _load_series(ticker: str, start: str = HISTORY_START, end: Optional[str] = None) -> PriceSeries:
    return await asyncio.to_thread(fetch_price_series, ticker, start, end)


def _sentiment_response(signal: SentimentSignal) -> SentimentResponse:
    return SentimentResponse(score=signal.score, rationale=signal.rationale, available=signal.available)


def _forecast_response(ticker: str, series: PriceSeries, result: ForecastResult,
                       signal: SentimentSignal) -> ForecastResponse:
    payload = result.to_dict()
    return ForecastResponse(
        ticker=ticker,
        verdict=payload['verdict'],
        confidence=payload['confidence'],
        percent_change=payload['percent_change'],
        current_price=payload['current_price'],
        predicted_prices=payload['predicted_prices'],
        dates=payload['dates'],
        sentiment=_sentiment_response(signal),
        degenerate=payload['degenerate'],
        history=[PricePoint(**p) for p in series.tail(HISTORY_DAYS_RETURNED).to_records()],
    )


@app.get('/health')
async def health():
    return {
        'status': 'ok',
        'window_size': WINDOW_SIZE,
        'training_window': TRAINING_WINDOW,
        'epochs': EPOCHS,
    }


@app.get('/historical')
async def historical(ticker: str = 'AAPL', start: str = HISTORY_START, end: str = None):
    """Return daily closes for a ticker and date range"""
    try:
        series = await _load_series(ticker, start, end)
    except ForecastEngineError as e:
        raise _http_error(e)
    return series.to_records()


@app.get('/sentiment', response_model=SentimentResponse)
async def sentiment(ticker: str = 'AAPL'):
    signal = await asyncio.to_thread(get_sentiment, ticker)
    return _sentiment_response(signal)


@app.get('/indicators', response_model=IndicatorResponse)
async def indicators(ticker: str = 'AAPL'):
    try:
        series = await _load_series(ticker)
        ind = engine.compute_indicators(series)
    except (ForecastEngineError, ValueError) as e:
        raise _http_error(e)
    return IndicatorResponse(ticker=series.symbol, **ind.to_dict())


@app.post('/forecast', response_model=ForecastResponse)
async def forecast_endpoint(req: ForecastRequest):
    ticker = req.ticker.strip().upper()
    try:
        series = await _load_series(ticker)
        if len(series) < MIN_FORECAST_HISTORY:
            raise InsufficientDataError(
                f"Need at least {MIN_FORECAST_HISTORY} days of data to forecast. Received {len(series)}."
            )
        if req.sentiment_score is None:
            signal = await asyncio.to_thread(get_sentiment, ticker)
        else:
            signal = SentimentSignal(req.sentiment_score, 'Supplied by caller')

        result = await _run_with_timeout(engine.forecast, series, signal.score, req.days_to_predict)
    except (ForecastEngineError, ValueError) as e:
        logger.warning('Forecast for %s failed: %s', ticker, e)
        raise _http_error(e)
    return _forecast_response(ticker, series, result, signal)


@app.post('/compare', response_model=CompareResponse)
async def compare_endpoint(req: CompareRequest):
    tickers = list(dict.fromkeys(t.strip().upper() for t in req.tickers))
    loaded = await asyncio.gather(*(_load_series(t) for t in tickers), return_exceptions=True)

    entries = {}
    jobs, signals, series_by_ticker = {}, {}, {}
    for ticker, series in zip(tickers, loaded):
        if isinstance(series, (ForecastEngineError, ValueError)):
            entries[ticker] = CompareEntry(error=str(series))
            continue
        if isinstance(series, BaseException):
            raise series
        series_by_ticker[ticker] = series

    fetched = await asyncio.gather(*(asyncio.to_thread(get_sentiment, t) for t in series_by_ticker))
    for ticker, signal in zip(series_by_ticker, fetched):
        signals[ticker] = signal
        jobs[ticker] = (series_by_ticker[ticker], signal.score)

    if jobs:
        try:
            outcomes = await _run_with_timeout(engine.forecast_many, jobs, req.days_to_predict)
        except ForecastCancelled as e:
            raise _http_error(e)
        for ticker, outcome in outcomes.items():
            if isinstance(outcome, ForecastResult):
                entries[ticker] = CompareEntry(
                    forecast=_forecast_response(ticker, series_by_ticker[ticker], outcome, signals[ticker])
                )
            else:
                entries[ticker] = CompareEntry(error=str(outcome))

    ranked = [(e.forecast.percent_change, t) for t, e in entries.items() if e.forecast is not None]
    stronger = max(ranked)[1] if ranked else None
    return CompareResponse(results={t: entries[t] for t in tickers}, stronger=stronger)


if __name__ == '__main__':
    uvicorn.run('stock_forecast.main:app', host='0.0.0.0', port=8000, reload=True)
