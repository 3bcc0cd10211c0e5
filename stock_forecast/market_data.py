# stock_forecast/market_data.py
import logging
from typing import Optional

import pandas as pd
import yfinance as yf

from .config import HISTORY_START
from .errors import ExternalDataUnavailable
from .series import PriceSeries

logger = logging.getLogger(__name__)

CRYPTO_SYMBOLS = {'BTC', 'ETH', 'SOL', 'DOGE', 'XRP', 'ADA', 'BNB'}


def provider_symbol(ticker: str) -> str:
    ticker = ticker.strip().upper()
    if ticker in CRYPTO_SYMBOLS:
        return f'{ticker}-USD'
    return ticker


def fetch_stock_data(ticker: str, start: str, end: Optional[str] = None) -> pd.DataFrame:
    df = yf.download(provider_symbol(ticker), start=start, end=end, progress=False, auto_adjust=True)
    df = df.reset_index()
    # Drop the ticker level yfinance adds for single-symbol downloads
    if isinstance(df.columns, pd.MultiIndex):
        df.columns = [col[0] for col in df.columns.values]
    if 'Date' not in df.columns and 'Datetime' in df.columns:
        df = df.rename(columns={'Datetime': 'Date'})
    dates = pd.to_datetime(df['Date'])
    if dates.dt.tz is not None:
        dates = dates.dt.tz_localize(None)
    df['Date'] = dates
    return df


def fetch_price_series(ticker: str, start: str = HISTORY_START, end: Optional[str] = None) -> PriceSeries:
    """
    Daily closes for ``ticker``. Every provider problem, including an empty
    answer, surfaces as ExternalDataUnavailable.
    """
    if end is None:
        end = pd.Timestamp.today().strftime('%Y-%m-%d')
    symbol = ticker.strip().upper()
    try:
        df = fetch_stock_data(symbol, start, end)
    except Exception as e:
        logger.error('Price download failed for %s: %s', symbol, e)
        raise ExternalDataUnavailable(f'Could not fetch history for {symbol}: {e}') from e

    if df.empty or 'Close' not in df.columns:
        raise ExternalDataUnavailable(f'No price data returned for {symbol}')

    df = (df[['Date', 'Close']]
          .dropna()
          .drop_duplicates(subset='Date', keep='last')
          .sort_values('Date'))
    df = df[df['Close'] > 0]
    if df.empty:
        raise ExternalDataUnavailable(f'No usable closes returned for {symbol}')
    return PriceSeries.from_frame(df, symbol=symbol)
