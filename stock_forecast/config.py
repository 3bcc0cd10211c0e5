# stock_forecast/config.py
import os
from datetime import date, timedelta

from dotenv import load_dotenv

load_dotenv()

# Normalizer / windower
WINDOW_SIZE = int(os.getenv('WINDOW_SIZE', 5))
TRAINING_WINDOW = int(os.getenv('TRAINING_WINDOW', 60))

# Sequence trainer
EPOCHS = int(os.getenv('EPOCHS', 50))
BATCH_SIZE = int(os.getenv('BATCH_SIZE', 8))
LEARNING_RATE = float(os.getenv('LEARNING_RATE', 0.01))
LSTM_UNITS = int(os.getenv('LSTM_UNITS', 32))
DENSE_UNITS = int(os.getenv('DENSE_UNITS', 16))

# Indicators
RSI_PERIOD = int(os.getenv('RSI_PERIOD', 14))
SMA_SHORT = int(os.getenv('SMA_SHORT', 50))
SMA_LONG = int(os.getenv('SMA_LONG', 200))

# Empirical constants: no derivation behind these, tune freely.
SENTIMENT_DRIFT = float(os.getenv('SENTIMENT_DRIFT', 0.05))
SENTIMENT_STEP_SCALE = float(os.getenv('SENTIMENT_STEP_SCALE', 0.01))
VERDICT_THRESHOLD = float(os.getenv('VERDICT_THRESHOLD', 2.0))
CONFIDENCE_SCALE = float(os.getenv('CONFIDENCE_SCALE', 10))
CONFIDENCE_CAP = int(os.getenv('CONFIDENCE_CAP', 95))

# Service
MIN_FORECAST_HISTORY = int(os.getenv('MIN_FORECAST_HISTORY', 60))
FORECAST_TIMEOUT = float(os.getenv('FORECAST_TIMEOUT', 120))
MAX_WORKERS = int(os.getenv('MAX_WORKERS', 4))
HISTORY_START = os.getenv('HISTORY_START', (date.today() - timedelta(days=5 * 365)).isoformat())
HISTORY_DAYS_RETURNED = int(os.getenv('HISTORY_DAYS_RETURNED', 90))
NEWS_PAGE_SIZE = int(os.getenv('NEWS_PAGE_SIZE', 5))
NEWSAPI_KEY = os.getenv('NEWSAPI_KEY')
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
