# stock_forecast/news_client.py
import logging
import os

import numpy as np
import requests
from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

from .config import NEWS_PAGE_SIZE, NEWSAPI_KEY
from .series import SentimentSignal

logger = logging.getLogger(__name__)

NEWSAPI_URL = 'https://newsapi.org/v2/everything'
NO_NEWS_RATIONALE = 'No significant news found.'

analyzer = SentimentIntensityAnalyzer()


def fetch_headlines(query, page_size=NEWS_PAGE_SIZE, api_key=None):
    key = api_key or NEWSAPI_KEY or os.getenv('NEWSAPI_KEY')
    if not key:
        raise ValueError('NEWSAPI_KEY not set')
    params = {
        'q': query,
        'language': 'en',
        'pageSize': page_size,
        'sortBy': 'publishedAt',
        'apiKey': key,
    }
    r = requests.get(NEWSAPI_URL, params=params, timeout=10)
    r.raise_for_status()
    payload = r.json()
    if not isinstance(payload, dict):
        raise ValueError(f'Unexpected NewsAPI payload: {type(payload).__name__}')
    articles = payload.get('articles') or []
    if not isinstance(articles, list) or not all(isinstance(a, dict) for a in articles):
        raise ValueError('Unexpected NewsAPI payload: articles must be a list of objects')
    return [str(a.get('title') or a.get('description') or '') for a in articles[:page_size]]


def score_headlines(headlines):
    """Mean VADER compound score of ``headlines`` (0.0 when empty)."""
    compounds = [analyzer.polarity_scores(t).get('compound', 0.0) for t in headlines if t]
    if not compounds:
        return 0.0
    return float(np.clip(np.mean(compounds), -1.0, 1.0))


def get_sentiment(ticker, api_key=None) -> SentimentSignal:
    """
    Sentiment for ``ticker`` from recent headlines. Never raises: any failure
    yields a neutral 0.0 signal flagged as unavailable.
    """
    symbol = ticker.strip().upper()
    try:
        headlines = [h for h in fetch_headlines(symbol, api_key=api_key) if h]
    except (requests.RequestException, ValueError) as e:
        logger.warning('Sentiment unavailable for %s: %s', symbol, e)
        return SentimentSignal.unavailable(str(e))
    except Exception as e:
        logger.warning('Sentiment unavailable for %s: unexpected %s: %s', symbol, type(e).__name__, e)
        return SentimentSignal.unavailable(str(e))

    if not headlines:
        return SentimentSignal(0.0, NO_NEWS_RATIONALE)

    score = score_headlines(headlines)
    tone = 'positive' if score > 0.05 else 'negative' if score < -0.05 else 'neutral'
    rationale = (f'Headline tone is {tone} (mean VADER compound {score:.2f} over '
                 f'{len(headlines)} articles). Latest: "{headlines[0]}"')
    return SentimentSignal(round(score, 4), rationale)
