import pandas as pd
import pytest

from stock_forecast.series import ForecastResult, PriceSeries, SentimentSignal

from conftest import make_series


def test_from_frame_and_accessors():
    df = pd.DataFrame({
        "Date": pd.to_datetime(["2024-01-02", "2024-01-03", "2024-01-04"]),
        "Close": [10.0, 11.0, 12.5],
    })
    series = PriceSeries.from_frame(df, symbol="ABC")
    assert len(series) == 3
    assert series.last_close == 12.5
    assert series.last_timestamp == pd.Timestamp("2024-01-04")
    assert series.to_records()[0] == {"date": "2024-01-02", "close": 10.0}
    assert series.tail(2).closes == (11.0, 12.5)


def test_values_returns_a_copy():
    series = make_series([1.0, 2.0, 3.0])
    arr = series.values()
    arr[0] = 99.0
    assert series.closes[0] == 1.0


def test_series_is_immutable():
    series = make_series([1.0, 2.0])
    with pytest.raises(Exception):
        series.closes = (5.0, 6.0)


@pytest.mark.parametrize("pairs", [
    [("2024-01-02", 10.0), ("2024-01-01", 11.0)],
    [("2024-01-01", 10.0), ("2024-01-01", 11.0)],
    [("2024-01-01", 10.0), ("2024-01-02", 0.0)],
    [("2024-01-01", 10.0), ("2024-01-02", -3.0)],
    [("2024-01-01", float("nan"))],
])
def test_invalid_series_rejected(pairs):
    with pytest.raises(ValueError):
        PriceSeries.from_pairs(pairs)


def test_sentiment_signal_bounds():
    assert SentimentSignal(0.4, "ok").available
    with pytest.raises(ValueError):
        SentimentSignal(1.2, "too much")
    fallback = SentimentSignal.unavailable("timeout")
    assert fallback.score == 0.0
    assert not fallback.available
    assert fallback.rationale.startswith("Sentiment unavailable")


def test_forecast_result_to_dict():
    result = ForecastResult(
        predicted_prices=[101.0],
        dates=[pd.Timestamp("2024-05-02")],
        verdict="HOLD",
        confidence=10,
        current_price=100.0,
        percent_change=1.0,
    )
    d = result.to_dict()
    assert d["dates"] == ["2024-05-02"]
    assert d["verdict"] == "HOLD"
