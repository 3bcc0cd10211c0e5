"""Error taxonomy shared by the forecasting core and its collaborators."""


class ForecastEngineError(Exception):
    """Base class for every request-scoped failure raised by stock_forecast."""


class InsufficientDataError(ForecastEngineError):
    """Not enough history for the requested window or period."""


class ModelTrainingError(ForecastEngineError):
    """Training or inference produced non-finite numbers."""


class ExternalDataUnavailable(ForecastEngineError):
    """The historical-data provider could not deliver a price series."""


class ForecastCancelled(ForecastEngineError):
    """The caller asked the running request to stop."""
