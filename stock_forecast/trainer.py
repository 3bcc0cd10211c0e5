# stock_forecast/trainer.py
import logging
import math
from typing import Optional, Protocol

import numpy as np
import tensorflow as tf
from tensorflow.keras.callbacks import Callback
from tensorflow.keras.layers import LSTM, Dense, Input
from tensorflow.keras.models import Sequential
from tensorflow.keras.optimizers import Adam

from .config import BATCH_SIZE, DENSE_UNITS, EPOCHS, LEARNING_RATE, LSTM_UNITS, WINDOW_SIZE
from .errors import ForecastCancelled, InsufficientDataError, ModelTrainingError
from .utils import TrainingSet

logger = logging.getLogger(__name__)

MIN_TRAINING_EXAMPLES = 2


class CancelEvent(Protocol):
    def is_set(self) -> bool: ...


class Regressor(Protocol):
    """Anything that learns window -> next value from a TrainingSet."""

    def fit(self, training_set: TrainingSet) -> "Regressor": ...

    def predict(self, window: np.ndarray) -> float: ...


def check_cancelled(cancel_event: Optional[CancelEvent]):
    if cancel_event is not None and cancel_event.is_set():
        raise ForecastCancelled("Forecast cancelled by caller")


def build_model(window_size: int = WINDOW_SIZE, learning_rate: float = LEARNING_RATE):
    model = Sequential([
        Input(shape=(window_size, 1)),
        LSTM(LSTM_UNITS, return_sequences=False, recurrent_initializer='glorot_normal'),
        Dense(DENSE_UNITS, activation='relu'),
        Dense(1),
    ])
    model.compile(optimizer=Adam(learning_rate=learning_rate), loss='mse')
    return model


class TrainingGuard(Callback):
    """Stops fit() on a non-finite loss or when the caller cancels."""

    def __init__(self, cancel_event: Optional[CancelEvent] = None):
        super().__init__()
        self.cancel_event = cancel_event
        self.diverged = False
        self.bad_loss = None
        self.cancelled = False

    def _check_loss(self, logs):
        loss = (logs or {}).get('loss')
        if loss is None:
            return True
        if not math.isfinite(float(loss)):
            self.diverged = True
            self.bad_loss = loss
            self.model.stop_training = True
            return False
        return True

    def on_train_batch_end(self, batch, logs=None):
        self._check_loss(logs)

    def on_epoch_end(self, epoch, logs=None):
        if not self._check_loss(logs):
            return
        logger.debug('epoch %d loss=%s', epoch + 1, (logs or {}).get('loss'))
        if self.cancel_event is not None and self.cancel_event.is_set():
            self.cancelled = True
            self.model.stop_training = True


class LSTMRegressor:
    """
    LSTM(32) -> Dense(16, relu) -> Dense(1) over one window of normalized closes.

    Weights start random, so two fits on the same data differ unless ``seed``
    is given. Seeding goes through tf.keras.utils.set_random_seed, which is
    process wide; use it for tests, not for concurrent production requests.
    """

    def __init__(self, window_size: int = WINDOW_SIZE, epochs: int = EPOCHS,
                 batch_size: int = BATCH_SIZE, learning_rate: float = LEARNING_RATE,
                 seed: Optional[int] = None, cancel_event: Optional[CancelEvent] = None):
        self.window_size = window_size
        self.epochs = epochs
        self.batch_size = batch_size
        self.learning_rate = learning_rate
        self.seed = seed
        self.cancel_event = cancel_event
        self.model = None
        self.final_loss = None

    def fit(self, training_set: TrainingSet) -> "LSTMRegressor":
        if len(training_set) < MIN_TRAINING_EXAMPLES:
            raise InsufficientDataError(
                f'Need at least {MIN_TRAINING_EXAMPLES} training examples. Received {len(training_set)}.'
            )
        if training_set.window_size != self.window_size:
            raise ValueError(
                f'training windows have size {training_set.window_size}, model expects {self.window_size}'
            )
        check_cancelled(self.cancel_event)

        if self.seed is not None:
            tf.keras.utils.set_random_seed(self.seed)

        X = training_set.X.reshape((-1, self.window_size, 1))
        y = training_set.y.reshape(-1, 1)
        model = build_model(self.window_size, self.learning_rate)
        guard = TrainingGuard(self.cancel_event)

        logger.info('Training LSTM on %d examples (epochs=%d, batch_size=%d)',
                    len(y), self.epochs, self.batch_size)
        history = model.fit(X, y, epochs=self.epochs, batch_size=self.batch_size,
                            shuffle=True, callbacks=[guard], verbose=0)

        if guard.diverged:
            raise ModelTrainingError(f'Training diverged: non-finite loss ({guard.bad_loss})')
        if guard.cancelled:
            raise ForecastCancelled('Training cancelled by caller')

        losses = history.history.get('loss') or [float('nan')]
        self.final_loss = float(losses[-1])
        if not math.isfinite(self.final_loss):
            raise ModelTrainingError(f'Training diverged: final loss {self.final_loss}')
        logger.info('Training finished after %d epochs, loss=%.6f', len(losses), self.final_loss)
        self.model = model
        return self

    def predict(self, window: np.ndarray) -> float:
        if self.model is None:
            raise RuntimeError('fit() must be called before predict()')
        x = np.asarray(window, dtype=np.float32).reshape((1, self.window_size, 1))
        out = self.model(x, training=False)
        return float(np.asarray(out)[0, 0])

    def release(self):
        """Drop the fitted network; a regressor never outlives its request."""
        self.model = None


def train(training_set: TrainingSet, seed: Optional[int] = None,
          cancel_event: Optional[CancelEvent] = None, **kwargs) -> LSTMRegressor:
    """Fit a fresh LSTMRegressor on ``training_set``."""
    regressor = LSTMRegressor(window_size=training_set.window_size, seed=seed,
                              cancel_event=cancel_event, **kwargs)
    return regressor.fit(training_set)
