"""
Short-Horizon Forecasting

Independent linear, exponential and quadratic projections plus an
equal-weight ensemble, each with symmetric confidence bands.

Named approximations (kept as-is, candidates for upgrade):
    - Exponential smoothing reseeds from the last observation every step,
      so the projection is flat at the last value.
    - The quadratic fit fixes the leading coefficient at 0.001 and
      back-solves b and c from the moment sums; it is not a least-squares
      quadratic.
    - accuracy is a per-method constant (0.8, ensemble 0.85), not a
      measured fit quality.
"""

from typing import List, Optional, Sequence, Tuple
import logging

import numpy as np

from .schemas import (
    ConfidenceInterval,
    ErrorMetrics,
    ForecastMethod,
    ForecastResult,
    SeasonalityInfo,
)
from .trend import TrendAnalyzer, linear_regression
from .validation import SeriesLike, as_timestamps, as_values, require_min_length
from .exceptions import InvalidInputError

LOG = logging.getLogger(__name__)

MIN_FORECAST_POINTS = 10

SMOOTHING_ALPHA = 0.3
POLYNOMIAL_LEADING_COEFFICIENT = 0.001
METHOD_ACCURACY = 0.8
ENSEMBLE_ACCURACY = 0.85
CONFIDENCE_Z = 1.96

# (predictions, in-sample fitted values)
MethodFit = Tuple[np.ndarray, np.ndarray]


def confidence_intervals(predictions: Sequence[float], accuracy: float) -> Tuple[ConfidenceInterval, ...]:
    """
    Symmetric band of prediction·(1 - accuracy)·1.96, lower bound floored at 0.
    """
    intervals = []
    for prediction in predictions:
        margin = prediction * (1 - accuracy) * CONFIDENCE_Z
        intervals.append(ConfidenceInterval(
            lower=max(0.0, prediction - margin),
            upper=prediction + margin,
        ))
    return tuple(intervals)


def error_metrics(actual: np.ndarray, fitted: np.ndarray) -> ErrorMetrics:
    """
    In-sample fit errors.

    MAPE is a fraction and skips zero actuals (0 when every actual is 0).
    """
    residuals = actual - fitted
    mae = float(np.mean(np.abs(residuals)))
    mse = float(np.mean(residuals ** 2))

    nonzero = actual != 0
    if np.any(nonzero):
        mape = float(np.mean(np.abs(residuals[nonzero] / actual[nonzero])))
    else:
        mape = 0.0

    return ErrorMetrics(mae=mae, mse=mse, rmse=float(np.sqrt(mse)), mape=mape)


class Forecaster:
    """
    Project a series forward with several methods.

    A failing method is logged and left out; it never fails the batch.
    When at least two methods succeed an ENSEMBLE result is appended.
    """

    def __init__(
        self,
        methods: Sequence[str] = ('linear', 'exponential', 'polynomial'),
        trend_analyzer: Optional[TrendAnalyzer] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize forecaster.

        Args:
            methods: Method names to run, in output order
            trend_analyzer: Supplies the seasonality routine
            logger: Logging collaborator (module logger if None)
        """
        self.methods = tuple(methods)
        self.log = logger or LOG
        self.trend_analyzer = trend_analyzer or TrendAnalyzer(logger=self.log)

    @staticmethod
    def linear_forecast(values: np.ndarray, horizon: int) -> MethodFit:
        """Regress on indices 0..n-1, project indices n..n+h-1, clamp at 0."""
        n = len(values)
        x = np.arange(n, dtype=float)
        fit = linear_regression(x, values)

        future = np.arange(n, n + horizon, dtype=float)
        predictions = np.maximum(0.0, fit.slope * future + fit.intercept)
        fitted = fit.slope * x + fit.intercept
        return predictions, fitted

    @staticmethod
    def exponential_forecast(values: np.ndarray, horizon: int) -> MethodFit:
        """
        Fixed-α smoothing seeded with the last observation.

        Every step blends the same last value into the running forecast,
        so the projection stays at that value. Fitted values are ordinary
        one-step-ahead smoothed estimates.
        """
        last = float(values[-1])
        forecast = last
        predictions = np.empty(horizon)
        for i in range(horizon):
            forecast = SMOOTHING_ALPHA * last + (1 - SMOOTHING_ALPHA) * forecast
            predictions[i] = max(0.0, forecast)

        fitted = np.empty(len(values))
        fitted[0] = values[0]
        for t in range(1, len(values)):
            fitted[t] = SMOOTHING_ALPHA * values[t - 1] + (1 - SMOOTHING_ALPHA) * fitted[t - 1]
        return predictions, fitted

    @staticmethod
    def fit_polynomial(x: np.ndarray, y: np.ndarray) -> Tuple[float, float, float]:
        """
        Simplified degree-2 coefficients (a, b, c).

        a is fixed; b = (Σxy - aΣx³)/Σx²; c = (Σy - aΣx⁴ - bΣx²)/n.
        """
        n = len(x)
        sum_x2 = float(np.sum(x ** 2))
        sum_x3 = float(np.sum(x ** 3))
        sum_x4 = float(np.sum(x ** 4))
        sum_y = float(np.sum(y))
        sum_xy = float(np.dot(x, y))

        a = POLYNOMIAL_LEADING_COEFFICIENT
        b = (sum_xy - a * sum_x3) / sum_x2
        c = (sum_y - a * sum_x4 - b * sum_x2) / n
        return a, b, c

    def polynomial_forecast(self, values: np.ndarray, horizon: int) -> MethodFit:
        n = len(values)
        x = np.arange(n, dtype=float)
        a, b, c = self.fit_polynomial(x, values)

        future = np.arange(n, n + horizon, dtype=float)
        predictions = np.maximum(0.0, a * future ** 2 + b * future + c)
        fitted = a * x ** 2 + b * x + c
        return predictions, fitted

    def _method_result(
        self,
        method: str,
        values: np.ndarray,
        horizon: int,
        seasonality: SeasonalityInfo
    ) -> Tuple[ForecastResult, np.ndarray]:
        # Unknown names raise here and are isolated like any other failure
        method_fn = getattr(self, f"{ForecastMethod(method).value}_forecast")
        predictions, fitted = method_fn(values, horizon)
        predictions = tuple(float(p) for p in predictions)

        result = ForecastResult(
            method=ForecastMethod(method),
            predictions=predictions,
            confidence_intervals=confidence_intervals(predictions, METHOD_ACCURACY),
            accuracy=METHOD_ACCURACY,
            error_metrics=error_metrics(values, fitted),
            seasonality=seasonality,
        )
        return result, fitted

    def ensemble(
        self,
        forecasts: List[ForecastResult],
        fitted: List[np.ndarray],
        values: np.ndarray
    ) -> ForecastResult:
        """
        Index-wise mean of member predictions.

        Steps missing from a shorter member are averaged over the members
        that have them.
        """
        horizon = max(f.horizon for f in forecasts)
        predictions = []
        for i in range(horizon):
            step = [f.predictions[i] for f in forecasts if i < f.horizon]
            predictions.append(sum(step) / len(step) if step else 0.0)

        ensemble_fitted = np.mean(np.vstack(fitted), axis=0)

        return ForecastResult(
            method=ForecastMethod.ENSEMBLE,
            predictions=tuple(predictions),
            confidence_intervals=confidence_intervals(predictions, ENSEMBLE_ACCURACY),
            accuracy=ENSEMBLE_ACCURACY,
            error_metrics=error_metrics(values, ensemble_fitted),
            seasonality=SeasonalityInfo(),
        )

    def forecast(self, values: SeriesLike, timestamps: SeriesLike, horizon: int) -> List[ForecastResult]:
        """
        Forecast `horizon` steps with every configured method.

        Args:
            values: Observed series (n >= 10)
            timestamps: Epoch-ms timestamps, same length
            horizon: Steps to project (0 yields empty predictions)

        Returns:
            One ForecastResult per successful method, then ENSEMBLE if
            at least two succeeded

        Raises:
            InsufficientDataError: fewer than 10 samples
            InvalidInputError: bad horizon or length mismatch
        """
        data = as_values(values)
        as_timestamps(timestamps, len(data))
        require_min_length(data, MIN_FORECAST_POINTS, "forecasting")

        if isinstance(horizon, bool) or not isinstance(horizon, (int, np.integer)) or horizon < 0:
            raise InvalidInputError(f"horizon must be a non-negative int, got {horizon!r}")
        horizon = int(horizon)

        seasonality = self.trend_analyzer.detect_seasonality(data)

        forecasts: List[ForecastResult] = []
        fitted: List[np.ndarray] = []

        for method in self.methods:
            try:
                result, method_fitted = self._method_result(method, data, horizon, seasonality)
            except Exception as e:
                self.log.warning(
                    f"Forecast method {method} failed: {e}",
                    extra={'forecast_method': method, 'data_points': len(data)},
                )
                continue
            forecasts.append(result)
            fitted.append(method_fitted)

        if len(forecasts) > 1:
            forecasts.append(self.ensemble(forecasts, fitted, data))

        self.log.info(
            f"Forecasting completed: results={len(forecasts)}, horizon={horizon}, "
            f"data_points={len(data)}",
            extra={'result_count': len(forecasts), 'horizon': horizon},
        )

        return forecasts
