"""
Trend, Seasonality & Breakpoint Analysis

Least-squares trend over timestamps, autocorrelation-based seasonality
and a moving-window outlier breakpoint scan.

    slope = (nΣxy - ΣxΣy) / (nΣx² - (Σx)²)
    R²    = 1 - SS_res / SS_tot
    ρ_k   = Σ(x_i - μ)(x_{i+k} - μ) / ((n - k)·σ²)
"""

from typing import List, Optional, Tuple
import logging

import numpy as np
import pandas as pd

from .schemas import (
    Breakpoint,
    BreakpointKind,
    RegressionResult,
    SeasonalityInfo,
    TrendAnalysis,
    TrendDirection,
)
from .validation import (
    SeriesLike,
    as_timestamps,
    as_values,
    population_variance,
    require_min_length,
)

LOG = logging.getLogger(__name__)

MIN_TREND_POINTS = 3
MIN_SEASONALITY_POINTS = 20
MIN_BREAKPOINT_POINTS = 10


def linear_regression(x: SeriesLike, y: SeriesLike) -> RegressionResult:
    """
    Ordinary least squares of y on x - min(x).

    Shifting x keeps epoch-millisecond timestamps from losing precision
    in the squared sums. A constant y gives R² = 0; a constant x gives
    slope 0 and intercept mean(y).

    Args:
        x: Regressor (timestamps or indices)
        y: Response

    Returns:
        RegressionResult(slope, intercept, r_squared)
    """
    x_arr = np.asarray(x, dtype=np.float64)
    y_arr = np.asarray(y, dtype=np.float64)
    n = len(x_arr)

    x_norm = x_arr - x_arr.min()

    sum_x = float(np.sum(x_norm))
    sum_y = float(np.sum(y_arr))
    sum_xy = float(np.dot(x_norm, y_arr))
    sum_x2 = float(np.dot(x_norm, x_norm))

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        slope = 0.0
    else:
        slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n

    y_mean = sum_y / n
    predicted = slope * x_norm + intercept
    ss_res = float(np.sum((y_arr - predicted) ** 2))
    ss_tot = float(np.sum((y_arr - y_mean) ** 2))
    r_squared = 0.0 if ss_tot == 0 else 1.0 - ss_res / ss_tot

    return RegressionResult(slope=slope, intercept=intercept, r_squared=r_squared)


def autocorrelation(values: np.ndarray, lag: int) -> float:
    """Lag-k autocorrelation normalized by the population variance."""
    n = len(values)
    if lag >= n:
        return 0.0
    variance = population_variance(values)
    if variance == 0:
        return 0.0
    centered = values - values.mean()
    total = float(np.dot(centered[:n - lag], centered[lag:]))
    return total / ((n - lag) * variance)


class TrendAnalyzer:
    """
    Characterize direction, strength and structure of a series over time.

    Direction:
        STABLE      if |R²| < 0.1 or |slope| < 0.001
        INCREASING  if slope > 0
        DECREASING  otherwise

    CYCLICAL is never assigned here, even when seasonality is detected.
    """

    STABLE_R_SQUARED = 0.1
    STABLE_SLOPE = 0.001
    SEASONALITY_THRESHOLD = 0.3
    MAX_SEASONAL_LAG = 20
    BREAKPOINT_MAX_CONFIDENCE = 0.9

    def __init__(self, seasonality_detection: bool = True, logger: Optional[logging.Logger] = None):
        """
        Initialize trend analyzer.

        Args:
            seasonality_detection: Run autocorrelation seasonality scan
            logger: Logging collaborator (module logger if None)
        """
        self.seasonality_detection = seasonality_detection
        self.log = logger or LOG

    def classify_direction(self, slope: float, r_squared: float) -> TrendDirection:
        if abs(r_squared) < self.STABLE_R_SQUARED or abs(slope) < self.STABLE_SLOPE:
            return TrendDirection.STABLE
        if slope > 0:
            return TrendDirection.INCREASING
        return TrendDirection.DECREASING

    def compute_confidence(self, values: np.ndarray, r_squared: float) -> float:
        """
        Adjust R² for sample size and dispersion, clamped to [0, 1].

        n < 10 → ×0.8, n > 50 → ×1.1; CV < 0.1 → ×1.2, CV > 0.5 → ×0.7
        """
        confidence = r_squared
        n = len(values)

        if n < 10:
            confidence *= 0.8
        elif n > 50:
            confidence *= 1.1

        mean = float(values.mean())
        std = float(np.sqrt(population_variance(values)))
        if mean != 0:
            cv = std / mean
        elif std > 0:
            cv = float('inf')
        else:
            cv = None  # Constant zero series: no dispersion adjustment

        if cv is not None:
            if cv < 0.1:
                confidence *= 1.2
            elif cv > 0.5:
                confidence *= 0.7

        return max(0.0, min(1.0, confidence))

    def detect_seasonality(self, values: SeriesLike) -> SeasonalityInfo:
        """
        Pick the lag in 1..min(20, n//2) with the highest autocorrelation.

        Returns:
            SeasonalityInfo; detected when the best autocorrelation > 0.3
        """
        data = as_values(values)
        n = len(data)

        if not self.seasonality_detection or n < MIN_SEASONALITY_POINTS:
            return SeasonalityInfo()

        max_lag = min(self.MAX_SEASONAL_LAG, n // 2)
        max_correlation = 0.0
        best_period = 0

        for lag in range(1, max_lag + 1):
            corr = autocorrelation(data, lag)
            if corr > max_correlation:
                max_correlation = corr
                best_period = lag

        detected = max_correlation > self.SEASONALITY_THRESHOLD
        self.log.debug(f"Seasonality scan: best lag={best_period}, autocorr={max_correlation:.4f}")

        return SeasonalityInfo(
            detected=detected,
            period=best_period,
            strength=max_correlation if detected else 0.0,
        )

    def detect_breakpoints(self, values: SeriesLike, timestamps: SeriesLike) -> Tuple[Breakpoint, ...]:
        """
        Flag points far from both the preceding and following window means.

        Window w = max(3, n // 10). A point i in [w, n - w) is an OUTLIER
        breakpoint when |x_i - mean(x[i-w:i])| and |x_i - mean(x[i:i+w])|
        both exceed 2·variance(x).

        Returns:
            Tuple of Breakpoint (empty when n < 10)
        """
        data = as_values(values)
        ts = as_timestamps(timestamps, len(data))
        n = len(data)

        if n < MIN_BREAKPOINT_POINTS:
            return ()

        window = max(3, n // 10)
        threshold = population_variance(data) * 2

        rolling_mean = pd.Series(data).rolling(window=window).mean().to_numpy()
        idx = np.arange(window, n - window)
        before_diff = np.abs(data[idx] - rolling_mean[idx - 1])
        after_diff = np.abs(data[idx] - rolling_mean[idx + window - 1])

        breakpoints: List[Breakpoint] = []
        for i, bd, ad in zip(idx, before_diff, after_diff):
            if bd > threshold and ad > threshold:
                breakpoints.append(Breakpoint(
                    timestamp=int(ts[i]),
                    kind=BreakpointKind.OUTLIER,
                    confidence=min(self.BREAKPOINT_MAX_CONFIDENCE, float(bd + ad) / (threshold * 2)),
                ))

        return tuple(breakpoints)

    def analyze_trend(self, values: SeriesLike, timestamps: SeriesLike) -> TrendAnalysis:
        """
        Regression-based trend analysis.

        Args:
            values: Series samples (n >= 3)
            timestamps: Ascending epoch-ms timestamps, same length

        Returns:
            TrendAnalysis

        Raises:
            InsufficientDataError: fewer than 3 samples
            InvalidInputError: length mismatch or non-finite samples
        """
        data = as_values(values)
        ts = as_timestamps(timestamps, len(data))
        require_min_length(data, MIN_TREND_POINTS, "trend analysis")

        regression = linear_regression(ts, data)
        strength = min(1.0, abs(regression.r_squared))
        confidence = self.compute_confidence(data, regression.r_squared)
        trend = self.classify_direction(regression.slope, regression.r_squared)

        analysis = TrendAnalysis(
            trend=trend,
            slope=regression.slope,
            strength=strength,
            confidence=confidence,
            seasonality=self.detect_seasonality(data),
            breakpoints=self.detect_breakpoints(data, ts),
        )

        self.log.info(
            f"Trend analysis completed: trend={trend.value}, strength={strength:.3f}, "
            f"confidence={confidence:.3f}",
            extra={'trend': trend.value, 'breakpoint_count': len(analysis.breakpoints)},
        )

        return analysis
