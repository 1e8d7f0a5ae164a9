"""
Output Schemas for Quality Analytics Engine

Immutable value objects returned by each component. Every to_dict()
emits plain numbers, strings, bools, lists and dicts so a downstream
API or storage layer can serialize results as-is.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple

import pandas as pd


class TrendDirection(Enum):
    """Trend category. CYCLICAL is reserved; no current rule emits it."""
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
    CYCLICAL = "cyclical"


class BreakpointKind(Enum):
    """Breakpoint kind. Only OUTLIER is produced today."""
    TREND_CHANGE = "trend_change"
    SEASONALITY_CHANGE = "seasonality_change"
    OUTLIER = "outlier"


class CorrelationMethod(Enum):
    PEARSON = "pearson"
    SPEARMAN = "spearman"
    KENDALL = "kendall"


class CorrelationStrength(Enum):
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


class ForecastMethod(Enum):
    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    POLYNOMIAL = "polynomial"
    ENSEMBLE = "ensemble"


class InsightCategory(Enum):
    TREND = "trend"
    CORRELATION = "correlation"
    ANOMALY = "anomaly"
    FORECAST = "forecast"


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Quartiles:
    q1: float
    q2: float
    q3: float

    @property
    def iqr(self) -> float:
        return self.q3 - self.q1

    def to_dict(self) -> dict:
        return {'q1': float(self.q1), 'q2': float(self.q2), 'q3': float(self.q3)}


@dataclass(frozen=True)
class StatisticalSummary:
    """
    Descriptive statistics for one series.

    Variance and standard deviation are population figures (divide by n);
    skewness and kurtosis are computed from the same standard deviation.
    """

    count: int
    mean: float
    median: float
    mode: float
    standard_deviation: float
    variance: float
    skewness: float
    kurtosis: float  # Excess kurtosis
    min: float
    max: float
    range: float
    quartiles: Quartiles
    outliers: Tuple[float, ...] = ()  # Ascending

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            'count': self.count,
            'mean': float(self.mean),
            'median': float(self.median),
            'mode': float(self.mode),
            'standard_deviation': float(self.standard_deviation),
            'variance': float(self.variance),
            'skewness': float(self.skewness),
            'kurtosis': float(self.kurtosis),
            'min': float(self.min),
            'max': float(self.max),
            'range': float(self.range),
            'quartiles': self.quartiles.to_dict(),
            'outliers': [float(v) for v in self.outliers],
        }


@dataclass(frozen=True)
class RegressionResult:
    """Ordinary least squares fit of y on normalized x."""
    slope: float
    intercept: float
    r_squared: float


@dataclass(frozen=True)
class SeasonalityInfo:
    detected: bool = False
    period: int = 0  # In samples
    strength: float = 0.0

    def to_dict(self) -> dict:
        return {
            'detected': self.detected,
            'period': int(self.period),
            'strength': float(self.strength),
        }


@dataclass(frozen=True)
class Breakpoint:
    timestamp: int
    kind: BreakpointKind
    confidence: float

    def to_dict(self) -> dict:
        return {
            'timestamp': int(self.timestamp),
            'kind': self.kind.value,
            'confidence': float(self.confidence),
        }


@dataclass(frozen=True)
class TrendAnalysis:
    """
    Trend characterization of a series.

    strength is |R^2| of the regression; confidence adjusts R^2 for
    sample size and dispersion. Both are clamped to [0, 1].
    """

    trend: TrendDirection
    slope: float
    strength: float
    confidence: float
    seasonality: SeasonalityInfo = field(default_factory=SeasonalityInfo)
    breakpoints: Tuple[Breakpoint, ...] = ()

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            'trend': self.trend.value,
            'slope': float(self.slope),
            'strength': float(self.strength),
            'confidence': float(self.confidence),
            'seasonality': self.seasonality.to_dict(),
            'breakpoints': [bp.to_dict() for bp in self.breakpoints],
        }


@dataclass(frozen=True)
class CorrelationResult:
    """Association between two equal-length series for one method."""

    method: CorrelationMethod
    correlation: float
    p_value: float  # Bucketed approximation
    significant: bool
    strength: CorrelationStrength
    interpretation: str

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            'method': self.method.value,
            'correlation': float(self.correlation),
            'p_value': float(self.p_value),
            'significant': self.significant,
            'strength': self.strength.value,
            'interpretation': self.interpretation,
        }


@dataclass(frozen=True)
class ConfidenceInterval:
    lower: float
    upper: float

    def to_dict(self) -> dict:
        return {'lower': float(self.lower), 'upper': float(self.upper)}


@dataclass(frozen=True)
class ErrorMetrics:
    """In-sample fit errors of a forecasting method."""
    mae: float = 0.0
    mse: float = 0.0
    rmse: float = 0.0
    mape: float = 0.0

    def to_dict(self) -> dict:
        return {
            'mae': float(self.mae),
            'mse': float(self.mse),
            'rmse': float(self.rmse),
            'mape': float(self.mape),
        }


@dataclass(frozen=True)
class ForecastResult:
    """
    Projection from one forecasting method (or the ensemble).

    predictions and confidence_intervals are parallel, one entry per
    horizon step.
    """

    method: ForecastMethod
    predictions: Tuple[float, ...]
    confidence_intervals: Tuple[ConfidenceInterval, ...]
    accuracy: float
    error_metrics: ErrorMetrics = field(default_factory=ErrorMetrics)
    seasonality: SeasonalityInfo = field(default_factory=SeasonalityInfo)

    @property
    def horizon(self) -> int:
        return len(self.predictions)

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            'method': self.method.value,
            'predictions': [float(p) for p in self.predictions],
            'confidence_intervals': [ci.to_dict() for ci in self.confidence_intervals],
            'accuracy': float(self.accuracy),
            'error_metrics': self.error_metrics.to_dict(),
            'seasonality': self.seasonality.to_dict(),
        }

    def to_frame(self) -> pd.DataFrame:
        """
        Tabulate predictions with their bounds.

        Returns:
            DataFrame indexed by step (1..horizon) with prediction, lower, upper
        """
        return pd.DataFrame(
            {
                'prediction': list(self.predictions),
                'lower': [ci.lower for ci in self.confidence_intervals],
                'upper': [ci.upper for ci in self.confidence_intervals],
            },
            index=pd.RangeIndex(1, self.horizon + 1, name='step'),
        )


@dataclass(frozen=True)
class QualityInsight:
    """Human-readable finding produced by the Insight Synthesizer."""

    category: InsightCategory
    severity: Severity
    confidence: float
    description: str
    recommendations: Tuple[str, ...] = ()
    metrics: Dict[str, float] = field(default_factory=dict)
    timestamp: int = 0  # Epoch milliseconds

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            'category': self.category.value,
            'severity': self.severity.value,
            'confidence': float(self.confidence),
            'description': self.description,
            'recommendations': list(self.recommendations),
            'metrics': {k: float(v) for k, v in self.metrics.items()},
            'timestamp': int(self.timestamp),
        }
