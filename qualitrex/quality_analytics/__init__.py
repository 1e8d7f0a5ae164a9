"""
Quality Analytics Engine

Statistical analytics over data-quality score series.

Core Responsibilities:
    - Descriptive statistics & IQR outlier detection
    - Regression trend, seasonality & breakpoint analysis
    - Pearson / Spearman / Kendall correlation
    - Linear, exponential, polynomial & ensemble forecasting
    - Severity-tagged quality insights

Flow:
    Quality Series → Summarizer / Trend / Correlation / Forecaster → Insight Synthesizer
"""

from qualitrex.quality_analytics.config import (
    AnalyticsConfig,
    StatisticalMethodsConfig,
    ForecastingConfig,
    CorrelationConfig,
)
from qualitrex.quality_analytics.engine import QualityAnalyticsEngine
from qualitrex.quality_analytics.health_monitor import AnalyticsHealthMonitor
from qualitrex.quality_analytics.exceptions import (
    AnalyticsError,
    FeatureDisabledError,
    EmptyInputError,
    InsufficientDataError,
    InvalidInputError,
    ConfigurationError,
)
from qualitrex.quality_analytics.schemas import (
    StatisticalSummary,
    Quartiles,
    TrendAnalysis,
    TrendDirection,
    SeasonalityInfo,
    Breakpoint,
    BreakpointKind,
    RegressionResult,
    CorrelationResult,
    CorrelationMethod,
    CorrelationStrength,
    ForecastResult,
    ForecastMethod,
    ConfidenceInterval,
    ErrorMetrics,
    QualityInsight,
    InsightCategory,
    Severity,
)
from qualitrex.quality_analytics.descriptive import DescriptiveSummarizer
from qualitrex.quality_analytics.trend import TrendAnalyzer, linear_regression
from qualitrex.quality_analytics.correlation import CorrelationAnalyzer
from qualitrex.quality_analytics.forecasting import Forecaster
from qualitrex.quality_analytics.insights import InsightSynthesizer

__version__ = "1.0.0"

__all__ = [
    'AnalyticsConfig',
    'StatisticalMethodsConfig',
    'ForecastingConfig',
    'CorrelationConfig',
    'QualityAnalyticsEngine',
    'AnalyticsHealthMonitor',
    'AnalyticsError',
    'FeatureDisabledError',
    'EmptyInputError',
    'InsufficientDataError',
    'InvalidInputError',
    'ConfigurationError',
    'StatisticalSummary',
    'Quartiles',
    'TrendAnalysis',
    'TrendDirection',
    'SeasonalityInfo',
    'Breakpoint',
    'BreakpointKind',
    'RegressionResult',
    'CorrelationResult',
    'CorrelationMethod',
    'CorrelationStrength',
    'ForecastResult',
    'ForecastMethod',
    'ConfidenceInterval',
    'ErrorMetrics',
    'QualityInsight',
    'InsightCategory',
    'Severity',
    'DescriptiveSummarizer',
    'TrendAnalyzer',
    'linear_regression',
    'CorrelationAnalyzer',
    'Forecaster',
    'InsightSynthesizer',
]
