"""
Quality Analytics Engine

Thin service wrapper over the five analytics components:
1. Descriptive Summarizer
2. Trend Analyzer
3. Correlation Analyzer
4. Forecaster
5. Insight Synthesizer

Holds one immutable AnalyticsConfig, gates each operation on its
feature flag and reports timings to an optional health monitor. Every
operation is a pure function of its arguments, so one engine can serve
concurrent callers.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional
import logging

from .config import AnalyticsConfig
from .correlation import CorrelationAnalyzer
from .descriptive import DescriptiveSummarizer
from .exceptions import FeatureDisabledError
from .forecasting import Forecaster
from .health_monitor import AnalyticsHealthMonitor
from .insights import InsightSynthesizer
from .schemas import (
    CorrelationResult,
    ForecastResult,
    QualityInsight,
    StatisticalSummary,
    TrendAnalysis,
)
from .trend import TrendAnalyzer
from .validation import SeriesLike

LOG = logging.getLogger(__name__)


class QualityAnalyticsEngine:
    """
    Quality Analytics Engine.

    Turns a quality-score series into statistics, trend, correlation,
    forecast and insight results.
    """

    def __init__(
        self,
        config: Optional[AnalyticsConfig] = None,
        logger: Optional[logging.Logger] = None,
        health_monitor: Optional[AnalyticsHealthMonitor] = None,
        clock: Optional[Callable[[], int]] = None
    ):
        """
        Initialize engine with configuration.

        Args:
            config: Engine configuration (uses defaults if None)
            logger: Logging collaborator shared by all components
            health_monitor: Optional metrics sink
            clock: Epoch-ms source for insight timestamps
        """
        self._config = config or AnalyticsConfig()
        self.log = logger or LOG
        self.health_monitor = health_monitor
        self.clock = clock

        self.summarizer = DescriptiveSummarizer(logger=self.log)

        self.trend_analyzer = TrendAnalyzer(
            seasonality_detection=self._config.forecasting.seasonality_detection,
            logger=self.log
        )

        self.correlation_analyzer = CorrelationAnalyzer(
            enable_pearson=self._config.correlation.enable_pearson,
            enable_spearman=self._config.correlation.enable_spearman,
            enable_kendall=self._config.correlation.enable_kendall,
            min_correlation=self._config.correlation.min_correlation,
            logger=self.log
        )

        self.forecaster = Forecaster(
            methods=self._config.forecasting.methods,
            trend_analyzer=self.trend_analyzer,
            logger=self.log
        )

        self.insight_synthesizer = self._build_synthesizer()

        self.log.info(f"Quality analytics engine initialized with config: {self._config.get_config_hash()}")

    @property
    def config(self) -> AnalyticsConfig:
        return self._config

    def with_config(self, updates: Dict[str, Any]) -> 'QualityAnalyticsEngine':
        """
        Build a new engine from a partial config update.

        The current engine and its config are left unchanged.
        """
        new_config = self._config.with_updates(updates)
        self.log.info(f"Analytics configuration updated: {new_config.get_config_hash()}")
        return QualityAnalyticsEngine(
            config=new_config,
            logger=self.log,
            health_monitor=self.health_monitor,
            clock=self.clock,
        )

    def _descriptive_enabled(self) -> bool:
        return self._config.enable_statistical_analysis and self._config.statistical_methods.descriptive

    def _build_synthesizer(self) -> InsightSynthesizer:
        cfg = self._config
        return InsightSynthesizer(
            summarizer=self.summarizer if self._descriptive_enabled() else None,
            trend_analyzer=self.trend_analyzer if cfg.enable_trend_forecasting else None,
            correlation_analyzer=self.correlation_analyzer if cfg.enable_correlation_analysis else None,
            forecaster=(
                self.forecaster
                if cfg.enable_trend_forecasting and cfg.enable_predictive_modeling
                else None
            ),
            horizon=cfg.forecasting.horizon,
            clock=self.clock,
            logger=self.log,
        )

    def _run(self, operation: str, fn: Callable, *args):
        start = self.health_monitor.record_operation_start(operation) if self.health_monitor else None
        try:
            result = fn(*args)
        except Exception as e:
            self.log.error(f"{operation} failed: {e}", extra={'operation': operation})
            if self.health_monitor:
                self.health_monitor.record_operation_failure(operation, start, e)
            raise
        if self.health_monitor:
            self.health_monitor.record_operation_success(operation, start)
        return result

    def summarize(self, values: SeriesLike) -> StatisticalSummary:
        """
        Descriptive statistics for one series.

        Raises:
            FeatureDisabledError: statistical analysis or descriptive methods off
            EmptyInputError: values is empty
        """
        if not self._descriptive_enabled():
            raise FeatureDisabledError('Statistical analysis is disabled')
        return self._run('summarize', self.summarizer.summarize, values)

    def analyze_trend(self, values: SeriesLike, timestamps: SeriesLike) -> TrendAnalysis:
        """
        Trend direction, strength, seasonality and breakpoints.

        Raises:
            FeatureDisabledError: trend forecasting off
            InsufficientDataError: fewer than 3 samples
        """
        if not self._config.enable_trend_forecasting:
            raise FeatureDisabledError('Trend analysis is disabled')
        return self._run('analyze_trend', self.trend_analyzer.analyze_trend, values, timestamps)

    def analyze_correlation(self, x: SeriesLike, y: SeriesLike) -> List[CorrelationResult]:
        """
        Pearson/Spearman/Kendall association between two series.

        Raises:
            FeatureDisabledError: correlation analysis off
            InvalidInputError: length mismatch or fewer than 3 pairs
        """
        if not self._config.enable_correlation_analysis:
            raise FeatureDisabledError('Correlation analysis is disabled')
        return self._run('analyze_correlation', self.correlation_analyzer.analyze_correlation, x, y)

    def forecast(
        self,
        values: SeriesLike,
        timestamps: SeriesLike,
        horizon: Optional[int] = None
    ) -> List[ForecastResult]:
        """
        Forecast with every configured method plus ensemble.

        Args:
            values: Observed series (n >= 10)
            timestamps: Epoch-ms timestamps, same length
            horizon: Steps to project (config horizon if None)

        Raises:
            FeatureDisabledError: trend forecasting off
            InsufficientDataError: fewer than 10 samples
        """
        if not self._config.enable_trend_forecasting:
            raise FeatureDisabledError('Forecasting is disabled')
        if horizon is None:
            horizon = self._config.forecasting.horizon

        forecasts = self._run('forecast', self.forecaster.forecast, values, timestamps, horizon)

        if self.health_monitor and forecasts:
            self.health_monitor.record_forecast_accuracy(max(f.accuracy for f in forecasts))
        return forecasts

    def synthesize(
        self,
        values: SeriesLike,
        timestamps: SeriesLike,
        correlated_series: Optional[Mapping[str, SeriesLike]] = None
    ) -> List[QualityInsight]:
        """
        Severity-tagged quality insights from all enabled analyses, in rule order.

        Never raises for analysis failures.
        """
        insights = self._run(
            'synthesize', self.insight_synthesizer.synthesize, values, timestamps, correlated_series
        )
        if self.health_monitor:
            self.health_monitor.record_insights(len(insights))
        return insights

    def get_insight_summary(self, insights: List[QualityInsight]) -> Dict[str, Any]:
        """
        Summarize a batch of insights.

        Args:
            insights: Output of synthesize()

        Returns:
            Summary dict with counts by category and severity
        """
        if not insights:
            return {}

        by_category: Dict[str, int] = {}
        by_severity: Dict[str, int] = {}
        for insight in insights:
            by_category[insight.category.value] = by_category.get(insight.category.value, 0) + 1
            by_severity[insight.severity.value] = by_severity.get(insight.severity.value, 0) + 1

        return {
            'total_insights': len(insights),
            'by_category': by_category,
            'by_severity': by_severity,
            'max_confidence': max(i.confidence for i in insights),
            'requires_attention': by_severity.get('high', 0) + by_severity.get('critical', 0) > 0,
        }
