"""
Quality Insight Synthesis

Runs the four analyses over one series and turns their outputs into
severity-tagged findings with fixed threshold rules, emitted in this order:

    outliers present                      → ANOMALY   / MEDIUM
    |skewness| > 1                        → TREND     / LOW
    decreasing trend, strength > 0.5      → TREND     / HIGH
    seasonality detected                  → TREND     / MEDIUM
    significant |r| > 0.7 with a series   → CORRELATION / MEDIUM
    next forecast < 90% of last value     → FORECAST  / HIGH
"""

from typing import Callable, Dict, List, Mapping, Optional
import logging
import time

import numpy as np

from .correlation import CorrelationAnalyzer
from .descriptive import DescriptiveSummarizer
from .forecasting import Forecaster
from .schemas import InsightCategory, QualityInsight, Severity, TrendDirection
from .trend import TrendAnalyzer
from .validation import SeriesLike, as_values

LOG = logging.getLogger(__name__)

SKEWNESS_THRESHOLD = 1.0
DECLINE_STRENGTH_THRESHOLD = 0.5
CORRELATION_INSIGHT_THRESHOLD = 0.7
FORECAST_DECLINE_RATIO = 0.9


def epoch_millis() -> int:
    return int(time.time() * 1000)


class InsightSynthesizer:
    """
    Aggregate component outputs into QualityInsight findings.

    A component passed as None is treated as disabled and its rules are
    skipped. Each stage is isolated: a failure is logged and the
    remaining stages still run.
    """

    def __init__(
        self,
        summarizer: Optional[DescriptiveSummarizer] = None,
        trend_analyzer: Optional[TrendAnalyzer] = None,
        correlation_analyzer: Optional[CorrelationAnalyzer] = None,
        forecaster: Optional[Forecaster] = None,
        horizon: int = 24,
        clock: Optional[Callable[[], int]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize synthesizer.

        Args:
            summarizer: Descriptive stage (None disables)
            trend_analyzer: Trend and seasonality stage (None disables)
            correlation_analyzer: Correlation stage (None disables)
            forecaster: Forecast stage (None disables)
            horizon: Forecast horizon used for the forecast rule
            clock: Returns epoch ms for insight timestamps
            logger: Logging collaborator (module logger if None)
        """
        self.summarizer = summarizer
        self.trend_analyzer = trend_analyzer
        self.correlation_analyzer = correlation_analyzer
        self.forecaster = forecaster
        self.horizon = horizon
        self.clock = clock or epoch_millis
        self.log = logger or LOG

    def statistical_insights(self, values: np.ndarray, now: int) -> List[QualityInsight]:
        stats = self.summarizer.summarize(values)
        insights = []

        if stats.outliers:
            insights.append(QualityInsight(
                category=InsightCategory.ANOMALY,
                severity=Severity.MEDIUM,
                confidence=0.8,
                description=f"{len(stats.outliers)} statistical outliers detected",
                recommendations=(
                    'Review data collection process',
                    'Investigate outlier causes',
                    'Consider data validation rules',
                ),
                metrics={'outlier_count': float(len(stats.outliers)), 'mean': stats.mean},
                timestamp=now,
            ))

        if abs(stats.skewness) > SKEWNESS_THRESHOLD:
            side = 'right' if stats.skewness > 0 else 'left'
            insights.append(QualityInsight(
                category=InsightCategory.TREND,
                severity=Severity.LOW,
                confidence=0.7,
                description=f"Data distribution is {side}-skewed",
                recommendations=(
                    'Consider log transformation for analysis',
                    'Review data collection bias',
                    'Monitor for systematic issues',
                ),
                metrics={'skewness': stats.skewness, 'mean': stats.mean, 'median': stats.median},
                timestamp=now,
            ))

        return insights

    def trend_insights(self, values: np.ndarray, timestamps: SeriesLike, now: int) -> List[QualityInsight]:
        trend = self.trend_analyzer.analyze_trend(values, timestamps)
        insights = []

        if trend.trend == TrendDirection.DECREASING and trend.strength > DECLINE_STRENGTH_THRESHOLD:
            insights.append(QualityInsight(
                category=InsightCategory.TREND,
                severity=Severity.HIGH,
                confidence=trend.confidence,
                description='Quality trend is significantly decreasing',
                recommendations=(
                    'Immediate investigation required',
                    'Review recent system changes',
                    'Implement quality monitoring alerts',
                ),
                metrics={'slope': trend.slope, 'strength': trend.strength},
                timestamp=now,
            ))

        if trend.seasonality.detected:
            insights.append(QualityInsight(
                category=InsightCategory.TREND,
                severity=Severity.MEDIUM,
                confidence=trend.seasonality.strength,
                description=f"Seasonal pattern detected with {trend.seasonality.period}-point period",
                recommendations=(
                    'Account for seasonality in quality targets',
                    'Adjust monitoring thresholds seasonally',
                    'Plan maintenance around seasonal patterns',
                ),
                metrics={
                    'period': float(trend.seasonality.period),
                    'strength': trend.seasonality.strength,
                },
                timestamp=now,
            ))

        return insights

    def correlation_insights(self, values: np.ndarray, name: str, other: SeriesLike, now: int) -> List[QualityInsight]:
        insights = []
        for corr in self.correlation_analyzer.analyze_correlation(values, other):
            if corr.significant and abs(corr.correlation) > CORRELATION_INSIGHT_THRESHOLD:
                insights.append(QualityInsight(
                    category=InsightCategory.CORRELATION,
                    severity=Severity.MEDIUM,
                    confidence=abs(corr.correlation),
                    description=f"Strong {corr.strength.value} {corr.method.value} correlation with {name}",
                    recommendations=(
                        f"Monitor {name} for quality impact",
                        'Investigate causal relationship',
                        'Consider joint optimization',
                    ),
                    metrics={'correlation': corr.correlation, 'p_value': corr.p_value},
                    timestamp=now,
                ))
        return insights

    def forecast_insights(self, values: np.ndarray, timestamps: SeriesLike, now: int) -> List[QualityInsight]:
        forecasts = self.forecaster.forecast(values, timestamps, self.horizon)
        if not forecasts:
            return []

        best = forecasts[0]
        for candidate in forecasts[1:]:
            if candidate.accuracy > best.accuracy:
                best = candidate

        if not best.predictions:
            return []

        next_prediction = best.predictions[0]
        current = float(values[-1])
        if next_prediction >= current * FORECAST_DECLINE_RATIO:
            return []

        return [QualityInsight(
            category=InsightCategory.FORECAST,
            severity=Severity.HIGH,
            confidence=best.accuracy,
            description='Quality forecast predicts significant decline',
            recommendations=(
                'Immediate quality intervention required',
                'Review forecast assumptions',
                'Implement preventive measures',
            ),
            metrics={
                'current': current,
                'predicted': next_prediction,
                'decline_pct': (current - next_prediction) / current * 100 if current else 0.0,
            },
            timestamp=now,
        )]

    def _run_stage(self, stage: str, fn, *args) -> List[QualityInsight]:
        try:
            return fn(*args)
        except Exception as e:
            self.log.error(
                f"Insight stage {stage} failed: {e}",
                exc_info=True,
                extra={'insight_stage': stage},
            )
            return []

    def synthesize(
        self,
        values: SeriesLike,
        timestamps: SeriesLike,
        correlated_series: Optional[Mapping[str, SeriesLike]] = None
    ) -> List[QualityInsight]:
        """
        Generate quality insights for one series.

        Never raises for analysis failures; a failing stage just
        contributes no insights.

        Args:
            values: Quality series
            timestamps: Epoch-ms timestamps, same length
            correlated_series: Optional name -> series to correlate against

        Returns:
            List of QualityInsight in rule order
        """
        now = self.clock()
        try:
            data = as_values(values)
        except Exception as e:
            self.log.error(f"Insight synthesis rejected input: {e}", extra={'insight_stage': 'input'})
            return []

        insights: List[QualityInsight] = []

        if self.summarizer is not None:
            insights += self._run_stage('statistics', self.statistical_insights, data, now)

        if self.trend_analyzer is not None:
            insights += self._run_stage('trend', self.trend_insights, data, timestamps, now)

        if self.correlation_analyzer is not None and correlated_series:
            for name, other in correlated_series.items():
                insights += self._run_stage(
                    f'correlation:{name}', self.correlation_insights, data, name, other, now
                )

        if self.forecaster is not None:
            insights += self._run_stage('forecast', self.forecast_insights, data, timestamps, now)

        counts: Dict[str, int] = {}
        for insight in insights:
            counts[insight.severity.value] = counts.get(insight.severity.value, 0) + 1

        self.log.info(
            f"Quality insights generated: total={len(insights)}, by_severity={counts}",
            extra={'insight_count': len(insights)},
        )

        return insights
