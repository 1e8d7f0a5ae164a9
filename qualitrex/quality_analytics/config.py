"""
Quality Analytics Configuration

Immutable configuration for the analytics engine. Updates never mutate
an existing config: with_updates() builds a new one from a merged dict.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple
import copy
import hashlib
import json

from .exceptions import ConfigurationError

FORECAST_METHODS = ('linear', 'exponential', 'polynomial')

# camelCase keys of the upstream config record -> snake_case fields
_KEY_ALIASES = {
    'enableStatisticalAnalysis': 'enable_statistical_analysis',
    'enableTrendForecasting': 'enable_trend_forecasting',
    'enableCorrelationAnalysis': 'enable_correlation_analysis',
    'enablePredictiveModeling': 'enable_predictive_modeling',
    'statisticalMethods': 'statistical_methods',
    'timeSeries': 'time_series',
    'confidenceLevel': 'confidence_level',
    'seasonalityDetection': 'seasonality_detection',
    'enablePearson': 'enable_pearson',
    'enableSpearman': 'enable_spearman',
    'enableKendall': 'enable_kendall',
    'minCorrelation': 'min_correlation',
    'configVersion': 'config_version',
}


def _normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    normalized = {}
    for key, value in data.items():
        key = _KEY_ALIASES.get(key, key)
        if isinstance(value, dict):
            value = _normalize_keys(value)
        normalized[key] = value
    return normalized


def _deep_merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@dataclass(frozen=True)
class StatisticalMethodsConfig:
    """Statistical method families"""
    descriptive: bool = True  # Gates summarize()
    inferential: bool = True
    time_series: bool = True
    regression: bool = True


@dataclass(frozen=True)
class ForecastingConfig:
    """Forecasting settings"""
    methods: Tuple[str, ...] = FORECAST_METHODS
    horizon: int = 24  # Steps projected by default
    confidence_level: float = 0.95  # Recorded only; bands use z=1.96
    seasonality_detection: bool = True

    def __post_init__(self):
        # Lists from JSON land here as tuples
        object.__setattr__(self, 'methods', tuple(self.methods))
        unknown = [m for m in self.methods if m not in FORECAST_METHODS]
        if unknown:
            raise ConfigurationError(
                f"Unknown forecast methods {unknown}; expected subset of {FORECAST_METHODS}"
            )
        if isinstance(self.horizon, bool) or not isinstance(self.horizon, int) or self.horizon <= 0:
            raise ConfigurationError(f"Forecast horizon must be a positive int, got {self.horizon!r}")
        if not 0.0 < self.confidence_level < 1.0:
            raise ConfigurationError(
                f"confidence_level must be in (0, 1), got {self.confidence_level}"
            )


@dataclass(frozen=True)
class CorrelationConfig:
    """Correlation method selection and reporting threshold"""
    enable_pearson: bool = True
    enable_spearman: bool = True
    enable_kendall: bool = True
    min_correlation: float = 0.3  # |r| below this is dropped from results

    def __post_init__(self):
        if not 0.0 <= self.min_correlation <= 1.0:
            raise ConfigurationError(
                f"min_correlation must be in [0, 1], got {self.min_correlation}"
            )


@dataclass(frozen=True)
class AnalyticsConfig:
    """
    Master configuration for the Quality Analytics Engine.

    Read-only input to every operation. Build a changed copy with
    with_updates(); the original instance stays valid for callers
    already holding it.
    """

    enable_statistical_analysis: bool = True
    enable_trend_forecasting: bool = True
    enable_correlation_analysis: bool = True
    enable_predictive_modeling: bool = True

    statistical_methods: StatisticalMethodsConfig = field(default_factory=StatisticalMethodsConfig)
    forecasting: ForecastingConfig = field(default_factory=ForecastingConfig)
    correlation: CorrelationConfig = field(default_factory=CorrelationConfig)

    config_version: str = "1.0.0"

    def to_dict(self) -> dict:
        """Convert config to dictionary"""
        return {
            'config_version': self.config_version,
            'enable_statistical_analysis': self.enable_statistical_analysis,
            'enable_trend_forecasting': self.enable_trend_forecasting,
            'enable_correlation_analysis': self.enable_correlation_analysis,
            'enable_predictive_modeling': self.enable_predictive_modeling,
            'statistical_methods': {
                'descriptive': self.statistical_methods.descriptive,
                'inferential': self.statistical_methods.inferential,
                'time_series': self.statistical_methods.time_series,
                'regression': self.statistical_methods.regression,
            },
            'forecasting': {
                'methods': list(self.forecasting.methods),
                'horizon': self.forecasting.horizon,
                'confidence_level': self.forecasting.confidence_level,
                'seasonality_detection': self.forecasting.seasonality_detection,
            },
            'correlation': {
                'enable_pearson': self.correlation.enable_pearson,
                'enable_spearman': self.correlation.enable_spearman,
                'enable_kendall': self.correlation.enable_kendall,
                'min_correlation': self.correlation.min_correlation,
            },
        }

    def get_config_hash(self) -> str:
        """
        Generate deterministic hash of configuration.

        Returns:
            Hash string for versioning
        """
        config_str = json.dumps(self.to_dict(), sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    def with_updates(self, updates: Dict[str, Any]) -> 'AnalyticsConfig':
        """
        Return a new config with a partial update deep-merged in.

        Args:
            updates: Partial config dict (snake_case or camelCase keys)

        Returns:
            New AnalyticsConfig; self is left untouched
        """
        merged = _deep_merge(self.to_dict(), _normalize_keys(updates))
        return AnalyticsConfig.from_dict(merged)

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'AnalyticsConfig':
        """Create config from dictionary"""
        config_dict = _normalize_keys(config_dict)
        methods_dict = config_dict.get('statistical_methods', {})
        forecast_dict = config_dict.get('forecasting', {})
        corr_dict = config_dict.get('correlation', {})

        try:
            return cls(
                config_version=config_dict.get('config_version', '1.0.0'),
                enable_statistical_analysis=config_dict.get('enable_statistical_analysis', True),
                enable_trend_forecasting=config_dict.get('enable_trend_forecasting', True),
                enable_correlation_analysis=config_dict.get('enable_correlation_analysis', True),
                enable_predictive_modeling=config_dict.get('enable_predictive_modeling', True),
                statistical_methods=StatisticalMethodsConfig(**methods_dict),
                forecasting=ForecastingConfig(**forecast_dict),
                correlation=CorrelationConfig(**corr_dict),
            )
        except TypeError as e:
            raise ConfigurationError(f"Unrecognized configuration option: {e}") from e
