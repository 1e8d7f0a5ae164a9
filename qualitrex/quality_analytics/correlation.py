"""
Pairwise Correlation Analysis

Pearson, Spearman and Kendall association between two equal-length
series, with a coarse significance estimate.

p-values come from a critical-value lookup on
    t = r·√((n - 2) / (1 - r²))
rather than a Student's t CDF. Good enough for flagging at α = 0.05,
not for reporting exact p-values.
"""

from typing import List, Optional
import logging

import numpy as np

from .schemas import CorrelationMethod, CorrelationResult, CorrelationStrength
from .validation import SeriesLike, as_values
from .exceptions import InvalidInputError

LOG = logging.getLogger(__name__)

MIN_CORRELATION_POINTS = 3
SIGNIFICANCE_LEVEL = 0.05

# (|t| strictly above, p-value), checked in order
P_VALUE_BUCKETS = (
    (3.291, 0.001),
    (2.576, 0.01),
    (1.96, 0.05),
    (1.645, 0.1),
)
DEFAULT_P_VALUE = 0.5


def to_ranks(values: np.ndarray) -> np.ndarray:
    """
    Ranks 1..n by stable ascending sort position.

    Ties are not averaged: equal values get consecutive ranks in input
    order, unlike the textbook Spearman definition.
    """
    order = np.argsort(values, kind='stable')
    ranks = np.empty(len(values), dtype=float)
    ranks[order] = np.arange(1, len(values) + 1)
    return ranks


def approximate_p_value(correlation: float, n: int) -> float:
    """Bucketed two-sided p-value for a correlation over n pairs."""
    denom = 1.0 - correlation * correlation
    if denom <= 0:
        t = float('inf')
    else:
        t = abs(correlation) * np.sqrt((n - 2) / denom)

    for critical, p_value in P_VALUE_BUCKETS:
        if t > critical:
            return p_value
    return DEFAULT_P_VALUE


def classify_strength(correlation: float) -> CorrelationStrength:
    abs_corr = abs(correlation)
    if abs_corr >= 0.7:
        return CorrelationStrength.STRONG
    if abs_corr >= 0.3:
        return CorrelationStrength.MODERATE
    return CorrelationStrength.WEAK


def interpret(correlation: float, significant: bool) -> str:
    direction = 'positive' if correlation > 0 else 'negative'
    sig_text = 'statistically significant' if significant else 'not statistically significant'
    return f"{direction} {classify_strength(correlation).value} correlation ({sig_text})"


class CorrelationAnalyzer:
    """
    Compute association strength between two series.

    Results are reported per enabled method in the order
    pearson, spearman, kendall, then filtered to |r| >= min_correlation.
    """

    def __init__(
        self,
        enable_pearson: bool = True,
        enable_spearman: bool = True,
        enable_kendall: bool = True,
        min_correlation: float = 0.3,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize correlation analyzer.

        Args:
            enable_pearson: Report Pearson product-moment correlation
            enable_spearman: Report Spearman rank correlation
            enable_kendall: Report Kendall tau
            min_correlation: Minimum |r| to keep a result
            logger: Logging collaborator (module logger if None)
        """
        self.enable_pearson = enable_pearson
        self.enable_spearman = enable_spearman
        self.enable_kendall = enable_kendall
        self.min_correlation = min_correlation
        self.log = logger or LOG

    @staticmethod
    def pearson_coefficient(x: np.ndarray, y: np.ndarray) -> float:
        """Product-moment r; 0 when either series is constant."""
        n = len(x)
        sum_x = float(np.sum(x))
        sum_y = float(np.sum(y))
        sum_xy = float(np.dot(x, y))
        sum_x2 = float(np.dot(x, x))
        sum_y2 = float(np.dot(y, y))

        numerator = n * sum_xy - sum_x * sum_y
        radicand = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)
        if radicand <= 0:
            return 0.0
        correlation = numerator / np.sqrt(radicand)
        return float(max(-1.0, min(1.0, correlation)))

    @staticmethod
    def kendall_coefficient(x: np.ndarray, y: np.ndarray) -> float:
        """
        Kendall tau over all unordered pairs: (C - D) / (C + D).

        Pairs tied in either series count as neither. 0 when no pair is
        strictly ordered in both.
        """
        concordant = 0
        discordant = 0
        for i in range(len(x) - 1):
            products = np.sign(x[i] - x[i + 1:]) * np.sign(y[i] - y[i + 1:])
            concordant += int(np.count_nonzero(products > 0))
            discordant += int(np.count_nonzero(products < 0))

        total = concordant + discordant
        if total == 0:
            return 0.0
        return (concordant - discordant) / total

    def _build_result(self, method: CorrelationMethod, correlation: float, n: int) -> CorrelationResult:
        p_value = approximate_p_value(correlation, n)
        significant = p_value < SIGNIFICANCE_LEVEL
        return CorrelationResult(
            method=method,
            correlation=correlation,
            p_value=p_value,
            significant=significant,
            strength=classify_strength(correlation),
            interpretation=interpret(correlation, significant),
        )

    def pearson(self, x: np.ndarray, y: np.ndarray) -> CorrelationResult:
        return self._build_result(CorrelationMethod.PEARSON, self.pearson_coefficient(x, y), len(x))

    def spearman(self, x: np.ndarray, y: np.ndarray) -> CorrelationResult:
        corr = self.pearson_coefficient(to_ranks(x), to_ranks(y))
        return self._build_result(CorrelationMethod.SPEARMAN, corr, len(x))

    def kendall(self, x: np.ndarray, y: np.ndarray) -> CorrelationResult:
        return self._build_result(CorrelationMethod.KENDALL, self.kendall_coefficient(x, y), len(x))

    def analyze_correlation(self, x: SeriesLike, y: SeriesLike) -> List[CorrelationResult]:
        """
        Correlate two series with every enabled method.

        Args:
            x: First series
            y: Second series, same length as x

        Returns:
            List of CorrelationResult with |r| >= min_correlation

        Raises:
            InvalidInputError: lengths differ or fewer than 3 pairs
        """
        x_arr = as_values(x, name="x")
        y_arr = as_values(y, name="y")

        if len(x_arr) != len(y_arr) or len(x_arr) < MIN_CORRELATION_POINTS:
            raise InvalidInputError(
                f"Invalid data for correlation analysis: len(x)={len(x_arr)}, "
                f"len(y)={len(y_arr)}, need equal lengths >= {MIN_CORRELATION_POINTS}"
            )

        results = []
        if self.enable_pearson:
            results.append(self.pearson(x_arr, y_arr))
        if self.enable_spearman:
            results.append(self.spearman(x_arr, y_arr))
        if self.enable_kendall:
            results.append(self.kendall(x_arr, y_arr))

        filtered = [r for r in results if abs(r.correlation) >= self.min_correlation]

        self.log.info(
            f"Correlation analysis completed: methods={len(results)}, "
            f"significant={sum(1 for r in filtered if r.significant)}",
            extra={'methods_run': len(results), 'results_kept': len(filtered)},
        )

        return filtered
