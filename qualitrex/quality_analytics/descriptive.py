"""
Descriptive Statistics

Location, dispersion and shape of a single series plus Tukey IQR outliers.

    variance = Σ(x - μ)² / n          (population)
    skew     = mean(((x - μ) / σ)³)
    kurt     = mean(((x - μ) / σ)⁴) - 3   (excess)
"""

from collections import Counter
from typing import Optional
import logging

import numpy as np

from .schemas import Quartiles, StatisticalSummary
from .validation import SeriesLike, as_values, require_non_empty

LOG = logging.getLogger(__name__)


class DescriptiveSummarizer:
    """
    Summarize one series into a StatisticalSummary.

    Order statistics are taken from a sorted copy; the input is never
    reordered.
    """

    def __init__(self, outlier_iqr_multiplier: float = 1.5, logger: Optional[logging.Logger] = None):
        """
        Initialize summarizer.

        Args:
            outlier_iqr_multiplier: Tukey fence multiplier k
            logger: Logging collaborator (module logger if None)
        """
        self.outlier_iqr_multiplier = outlier_iqr_multiplier
        self.log = logger or LOG

    @staticmethod
    def compute_mode(values: np.ndarray) -> float:
        """Most frequent value; ties go to the first one seen in input order."""
        # Counter keeps insertion order, and most_common is stable on ties
        value, _ = Counter(values.tolist()).most_common(1)[0]
        return float(value)

    @staticmethod
    def compute_percentile(sorted_values: np.ndarray, p: float) -> float:
        """Linear interpolation at rank p·(n-1)."""
        return float(np.quantile(sorted_values, p, method='linear'))

    @staticmethod
    def compute_moments(values: np.ndarray, mean: float, std: float):
        """
        Skewness and excess kurtosis from the population std.

        Returns:
            (skewness, kurtosis); both 0 for a constant series
        """
        if std == 0:
            return 0.0, 0.0
        z = (values - mean) / std
        return float(np.mean(z ** 3)), float(np.mean(z ** 4) - 3.0)

    def find_outliers(self, sorted_values: np.ndarray, q1: float, q3: float) -> np.ndarray:
        """Values outside [q1 - k·IQR, q3 + k·IQR], ascending."""
        iqr = q3 - q1
        lower = q1 - self.outlier_iqr_multiplier * iqr
        upper = q3 + self.outlier_iqr_multiplier * iqr
        mask = (sorted_values < lower) | (sorted_values > upper)
        return sorted_values[mask]

    def summarize(self, values: SeriesLike) -> StatisticalSummary:
        """
        Compute descriptive statistics.

        Args:
            values: Non-empty series

        Returns:
            StatisticalSummary

        Raises:
            EmptyInputError: if values is empty
        """
        data = as_values(values)
        require_non_empty(data)

        sorted_data = np.sort(data)
        n = len(data)

        mean = float(np.mean(data))
        median = float(np.median(sorted_data))
        mode = self.compute_mode(data)

        variance = float(np.mean((data - mean) ** 2))
        std = float(np.sqrt(variance))

        q1 = self.compute_percentile(sorted_data, 0.25)
        q3 = self.compute_percentile(sorted_data, 0.75)

        skewness, kurtosis = self.compute_moments(data, mean, std)
        outliers = self.find_outliers(sorted_data, q1, q3)

        summary = StatisticalSummary(
            count=n,
            mean=mean,
            median=median,
            mode=mode,
            standard_deviation=std,
            variance=variance,
            skewness=skewness,
            kurtosis=kurtosis,
            min=float(sorted_data[0]),
            max=float(sorted_data[-1]),
            range=float(sorted_data[-1] - sorted_data[0]),
            quartiles=Quartiles(q1=q1, q2=median, q3=q3),
            outliers=tuple(float(v) for v in outliers),
        )

        self.log.info(
            f"Statistical summary generated: n={n}, mean={mean:.2f}, outliers={len(outliers)}",
            extra={'data_points': n, 'outlier_count': len(outliers)},
        )

        return summary
