"""
Tests for Quality Analytics Components

Tests the summarizer, trend analyzer, correlation analyzer and forecaster
in isolation.
"""

import logging

import pytest
import numpy as np
import pandas as pd

from qualitrex.quality_analytics import (
    DescriptiveSummarizer,
    TrendAnalyzer,
    CorrelationAnalyzer,
    Forecaster,
    linear_regression,
    TrendDirection,
    BreakpointKind,
    CorrelationMethod,
    CorrelationStrength,
    ForecastMethod,
    SeasonalityInfo,
    EmptyInputError,
    InsufficientDataError,
    InvalidInputError,
)
from qualitrex.quality_analytics.correlation import approximate_p_value, to_ranks
from qualitrex.quality_analytics.validation import as_timestamps


@pytest.fixture
def random_series():
    """Generate a reproducible noisy quality series."""
    rng = np.random.default_rng(42)
    return rng.normal(0.9, 0.05, 120)


@pytest.fixture
def seasonal_series():
    """Period-4 oscillation around 10."""
    return [10.0, 11.0, 10.0, 9.0] * 10


@pytest.fixture
def spike_series():
    """Flat zero series with a single unit spike at index 10."""
    values = [0.0] * 20
    values[10] = 1.0
    return values


class TestDescriptiveSummarizer:
    """Test descriptive summarizer."""

    def test_one_to_ten(self):
        """Test summary of 1..10."""
        summary = DescriptiveSummarizer().summarize(list(range(1, 11)))

        assert summary.count == 10
        assert summary.mean == pytest.approx(5.5)
        assert summary.median == pytest.approx(5.5)
        assert summary.variance == pytest.approx(8.25)
        assert summary.standard_deviation == pytest.approx(np.sqrt(8.25))
        assert summary.quartiles.q1 == pytest.approx(3.25)
        assert summary.quartiles.q2 == pytest.approx(5.5)
        assert summary.quartiles.q3 == pytest.approx(7.75)
        assert summary.min == 1.0
        assert summary.max == 10.0
        assert summary.range == 9.0
        assert summary.outliers == ()
        assert summary.skewness == pytest.approx(0.0, abs=1e-12)

    def test_constant_series(self):
        """Test constant series has zero shape statistics."""
        summary = DescriptiveSummarizer().summarize([5, 5, 5, 5])

        assert summary.variance == 0.0
        assert summary.skewness == 0.0
        assert summary.kurtosis == 0.0
        assert summary.outliers == ()
        assert summary.mode == 5.0

    def test_invariants(self, random_series):
        """Test ordering and centering invariants."""
        summary = DescriptiveSummarizer().summarize(random_series)
        q = summary.quartiles

        assert summary.min <= q.q1 <= q.q2 <= q.q3 <= summary.max
        assert summary.variance >= 0
        assert np.sum(random_series - summary.mean) == pytest.approx(0.0, abs=1e-9)

    def test_odd_count_median(self):
        """Test median of odd-length series is the middle element."""
        summary = DescriptiveSummarizer().summarize([7, 1, 3])
        assert summary.median == 3.0

    def test_mode_ties_break_by_first_occurrence(self):
        """Test mode tie-break uses original order."""
        summary = DescriptiveSummarizer().summarize([3, 1, 1, 3, 2])
        assert summary.mode == 3.0

    def test_outliers_ascending(self):
        """Test IQR outliers are returned in ascending order."""
        values = [100.0, 1, 2, 3, 4, 5, 6, 7, 8, 9, -100.0]
        summary = DescriptiveSummarizer().summarize(values)

        assert summary.outliers == (-100.0, 100.0)

    def test_single_high_outlier(self):
        """Test Tukey fence flags a single extreme value."""
        summary = DescriptiveSummarizer().summarize([1, 2, 3, 4, 5, 6, 7, 8, 9, 100])
        assert summary.outliers == (100.0,)
        assert summary.skewness > 1

    def test_input_not_mutated(self):
        """Test input order is preserved."""
        values = [3.0, 1.0, 2.0]
        DescriptiveSummarizer().summarize(values)
        assert values == [3.0, 1.0, 2.0]

    def test_accepts_pandas_series(self):
        """Test pandas input."""
        summary = DescriptiveSummarizer().summarize(pd.Series([1.0, 2.0, 3.0]))
        assert summary.mean == pytest.approx(2.0)

    def test_empty_input(self):
        """Test empty series raises."""
        with pytest.raises(EmptyInputError):
            DescriptiveSummarizer().summarize([])

    def test_non_finite_input(self):
        """Test NaN samples are rejected."""
        with pytest.raises(InvalidInputError):
            DescriptiveSummarizer().summarize([1.0, float('nan'), 2.0])

    def test_to_dict(self):
        """Test serialization."""
        d = DescriptiveSummarizer().summarize([1, 2, 3, 4]).to_dict()
        assert d['quartiles']['q2'] == pytest.approx(2.5)
        assert isinstance(d['outliers'], list)


class TestLinearRegression:
    """Test regression primitive."""

    def test_exact_fit(self):
        """Test perfect line."""
        fit = linear_regression([0, 1, 2], [1, 3, 5])
        assert fit.slope == pytest.approx(2.0)
        assert fit.intercept == pytest.approx(1.0)
        assert fit.r_squared == pytest.approx(1.0)

    def test_x_is_shifted_to_zero(self):
        """Test intercept is relative to min(x) for epoch timestamps."""
        x = [1_700_000_000_000 + 1000 * i for i in range(3)]
        fit = linear_regression(x, [1, 2, 3])
        assert fit.slope == pytest.approx(0.001)
        assert fit.intercept == pytest.approx(1.0)

    def test_constant_y(self):
        """Test R² is 0 for a constant response."""
        fit = linear_regression([0, 1, 2, 3], [4, 4, 4, 4])
        assert fit.slope == 0.0
        assert fit.r_squared == 0.0

    def test_constant_x(self):
        """Test degenerate regressor gives flat fit."""
        fit = linear_regression([5, 5, 5], [1, 2, 3])
        assert fit.slope == 0.0
        assert fit.intercept == pytest.approx(2.0)
        assert fit.r_squared == pytest.approx(0.0)


class TestTrendAnalyzer:
    """Test trend analyzer."""

    def test_perfect_linear_trend(self):
        """Test 1..20 over 0..19 is increasing with R² ≈ 1."""
        analysis = TrendAnalyzer().analyze_trend(list(range(1, 21)), list(range(20)))

        assert analysis.trend == TrendDirection.INCREASING
        assert analysis.slope == pytest.approx(1.0)
        assert analysis.strength == pytest.approx(1.0)

    def test_confidence_dispersion_penalty(self):
        """Test CV > 0.5 scales confidence by 0.7."""
        analysis = TrendAnalyzer().analyze_trend(list(range(1, 21)), list(range(20)))
        assert analysis.confidence == pytest.approx(0.7)

    def test_confidence_short_series_penalty(self):
        """Test n < 10 scales confidence by 0.8."""
        values = [10.0 + i for i in range(8)]  # CV ≈ 0.17, no dispersion adjustment
        analysis = TrendAnalyzer().analyze_trend(values, list(range(8)))
        assert analysis.confidence == pytest.approx(0.8)

    def test_confidence_long_series_bonus(self):
        """Test n > 50 scales confidence by 1.1."""
        values = [100.0 + i + 20.0 * (-1) ** i for i in range(60)]  # CV ≈ 0.2
        fit = linear_regression(list(range(60)), values)
        analysis = TrendAnalyzer().analyze_trend(values, list(range(60)))

        assert fit.r_squared * 1.1 < 1.0
        assert analysis.confidence == pytest.approx(fit.r_squared * 1.1)

    def test_confidence_low_dispersion_bonus(self):
        """Test CV < 0.1 scales confidence by 1.2."""
        values = [1000.0 + i + 5.0 * (-1) ** i for i in range(20)]
        fit = linear_regression(list(range(20)), values)
        analysis = TrendAnalyzer().analyze_trend(values, list(range(20)))

        assert fit.r_squared * 1.2 < 1.0
        assert analysis.confidence == pytest.approx(fit.r_squared * 1.2)

    def test_confidence_negative_mean_uses_signed_cv(self):
        """Test negative-mean series gets the low-dispersion bonus."""
        values = [-float(i) for i in range(1, 21)]
        analysis = TrendAnalyzer().analyze_trend(values, list(range(20)))

        assert analysis.trend == TrendDirection.DECREASING
        assert analysis.confidence == pytest.approx(1.0)

    def test_confidence_negative_mean_not_clamped(self):
        """Test signed CV bonus on a noisy negative-mean series."""
        values = [-100.0 - i + 20.0 * (-1) ** i for i in range(20)]
        fit = linear_regression(list(range(20)), values)
        analysis = TrendAnalyzer().analyze_trend(values, list(range(20)))

        assert fit.r_squared * 1.2 < 1.0
        assert analysis.confidence == pytest.approx(fit.r_squared * 1.2)

    def test_decreasing_trend(self):
        """Test negative slope."""
        values = [100 - 2 * i for i in range(30)]
        analysis = TrendAnalyzer().analyze_trend(values, list(range(30)))

        assert analysis.trend == TrendDirection.DECREASING
        assert analysis.slope == pytest.approx(-2.0)
        assert analysis.confidence == pytest.approx(1.0)

    def test_constant_series_is_stable(self):
        """Test constant series."""
        analysis = TrendAnalyzer().analyze_trend([5.0] * 12, list(range(12)))

        assert analysis.trend == TrendDirection.STABLE
        assert analysis.strength == 0.0
        assert analysis.confidence == 0.0
        assert analysis.breakpoints == ()

    def test_slope_is_per_millisecond(self):
        """Test epoch-ms spacing yields a tiny slope classified stable."""
        ts = [1_700_000_000_000 + 60_000 * i for i in range(20)]
        analysis = TrendAnalyzer().analyze_trend(list(range(1, 21)), ts)

        assert analysis.slope == pytest.approx(1 / 60_000)
        assert analysis.strength == pytest.approx(1.0)
        assert analysis.trend == TrendDirection.STABLE

    def test_never_cyclical(self, seasonal_series):
        """Test seasonal data is not classified as cyclical."""
        analysis = TrendAnalyzer().analyze_trend(seasonal_series, list(range(40)))
        assert analysis.trend != TrendDirection.CYCLICAL

    def test_insufficient_data(self):
        """Test length-2 series raises."""
        with pytest.raises(InsufficientDataError) as exc_info:
            TrendAnalyzer().analyze_trend([1, 2], [0, 1])
        assert exc_info.value.required == 3
        assert exc_info.value.actual == 2

    def test_length_mismatch(self):
        """Test mismatched timestamps raise."""
        with pytest.raises(InvalidInputError):
            TrendAnalyzer().analyze_trend([1, 2, 3, 4], [0, 1, 2])

    def test_detect_seasonality(self, seasonal_series):
        """Test period-4 pattern."""
        seasonality = TrendAnalyzer().detect_seasonality(seasonal_series)

        assert seasonality.detected
        assert seasonality.period == 4
        assert seasonality.strength == pytest.approx(1.0)

    def test_seasonality_disabled(self, seasonal_series):
        """Test seasonality flag off."""
        seasonality = TrendAnalyzer(seasonality_detection=False).detect_seasonality(seasonal_series)
        assert seasonality == SeasonalityInfo()

    def test_seasonality_needs_twenty_points(self):
        """Test short series skip the scan."""
        seasonality = TrendAnalyzer().detect_seasonality([10.0, 11.0, 10.0, 9.0] * 4)
        assert not seasonality.detected
        assert seasonality.period == 0

    def test_detect_breakpoints(self, spike_series):
        """Test single spike is flagged as an outlier breakpoint."""
        ts = [1000 * i for i in range(20)]
        breakpoints = TrendAnalyzer().detect_breakpoints(spike_series, ts)

        assert len(breakpoints) == 1
        assert breakpoints[0].timestamp == 10_000
        assert breakpoints[0].kind == BreakpointKind.OUTLIER
        assert breakpoints[0].confidence == pytest.approx(0.9)

    def test_breakpoint_confidence_floor(self):
        """Test flagged points always reach the 0.9 cap.

        Both deviations exceed the threshold, so (before + after) / (2 * threshold) > 1.
        """
        values = [0.0] * 20
        values[5] = 1.0
        values[14] = 1.0
        breakpoints = TrendAnalyzer().detect_breakpoints(values, list(range(20)))

        assert [bp.timestamp for bp in breakpoints] == [5, 14]
        assert all(bp.confidence == pytest.approx(0.9) for bp in breakpoints)

    def test_fractional_timestamps_rejected(self):
        """Test float timestamps with a fractional part raise."""
        with pytest.raises(InvalidInputError):
            TrendAnalyzer().analyze_trend([1.0, 2.0, 3.0], [0.5, 1.5, 2.5])

    def test_integral_float_timestamps_accepted(self):
        """Test whole-number float timestamps are kept."""
        analysis = TrendAnalyzer().analyze_trend([1.0, 2.0, 3.0, 4.0], [0.0, 1.0, 2.0, 3.0])
        assert analysis.slope == pytest.approx(1.0)

    def test_as_timestamps(self):
        """Test timestamp coercion."""
        assert as_timestamps(pd.Series([1000, 2000]), 2).tolist() == [1000, 2000]
        assert as_timestamps(np.array([3.0, 4.0]), 2).dtype == np.int64
        with pytest.raises(InvalidInputError):
            as_timestamps([0.5, 1.5], 2)
        with pytest.raises(InvalidInputError):
            as_timestamps([0.0, float('nan')], 2)
        with pytest.raises(InvalidInputError):
            as_timestamps(['a', 'b'], 2)

    def test_breakpoints_need_ten_points(self):
        """Test short series skip breakpoint scan."""
        values = [0.0] * 9
        values[4] = 1.0
        assert TrendAnalyzer().detect_breakpoints(values, list(range(9))) == ()

    def test_to_dict(self, spike_series):
        """Test serialization."""
        d = TrendAnalyzer().analyze_trend(spike_series, list(range(20))).to_dict()
        assert d['trend'] in ('increasing', 'decreasing', 'stable', 'cyclical')
        assert d['breakpoints'][0]['kind'] == 'outlier'


class TestCorrelationAnalyzer:
    """Test correlation analyzer."""

    def test_initialization(self):
        """Test analyzer initialization."""
        analyzer = CorrelationAnalyzer(enable_kendall=False, min_correlation=0.5)
        assert analyzer.enable_pearson
        assert not analyzer.enable_kendall
        assert analyzer.min_correlation == 0.5

    def test_perfect_positive(self):
        """Test scaled copy is perfectly correlated."""
        results = CorrelationAnalyzer().analyze_correlation([1, 2, 3, 4, 5], [2, 4, 6, 8, 10])

        assert [r.method for r in results] == [
            CorrelationMethod.PEARSON,
            CorrelationMethod.SPEARMAN,
            CorrelationMethod.KENDALL,
        ]
        pearson = results[0]
        assert pearson.correlation == pytest.approx(1.0)
        assert pearson.strength == CorrelationStrength.STRONG
        assert pearson.p_value == 0.001
        assert pearson.significant
        assert pearson.interpretation == "positive strong correlation (statistically significant)"

    def test_kendall_fully_discordant(self):
        """Test reversed order gives tau = -1."""
        analyzer = CorrelationAnalyzer(enable_pearson=False, enable_spearman=False)
        results = analyzer.analyze_correlation([1, 2, 3, 4], [4, 3, 2, 1])

        assert len(results) == 1
        assert results[0].method == CorrelationMethod.KENDALL
        assert results[0].correlation == pytest.approx(-1.0)
        assert results[0].interpretation.startswith("negative strong")

    def test_spearman_matches_pearson_on_ranks(self):
        """Test Spearman equals Pearson for already-ranked data."""
        x = [1, 2, 3, 4, 5, 6]
        y = [1, 3, 2, 5, 4, 6]
        analyzer = CorrelationAnalyzer(min_correlation=0.0)
        results = {r.method: r for r in analyzer.analyze_correlation(x, y)}

        assert results[CorrelationMethod.SPEARMAN].correlation == pytest.approx(
            results[CorrelationMethod.PEARSON].correlation
        )

    def test_moderate_example(self):
        """Test coefficients, buckets and strength on a shuffled pair."""
        analyzer = CorrelationAnalyzer(min_correlation=0.0)
        results = {r.method: r for r in analyzer.analyze_correlation([1, 2, 3, 4, 5], [1, 3, 2, 5, 4])}

        pearson = results[CorrelationMethod.PEARSON]
        assert pearson.correlation == pytest.approx(0.8)
        assert pearson.p_value == 0.05
        assert not pearson.significant
        assert pearson.strength == CorrelationStrength.STRONG

        kendall = results[CorrelationMethod.KENDALL]
        assert kendall.correlation == pytest.approx(0.6)
        assert kendall.p_value == 0.5
        assert kendall.strength == CorrelationStrength.MODERATE

    def test_min_correlation_filter(self):
        """Test results below threshold are dropped."""
        analyzer = CorrelationAnalyzer(min_correlation=0.7)
        results = analyzer.analyze_correlation([1, 2, 3, 4, 5], [1, 3, 2, 5, 4])

        assert [r.method for r in results] == [CorrelationMethod.PEARSON, CorrelationMethod.SPEARMAN]

    def test_constant_series_pearson_zero(self):
        """Test zero denominator gives r = 0."""
        analyzer = CorrelationAnalyzer(enable_spearman=False, min_correlation=0.0)
        results = analyzer.analyze_correlation([1, 2, 3, 4], [7, 7, 7, 7])

        assert all(r.correlation == 0.0 for r in results)
        assert all(r.strength == CorrelationStrength.WEAK for r in results)

    def test_rank_ties_by_position(self):
        """Test ties get consecutive ranks in input order."""
        ranks = to_ranks(np.array([3.0, 1.0, 3.0, 2.0]))
        assert ranks.tolist() == [3.0, 1.0, 4.0, 2.0]

    def test_p_value_buckets(self):
        """Test bucket lookup."""
        assert approximate_p_value(0.0, 10) == 0.5
        assert approximate_p_value(1.0, 5) == 0.001
        assert approximate_p_value(-1.0, 5) == 0.001

    def test_length_mismatch(self):
        """Test unequal lengths raise."""
        with pytest.raises(InvalidInputError):
            CorrelationAnalyzer().analyze_correlation([1, 2, 3], [1, 2, 3, 4])

    def test_too_few_pairs(self):
        """Test fewer than 3 pairs raise."""
        with pytest.raises(InvalidInputError):
            CorrelationAnalyzer().analyze_correlation([1, 2], [1, 2])


class TestForecaster:
    """Test forecaster."""

    def test_flat_series_non_negative(self):
        """Test flat series never projects negative values."""
        values = [10.0] * 12
        for horizon in (0, 1):
            forecasts = Forecaster().forecast(values, list(range(12)), horizon)
            for f in forecasts:
                assert len(f.predictions) == horizon
                assert all(p >= 0 for p in f.predictions)
                assert all(ci.lower >= 0 for ci in f.confidence_intervals)

    def test_ensemble_is_average(self, random_series):
        """Test ensemble equals index-wise mean of member predictions."""
        forecasts = Forecaster().forecast(random_series, list(range(len(random_series))), 5)
        members = [f for f in forecasts if f.method != ForecastMethod.ENSEMBLE]
        ensemble = forecasts[-1]

        assert ensemble.method == ForecastMethod.ENSEMBLE
        assert len(members) == 3
        for i in range(5):
            expected = sum(m.predictions[i] for m in members) / len(members)
            assert ensemble.predictions[i] == pytest.approx(expected)
        assert ensemble.accuracy == 0.85
        assert ensemble.seasonality == SeasonalityInfo()

    def test_linear_projection(self):
        """Test linear method extends the fitted line."""
        values = [float(i + 1) for i in range(20)]
        forecasts = Forecaster(methods=('linear',)).forecast(values, list(range(20)), 3)

        assert len(forecasts) == 1
        assert forecasts[0].predictions == pytest.approx((21.0, 22.0, 23.0))
        assert forecasts[0].error_metrics.mae == pytest.approx(0.0, abs=1e-9)

    def test_exponential_is_flat_at_last_value(self):
        """Test smoothing projection stays at the last observation."""
        values = [float(v) for v in range(5, 17)]
        forecasts = Forecaster(methods=('exponential',)).forecast(values, list(range(12)), 4)

        assert forecasts[0].predictions == pytest.approx((16.0,) * 4)

    def test_polynomial_fixed_leading_coefficient(self):
        """Test simplified quadratic coefficients."""
        x = np.arange(12, dtype=float)
        a, b, c = Forecaster.fit_polynomial(x, np.full(12, 10.0))

        assert a == 0.001
        assert b == pytest.approx((660 - 0.001 * 4356) / 506)
        assert c == pytest.approx((120 - 0.001 * 39974 - b * 506) / 12)

    def test_confidence_intervals(self):
        """Test band width from fixed accuracy."""
        forecasts = Forecaster(methods=('exponential',)).forecast([10.0] * 10, list(range(10)), 1)
        ci = forecasts[0].confidence_intervals[0]

        assert forecasts[0].accuracy == 0.8
        assert ci.lower == pytest.approx(10.0 - 3.92)
        assert ci.upper == pytest.approx(10.0 + 3.92)

    def test_failing_method_is_isolated(self, random_series, monkeypatch, caplog):
        """Test one failing method does not abort the batch."""
        forecaster = Forecaster()

        def boom(values, horizon):
            raise RuntimeError("solver diverged")

        monkeypatch.setattr(forecaster, 'polynomial_forecast', boom)

        with caplog.at_level(logging.WARNING):
            forecasts = forecaster.forecast(random_series, list(range(len(random_series))), 3)

        assert [f.method for f in forecasts] == [
            ForecastMethod.LINEAR,
            ForecastMethod.EXPONENTIAL,
            ForecastMethod.ENSEMBLE,
        ]
        assert "polynomial failed" in caplog.text

    def test_single_method_has_no_ensemble(self, random_series):
        """Test ensemble needs two successful methods."""
        forecasts = Forecaster(methods=('linear', 'arima')).forecast(
            random_series, list(range(len(random_series))), 2
        )
        assert [f.method for f in forecasts] == [ForecastMethod.LINEAR]

    def test_seasonality_from_input(self, seasonal_series):
        """Test member results carry input seasonality."""
        forecasts = Forecaster().forecast(seasonal_series, list(range(40)), 2)

        assert forecasts[0].seasonality.detected
        assert forecasts[0].seasonality.period == 4

    def test_insufficient_data(self):
        """Test fewer than 10 samples raise."""
        with pytest.raises(InsufficientDataError):
            Forecaster().forecast([1.0] * 9, list(range(9)), 3)

    def test_negative_horizon(self):
        """Test negative horizon raises."""
        with pytest.raises(InvalidInputError):
            Forecaster().forecast([1.0] * 10, list(range(10)), -1)

    def test_to_frame(self, random_series):
        """Test tabular export."""
        frame = Forecaster(methods=('linear',)).forecast(
            random_series, list(range(len(random_series))), 4
        )[0].to_frame()

        assert isinstance(frame, pd.DataFrame)
        assert list(frame.columns) == ['prediction', 'lower', 'upper']
        assert list(frame.index) == [1, 2, 3, 4]

    def test_idempotent(self, random_series):
        """Test repeated calls are identical."""
        ts = list(range(len(random_series)))
        assert Forecaster().forecast(random_series, ts, 6) == Forecaster().forecast(random_series, ts, 6)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
