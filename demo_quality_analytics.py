"""
Quality Analytics Engine Demo

Runs the five analytics components over a synthetic data-quality
series and prints the resulting insights.
"""

import sys
import logging
import numpy as np
import pandas as pd
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from qualitrex.quality_analytics import (
    AnalyticsConfig,
    AnalyticsHealthMonitor,
    QualityAnalyticsEngine,
)


def generate_quality_series(n_points: int = 96) -> pd.DataFrame:
    """Generate synthetic quality scores with a slow decline and a daily cycle."""
    np.random.seed(42)

    base = 0.95
    decline = np.linspace(0, 0.15, n_points)
    cycle = 0.02 * np.sin(2 * np.pi * np.arange(n_points) / 24)
    noise = np.random.normal(0, 0.005, n_points)
    quality = base - decline + cycle + noise

    # Latency rises as quality drops
    latency = 120 + 400 * decline + np.random.normal(0, 5, n_points)

    index = pd.date_range('2024-01-01', periods=n_points, freq='1h')
    timestamps = (index.asi8 // 1_000_000).astype(np.int64)

    return pd.DataFrame({
        'timestamp': timestamps,
        'quality': quality,
        'latency_ms': latency,
    }, index=index)


def demo_components(engine: QualityAnalyticsEngine, df: pd.DataFrame):
    """Demo each component on its own."""
    print("=" * 80)
    print("DEMO 1: Component Analysis")
    print("=" * 80)

    summary = engine.summarize(df['quality'])
    print(f"\nMean: {summary.mean:.4f}  Median: {summary.median:.4f}  Std: {summary.standard_deviation:.4f}")
    print(f"Quartiles: {summary.quartiles.q1:.4f} / {summary.quartiles.q2:.4f} / {summary.quartiles.q3:.4f}")
    print(f"Outliers: {len(summary.outliers)}")

    trend = engine.analyze_trend(df['quality'], df['timestamp'])
    print(f"\nTrend: {trend.trend.value} (strength={trend.strength:.3f}, confidence={trend.confidence:.3f})")
    print(f"Seasonality: detected={trend.seasonality.detected}, period={trend.seasonality.period}")
    print(f"Breakpoints: {len(trend.breakpoints)}")

    print("\nCorrelation with latency:")
    for corr in engine.analyze_correlation(df['quality'], df['latency_ms']):
        print(f"  {corr.method.value:<9} r={corr.correlation:+.4f}  p={corr.p_value}  {corr.interpretation}")

    print("\nForecasts (next 6 steps):")
    for forecast in engine.forecast(df['quality'], df['timestamp'], horizon=6):
        preds = ", ".join(f"{p:.3f}" for p in forecast.predictions)
        print(f"  {forecast.method.value:<11} acc={forecast.accuracy:.2f}  [{preds}]")


def demo_insights(engine: QualityAnalyticsEngine, df: pd.DataFrame):
    """Demo insight synthesis."""
    print("\n" + "=" * 80)
    print("DEMO 2: Insight Synthesis")
    print("=" * 80)

    insights = engine.synthesize(
        df['quality'],
        df['timestamp'],
        correlated_series={'latency_ms': df['latency_ms']},
    )

    for insight in insights:
        print(f"\n[{insight.severity.value.upper()}] {insight.category.value}: {insight.description}")
        print(f"  confidence={insight.confidence:.2f}")
        for rec in insight.recommendations:
            print(f"  -> {rec}")

    summary = engine.get_insight_summary(insights)
    print(f"\nSummary: {summary}")


def main():
    """Run all demos."""
    logging.basicConfig(level=logging.WARNING)

    print("\n")
    print("=" * 80)
    print(" " * 20 + "QUALITY ANALYTICS ENGINE DEMO")
    print("=" * 80)

    config = AnalyticsConfig()
    monitor = AnalyticsHealthMonitor()
    engine = QualityAnalyticsEngine(config, health_monitor=monitor)
    print(f"\nEngine initialized with config: {config.get_config_hash()}")

    df = generate_quality_series()
    print(f"Generated {len(df)} hourly quality scores")

    try:
        demo_components(engine, df)
        demo_insights(engine, df)

        print("\n" + "=" * 80)
        print("HEALTH")
        print("=" * 80)
        health = monitor.get_health_status()
        print(f"\nStatus: {health['status']}")
        for name, value in health['counters'].items():
            print(f"  {name}: {value}")

    except Exception as e:
        print(f"\nError during demo: {e}")
        import traceback
        traceback.print_exc()


if __name__ == "__main__":
    main()
