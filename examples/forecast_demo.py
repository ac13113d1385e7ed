"""Example: analyzing and forecasting a daily series without a database.

Builds a synthetic demand series with a weekly cycle, decomposes it with
SeriesAnalyzer, then projects it with a seeded Forecaster and with the noise
pinned to zero.

Usage:
    python examples/forecast_demo.py
"""

import numpy as np

from app.features.forecasting.analysis import SeriesAnalyzer
from app.features.forecasting.models import (
    BoxMullerSampler,
    ConstantSampler,
    Forecaster,
    confidence_score,
    trend_slope,
)


def main():
    # 1. Four weeks of demand: slow growth, weekly cycle, mild noise
    rng = np.random.default_rng(42)
    days = np.arange(28)
    y = 100 * (1 + 0.01 * days) * (1 + 0.3 * np.sin(2 * np.pi * days / 7))
    y = y * (1 + rng.normal(0, 0.03, len(days)))
    print(f"History: {len(y)} days, last 7 = {y[-7:].round(1)}")

    # 2. Decompose
    decomposition = SeriesAnalyzer().analyze(y)
    assert decomposition is not None
    print("\nDecomposition:")
    print(f"  Trend (last 3):  {decomposition.trend[-3:].round(2)}")
    print(f"  Volatility:      {decomposition.volatility:.4f}")
    print(f"  Relative slope:  {trend_slope(decomposition.trend):.4f}")
    print(f"  Seasonality:     {decomposition.seasonality}")
    print(f"  Confidence:      {confidence_score(decomposition.volatility):.1f}")

    # 3. Seeded projection with noise
    horizon = 7
    noisy = Forecaster(BoxMullerSampler(random_state=7)).predict(decomposition, horizon)
    # 4. Same projection with the draw pinned to zero
    central = Forecaster(ConstantSampler(0.0)).predict(decomposition, horizon)

    print(f"\n{horizon}-day forecast:")
    print(f"  {'Day':>3}  {'central':>9}  {'seeded':>9}")
    for i in range(horizon):
        print(f"  {i + 1:>3}  {central[i]:>9.2f}  {noisy[i]:>9.2f}")

    # 5. Too little history
    print(f"\nOne observation -> {SeriesAnalyzer().analyze([12.0])}")


if __name__ == "__main__":
    main()
