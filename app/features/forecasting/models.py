"""Heuristic multi-step forecaster.

Each step ``i`` (0-based, ``i + 1`` periods ahead) combines:

1. linear trend projection: ``last * (1 + slope * (i + 1))``
2. optional seasonal modulation: ``* (1 + magnitude * sin(2*pi*i / period))``
3. stochastic overlay: ``* (1 + z * volatility * sqrt(i + 1))``, z ~ N(0, 1)
4. clamp at 0

Randomness comes from an injected NormalSampler so callers can pin it.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

import numpy as np

from app.core.logging import get_logger
from app.features.forecasting.analysis import (
    MAX_TREND_WINDOW,
    Decomposition,
    FloatArray,
    SeriesAnalyzer,
)

logger = get_logger(__name__)


class NormalSampler(Protocol):
    """Source of standard-normal draws for the stochastic overlay."""

    def sample(self) -> float:
        """Return one draw from N(0, 1)."""
        ...


class BoxMullerSampler:
    """Standard-normal draws via the Box-Muller transform.

    Two uniform draws per sample; only the cosine branch is used.

    Attributes:
        random_state: Seed used to build the generator; None means entropy.
    """

    def __init__(
        self,
        random_state: int | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        """Initialize the sampler.

        Args:
            random_state: Seed for a new generator (ignored when rng is given).
            rng: Existing generator to draw from.
        """
        self.random_state = random_state
        self._rng = rng if rng is not None else np.random.default_rng(random_state)

    def sample(self) -> float:
        """Return one standard-normal draw."""
        # 1 - U keeps u1 in (0, 1] so log(u1) stays finite
        u1 = 1.0 - float(self._rng.random())
        u2 = float(self._rng.random())
        return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)


class ConstantSampler:
    """Sampler that always returns the same value (0.0 disables the noise)."""

    def __init__(self, value: float = 0.0) -> None:
        self.value = value

    def sample(self) -> float:
        return self.value


def trend_slope(trend: Sequence[float] | FloatArray) -> float:
    """Relative least-squares slope of the most recent trend points.

    Fits ``y = a + b*x`` on the last ``min(6, len(trend))`` points with
    ``x = 0..k-1`` and returns ``b / y[0]``, the fractional change per period
    relative to the start of the window.

    Args:
        trend: Trend sequence.

    Returns:
        Relative slope; 0.0 for fewer than 2 points or a zero window start.
    """
    if len(trend) < 2:
        return 0.0

    recent = [float(v) for v in trend[-MAX_TREND_WINDOW:]]
    k = len(recent)
    x = range(k)

    sum_x = float(sum(x))
    sum_y = sum(recent)
    sum_xy = sum(xi * yi for xi, yi in zip(x, recent, strict=True))
    sum_xx = float(sum(xi * xi for xi in x))

    slope = (k * sum_xy - sum_x * sum_y) / (k * sum_xx - sum_x * sum_x)

    if recent[0] == 0:
        logger.warning("forecasting.slope_undefined", reason="zero_window_start")
        return 0.0

    relative = slope / recent[0]
    if not math.isfinite(relative):
        logger.warning("forecasting.slope_undefined", reason="overflow")
        return 0.0
    return relative


def confidence_score(volatility: float) -> float:
    """Map volatility to a 0-100 confidence score (volatility >= 1 gives 0)."""
    return max(0.0, min(100.0, 100.0 * (1.0 - volatility)))


class Forecaster:
    """Project a Decomposition forward.

    Attributes:
        sampler: Source of the standard-normal draws.
    """

    def __init__(self, sampler: NormalSampler | None = None) -> None:
        """Initialize the forecaster.

        Args:
            sampler: Normal draw source; defaults to an entropy-seeded
                BoxMullerSampler.
        """
        self.sampler: NormalSampler = sampler if sampler is not None else BoxMullerSampler()

    def predict(
        self,
        decomposition: Decomposition | None,
        horizon: int,
    ) -> FloatArray:
        """Generate ``horizon`` non-negative predictions.

        Args:
            decomposition: Output of SeriesAnalyzer.analyze (None propagates
                the insufficient-data signal).
            horizon: Number of periods to forecast.

        Returns:
            Array of shape [horizon]; empty when decomposition is None.

        Raises:
            ValueError: If horizon is not positive, or a projected value
                overflows the float range.
        """
        if decomposition is None:
            return np.array([], dtype=np.float64)
        if horizon < 1:
            raise ValueError(f"Horizon must be >= 1, got {horizon}")

        slope = trend_slope(decomposition.trend)
        seasonality = decomposition.seasonality
        seasonal = seasonality.pattern and seasonality.period > 0
        volatility = decomposition.volatility

        predictions = np.empty(horizon, dtype=np.float64)
        for i in range(horizon):
            value = decomposition.last_value * (1 + slope * (i + 1))

            if seasonal:
                value *= 1 + seasonality.magnitude * math.sin(
                    2 * math.pi * (i / seasonality.period)
                )

            value *= 1 + self.sampler.sample() * volatility * math.sqrt(i + 1)

            if not math.isfinite(value):
                raise ValueError(f"Projection overflowed at step {i + 1}")
            predictions[i] = max(0.0, value)

        return predictions


@dataclass(frozen=True, eq=False)
class ForecastResult:
    """Decomposition plus predictions and confidence for one series.

    ``decomposition`` is None (and predictions empty, confidence 0) when the
    series was too short to analyze.
    """

    decomposition: Decomposition | None
    predictions: FloatArray
    confidence: float

    @property
    def is_empty(self) -> bool:
        """True when the series could not be analyzed."""
        return self.decomposition is None


def forecast_series(
    values: Sequence[float] | np.ndarray[Any, Any],
    horizon: int,
    sampler: NormalSampler | None = None,
) -> ForecastResult:
    """Analyze a series and forecast it in one call.

    Args:
        values: Chronologically ordered observations.
        horizon: Number of periods to forecast.
        sampler: Optional normal draw source.

    Returns:
        ForecastResult.

    Raises:
        ValueError: If values contain negative or non-finite numbers, or the
            projection overflows.
    """
    decomposition = SeriesAnalyzer().analyze(values)
    if decomposition is None:
        return ForecastResult(
            decomposition=None,
            predictions=np.array([], dtype=np.float64),
            confidence=0.0,
        )

    predictions = Forecaster(sampler).predict(decomposition, horizon)
    return ForecastResult(
        decomposition=decomposition,
        predictions=predictions,
        confidence=confidence_score(decomposition.volatility),
    )
