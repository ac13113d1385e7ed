"""Series decomposition into trend, volatility and seasonality.

The recipe is fixed on purpose (dashboard display, not model fitting):

- trend: trailing moving average, window = min(6, n // 2)
- volatility: population std of period-over-period relative returns
- seasonality: strongest raw autocovariance over periods 2..12

Returns ``None`` for series shorter than two points.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from app.core.logging import get_logger

logger = get_logger(__name__)

FloatArray = np.ndarray[Any, np.dtype[np.floating[Any]]]

MIN_OBSERVATIONS = 2
MAX_TREND_WINDOW = 6
MIN_SEASONAL_OBSERVATIONS = 12
MIN_SEASONAL_PERIOD = 2
MAX_SEASONAL_PERIOD = 12
SEASONALITY_THRESHOLD = 0.2


@dataclass(frozen=True)
class Seasonality:
    """Strongest autocorrelation cycle found in a series.

    ``magnitude`` is the raw autocovariance of the demeaned series at
    ``period``. It is not divided by the variance, so for series with a
    large spread it can exceed 1 in absolute value.

    Attributes:
        pattern: True when abs(magnitude) exceeds SEASONALITY_THRESHOLD.
        period: Cycle length in observations; 0 when nothing was scanned.
        magnitude: Signed autocovariance at ``period``.
    """

    pattern: bool = False
    period: int = 0
    magnitude: float = 0.0


NO_SEASONALITY = Seasonality()


@dataclass(frozen=True, eq=False)
class Decomposition:
    """Immutable result of SeriesAnalyzer.analyze.

    Attributes:
        trend: Trailing moving average, same length as the input.
        volatility: Population std of relative returns (>= 0).
        seasonality: Detected cycle descriptor.
        last_value: Final observation.
        skipped_returns: Returns left out as undefined (zero or overflowing
            denominator).
    """

    trend: FloatArray
    volatility: float
    seasonality: Seasonality
    last_value: float
    skipped_returns: int = field(default=0)

    def __post_init__(self) -> None:
        """Freeze the trend buffer so the decomposition cannot be mutated."""
        trend = np.array(self.trend, dtype=np.float64)
        trend.setflags(write=False)
        object.__setattr__(self, "trend", trend)

    @property
    def n_observations(self) -> int:
        """Number of observations the decomposition was built from."""
        return len(self.trend)


def trend_window(n_observations: int) -> int:
    """Moving-average window for a series of the given length."""
    return min(MAX_TREND_WINDOW, n_observations // 2)


def moving_average(values: FloatArray, window: int) -> FloatArray:
    """Trailing moving average with a shrinking window at the start.

    Index ``i`` averages ``values[max(0, i - window + 1) : i + 1]``.

    Args:
        values: Observations.
        window: Maximum window size (>= 1).

    Returns:
        Array with the same length as ``values``.
    """
    window = max(1, window)
    result: FloatArray = np.array(
        [values[max(0, i - window + 1) : i + 1].mean() for i in range(len(values))],
        dtype=np.float64,
    )
    return result


def relative_returns(values: FloatArray) -> tuple[FloatArray, int]:
    """Period-over-period relative returns ``(v[i] - v[i-1]) / v[i-1]``.

    A return whose previous value is 0 is undefined and left out, as is one
    that overflows to infinity (e.g. a subnormal previous value).

    Args:
        values: Observations.

    Returns:
        Tuple of (defined returns, number of undefined returns skipped).
    """
    previous = values[:-1]
    current = values[1:]
    nonzero = previous != 0
    with np.errstate(over="ignore", invalid="ignore"):
        candidates = (current[nonzero] - previous[nonzero]) / previous[nonzero]
    finite = np.isfinite(candidates)
    returns: FloatArray = candidates[finite]
    skipped = int(np.count_nonzero(~nonzero)) + int(np.count_nonzero(~finite))
    return returns, skipped


def population_std(values: FloatArray) -> float:
    """Standard deviation dividing by N; 0.0 for an empty array."""
    if len(values) == 0:
        return 0.0
    with np.errstate(over="ignore", invalid="ignore"):
        return float(np.std(values, ddof=0))


def detect_seasonality(values: FloatArray) -> Seasonality:
    """Scan candidate periods for the strongest raw autocovariance.

    For each period ``p`` in ``2..min(12, n // 2)`` the score is
    ``sum(d[i] * d[i + p]) / (n - p)`` over the demeaned series ``d``.
    A candidate replaces the current best only when strictly larger in
    absolute value, so ties keep the shorter period.

    Args:
        values: Observations.

    Returns:
        Seasonality descriptor; NO_SEASONALITY when n < 12.
    """
    n = len(values)
    if n < MIN_SEASONAL_OBSERVATIONS:
        return NO_SEASONALITY

    demeaned = values - values.mean()
    max_corr = 0.0
    period = 0

    for p in range(MIN_SEASONAL_PERIOD, min(MAX_SEASONAL_PERIOD, n // 2) + 1):
        corr = float(np.dot(demeaned[: n - p], demeaned[p:])) / (n - p)
        if abs(corr) > abs(max_corr):
            max_corr = corr
            period = p

    return Seasonality(
        pattern=abs(max_corr) > SEASONALITY_THRESHOLD,
        period=period,
        magnitude=max_corr,
    )


class SeriesAnalyzer:
    """Decompose an observation sequence for the Forecaster.

    Stateless; one instance can serve concurrent callers.
    """

    def analyze(self, values: Sequence[float] | FloatArray) -> Decomposition | None:
        """Decompose a chronologically ordered series.

        Args:
            values: Non-negative observations, one per period.

        Returns:
            Decomposition, or None when fewer than 2 observations are given.

        Raises:
            ValueError: If any observation is negative or not finite.
        """
        y = np.asarray(values, dtype=np.float64)
        if y.ndim != 1:
            raise ValueError(f"Expected a 1D series, got shape {y.shape}")

        if len(y) < MIN_OBSERVATIONS:
            logger.debug("forecasting.series_insufficient", n_observations=len(y))
            return None

        if not np.all(np.isfinite(y)):
            raise ValueError("Series contains non-finite values")
        if np.any(y < 0):
            raise ValueError("Series contains negative values")

        trend = moving_average(y, trend_window(len(y)))
        returns, skipped = relative_returns(y)
        volatility = population_std(returns)
        seasonality = detect_seasonality(y)

        if skipped:
            logger.warning(
                "forecasting.undefined_returns_skipped",
                n_observations=len(y),
                skipped_returns=skipped,
            )

        decomposition = Decomposition(
            trend=trend,
            volatility=volatility,
            seasonality=seasonality,
            last_value=float(y[-1]),
            skipped_returns=skipped,
        )

        logger.debug(
            "forecasting.series_analyzed",
            n_observations=len(y),
            volatility=decomposition.volatility,
            seasonal_pattern=seasonality.pattern,
            seasonal_period=seasonality.period,
        )
        return decomposition
