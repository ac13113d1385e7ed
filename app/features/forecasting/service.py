"""Forecasting service: daily series loading and response assembly.

Orchestrates:
- Aggregating orders into one observation per calendar day
- Running SeriesAnalyzer + Forecaster on the series
- Aligning trend and predictions to dates for the dashboard

The numeric core (analysis.py, models.py) is date-agnostic; all date
handling lives here.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date as date_type
from datetime import datetime, timedelta
from typing import Any

import numpy as np
import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import BadRequestError, ValidationError
from app.features.data_platform.models import Order, Product
from app.features.forecasting.analysis import MIN_OBSERVATIONS
from app.features.forecasting.models import (
    BoxMullerSampler,
    NormalSampler,
    forecast_series,
)
from app.features.forecasting.schemas import (
    ForecastResponse,
    ForecastTarget,
    HistoricalPoint,
    PredictionPoint,
    SeasonalitySummary,
    SeriesPoint,
)

logger = structlog.get_logger()

CUSTOM_TARGET = "custom"


@dataclass
class DailySeries:
    """One aggregated observation per day.

    Attributes:
        dates: Days in ascending order.
        values: Aggregate for each day.
        target: Which aggregate ``values`` holds.
        order_counts: Number of orders placed each day.
        n_observations: Number of days.
    """

    dates: list[date_type]
    values: np.ndarray[Any, np.dtype[np.floating[Any]]]
    target: str
    order_counts: list[int] = field(default_factory=list)
    n_observations: int = field(init=False)

    def __post_init__(self) -> None:
        """Compute derived fields."""
        self.n_observations = len(self.values)


class ForecastingService:
    """Build dashboard forecasts from order history or supplied series.

    A sampler passed at construction is used for every request; otherwise
    each request gets a fresh BoxMullerSampler seeded from
    ``forecast_random_seed`` (None means OS entropy).
    """

    def __init__(self, sampler: NormalSampler | None = None) -> None:
        """Initialize the forecasting service.

        Args:
            sampler: Optional fixed normal draw source.
        """
        self.settings = get_settings()
        self._sampler = sampler

    def resolve_horizon(self, horizon: int | None) -> int:
        """Clamp a requested horizon into ``[1, forecast_max_horizon]``."""
        if horizon is None:
            horizon = self.settings.forecast_default_horizon
        return max(1, min(horizon, self.settings.forecast_max_horizon))

    async def forecast_orders(
        self,
        db: AsyncSession,
        target: ForecastTarget,
        horizon: int,
        category: str | None = None,
    ) -> ForecastResponse:
        """Forecast daily average price or daily volume from orders.

        Args:
            db: Database session.
            target: "price" (average unit price) or "demand" (total quantity).
            horizon: Number of days to forecast (already resolved).
            category: Optional exact product category filter.

        Returns:
            ForecastResponse; empty when fewer than 2 days have orders.
        """
        series = await self._load_daily_series(db=db, target=target, category=category)
        return self.build_response(
            dates=series.dates,
            values=series.values,
            target=target,
            horizon=horizon,
        )

    def forecast_points(self, points: Sequence[SeriesPoint], horizon: int) -> ForecastResponse:
        """Forecast a caller-supplied daily series.

        Args:
            points: Observations in ascending date order.
            horizon: Number of days to forecast.

        Returns:
            ForecastResponse with target "custom".

        Raises:
            ValidationError: If horizon exceeds forecast_max_horizon.
        """
        if horizon > self.settings.forecast_max_horizon:
            raise ValidationError(
                f"horizon must be <= {self.settings.forecast_max_horizon}, got {horizon}",
                details={"horizon": horizon},
            )

        return self.build_response(
            dates=[p.date for p in points],
            values=np.array([p.value for p in points], dtype=np.float64),
            target=CUSTOM_TARGET,
            horizon=horizon,
        )

    def build_response(
        self,
        dates: Sequence[date_type],
        values: np.ndarray[Any, np.dtype[np.floating[Any]]],
        target: str,
        horizon: int,
    ) -> ForecastResponse:
        """Run the forecasting core and align its output to dates.

        Args:
            dates: Day of each observation.
            values: Observations.
            target: Target label echoed in the response.
            horizon: Number of days to forecast.

        Returns:
            ForecastResponse.

        Raises:
            BadRequestError: If the series contains negative or non-finite values.
        """
        start_time = time.perf_counter()

        if len(values) < MIN_OBSERVATIONS:
            logger.info(
                "forecasting.insufficient_data",
                target=target,
                n_observations=len(values),
            )
            return ForecastResponse.empty(target)

        try:
            result = forecast_series(values, horizon, sampler=self._get_sampler())
        except ValueError as e:
            raise BadRequestError(
                f"Series cannot be forecast: {e}",
                details={"target": target, "n_observations": len(values)},
            ) from e

        decomposition = result.decomposition
        if decomposition is None:
            return ForecastResponse.empty(target)

        historical_data = [
            HistoricalPoint(date=day, value=float(value), ma=float(ma))
            for day, value, ma in zip(dates, values, decomposition.trend, strict=True)
        ]

        last_date = dates[-1]
        predictions = [
            PredictionPoint(
                date=last_date + timedelta(days=i + 1),
                value=round(float(value), 2),
            )
            for i, value in enumerate(result.predictions)
        ]

        seasonality = decomposition.seasonality
        duration_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            "forecasting.forecast_completed",
            target=target,
            n_observations=decomposition.n_observations,
            horizon=horizon,
            volatility=decomposition.volatility,
            confidence=result.confidence,
            seasonal_pattern=seasonality.pattern,
            seasonal_period=seasonality.period,
            skipped_returns=decomposition.skipped_returns,
            duration_ms=duration_ms,
        )

        return ForecastResponse(
            target=target,
            historical_data=historical_data,
            predictions=predictions,
            confidence=result.confidence,
            volatility=decomposition.volatility,
            seasonality=SeasonalitySummary(
                pattern=seasonality.pattern,
                period=seasonality.period,
                magnitude=seasonality.magnitude,
            ),
        )

    def _get_sampler(self) -> NormalSampler:
        """Sampler for one request."""
        if self._sampler is not None:
            return self._sampler
        return BoxMullerSampler(random_state=self.settings.forecast_random_seed)

    async def _load_daily_series(
        self,
        db: AsyncSession,
        target: ForecastTarget,
        category: str | None = None,
    ) -> DailySeries:
        """Aggregate orders into one row per calendar day.

        Orders are inner-joined to products, so orders whose product no
        longer exists are ignored.

        Args:
            db: Database session.
            target: Which aggregate to return.
            category: Optional exact product category filter.

        Returns:
            DailySeries in ascending date order.
        """
        day = func.date_trunc("day", Order.created_at).label("day")
        stmt = select(
            day,
            func.avg(Order.unit_price).label("avg_price"),
            func.count(Order.id).label("order_count"),
            func.sum(Order.quantity).label("total_volume"),
        ).join(Product, Order.product_id == Product.id)

        if category is not None:
            stmt = stmt.where(Product.category == category)

        stmt = stmt.group_by(day).order_by(day)

        result = await db.execute(stmt)
        rows = result.all()

        dates = [row.day.date() if isinstance(row.day, datetime) else row.day for row in rows]
        if target == "price":
            values = [float(row.avg_price) for row in rows]
        else:
            values = [float(row.total_volume) for row in rows]
        order_counts = [int(row.order_count) for row in rows]

        logger.debug(
            "forecasting.daily_series_loaded",
            target=target,
            category=category,
            n_days=len(rows),
            n_orders=sum(order_counts),
        )

        return DailySeries(
            dates=dates,
            values=np.array(values, dtype=np.float64),
            target=target,
            order_counts=order_counts,
        )
