"""Pydantic schemas for the forecast API contracts.

Response field names are camelCase on the wire (``historicalData``) to
match the dashboard client; Python attributes stay snake_case.
"""

from __future__ import annotations

import math
from datetime import date as date_type
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ForecastTarget = Literal["price", "demand"]


class CamelModel(BaseModel):
    """Base model serializing to camelCase and accepting either case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# Response Schemas
# =============================================================================


class HistoricalPoint(CamelModel):
    """One observed day with its trend value.

    Attributes:
        date: Day of the observation.
        value: Observed aggregate (average price or total volume).
        ma: Moving-average trend value at the same index.
    """

    date: date_type
    value: float
    ma: float


class PredictionPoint(CamelModel):
    """One forecast day.

    Attributes:
        date: Last historical date plus ``i + 1`` days.
        value: Forecast value rounded to 2 decimals.
    """

    date: date_type
    value: float


class SeasonalitySummary(CamelModel):
    """Seasonality descriptor exposed for diagnostics."""

    pattern: bool
    period: int
    magnitude: float


class ForecastResponse(CamelModel):
    """Forecast response consumed by the dashboard.

    An insufficient series yields ``ok=True`` with empty lists and
    confidence 0 rather than an error.

    Attributes:
        ok: Always True for a processed request.
        target: Forecasted quantity ("price", "demand" or "custom").
        historical_data: Observed points with trend.
        predictions: Forecast points.
        confidence: 0-100 score derived from volatility.
        volatility: Population std of relative returns (None if empty).
        seasonality: Detected cycle (None if empty).
    """

    ok: bool = True
    target: str
    historical_data: list[HistoricalPoint] = Field(default_factory=list)
    predictions: list[PredictionPoint] = Field(default_factory=list)
    confidence: float = Field(0.0, ge=0.0, le=100.0)
    volatility: float | None = None
    seasonality: SeasonalitySummary | None = None

    @classmethod
    def empty(cls, target: str) -> ForecastResponse:
        """Response for a series too short to forecast."""
        return cls(target=target)


# =============================================================================
# Request Schemas
# =============================================================================


class SeriesPoint(BaseModel):
    """One caller-supplied observation."""

    date: date_type
    value: float = Field(..., ge=0.0, description="Non-negative observation")

    @field_validator("value")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        """Reject NaN and infinity."""
        if not math.isfinite(v):
            raise ValueError("value must be a finite number")
        return v


class SeriesForecastRequest(BaseModel):
    """Request body for POST /forecasting/series.

    Attributes:
        points: Observations in strictly ascending date order.
        horizon: Number of days to forecast.
    """

    model_config = ConfigDict(extra="forbid")

    points: list[SeriesPoint] = Field(..., max_length=10000)
    horizon: int = Field(3, ge=1, description="Number of days to forecast")

    @field_validator("points")
    @classmethod
    def validate_ordering(cls, v: list[SeriesPoint]) -> list[SeriesPoint]:
        """Ensure dates are strictly ascending (chronological, no duplicates)."""
        for previous, current in zip(v, v[1:], strict=False):
            if current.date <= previous.date:
                raise ValueError(
                    f"points must be in strictly ascending date order "
                    f"({current.date} follows {previous.date})"
                )
        return v
