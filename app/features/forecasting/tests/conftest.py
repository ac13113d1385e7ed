"""Test fixtures for forecasting module."""

from collections.abc import AsyncGenerator
from datetime import date, timedelta

import numpy as np
import pytest
from httpx import ASGITransport, AsyncClient

from app.core.database import get_db
from app.features.forecasting.analysis import Decomposition, Seasonality
from app.features.forecasting.models import ConstantSampler
from app.features.forecasting.routes import get_forecasting_service
from app.features.forecasting.service import ForecastingService
from app.main import app


@pytest.fixture
def constant_series() -> np.ndarray:
    """Five identical observations."""
    return np.array([10.0, 10.0, 10.0, 10.0, 10.0])


@pytest.fixture
def linear_series() -> np.ndarray:
    """Short linear uptrend 1..5 (trend window 2)."""
    return np.array([1.0, 2.0, 3.0, 4.0, 5.0])


@pytest.fixture
def seasonal_series() -> np.ndarray:
    """Four cycles of a period-4 pattern: [100, 120, 100, 100].

    Demeaned cycle is [-5, 15, -5, -5]; the lag-4 autocovariance is 75.
    """
    return np.tile(np.array([100.0, 120.0, 100.0, 100.0]), 4)


@pytest.fixture
def series_with_zeros() -> np.ndarray:
    """Zeros adjacent to non-zero values."""
    return np.array([0.0, 5.0, 10.0, 0.0, 5.0])


@pytest.fixture
def zero_sampler() -> ConstantSampler:
    """Sampler that disables the stochastic overlay."""
    return ConstantSampler(0.0)


@pytest.fixture
def flat_decomposition() -> Decomposition:
    """Decomposition of a flat series with no volatility or seasonality."""
    return Decomposition(
        trend=np.full(8, 50.0),
        volatility=0.0,
        seasonality=Seasonality(),
        last_value=50.0,
    )


@pytest.fixture
def sample_dates() -> list[date]:
    """Sixteen consecutive days starting 2024-03-01."""
    return [date(2024, 3, 1) + timedelta(days=i) for i in range(16)]


@pytest.fixture
def deterministic_service(zero_sampler: ConstantSampler) -> ForecastingService:
    """Service with the stochastic overlay disabled."""
    return ForecastingService(sampler=zero_sampler)


@pytest.fixture
async def client(
    deterministic_service: ForecastingService,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with a deterministic service and no database.

    Tests that hit GET /admin/forecast patch
    ``ForecastingService._load_daily_series`` to supply the series.
    """

    async def _no_db() -> AsyncGenerator[None, None]:
        yield None

    app.dependency_overrides[get_forecasting_service] = lambda: deterministic_service
    app.dependency_overrides[get_db] = _no_db
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
