"""Forecasting API routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import DatabaseError
from app.core.logging import get_logger
from app.features.forecasting.schemas import (
    ForecastResponse,
    ForecastTarget,
    SeriesForecastRequest,
)
from app.features.forecasting.service import ForecastingService

logger = get_logger(__name__)

router = APIRouter(tags=["forecasting"])


def get_forecasting_service() -> ForecastingService:
    """Dependency providing the forecasting service."""
    return ForecastingService()


@router.get(
    "/admin/forecast",
    response_model=ForecastResponse,
    status_code=status.HTTP_200_OK,
    summary="Forecast daily price or demand from order history",
    description="""
Aggregate orders by calendar day and forecast the next `h` days.

**Targets:**
- `price`: average unit price per day
- `demand`: total quantity ordered per day

**Filtering:** `category` restricts orders to products of that exact category.

**Horizon:** `h` defaults to `FORECAST_DEFAULT_HORIZON` (3) and is clamped to at least 1
and at most the configured maximum.

**Insufficient data:** fewer than 2 days with orders returns `ok=true` with
empty `historicalData`/`predictions` and `confidence=0`.

Predictions carry a random component scaled by historical volatility, so
repeated calls differ unless `FORECAST_RANDOM_SEED` is set.
""",
)
async def get_forecast(
    target: ForecastTarget = Query("price", description="What to forecast."),
    category: str | None = Query(
        None,
        min_length=1,
        description="Filter by product category (exact match).",
    ),
    h: int | None = Query(
        None,
        description="Number of days to forecast (default: FORECAST_DEFAULT_HORIZON).",
    ),
    db: AsyncSession = Depends(get_db),
    service: ForecastingService = Depends(get_forecasting_service),
) -> ForecastResponse:
    """Forecast a daily order aggregate.

    Args:
        target: "price" or "demand".
        category: Optional category filter.
        h: Requested horizon in days.
        db: Async database session from dependency.
        service: Forecasting service from dependency.

    Returns:
        Historical series with trend, predictions and confidence.

    Raises:
        DatabaseError: If the aggregation query fails.
    """
    horizon = service.resolve_horizon(h)

    logger.info(
        "forecasting.forecast_request_received",
        target=target,
        category=category,
        requested_horizon=h,
        horizon=horizon,
    )

    try:
        return await service.forecast_orders(
            db=db,
            target=target,
            horizon=horizon,
            category=category,
        )
    except SQLAlchemyError as e:
        logger.error(
            "forecasting.forecast_request_failed",
            target=target,
            category=category,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        raise DatabaseError(
            message="Failed to load order history",
            details={"error": str(e)},
        ) from e


@router.post(
    "/forecasting/series",
    response_model=ForecastResponse,
    status_code=status.HTTP_200_OK,
    summary="Forecast a supplied daily series",
    description="""
Run the same decomposition and forecast on a caller-supplied series.

**Inputs:**
- `points`: `[{date, value}]` in strictly ascending date order, values >= 0
- `horizon`: number of days to forecast (1 to the configured maximum)

The response has the same shape as `GET /admin/forecast` with `target="custom"`.
""",
)
async def forecast_series_endpoint(
    request: SeriesForecastRequest,
    service: ForecastingService = Depends(get_forecasting_service),
) -> ForecastResponse:
    """Forecast a caller-supplied series.

    Args:
        request: Series and horizon.
        service: Forecasting service from dependency.

    Returns:
        Historical series with trend, predictions and confidence.
    """
    logger.info(
        "forecasting.series_request_received",
        n_points=len(request.points),
        horizon=request.horizon,
    )
    return service.forecast_points(request.points, request.horizon)
