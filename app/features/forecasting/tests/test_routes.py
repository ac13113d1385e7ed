"""Tests for forecasting API routes.

The database is replaced by a stub dependency; order history is supplied by
patching ForecastingService._load_daily_series.
"""

from unittest.mock import AsyncMock, patch

import numpy as np
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from app.features.forecasting.service import DailySeries, ForecastingService


def _patch_series(series: DailySeries):
    return patch.object(
        ForecastingService,
        "_load_daily_series",
        AsyncMock(return_value=series),
    )


class TestAdminForecastEndpoint:
    """Tests for GET /admin/forecast."""

    async def test_price_forecast(self, client: AsyncClient, sample_dates) -> None:
        """Returns history with trend, predictions and confidence."""
        series = DailySeries(
            dates=sample_dates[:5],
            values=np.array([1.0, 2.0, 3.0, 4.0, 5.0]),
            target="price",
        )
        with _patch_series(series):
            response = await client.get("/admin/forecast", params={"target": "price", "h": 3})

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["target"] == "price"
        assert len(data["historicalData"]) == 5
        assert data["historicalData"][1] == {"date": "2024-03-02", "value": 2.0, "ma": 1.5}
        assert data["predictions"] == [
            {"date": "2024-03-06", "value": 9.5},
            {"date": "2024-03-07", "value": 14.0},
            {"date": "2024-03-08", "value": 18.5},
        ]
        assert 0.0 <= data["confidence"] <= 100.0

    async def test_defaults(self, client: AsyncClient, sample_dates) -> None:
        """Target defaults to price and horizon to 3."""
        series = DailySeries(
            dates=sample_dates[:4],
            values=np.array([5.0, 5.0, 5.0, 5.0]),
            target="price",
        )
        with _patch_series(series) as loader:
            response = await client.get("/admin/forecast")

        assert response.status_code == 200
        assert response.json()["target"] == "price"
        assert len(response.json()["predictions"]) == 3
        assert loader.await_args.kwargs["target"] == "price"
        assert loader.await_args.kwargs["category"] is None

    async def test_default_horizon_from_settings(
        self,
        client: AsyncClient,
        deterministic_service: ForecastingService,
        sample_dates,
    ) -> None:
        """Without h the configured default horizon is used."""
        deterministic_service.settings = deterministic_service.settings.model_copy(
            update={"forecast_default_horizon": 5}
        )
        series = DailySeries(
            dates=sample_dates[:4],
            values=np.array([5.0, 5.0, 5.0, 5.0]),
            target="price",
        )
        with _patch_series(series):
            response = await client.get("/admin/forecast")

        assert response.status_code == 200
        assert len(response.json()["predictions"]) == 5

    async def test_demand_with_category(self, client: AsyncClient, sample_dates) -> None:
        """Category and target are passed to the loader."""
        series = DailySeries(
            dates=sample_dates[:3],
            values=np.array([4.0, 4.0, 4.0]),
            target="demand",
        )
        with _patch_series(series) as loader:
            response = await client.get(
                "/admin/forecast",
                params={"target": "demand", "category": "grains", "h": 2},
            )

        assert response.status_code == 200
        assert loader.await_args.kwargs["target"] == "demand"
        assert loader.await_args.kwargs["category"] == "grains"
        assert [p["value"] for p in response.json()["predictions"]] == [4.0, 4.0]

    async def test_horizon_clamped_to_one(self, client: AsyncClient, sample_dates) -> None:
        """Non-positive h is treated as 1."""
        series = DailySeries(
            dates=sample_dates[:3],
            values=np.array([4.0, 4.0, 4.0]),
            target="price",
        )
        with _patch_series(series):
            response = await client.get("/admin/forecast", params={"h": -4})

        assert response.status_code == 200
        assert len(response.json()["predictions"]) == 1

    async def test_insufficient_history(self, client: AsyncClient, sample_dates) -> None:
        """One day of orders gives an empty, zero-confidence response."""
        series = DailySeries(dates=sample_dates[:1], values=np.array([3.0]), target="price")
        with _patch_series(series):
            response = await client.get("/admin/forecast")

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["historicalData"] == []
        assert data["predictions"] == []
        assert data["confidence"] == 0

    async def test_invalid_target(self, client: AsyncClient) -> None:
        """Unknown target is a 422 problem response."""
        response = await client.get("/admin/forecast", params={"target": "revenue"})

        assert response.status_code == 422
        assert response.headers["content-type"].startswith("application/problem+json")
        data = response.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert data["errors"][0]["field"] == "target"

    async def test_database_failure(self, client: AsyncClient) -> None:
        """SQL errors become a 500 database problem."""
        failing = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("down")))
        with patch.object(ForecastingService, "_load_daily_series", failing):
            response = await client.get("/admin/forecast")

        assert response.status_code == 500
        data = response.json()
        assert data["code"] == "DATABASE_ERROR"
        assert data["type"] == "/errors/database"


class TestSeriesForecastEndpoint:
    """Tests for POST /forecasting/series."""

    async def test_forecast_supplied_series(self, client: AsyncClient) -> None:
        """Supplied points are forecast with the custom target."""
        response = await client.post(
            "/forecasting/series",
            json={
                "points": [
                    {"date": "2024-01-01", "value": 10},
                    {"date": "2024-01-02", "value": 10},
                    {"date": "2024-01-03", "value": 10},
                ],
                "horizon": 2,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["target"] == "custom"
        assert data["confidence"] == 100.0
        assert data["predictions"] == [
            {"date": "2024-01-04", "value": 10.0},
            {"date": "2024-01-05", "value": 10.0},
        ]

    async def test_seasonal_series(self, client: AsyncClient, sample_dates, seasonal_series):
        """Seasonality is reported for a long cyclic series."""
        points = [
            {"date": d.isoformat(), "value": float(v)}
            for d, v in zip(sample_dates, seasonal_series, strict=True)
        ]
        response = await client.post("/forecasting/series", json={"points": points, "horizon": 4})

        assert response.status_code == 200
        seasonality = response.json()["seasonality"]
        assert seasonality["pattern"] is True
        assert seasonality["period"] == 4

    async def test_zero_values_stay_finite(self, client: AsyncClient, sample_dates) -> None:
        """Zeros next to non-zero values produce finite predictions."""
        points = [
            {"date": d.isoformat(), "value": v}
            for d, v in zip(sample_dates[:5], [0.0, 5.0, 10.0, 0.0, 5.0], strict=True)
        ]
        response = await client.post("/forecasting/series", json={"points": points, "horizon": 5})

        assert response.status_code == 200
        values = [p["value"] for p in response.json()["predictions"]]
        assert len(values) == 5
        assert all(v >= 0 for v in values)

    async def test_subnormal_start_gives_numeric_predictions(self, client: AsyncClient) -> None:
        """Extreme but valid inputs never serialize predictions as null."""
        response = await client.post(
            "/forecasting/series",
            json={
                "points": [
                    {"date": "2024-01-01", "value": 1e-320},
                    {"date": "2024-01-02", "value": 1.0},
                ],
                "horizon": 1,
            },
        )

        assert response.status_code == 200
        assert response.json()["predictions"] == [{"date": "2024-01-03", "value": 1.0}]

    async def test_overflowing_projection_is_bad_request(self, client: AsyncClient) -> None:
        """A projection beyond the float range is a 400 problem response."""
        points = [
            {"date": f"2024-01-0{day}", "value": value}
            for day, value in enumerate([1.0, 2.0, 3.0, 4.0, 1e308], start=1)
        ]
        response = await client.post("/forecasting/series", json={"points": points, "horizon": 2})

        assert response.status_code == 400
        assert response.json()["code"] == "BAD_REQUEST"

    async def test_unordered_points_rejected(self, client: AsyncClient) -> None:
        """Out-of-order dates are a validation error."""
        response = await client.post(
            "/forecasting/series",
            json={
                "points": [
                    {"date": "2024-01-02", "value": 1},
                    {"date": "2024-01-01", "value": 2},
                ],
            },
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_horizon_above_maximum(self, client: AsyncClient) -> None:
        """Horizon beyond the configured maximum is rejected."""
        response = await client.post(
            "/forecasting/series",
            json={"points": [], "horizon": 10_000},
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_single_point(self, client: AsyncClient) -> None:
        """One point is insufficient and returns the empty response."""
        response = await client.post(
            "/forecasting/series",
            json={"points": [{"date": "2024-01-01", "value": 3}], "horizon": 2},
        )

        assert response.status_code == 200
        assert response.json()["predictions"] == []
        assert response.json()["confidence"] == 0

    async def test_request_id_echoed(self, client: AsyncClient) -> None:
        """X-Request-ID is propagated to the response."""
        response = await client.post(
            "/forecasting/series",
            json={"points": []},
            headers={"X-Request-ID": "forecast-req-1"},
        )

        assert response.headers["X-Request-ID"] == "forecast-req-1"
