"""Forecasting feature: price/demand decomposition and projection.

Exports:
    Analysis:
        - SeriesAnalyzer: raw series -> Decomposition (or None)
        - Decomposition, Seasonality

    Models:
        - Forecaster: Decomposition + horizon -> predictions
        - BoxMullerSampler, ConstantSampler, NormalSampler
        - confidence_score, trend_slope, forecast_series, ForecastResult

    Schemas:
        - ForecastResponse, HistoricalPoint, PredictionPoint
        - SeriesForecastRequest, SeriesPoint

    Service:
        - ForecastingService: order aggregation and response assembly
"""

from app.features.forecasting.analysis import Decomposition, Seasonality, SeriesAnalyzer
from app.features.forecasting.models import (
    BoxMullerSampler,
    ConstantSampler,
    Forecaster,
    ForecastResult,
    NormalSampler,
    confidence_score,
    forecast_series,
    trend_slope,
)
from app.features.forecasting.schemas import (
    ForecastResponse,
    HistoricalPoint,
    PredictionPoint,
    SeriesForecastRequest,
    SeriesPoint,
)
from app.features.forecasting.service import ForecastingService

__all__ = [
    # Models
    "BoxMullerSampler",
    "ConstantSampler",
    # Analysis
    "Decomposition",
    "ForecastResponse",
    "ForecastResult",
    "Forecaster",
    # Service
    "ForecastingService",
    # Schemas
    "HistoricalPoint",
    "NormalSampler",
    "PredictionPoint",
    "Seasonality",
    "SeriesAnalyzer",
    "SeriesForecastRequest",
    "SeriesPoint",
    "confidence_score",
    "forecast_series",
    "trend_slope",
]
