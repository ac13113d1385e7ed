"""Data platform feature: catalogue and order tables.

The forecasting feature reads daily aggregates of these tables.
"""

from app.features.data_platform.models import Order, Product

__all__ = [
    "Order",
    "Product",
]
