"""Fixtures for data platform tests.

The db_session fixture is repeated per feature because conftest discovery
follows the directory path and tests/conftest.py is not a parent of
app/features/*/tests/.
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import get_settings
from app.features.data_platform.models import Order, Product


@pytest.fixture
async def db_session():
    """Async session against the configured PostgreSQL database.

    Requires PostgreSQL and applied migrations. Test rows are removed after
    each test.
    """
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.execute(delete(Order))
            await session.execute(delete(Product).where(Product.sku.like("TEST-%")))
            await session.commit()

    await engine.dispose()


@pytest.fixture
def sample_product() -> Product:
    """Unsaved product in the grains category."""
    return Product(sku="TEST-RICE-01", name="Basmati Rice", category="grains", unit="kg")


@pytest.fixture
def sample_order_time() -> datetime:
    """Fixed order timestamp."""
    return datetime(2024, 3, 1, 10, 30, tzinfo=UTC)


@pytest.fixture
def sample_unit_price() -> Decimal:
    """Typical unit price."""
    return Decimal("42.50")
