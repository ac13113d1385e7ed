#!/usr/bin/env python
"""Synthetic order history seeder.

Creates a small produce catalogue and a daily order history with an upward
price trend, a weekly demand cycle and multiplicative noise, so the admin
forecast endpoint has something realistic to work on.

Usage:
    # Generate 60 days of orders ending today
    uv run python scripts/seed_orders.py --generate --days 60 --seed 42 --confirm

    # Show current row counts
    uv run python scripts/seed_orders.py --status

    # Delete all orders and products
    uv run python scripts/seed_orders.py --delete --confirm
"""

from __future__ import annotations

import argparse
import asyncio
import math
import sys
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import numpy as np
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import get_settings
from app.features.data_platform.models import Order, Product


@dataclass(frozen=True)
class CatalogueItem:
    """Seed definition for one product."""

    sku: str
    name: str
    category: str
    unit: str
    base_price: float
    base_quantity: float


CATALOGUE: tuple[CatalogueItem, ...] = (
    CatalogueItem("RICE-001", "Basmati Rice", "grains", "kg", 2.40, 40),
    CatalogueItem("MAIZE-001", "White Maize", "grains", "kg", 0.90, 60),
    CatalogueItem("BEAN-001", "Red Beans", "grains", "kg", 1.80, 25),
    CatalogueItem("ONION-001", "Red Onion", "vegetables", "kg", 1.10, 35),
    CatalogueItem("TOMATO-001", "Tomato", "vegetables", "crate", 14.00, 8),
    CatalogueItem("BANANA-001", "Cooking Banana", "fruits", "bunch", 6.50, 12),
)

WEEKLY_PERIOD = 7


def generate_orders(
    items: list[Product],
    catalogue: dict[str, CatalogueItem],
    days: int,
    end: datetime,
    rng: np.random.Generator,
    trend: float,
    weekly_amplitude: float,
    noise: float,
) -> list[Order]:
    """Build unsaved Order rows for each product and day.

    Prices drift by ``trend`` per day; order quantities follow a weekly sine
    cycle. Both carry Gaussian multiplicative noise.
    """
    start = end - timedelta(days=days - 1)
    orders: list[Order] = []

    for day in range(days):
        day_start = (start + timedelta(days=day)).replace(hour=8, minute=0, second=0, microsecond=0)
        cycle = 1 + weekly_amplitude * math.sin(2 * math.pi * day / WEEKLY_PERIOD)

        for product in items:
            item = catalogue[product.sku]
            price = item.base_price * (1 + trend * day) * (1 + rng.normal(0, noise))
            n_orders = int(rng.poisson(3))

            for _ in range(max(1, n_orders)):
                quantity = item.base_quantity * cycle * (1 + rng.normal(0, noise)) / 3
                orders.append(
                    Order(
                        product_id=product.id,
                        quantity=max(1, round(quantity)),
                        unit_price=Decimal(f"{max(price, 0.01):.2f}"),
                        created_at=day_start + timedelta(minutes=int(rng.integers(0, 600))),
                    )
                )

    return orders


async def ensure_products(session: AsyncSession) -> list[Product]:
    """Insert missing catalogue products and return all of them."""
    existing = {
        product.sku: product
        for product in (await session.execute(select(Product))).scalars().all()
    }

    for item in CATALOGUE:
        if item.sku not in existing:
            product = Product(sku=item.sku, name=item.name, category=item.category, unit=item.unit)
            session.add(product)
            existing[item.sku] = product

    await session.flush()
    return [existing[item.sku] for item in CATALOGUE]


async def get_counts(session: AsyncSession) -> dict[str, int]:
    """Count rows in the seeded tables."""
    products = await session.scalar(select(func.count()).select_from(Product))
    orders = await session.scalar(select(func.count()).select_from(Order))
    return {"product": products or 0, "orders": orders or 0}


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="TradewayForecast synthetic order seeder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  seed_orders.py --generate --days 90 --seed 7 --confirm
  seed_orders.py --generate --trend 0 --weekly-amplitude 0.4 --confirm
  seed_orders.py --delete --confirm
        """,
    )

    mode_group = parser.add_mutually_exclusive_group(required=True)
    mode_group.add_argument(
        "--generate",
        action="store_true",
        help="Create catalogue products and append order history",
    )
    mode_group.add_argument(
        "--delete",
        action="store_true",
        help="Delete all orders and products",
    )
    mode_group.add_argument(
        "--status",
        action="store_true",
        help="Show current row counts",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for reproducibility (default: 42)",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=60,
        help="Number of days of history ending today (default: 60)",
    )
    parser.add_argument(
        "--trend",
        type=float,
        default=0.004,
        help="Relative daily price drift (default: 0.004)",
    )
    parser.add_argument(
        "--weekly-amplitude",
        type=float,
        default=0.3,
        help="Amplitude of the weekly demand cycle (default: 0.3)",
    )
    parser.add_argument(
        "--noise",
        type=float,
        default=0.05,
        help="Standard deviation of multiplicative noise (default: 0.05)",
    )
    parser.add_argument(
        "--confirm",
        action="store_true",
        help="Confirm destructive or bulk operations",
    )

    return parser


def print_counts(counts: dict[str, int], title: str = "Current Data Counts") -> None:
    """Print table counts in a formatted way."""
    print(f"\n{title}:")
    print("-" * 40)
    for table, count in counts.items():
        print(f"  {table:<30} {count:>8,}")
    print("-" * 40)
    print()


async def run_generate(args: argparse.Namespace, session: AsyncSession) -> int:
    """Seed products and orders."""
    if args.days < 1:
        print("ERROR: --days must be at least 1.")
        return 1
    if not args.confirm:
        print("ERROR: --confirm flag required for data generation.")
        return 1

    rng = np.random.default_rng(args.seed)
    products = await ensure_products(session)
    orders = generate_orders(
        products,
        {item.sku: item for item in CATALOGUE},
        days=args.days,
        end=datetime.now(UTC),
        rng=rng,
        trend=args.trend,
        weekly_amplitude=args.weekly_amplitude,
        noise=args.noise,
    )
    session.add_all(orders)
    await session.commit()

    print(f"Seeded {len(products)} products and {len(orders):,} orders (seed {args.seed}).")
    print_counts(await get_counts(session))
    return 0


async def run_delete(args: argparse.Namespace, session: AsyncSession) -> int:
    """Delete all seeded rows."""
    if not args.confirm:
        print("ERROR: --confirm flag required for deletion.")
        print_counts(await get_counts(session), "Rows that would be deleted")
        return 1

    await session.execute(delete(Order))
    await session.execute(delete(Product))
    await session.commit()
    print("Deleted all orders and products.")
    return 0


async def main_async(args: argparse.Namespace) -> int:
    """Dispatch the selected mode inside one session."""
    settings = get_settings()
    if settings.is_production and not args.status:
        print("ERROR: Refusing to modify data in the production environment.")
        return 1

    engine = create_async_engine(settings.database_url)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    try:
        async with session_maker() as session:
            if args.generate:
                return await run_generate(args, session)
            if args.delete:
                return await run_delete(args, session)
            print_counts(await get_counts(session))
            return 0
    except SQLAlchemyError as e:
        print(f"[FAIL] Database error: {e}")
        print("Check DATABASE_URL and run: uv run alembic upgrade head")
        return 1
    finally:
        await engine.dispose()


def main() -> None:
    parser = create_parser()
    args = parser.parse_args()
    sys.exit(asyncio.run(main_async(args)))


if __name__ == "__main__":
    main()
