"""Shared building blocks used by more than one feature."""

from app.shared.models import TimestampMixin

__all__ = [
    "TimestampMixin",
]
