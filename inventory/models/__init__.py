"""SQLAlchemy models for the inventory service."""

from inventory.models.base import Base, TimestampMixin
from inventory.models.product import Product

__all__ = [
    "Base",
    "TimestampMixin",
    "Product",
]
