"""Declarative base and shared columns for the inventory tables."""

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Metadata root for every table the service creates."""


class TimestampMixin:
    """`created_at` set by the database on insert, `updated_at` on every update.

    Imports pass an explicit `created_at` for new rows so that every product
    inserted by one upload shares the same timestamp.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True,
    )
