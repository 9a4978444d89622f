"""
Journal Schema

The three record types the journal persists: permissions, categories and tags.

DESIGN DECISION: The schema is declared exactly once, in code. There is no
external schema resource to load, so a store always has the tables this
module describes. Additive changes are picked up by the store's lightweight
migration; anything else goes through the store's recovery path.

References from a permission to its category and tags are by NAME, not by
foreign key. Renames are propagated explicitly by the data access layer.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, SmallInteger, String, Text, Uuid
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


PERMISSION_TABLE = "money_permissions"
CATEGORY_TABLE = "permission_categories"
TAG_TABLE = "permission_tags"

ENTITY_TABLES = (PERMISSION_TABLE, CATEGORY_TABLE, TAG_TABLE)

# emotional_impact is a SmallInteger column
STORED_IMPACT_MIN = -(2 ** 15)
STORED_IMPACT_MAX = 2 ** 15 - 1


def utc_now() -> datetime:
    """Current time as naive UTC (SQLite does not keep tzinfo)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_storage_datetime(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values pass through."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def to_wall_clock(value: datetime) -> datetime:
    """
    Drop tzinfo but keep the local wall-clock time.

    Permission dates are calendar facts in the user's own day, so
    08:00 and 23:30 at UTC-05:00 stay on the same date.
    """
    return value.replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class MoneyPermission(Base):
    """A single journaled money permission."""

    __tablename__ = PERMISSION_TABLE

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    statement: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    category: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    emotional_tags: Mapped[list[str]] = mapped_column(
        MutableList.as_mutable(JSON), nullable=False, default=list
    )
    expected_impact: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    actual_outcome: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # 0 means "not rated"; the slider clamps to 0-10, storage does not
    emotional_impact: Mapped[int] = mapped_column(
        SmallInteger, nullable=False, default=0, server_default="0"
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    @property
    def has_outcome(self) -> bool:
        return bool(self.actual_outcome and self.actual_outcome.strip())

    @property
    def is_rated(self) -> bool:
        return self.emotional_impact > 0

    def __repr__(self) -> str:
        return f"<MoneyPermission(id={self.id}, date={self.date:%Y-%m-%d}, statement={self.statement[:30]!r})>"


class PermissionCategory(Base):
    """User-defined grouping for permissions."""

    __tablename__ = CATEGORY_TABLE

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    icon_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    color_hex: Mapped[Optional[str]] = mapped_column(String(9), nullable=True)
    # creation-order hint, never renumbered
    order: Mapped[int] = mapped_column(
        "order", SmallInteger, nullable=False, default=0, server_default="0"
    )

    def __repr__(self) -> str:
        return f"<PermissionCategory(id={self.id}, name='{self.name}', order={self.order})>"


class PermissionTag(Base):
    """Emotional descriptor attachable to many permissions."""

    __tablename__ = TAG_TABLE

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color_hex: Mapped[Optional[str]] = mapped_column(String(9), nullable=True)
    icon_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<PermissionTag(id={self.id}, name='{self.name}')>"


def create_schema(bind: Engine | Connection) -> list[str]:
    """
    Create any missing journal tables.

    Returns the names of the entity tables known to the schema.
    """
    Base.metadata.create_all(bind, checkfirst=True)
    return list(ENTITY_TABLES)
