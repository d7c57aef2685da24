"""
Declarative base shared by every bedflow table.

Provides the declarative base and abstract classes shared by all
bedflow tables: string UUID keys, timestamps and tenant scoping.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, TypeVar
from uuid import uuid4

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

from bedflow.core.utils import utc_now

Base = declarative_base()

ModelType = TypeVar("ModelType", bound="BaseModel")


def generate_uuid() -> str:
    return str(uuid4())


class BaseModel(Base):
    """
    Abstract base model with a string UUID primary key.
    """

    __abstract__ = True

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
        nullable=False,
        comment="Primary key (UUID)"
    )

    def to_dict(self, exclude: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Column values as a plain dict, datetimes as ISO strings.

        Args:
            exclude: List of field names to exclude

        Returns:
            Mapping of column name to value
        """
        exclude = exclude or []
        result = {}

        for column in self.__table__.columns:
            if column.name in exclude:
                continue
            value = getattr(self, column.name)
            if isinstance(value, datetime):
                result[column.name] = value.isoformat()
            else:
                result[column.name] = value

        return result

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


class TimestampModel:
    """
    Mixin for creation/update timestamps.

    Values are naive UTC; services that need a controllable clock set
    them explicitly.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utc_now,
        comment="Record creation timestamp (UTC)"
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
        comment="Record last update timestamp (UTC)"
    )


class TenantModel:
    """Mixin for tenant-scoped tables."""

    tenant_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        comment="Owning tenant (hospital) identifier"
    )
