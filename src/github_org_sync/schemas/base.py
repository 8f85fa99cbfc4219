"""Base schema class with factory pattern for ORM conversion."""

from datetime import UTC, datetime
from typing import Any, Self

from pydantic import BaseModel, ConfigDict


class SchemaBase(BaseModel):
    """Base class for all Pydantic schemas with ORM conversion support."""

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_orm(cls, obj: Any) -> Self:
        """
        Factory method to create a schema instance from a SQLAlchemy model.

        Args:
            obj: SQLAlchemy model instance

        Returns:
            Pydantic schema instance
        """
        return cls.model_validate(obj)

    @classmethod
    def from_orm_list(cls, objs: list[Any]) -> list[Self]:
        """
        Factory method to create schema instances from a list of SQLAlchemy models.

        Args:
            objs: List of SQLAlchemy model instances

        Returns:
            List of Pydantic schema instances
        """
        return [cls.from_orm(obj) for obj in objs]


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
