"""Declarative base shared by all models."""

from enum import Enum

from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ORM models."""


def enum_column(enum_cls: type[Enum], length: int = 32) -> SAEnum:
    """
    Store a closed enumeration as its string value.

    Non-native so the same schema works on PostgreSQL and SQLite.
    """
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
