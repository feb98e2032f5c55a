"""Column groups and CHECK helpers shared by the store tables."""

from enum import Enum
from typing import Type

from sqlalchemy import Column, DateTime, Integer, String, CheckConstraint
from sqlalchemy.sql import func


def one_of(column: str, enum_cls: Type[Enum], name: str) -> CheckConstraint:
    values = ", ".join(f"'{member.value}'" for member in enum_cls)
    return CheckConstraint(f"{column} IN ({values})", name=name)


def all_or_nothing(name: str, *columns: str) -> CheckConstraint:
    """Either every column is NULL or none is."""
    nulls = " AND ".join(f"{c} IS NULL" for c in columns)
    filled = " AND ".join(f"{c} IS NOT NULL" for c in columns)
    return CheckConstraint(f"({nulls}) OR ({filled})", name=name)


class TimestampColumns:
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ColorColumns:
    color_hex = Column(String(7), nullable=True)
    color_rgb_r = Column(Integer, nullable=True)
    color_rgb_g = Column(Integer, nullable=True)
    color_rgb_b = Column(Integer, nullable=True)
    color_name = Column(String(50), nullable=True)


COLOR_COLUMNS = ("color_hex", "color_rgb_r", "color_rgb_g", "color_rgb_b")
