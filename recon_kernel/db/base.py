"""
Module: recon_kernel.db.base
Responsibility: Declarative base for the SQLAlchemy ORM models behind
    ``SqlAlchemyStorage``.  Provides the string primary key convention and
    the type annotation map for consistent column types.

Invariants enforced:
    - String primary keys: the CRUD layer owns identifiers (uuid strings);
      uuid4 strings are generated only when a row arrives without one.
    - Decimal precision: type_annotation_map maps Python Decimal to
      Numeric(12, 2), the precision the CRUD layer stores money with.
      NEVER use float for monetary amounts.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import uuid4

from sqlalchemy import Date, DateTime, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def new_id() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is a String(36) primary key, uuid4 string by default.
        - Decimal maps to Numeric(12, 2).
        - datetime maps to DateTime(timezone=True).
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(12, 2),
        datetime: DateTime(timezone=True),
        date: Date(),
    }

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_id,
    )
