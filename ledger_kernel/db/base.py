"""
Module: ledger_kernel.db.base
Responsibility: Declarative base class for all SQLAlchemy ORM models.  Provides
    the integer primary key convention and the type annotation map for
    consistent column types.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the kernel.  ALL model files import from here.  This module MUST NOT
    import from models/, services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Integer primary keys: profiles, contracts and jobs are addressed by
      integer ids, as the request layer hands them over.
    - Integer money: ``int`` maps to BigInteger.  Balances and prices are
      minor units; floats never reach a monetary column.
    - Timezone-aware timestamps: ``datetime`` maps to DateTime(timezone=True).
"""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import BigInteger, DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements columns declared exactly INTEGER PRIMARY KEY.
BigIntegerId = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is an autoincrementing integer primary key.
        - int maps to BigInteger (Integer on SQLite).
        - datetime maps to DateTime(timezone=True).
    """

    type_annotation_map: ClassVar[dict] = {
        int: BigIntegerId,
        datetime: DateTime(timezone=True),
    }

    id: Mapped[int] = mapped_column(
        BigIntegerId,
        primary_key=True,
        autoincrement=True,
    )
