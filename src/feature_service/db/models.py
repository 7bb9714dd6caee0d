"""SQLAlchemy 2.0 ORM models for the feature service."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - SQLAlchemy needs runtime access

from sqlalchemy import (
    BigInteger,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
)


class Base(DeclarativeBase):
    """Declarative base for all feature service models."""


class FeatureRecord(Base):
    """Enumerated sequence feature row.

    ``accession`` is generated by the database on insert.  SQLite only
    auto-increments an ``INTEGER PRIMARY KEY`` column, hence the variant.
    """

    __tablename__ = "features"
    __table_args__ = (Index("ix_features_locus_term_rank", "locus", "term", "rank"),)

    accession: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    locus: Mapped[str] = mapped_column(String(500), index=True)
    term: Mapped[str] = mapped_column(String(500))
    rank: Mapped[int] = mapped_column(Integer)
    sequence: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
