"""Feature persistence — the store contract and its implementations.

:class:`FeatureStore` is the interface the service depends on.
:class:`SqlFeatureStore` backs it with SQLAlchemy; :class:`InMemoryFeatureStore`
is a list-backed double for tests and local runs.

Every listing is ordered by ``rank`` then ``accession``, ascending.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from sqlalchemy import select

from feature_service.db.models import FeatureRecord
from feature_service.features.schemas import Feature

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql import Select

logger = logging.getLogger(__name__)


class FeatureStore(ABC):
    """Interface implemented by every feature store.

    Methods return :class:`Feature` values, never ORM rows, so callers
    cannot mutate persisted state through them.
    """

    @abstractmethod
    async def find_by_key(
        self,
        locus: str,
        term: str,
        rank: int,
        accession: int,
    ) -> Feature | None:
        """Return the feature matching all four key parts, if any."""

    @abstractmethod
    async def insert(
        self,
        locus: str,
        term: str,
        rank: int,
        sequence: str | None,
    ) -> Feature:
        """Persist a new feature and return it with its generated accession."""

    @abstractmethod
    async def find_by_locus(self, locus: str) -> list[Feature]:
        """Return all features at *locus*."""

    @abstractmethod
    async def find_by_locus_and_term(self, locus: str, term: str) -> list[Feature]:
        """Return features at *locus* classified by *term*."""

    @abstractmethod
    async def find_by_locus_term_rank(
        self,
        locus: str,
        term: str,
        rank: int,
    ) -> list[Feature]:
        """Return features at *locus* classified by *term* with *rank*."""


# ======================================================================
# Relational store
# ======================================================================


class SqlFeatureStore(FeatureStore):
    """Feature store over a single :class:`AsyncSession`.

    The session is borrowed per request; connection pooling belongs to
    the engine behind it.  Database errors propagate unchanged.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_key(
        self,
        locus: str,
        term: str,
        rank: int,
        accession: int,
    ) -> Feature | None:
        result = await self._session.execute(
            select(FeatureRecord).where(
                FeatureRecord.accession == accession,
                FeatureRecord.locus == locus,
                FeatureRecord.term == term,
                FeatureRecord.rank == rank,
            )
        )
        record = result.scalar_one_or_none()
        return _to_feature(record) if record is not None else None

    async def insert(
        self,
        locus: str,
        term: str,
        rank: int,
        sequence: str | None,
    ) -> Feature:
        record = FeatureRecord(locus=locus, term=term, rank=rank, sequence=sequence)
        self._session.add(record)
        await self._session.commit()
        await self._session.refresh(record)
        logger.info(
            "Created feature %d",
            record.accession,
            extra={"locus": locus, "term": term, "rank": rank, "accession": record.accession},
        )
        return _to_feature(record)

    async def find_by_locus(self, locus: str) -> list[Feature]:
        return await self._list(select(FeatureRecord).where(FeatureRecord.locus == locus))

    async def find_by_locus_and_term(self, locus: str, term: str) -> list[Feature]:
        return await self._list(
            select(FeatureRecord).where(
                FeatureRecord.locus == locus,
                FeatureRecord.term == term,
            )
        )

    async def find_by_locus_term_rank(
        self,
        locus: str,
        term: str,
        rank: int,
    ) -> list[Feature]:
        return await self._list(
            select(FeatureRecord).where(
                FeatureRecord.locus == locus,
                FeatureRecord.term == term,
                FeatureRecord.rank == rank,
            )
        )

    async def _list(self, stmt: Select[tuple[FeatureRecord]]) -> list[Feature]:
        stmt = stmt.order_by(FeatureRecord.rank, FeatureRecord.accession)
        result = await self._session.execute(stmt)
        return [_to_feature(r) for r in result.scalars().all()]


def _to_feature(record: FeatureRecord) -> Feature:
    return Feature.model_validate(record)


# ======================================================================
# In-memory store
# ======================================================================


class InMemoryFeatureStore(FeatureStore):
    """List-backed store for tests and local development.

    Accessions are assigned from a counter starting at 1.  No method
    awaits between reading and writing, so a single event loop sees
    every insert atomically.
    """

    def __init__(self) -> None:
        self._features: list[Feature] = []
        self._next_accession = 1

    async def find_by_key(
        self,
        locus: str,
        term: str,
        rank: int,
        accession: int,
    ) -> Feature | None:
        for feature in self._features:
            if (feature.locus, feature.term, feature.rank, feature.accession) == (
                locus,
                term,
                rank,
                accession,
            ):
                return feature
        return None

    async def insert(
        self,
        locus: str,
        term: str,
        rank: int,
        sequence: str | None,
    ) -> Feature:
        feature = Feature(
            locus=locus,
            term=term,
            rank=rank,
            accession=self._next_accession,
            sequence=sequence,
        )
        self._next_accession += 1
        self._features.append(feature)
        return feature

    async def find_by_locus(self, locus: str) -> list[Feature]:
        return self._sorted(f for f in self._features if f.locus == locus)

    async def find_by_locus_and_term(self, locus: str, term: str) -> list[Feature]:
        return self._sorted(f for f in self._features if f.locus == locus and f.term == term)

    async def find_by_locus_term_rank(
        self,
        locus: str,
        term: str,
        rank: int,
    ) -> list[Feature]:
        return self._sorted(
            f for f in self._features if f.locus == locus and f.term == term and f.rank == rank
        )

    @staticmethod
    def _sorted(features: Iterable[Feature]) -> list[Feature]:
        return sorted(features, key=lambda f: (f.rank, f.accession))
