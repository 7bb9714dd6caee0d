"""Feature service — input validation in front of a :class:`FeatureStore`.

Every operation checks its arguments in declaration order (locus, term,
rank, accession) and raises :class:`InvalidInputError` for the first one
that fails, before the store is touched.  Store errors are neither caught
nor retried here.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from feature_service.exceptions import InvalidInputError

if TYPE_CHECKING:
    from feature_service.features.schemas import Feature
    from feature_service.features.store import FeatureStore

logger = logging.getLogger(__name__)

LOCUS_REQUIRED = "locus must be provided"
TERM_REQUIRED = "term must be provided"
RANK_REQUIRED = "rank must be provided and at least 1"
ACCESSION_REQUIRED = "accession must be provided and at least 1"
BODY_REQUIRED = "a request body must be provided"


class FeatureService:
    """Create, look up, and list enumerated sequence features."""

    def __init__(self, store: FeatureStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Lookup / creation
    # ------------------------------------------------------------------

    async def get_feature(
        self,
        locus: str | None,
        term: str | None,
        rank: int | None,
        accession: int | None,
    ) -> Feature | None:
        """Return the feature with this exact key, or ``None`` if there is none."""
        _check_locus(locus)
        _check_term(term)
        _check_rank(rank)
        _check_accession(accession)
        logger.debug(
            "get_feature",
            extra={"locus": locus, "term": term, "rank": rank, "accession": accession},
        )
        return await self._store.find_by_key(locus, term, rank, accession)  # type: ignore[arg-type]

    async def create_feature(
        self,
        locus: str | None,
        term: str | None,
        rank: int | None,
        sequence: str | None = None,
    ) -> Feature:
        """Create a feature; the store assigns its accession."""
        _check_locus(locus)
        _check_term(term)
        _check_rank(rank)
        logger.debug(
            "create_feature (%d sequence letters)",
            len(sequence or ""),
            extra={"locus": locus, "term": term, "rank": rank},
        )
        return await self._store.insert(locus, term, rank, sequence)  # type: ignore[arg-type]

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_features(self, locus: str | None) -> list[Feature]:
        """List every feature at *locus*."""
        _check_locus(locus)
        logger.debug("list_features", extra={"locus": locus})
        return await self._store.find_by_locus(locus)  # type: ignore[arg-type]

    async def list_features_by_term(
        self,
        locus: str | None,
        term: str | None,
    ) -> list[Feature]:
        """List the features matching *term* at *locus*."""
        _check_locus(locus)
        _check_term(term)
        logger.debug("list_features_by_term", extra={"locus": locus, "term": term})
        return await self._store.find_by_locus_and_term(locus, term)  # type: ignore[arg-type]

    async def list_features_by_term_and_rank(
        self,
        locus: str | None,
        term: str | None,
        rank: int | None,
    ) -> list[Feature]:
        """List the features matching *term* and *rank* at *locus*.

        Rank is not unique within a locus/term in the store, so this can
        return more than one feature.
        """
        _check_locus(locus)
        _check_term(term)
        _check_rank(rank)
        logger.debug(
            "list_features_by_term_and_rank",
            extra={"locus": locus, "term": term, "rank": rank},
        )
        return await self._store.find_by_locus_term_rank(locus, term, rank)  # type: ignore[arg-type]


# ------------------------------------------------------------------
# Preconditions
# ------------------------------------------------------------------


def _check_locus(locus: str | None) -> None:
    if not locus:
        raise InvalidInputError(LOCUS_REQUIRED, field="locus")


def _check_term(term: str | None) -> None:
    if not term:
        raise InvalidInputError(TERM_REQUIRED, field="term")


def _check_rank(rank: int | None) -> None:
    if rank is None or rank < 1:
        raise InvalidInputError(RANK_REQUIRED, field="rank")


def _check_accession(accession: int | None) -> None:
    if accession is None or accession < 1:
        raise InvalidInputError(ACCESSION_REQUIRED, field="accession")
