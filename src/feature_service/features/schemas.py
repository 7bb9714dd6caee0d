"""Pydantic schemas for the features API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Widths of the ``rank`` (INTEGER) and ``accession`` (BIGINT) columns.
MAX_RANK = 2**31 - 1
MAX_ACCESSION = 2**63 - 1


class Feature(BaseModel):
    """An enumerated sequence feature.

    Instances are frozen; a new one is built for every request/response.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    locus: str = Field(min_length=1, description="locus name or URI")
    term: str = Field(
        min_length=1,
        description="Sequence Ontology (SO) term name, accession, or URI",
    )
    rank: int = Field(ge=1, le=MAX_RANK, description="feature rank, must be at least 1")
    accession: int = Field(ge=1, le=MAX_ACCESSION, description="accession, must be at least 1")
    sequence: str | None = Field(default=None, description="sequence letters")


class CreateFeatureRequest(BaseModel):
    """POST /features — create an enumerated sequence feature.

    Only the storage width of ``rank`` is declared here: the service checks
    the rest so that violations come back as 400 with its messages.
    """

    locus: str | None = None
    term: str | None = None
    rank: int = Field(default=0, le=MAX_RANK)
    sequence: str | None = None
