"""REST API for enumerated sequence features — /features/*."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any

from fastapi import APIRouter, Body, Depends, Path, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from feature_service.exceptions import FeatureNotFoundError, InvalidInputError
from feature_service.features.schemas import (  # noqa: TC001
    MAX_ACCESSION,
    MAX_RANK,
    CreateFeatureRequest,
)
from feature_service.features.service import BODY_REQUIRED, FeatureService
from feature_service.features.store import FeatureStore, SqlFeatureStore

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from feature_service.features.schemas import Feature

router = APIRouter(prefix="/features", tags=["features"])

_LOCUS_DOC = "locus name or URI"
# Starlette decodes %2F before routing, so a locus containing "/" only
# reaches the query form GET /features?locus=...
_PATH_LOCUS_DOC = "locus name; a URI locus containing / must use GET /features?locus="
_TERM_DOC = "Sequence Ontology (SO) term name, accession, or URI"
_RANK_DOC = "feature rank, must be at least 1"
_ACCESSION_DOC = "accession, must be at least 1"

_LOOKUP_ERRORS: dict[int | str, dict[str, Any]] = {
    400: {"description": "invalid locus, term, rank, or accession"},
}


# ------------------------------------------------------------------
# Dependency helpers
# ------------------------------------------------------------------


async def _get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    factory = request.app.state.session_factory
    async with factory() as session:
        yield session


def _get_store(session: Annotated[AsyncSession, Depends(_get_db)]) -> FeatureStore:
    return SqlFeatureStore(session)


def _get_service(store: Annotated[FeatureStore, Depends(_get_store)]) -> FeatureService:
    return FeatureService(store)


Svc = Annotated[FeatureService, Depends(_get_service)]


# ------------------------------------------------------------------
# Lookup / creation
# ------------------------------------------------------------------


@router.get("", response_model=None, responses=_LOOKUP_ERRORS)
async def get_feature_by_query(
    request: Request,
    svc: Svc,
    locus: Annotated[str | None, Query(description=_LOCUS_DOC)] = None,
    term: Annotated[str | None, Query(description=_TERM_DOC)] = None,
    rank: Annotated[int, Query(description=_RANK_DOC, le=MAX_RANK)] = 0,
    accession: Annotated[int, Query(description=_ACCESSION_DOC, le=MAX_ACCESSION)] = 0,
) -> dict[str, Any] | Response:
    """Retrieve an enumerated sequence feature."""
    feature = await svc.get_feature(locus, term, rank, accession)
    return _lookup_response(request, feature)


@router.post(
    "",
    response_model=None,
    responses={400: {"description": BODY_REQUIRED}},
)
async def create_feature(
    svc: Svc,
    body: Annotated[CreateFeatureRequest | None, Body()] = None,
) -> dict[str, Any]:
    """Create an enumerated sequence feature."""
    if body is None:
        raise InvalidInputError(BODY_REQUIRED)
    feature = await svc.create_feature(body.locus, body.term, body.rank, body.sequence)
    return _feature_to_dict(feature)


# ------------------------------------------------------------------
# Listing
# ------------------------------------------------------------------


@router.get("/{locus}", responses={400: {"description": "locus must be provided"}})
async def list_features(
    svc: Svc,
    locus: Annotated[str, Path(description=_PATH_LOCUS_DOC)],
) -> list[dict[str, Any]]:
    """List the enumerated sequence features at a locus."""
    features = await svc.list_features(locus)
    return [_feature_to_dict(f) for f in features]


@router.get("/{locus}/{term}", responses={400: {"description": "invalid locus or term"}})
async def list_features_by_term(
    svc: Svc,
    locus: Annotated[str, Path(description=_PATH_LOCUS_DOC)],
    term: Annotated[str, Path(description=_TERM_DOC)],
) -> list[dict[str, Any]]:
    """List the enumerated sequence features matching a term at a locus."""
    features = await svc.list_features_by_term(locus, term)
    return [_feature_to_dict(f) for f in features]


@router.get(
    "/{locus}/{term}/{rank}",
    responses={400: {"description": "invalid locus, term, or rank"}},
)
async def list_features_by_term_and_rank(
    svc: Svc,
    locus: Annotated[str, Path(description=_PATH_LOCUS_DOC)],
    term: Annotated[str, Path(description=_TERM_DOC)],
    rank: Annotated[int, Path(description=_RANK_DOC, le=MAX_RANK)],
) -> list[dict[str, Any]]:
    """List the enumerated sequence features matching a term and rank at a locus."""
    features = await svc.list_features_by_term_and_rank(locus, term, rank)
    return [_feature_to_dict(f) for f in features]


@router.get("/{locus}/{term}/{rank}/{accession}", response_model=None, responses=_LOOKUP_ERRORS)
async def get_feature_by_path(
    request: Request,
    svc: Svc,
    locus: Annotated[str, Path(description=_PATH_LOCUS_DOC)],
    term: Annotated[str, Path(description=_TERM_DOC)],
    rank: Annotated[int, Path(description=_RANK_DOC, le=MAX_RANK)],
    accession: Annotated[int, Path(description=_ACCESSION_DOC, le=MAX_ACCESSION)],
) -> dict[str, Any] | Response:
    """Retrieve an enumerated sequence feature."""
    feature = await svc.get_feature(locus, term, rank, accession)
    return _lookup_response(request, feature)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _lookup_response(request: Request, feature: Feature | None) -> dict[str, Any] | Response:
    if feature is not None:
        return _feature_to_dict(feature)
    if request.app.state.settings.not_found_policy == "explicit_404":
        raise FeatureNotFoundError("Feature not found")
    # Clients treat an empty 200 as absence; 204 breaks some generated clients.
    return Response(status_code=200)


def _feature_to_dict(feature: Feature) -> dict[str, Any]:
    return feature.model_dump(exclude_none=True)
