"""Exception hierarchy for the feature service.

All domain exceptions inherit from :class:`FeatureServiceError` so the
HTTP layer can map them with a single handler.  Store-level failures are
not part of this hierarchy; they surface as SQLAlchemy errors.
"""

from __future__ import annotations

from typing import Any


class FeatureServiceError(Exception):
    """Base exception for all feature service errors."""

    def __init__(self, message: str = "", *, details: dict[str, Any] | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class InvalidInputError(FeatureServiceError):
    """Raised when caller-supplied input fails a precondition."""

    def __init__(
        self,
        message: str = "",
        *,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.field = field
        merged = dict(details or {})
        if field is not None:
            merged.setdefault("field", field)
        super().__init__(message, details=merged)


class FeatureNotFoundError(FeatureServiceError):
    """Raised when a lookup misses and the not-found policy is ``explicit_404``."""
