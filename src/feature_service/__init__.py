"""Feature service — create and retrieve enumerated sequence features."""

from __future__ import annotations

__version__ = "1.0.0"

from feature_service.app import create_app
from feature_service.settings import FeatureServiceSettings

__all__ = [
    "FeatureServiceSettings",
    "__version__",
    "create_app",
]
