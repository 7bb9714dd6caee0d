"""Pydantic-settings configuration for the feature service."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

NotFoundPolicy = Literal["empty_body", "explicit_404"]


class FeatureServiceSettings(BaseSettings):
    """Central configuration for the feature service.

    All values can be overridden via environment variables prefixed
    with ``FEATURES_``, e.g. ``FEATURES_DATABASE_URL``.
    """

    model_config = SettingsConfigDict(
        env_prefix="FEATURES_",
        env_nested_delimiter="__",
    )

    # -- Core -----------------------------------------------------------------

    host: str = "0.0.0.0"
    port: int = 8080
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    database_url: str = "sqlite+aiosqlite:///./features.db"

    # -- Lookup behaviour -----------------------------------------------------

    not_found_policy: NotFoundPolicy = Field(
        default="empty_body",
        description=(
            "empty_body answers a lookup miss with 200 and no content; "
            "explicit_404 answers it with a 404 error envelope."
        ),
    )

    # -- CORS -----------------------------------------------------------------

    cors_origins: list[str] = Field(default_factory=list)
