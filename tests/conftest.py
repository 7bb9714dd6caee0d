"""Shared test fixtures for feature_service."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient

from feature_service.app import _lifespan, create_app
from feature_service.features.service import FeatureService
from feature_service.features.store import InMemoryFeatureStore
from feature_service.settings import FeatureServiceSettings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from fastapi import FastAPI


@pytest.fixture
def settings() -> FeatureServiceSettings:
    """Settings with an aiosqlite in-memory database."""
    return FeatureServiceSettings(database_url="sqlite+aiosqlite://")


@pytest.fixture
async def app(settings: FeatureServiceSettings) -> AsyncGenerator[FastAPI, None]:
    """FastAPI app with its lifespan running."""
    app = create_app(settings)
    async with _lifespan(app):
        yield app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def store() -> InMemoryFeatureStore:
    return InMemoryFeatureStore()


@pytest.fixture
def svc(store: InMemoryFeatureStore) -> FeatureService:
    return FeatureService(store)
