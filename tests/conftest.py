"""Shared pytest fixtures for unit tests."""

import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

# Settings are read once at import time; point uploads at a scratch directory first.
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="cinecatalog-uploads-"))
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
import pytest_asyncio
from beanie import PydanticObjectId, init_beanie

from cinecatalog.config import settings
from cinecatalog.models import DOCUMENT_MODELS, Movie, Review, User


@pytest_asyncio.fixture
async def beanie_models() -> MagicMock:
    """Initialise Beanie against a mocked database.

    Documents can then be constructed and query expressions built without a
    running MongoDB; tests patch the query methods they exercise.
    """
    database = MagicMock()
    database.command = AsyncMock(return_value={"version": "7.0.0"})
    database.list_collection_names = AsyncMock(return_value=[])
    await init_beanie(database=database, document_models=DOCUMENT_MODELS, skip_indexes=True)
    return database


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture
def movie_factory(beanie_models) -> Callable[..., Movie]:
    """Return a factory that builds a valid Movie with optional overrides."""

    def _factory(**overrides: Any) -> Movie:
        data: dict[str, Any] = {
            "id": PydanticObjectId(),
            "title": "Spirited Away",
            "description": "A girl wanders into a world of spirits.",
            "genre": ["Animation", "Fantasy"],
            "release_date": datetime(2001, 7, 20),
            "views": 0,
        }
        data.update(overrides)
        return Movie(**data)

    return _factory


@pytest.fixture
def review_factory(beanie_models) -> Callable[..., Review]:
    def _factory(**overrides: Any) -> Review:
        data: dict[str, Any] = {
            "id": PydanticObjectId(),
            "movie_id": PydanticObjectId(),
            "user_id": PydanticObjectId(),
            "rating": 4,
            "review_content": "Lovely.",
            "created_at": datetime(2024, 3, 1, tzinfo=timezone.utc),
        }
        data.update(overrides)
        return Review(**data)

    return _factory


@pytest.fixture
def user_factory(beanie_models) -> Callable[..., User]:
    def _factory(**overrides: Any) -> User:
        data: dict[str, Any] = {
            "id": PydanticObjectId(),
            "username": "chihiro",
            "email": "chihiro@example.com",
            "password": "not-a-hash",
        }
        data.update(overrides)
        return User(**data)

    return _factory
