"""Shared fixtures: in-memory database, stub storage, and app factory."""

from __future__ import annotations

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cv_export.config import AppConfig
from cv_export.database import get_db
from cv_export.errors import SignedUrlError
from cv_export.main import create_app
from cv_export.models import Base
from cv_export.storage import get_storage


class StubStorage:
    """Signs every key except the ones listed in ``failures``."""

    def __init__(self, failures: dict[str, str] | None = None) -> None:
        self.failures = failures or {}
        self.calls: list[tuple[str, str, int]] = []

    async def create_signed_url(self, bucket: str, key: str, expires_in: int) -> str:
        self.calls.append((bucket, key, expires_in))
        if key in self.failures:
            raise SignedUrlError(self.failures[key])
        return f"https://storage.example.com/{bucket}/{key}?expires={expires_in}"


def make_config(**overrides) -> AppConfig:
    values = {
        "app_env": "production",
        "campaign_export_secret": "abc",
        "database_url": "sqlite://",
        "supabase_url": "",
        "supabase_service_role_key": "",
    }
    values.update(overrides)
    return AppConfig(**values)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Create an in-memory SQLite database shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def storage() -> StubStorage:
    return StubStorage()


def build_client(session: object, storage: object, config: AppConfig | None = None) -> TestClient:
    """TestClient with the database and storage dependencies swapped out."""
    app = create_app(config or make_config())

    def _get_db():
        yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_storage] = lambda: storage
    return TestClient(app)
