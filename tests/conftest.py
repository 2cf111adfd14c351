"""
Pytest fixtures shared across the unit suites.

The environment is pinned before any ``app`` import so the module-level
engine and settings never touch a real database or ``.env`` file.
"""
from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SKIP_DB_INIT", "true")
os.environ.setdefault("LOCAL_TIMEZONE", "Asia/Kolkata")
os.environ.setdefault("ENVIRONMENT", "development")

import uuid
from datetime import date, datetime
from typing import Callable, Optional, Sequence

import httpx
import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import app.models  # noqa: F401  (registers tables)
from app.core.time_utils import day_month_key
from app.models.entry import Entry
from app.schemas.entry import EntryRecord

from tests.lib import USER_ID, utc


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def make_record() -> Callable[..., EntryRecord]:
    """Factory for read-model records; ``created_at`` defaults to noon UTC of ``local_date``."""

    def _make(
        local_date: date,
        *,
        entry_id: Optional[str] = None,
        user_id: str = USER_ID,
        caption: Optional[str] = None,
        assets: Sequence[Optional[str]] = (),
        created_at: Optional[datetime] = None,
    ) -> EntryRecord:
        return EntryRecord(
            id=entry_id or str(uuid.uuid4()),
            user_id=user_id,
            caption=caption,
            media_asset_ids=tuple(assets),
            created_at=created_at or utc(local_date.year, local_date.month, local_date.day),
            local_date=local_date,
            day_month=day_month_key(local_date),
        )

    return _make


@pytest.fixture
def add_entry(session) -> Callable[..., Entry]:
    """Insert an ``Entry`` row; derived columns are filled by the mapper events."""

    def _add(
        local_date: date,
        *,
        user_id: str = USER_ID,
        caption: Optional[str] = None,
        assets: Sequence[str] = (),
        created_at: Optional[datetime] = None,
        entry_id: Optional[uuid.UUID] = None,
    ) -> Entry:
        created = created_at or utc(local_date.year, local_date.month, local_date.day)
        entry = Entry(
            id=entry_id or uuid.uuid4(),
            user_id=user_id,
            caption=caption,
            media_asset_ids=list(assets),
            created_at=created,
            updated_at=created,
            local_date=local_date,
        )
        session.add(entry)
        session.commit()
        session.refresh(entry)
        return entry

    return _add


class FakeImmich:
    """Records requests sent to Immich and answers with ``respond``."""

    def __init__(self):
        self.requests = []
        self.respond = lambda request: httpx.Response(201, json={"id": f"asset-{len(self.requests)}"})

    def handler(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        return self.respond(request)


@pytest.fixture
def immich():
    return FakeImmich()


def _override_session(app, session):
    from app.core.database import get_session

    def _session_override():
        yield session

    app.dependency_overrides[get_session] = _session_override


@pytest.fixture
def client(session, immich):
    """TestClient signed in as ``USER_ID`` with Immich served by ``immich``."""
    from fastapi.testclient import TestClient

    from app.api.dependencies import get_current_user
    from app.integrations.immich import ImmichClient, get_immich_client
    from app.main import app
    from app.schemas.user import AuthUser

    _override_session(app, session)
    app.dependency_overrides[get_current_user] = lambda: AuthUser(id=USER_ID, email="me@example.com")
    app.dependency_overrides[get_immich_client] = lambda: ImmichClient(
        base_url="https://photos.example.com",
        api_key="immich-key",
        transport=httpx.MockTransport(immich.handler),
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(session):
    from fastapi.testclient import TestClient

    from app.main import app

    _override_session(app, session)
    yield TestClient(app)
    app.dependency_overrides.clear()
