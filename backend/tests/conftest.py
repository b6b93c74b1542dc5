"""Pytest configuration for backend tests."""
import json
import os
import uuid
from datetime import datetime

import pytest
from fastapi import HTTPException, Request
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from bookbros.database import Base, get_db

# Import the models module so every table is registered with Base.metadata
import bookbros.models  # noqa: F401
from bookbros.core.auth import get_current_member, get_optional_member
from bookbros.core.config import settings
from bookbros.core.members import find_member, normalize_email
from bookbros.core.profile_helpers import get_or_create_profile
from bookbros.services.book_records import BookRecord, BookStatus

# TEST_DATABASE_URL may point at a Postgres test database; defaults to in-memory SQLite
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite://")

NICK = "nick@example.com"
WOOD = "wood@example.com"
ANDY = "andy@example.com"

ROSTER = [
    {"email": NICK, "name": "Nick"},
    {"email": WOOD, "name": "Wood"},
    {"email": ANDY, "name": "Andy"},
]


@pytest.fixture(scope="session")
def engine():
    if TEST_DATABASE_URL.startswith("sqlite"):
        test_engine = create_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        test_engine = create_engine(TEST_DATABASE_URL, pool_pre_ping=True)
    
    if not Base.metadata.tables:
        raise RuntimeError("No tables registered in Base.metadata. Did you import bookbros.models?")
    
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Session:
    """
    A session per test. Code under test commits, so tables are emptied
    afterwards instead of rolling back an outer transaction.
    """
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    
    yield session
    
    session.rollback()
    session.close()
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def roster(monkeypatch):
    """Configure the three-member club roster, rotation starting 2026-01."""
    monkeypatch.setattr(settings, "MEMBERS_JSON", json.dumps(ROSTER))
    monkeypatch.setattr(settings, "ROTATION_START_YEAR", 2026)
    monkeypatch.setattr(settings, "ROTATION_START_MONTH", 1)
    monkeypatch.setattr(settings, "CHALLENGE_YEAR", 2026)
    return settings.members


@pytest.fixture
def client(db, roster):
    """
    API client acting as NICK. Send an `X-Test-Member` header to act as
    someone else; emails outside the roster get a 403.
    """
    from bookbros.main import app
    
    def _get_db():
        yield db
    
    def _get_member(request: Request):
        email = normalize_email(request.headers.get("X-Test-Member", NICK))
        member = find_member(settings.members, email)
        if member is None:
            raise HTTPException(status_code=403, detail="Only book club members can use this app")
        get_or_create_profile(db, member)
        return member
    
    def _get_optional_member(request: Request):
        if "X-Test-Member" not in request.headers:
            return None
        return find_member(settings.members, normalize_email(request.headers["X-Test-Member"]))
    
    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_member] = _get_member
    app.dependency_overrides[get_optional_member] = _get_optional_member
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_record():
    """Factory for in-memory BookRecord values."""
    def _make(
        title: str = "Dune",
        member_email: str = NICK,
        status: BookStatus = BookStatus.COMPLETED,
        created_at: datetime = datetime(2026, 1, 1),
        **fields,
    ) -> BookRecord:
        return BookRecord(
            id=fields.pop("id", str(uuid.uuid4())),
            member_email=member_email,
            title=title,
            status=status,
            created_at=created_at,
            **fields,
        )
    return _make
