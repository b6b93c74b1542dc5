"""Tests for Supabase token verification and roster membership checks."""
import time

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from bookbros.core.config import settings
from bookbros.database import get_db
from bookbros.models import Profile

SECRET = "test-jwt-secret"
SUPABASE_URL = "https://example.supabase.co"


@pytest.fixture
def auth_client(db, roster, monkeypatch):
    """Client that runs the real auth dependency against the test database."""
    from bookbros.main import app
    
    monkeypatch.setattr(settings, "SUPABASE_JWT_SECRET", SECRET)
    monkeypatch.setattr(settings, "SUPABASE_URL", SUPABASE_URL)
    monkeypatch.setattr(settings, "SUPABASE_JWT_ISS", "")
    
    def _get_db():
        yield db
    
    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _token(email, secret=SECRET, **claims):
    payload = {
        "sub": "user-1",
        "email": email,
        "aud": "authenticated",
        "iss": f"{SUPABASE_URL}/auth/v1",
        "exp": int(time.time()) + 3600,
        **claims,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def test_member_token_is_accepted_and_profile_created(auth_client, db):
    response = auth_client.get("/api/profile", headers=_auth(_token(" Nick@Example.com ")))
    
    assert response.status_code == 200
    assert response.json()["email"] == "nick@example.com"
    assert db.get(Profile, "nick@example.com").display_name == "Nick"


def test_missing_header(auth_client):
    response = auth_client.get("/api/profile")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.parametrize("header", ["Token abc", "Bearer", "Bearer a b"])
def test_malformed_header(auth_client, header):
    assert auth_client.get("/api/profile", headers={"Authorization": header}).status_code == 401


def test_bad_signature(auth_client):
    assert auth_client.get("/api/profile", headers=_auth(_token("nick@example.com", secret="wrong"))).status_code == 401


def test_wrong_audience_and_issuer(auth_client):
    assert auth_client.get("/api/profile", headers=_auth(_token("nick@example.com", aud="anon"))).status_code == 401
    assert auth_client.get("/api/profile", headers=_auth(_token("nick@example.com", iss="https://evil/auth/v1"))).status_code == 401


def test_expired_token(auth_client):
    token = _token("nick@example.com", exp=int(time.time()) - 10)
    assert auth_client.get("/api/profile", headers=_auth(token)).status_code == 401


def test_token_without_email(auth_client):
    assert auth_client.get("/api/profile", headers=_auth(_token(""))).status_code == 401


def test_non_member_is_forbidden(auth_client, db):
    response = auth_client.get("/api/profile", headers=_auth(_token("stranger@x.com")))
    
    assert response.status_code == 403
    assert db.get(Profile, "stranger@x.com") is None


def test_public_views_need_no_token(auth_client):
    assert auth_client.get("/api/reading-challenge").status_code == 200
    assert auth_client.get("/api/libraries").status_code == 200


def test_current_picker_comes_from_the_token(auth_client, monkeypatch):
    from bookbros.routers import book_of_the_month
    monkeypatch.setattr(book_of_the_month, "current_year_month", lambda: "2026-02")
    url = "/api/book-of-the-month"
    
    assert auth_client.get(url).json()["is_current_picker"] is False
    assert auth_client.get(url, params={"viewer_email": "wood@example.com"}).json()["is_current_picker"] is False
    assert auth_client.get(url, headers=_auth(_token("nick@example.com"))).json()["is_current_picker"] is False
    assert auth_client.get(url, headers=_auth(_token("wood@example.com"))).json()["is_current_picker"] is True
    assert auth_client.get(url, headers=_auth(_token("stranger@x.com"))).json()["is_current_picker"] is False
    assert auth_client.get(url, headers=_auth(_token("wood@example.com", secret="nope"))).status_code == 401


def test_unconfigured_supabase_is_a_server_error(auth_client, monkeypatch):
    monkeypatch.setattr(settings, "SUPABASE_JWT_SECRET", "")
    assert auth_client.get("/api/profile", headers=_auth(_token("nick@example.com"))).status_code == 500
