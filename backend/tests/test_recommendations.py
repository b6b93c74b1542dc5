"""Tests for reading profiles and the recommendation flow."""
import json
from datetime import datetime, timedelta

import pytest
import requests

from bookbros.core.config import settings
from bookbros.models import RecommendationSession
from bookbros.services import recommendation_service
from bookbros.services.book_gateway import BookGateway
from bookbros.services.book_records import BookStatus
from bookbros.services.reading_data import calculate_stats, collect_reading_data, format_for_prompt, BookData
from bookbros.services.recommendation_service import is_already_owned, overlap_score, parse_recommendations, strip_json_fence

NICK = "nick@example.com"
WOOD = "wood@example.com"


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code
    
    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")
    
    def json(self):
        return self.payload


def _model_reply(text):
    return FakeResponse({"content": [{"type": "text", "text": text}]})


@pytest.fixture
def model(monkeypatch):
    """Replace the model HTTP call; set `model.reply` and inspect `model.calls`."""
    class Model:
        reply = _model_reply("[]")
        calls = []
    
    def fake_post(url, headers=None, json=None, timeout=None):
        Model.calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        if isinstance(Model.reply, Exception):
            raise Model.reply
        return Model.reply
    
    Model.calls = []
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "test-key")
    monkeypatch.setattr(recommendation_service.requests, "post", fake_post)
    return Model


# ----------------------------
# Reading data
# ----------------------------

def test_collect_reading_data_categorizes(make_record):
    base = datetime(2026, 1, 1)
    records = [
        make_record("Dune", NICK, genre="SciFi", rating=5, top_ten=True, top_ten_rank=2, created_at=base),
        make_record("Emma", NICK, genre="Classic", rating=4, top_ten=True, top_ten_rank=1, created_at=base + timedelta(days=1)),
        make_record("Ulysses", NICK, BookStatus.WISHLIST, created_at=base + timedelta(days=2)),
        make_record("Hamlet", NICK, genre="Classic", rating=3, in_library=True, created_at=base + timedelta(days=3)),
        make_record("Reading now", NICK, BookStatus.CURRENT, created_at=base + timedelta(days=4)),
        make_record("Shelf only", NICK, BookStatus.CURRENT, in_library=True, author="", created_at=base + timedelta(days=5)),
    ]
    
    data = collect_reading_data(records, {NICK: "Nick"})
    
    assert [b.title for b in data.top_tens] == ["Emma", "Dune"]
    assert [b.title for b in data.wishlists] == ["Ulysses"]
    # newest first; a current book counts only when it is on the shelf
    assert [b.title for b in data.books] == ["Shelf only", "Hamlet"]
    assert data.books[0].author == "Unknown Author"
    assert data.books[1].member_name == "Nick"
    assert not data.is_empty


def test_calculate_stats():
    books = [
        BookData("A", "x", genre="Fantasy", rating=5),
        BookData("B", "x", genre="Fantasy", rating=4),
        BookData("C", "x", genre="Horror", rating=4),
        BookData("D", "x", genre="Poetry"),
        BookData("E", "x", genre="Drama"),
    ]
    
    stats = calculate_stats(books)
    
    assert stats.total_books_read == 5
    assert stats.average_rating == 4.3
    assert stats.favorite_genres == ["Fantasy", "Horror", "Poetry"]
    assert calculate_stats([]).average_rating == 0.0


def test_format_for_prompt_sections(make_record):
    records = [
        make_record("Dune", NICK, genre="SciFi", rating=5, top_ten=True, top_ten_rank=1),
        make_record("Emma", NICK, rating=5, comment="Witty"),
        make_record("Hamlet", NICK, rating=2),
        make_record("Ulysses", NICK, BookStatus.WISHLIST),
    ]
    
    prompt = format_for_prompt(collect_reading_data(records, {NICK: "Nick"}))
    
    assert "Total books read: 2" in prompt
    assert '1. "Dune" by Unknown Author (SciFi) [Read by: Nick]' in prompt
    assert 'Comment: "Witty"' in prompt
    assert "Other books read:" in prompt
    assert '- "Hamlet"' in prompt
    assert '- "Ulysses" by Unknown Author' in prompt


# ----------------------------
# Parsing and ownership
# ----------------------------

def test_strip_json_fence():
    assert strip_json_fence('```json\n[{"title": "A"}]\n```') == '[{"title": "A"}]'
    assert strip_json_fence('```\n[]\n```') == "[]"
    assert strip_json_fence("  []  ") == "[]"


def test_parse_recommendations_rejects_non_lists():
    with pytest.raises(recommendation_service.RecommendationError):
        parse_recommendations('{"title": "A"}')
    with pytest.raises(recommendation_service.RecommendationError):
        parse_recommendations("not json")
    assert parse_recommendations('[{"title": "A"}, {"author": "no title"}, 3]') == [{"title": "A"}]


def test_overlap_score():
    assert overlap_score("the hobbit", "the hobbit") == 1.0
    assert overlap_score("the hobbit", "hobbit") == 0.5
    assert overlap_score("", "") == 1.0


def test_is_already_owned_needs_title_and_author_match(make_record):
    records = [make_record("The Hobbit", NICK, author="J.R.R. Tolkien")]
    
    # punctuation is ignored on both sides
    assert is_already_owned("The Hobbit!", "JRR Tolkien", records) is True
    assert is_already_owned("the hobbit", "J.R.R. Tolkien", records) is True
    assert is_already_owned("The Hobbit", "Someone Else", records) is False


# ----------------------------
# API
# ----------------------------

def _seed_library(db):
    gateway = BookGateway(db)
    gateway.insert_record({"member_email": NICK, "status": BookStatus.COMPLETED, "title": "Dune", "author": "Frank Herbert", "rating": 5, "in_library": True, "genre": "SciFi"})
    gateway.insert_record({"member_email": WOOD, "status": BookStatus.COMPLETED, "title": "Hyperion", "author": "Dan Simmons", "rating": 4, "in_library": True})


def test_generate_instant_recommendations(client, db, model):
    _seed_library(db)
    model.reply = _model_reply(
        "```json\n"
        + json.dumps([
            {"title": "Dune", "author": "Frank Herbert", "why": "Already read"},
            {"title": "Foundation", "author": "Isaac Asimov", "genre": "SciFi", "why": "Epic scope"},
            {"title": "Hyperion", "author": "Dan Simmons", "why": "Pilgrims"},
        ])
        + "\n```"
    )
    
    response = client.post("/api/recommendations/generate", json={"mode": "instant", "include_all_members": True})
    
    assert response.status_code == 200
    body = response.json()
    assert body["needs_more_info"] is False
    assert [r["title"] for r in body["recommendations"]] == ["Foundation", "Hyperion"]
    assert body["recommendations"][1]["read_by"] == ["Wood"]
    assert db.get(RecommendationSession, body["session_id"]).mode == "instant"
    
    call = model.calls[0]
    assert call["headers"]["x-api-key"] == "test-key"
    assert call["json"]["model"] == settings.ANTHROPIC_MODEL
    assert "Hyperion" in call["json"]["messages"][0]["content"]


def test_conversational_first_turn_asks_a_question(client, db, model):
    _seed_library(db)
    model.reply = _model_reply("  In the mood for something fast or slow?  ")
    
    body = client.post("/api/recommendations/generate", json={"mode": "conversational"}).json()
    
    assert body["needs_more_info"] is True
    assert body["question"] == "In the mood for something fast or slow?"
    assert body["recommendations"] == []


def test_conversational_follow_up_recommends(client, db, model):
    _seed_library(db)
    model.reply = _model_reply('[{"title": "Foundation", "author": "Isaac Asimov", "why": "Fast"}]')
    
    body = client.post(
        "/api/recommendations/generate",
        json={
            "mode": "conversational",
            "conversation_history": [
                {"role": "assistant", "content": "Fast or slow?"},
                {"role": "user", "content": "Fast"},
            ],
        },
    ).json()
    
    assert body["needs_more_info"] is False
    assert body["recommendations"][0]["read_by"] is None
    assert "user: Fast" in model.calls[0]["json"]["messages"][0]["content"]


def test_no_reading_data(client, model):
    response = client.post("/api/recommendations/generate", json={"mode": "instant"})
    assert response.status_code == 400
    assert model.calls == []


def test_model_failure_is_bad_gateway(client, db, model):
    _seed_library(db)
    model.reply = requests.ConnectionError("boom")
    
    response = client.post("/api/recommendations/generate", json={"mode": "instant"})
    
    assert response.status_code == 502


def test_unparseable_model_reply_is_bad_gateway(client, db, model):
    _seed_library(db)
    model.reply = _model_reply("Here are some books you might like!")
    
    assert client.post("/api/recommendations/generate", json={"mode": "instant"}).status_code == 502


def test_malformed_model_reply_is_bad_gateway(client, db, model):
    _seed_library(db)
    model.reply = FakeResponse(["not", "an", "object"])
    
    assert client.post("/api/recommendations/generate", json={"mode": "instant"}).status_code == 502
    
    model.reply = FakeResponse({"content": ["plain string block"]})
    
    assert client.post("/api/recommendations/generate", json={"mode": "instant"}).status_code == 502


def test_missing_api_key_is_bad_gateway(client, db, model, monkeypatch):
    _seed_library(db)
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", None)
    
    assert client.post("/api/recommendations/generate", json={"mode": "instant"}).status_code == 502
    assert model.calls == []
