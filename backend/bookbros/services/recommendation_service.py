"""
AI book recommendations backed by the Anthropic Messages API.

Flow: reading data -> text profile -> model call -> JSON list -> drop books
the member already has -> persist the session. A conversational request
without history gets one clarifying question instead of recommendations.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

import requests
from sqlalchemy.orm import Session

from bookbros.core.config import settings
from bookbros.core.members import Member
from bookbros.core.profile_helpers import display_name_for, get_profiles
from bookbros.models import RecommendationSession
from bookbros.schemas.recommendation import (
    BookRecommendation,
    RecommendationRequest,
    RecommendationsResponse,
)
from bookbros.services.book_gateway import BookGateway
from bookbros.services.book_records import BookRecord
from bookbros.services.reading_data import ReadingData, collect_reading_data, format_for_prompt

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
MAX_RECOMMENDATIONS = 5
OWNED_OVERLAP_THRESHOLD = 0.7

_FENCE_RE = re.compile(r"```(?:json)?\n?")
_PUNCTUATION_RE = re.compile(r"[^\w\s]")


class NoReadingDataError(Exception):
    """Raised when there is nothing to base recommendations on."""


class RecommendationError(Exception):
    """Raised when the model call fails or returns something unusable."""


def _normalize_words(value: str) -> str:
    return _PUNCTUATION_RE.sub("", (value or "").lower().strip())


def overlap_score(a: str, b: str) -> float:
    """Jaccard similarity of the word sets of two normalized strings."""
    words_a = set(a.split()) or {""}
    words_b = set(b.split()) or {""}
    return len(words_a & words_b) / len(words_a | words_b)


def is_already_owned(title: str, author: str, records: List[BookRecord]) -> bool:
    title = _normalize_words(title)
    author = _normalize_words(author)
    for record in records:
        if (
            overlap_score(title, _normalize_words(record.title)) > OWNED_OVERLAP_THRESHOLD
            and overlap_score(author, _normalize_words(record.author)) > OWNED_OVERLAP_THRESHOLD
        ):
            return True
    return False


def strip_json_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = _FENCE_RE.sub("", text)
    return text.strip()


def _call_model(prompt: str, max_tokens: int) -> str:
    if not settings.ANTHROPIC_API_KEY:
        raise RecommendationError("ANTHROPIC_API_KEY is not configured")
    
    try:
        resp = requests.post(
            settings.ANTHROPIC_API_URL,
            headers={
                "x-api-key": settings.ANTHROPIC_API_KEY,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            },
            json={
                "model": settings.ANTHROPIC_MODEL,
                "max_tokens": max_tokens,
                "messages": [{"role": "user", "content": prompt}],
            },
            timeout=settings.RECOMMENDATION_TIMEOUT_SECONDS,
        )
        resp.raise_for_status()
        blocks = resp.json().get("content") or []
        first = blocks[0] if blocks else {}
        if first.get("type") != "text":
            raise RecommendationError("Unexpected response type from model")
        return first.get("text", "")
    except requests.RequestException as e:
        logger.warning("Recommendation model request failed: %s", e)
        raise RecommendationError(f"Model request failed: {e}") from e
    except (ValueError, AttributeError, TypeError) as e:
        logger.warning("Recommendation model returned an unreadable reply: %s", e)
        raise RecommendationError(f"Unreadable model response: {e}") from e


def _recommendations_prompt(
    reading_context: str,
    history: List[Dict[str, str]],
    include_all_members: bool,
    member_names: List[str],
) -> str:
    conversation = ""
    if history:
        conversation = "\n\nConversation so far:\n" + "\n".join(
            f"{m['role']}: {m['content']}" for m in history
        )
    all_members_note = (
        "You have reading data for every club member. Feel free to draw connections between their tastes.\n\n"
        if include_all_members
        else ""
    )
    return (
        f"You are a book recommendation expert for a book club (members: {', '.join(member_names)}).\n\n"
        f"{reading_context}{conversation}\n\n"
        f"Based on this reading profile, recommend {MAX_RECOMMENDATIONS} books this reader would love.\n\n"
        "Requirements:\n"
        "1. Only recommend real, published, widely available books\n"
        "2. Do not recommend books already in their library, top tens or wishlist\n"
        "3. Match their taste based on genres, ratings and favorite books\n"
        "4. Give a short explanation of why each book fits (2-3 sentences)\n\n"
        f"{all_members_note}"
        "Return ONLY a JSON array, no markdown and no extra text:\n"
        '[{"title": "Book Title", "author": "Author Name", "genre": "Genre", "why": "Why it fits"}]'
    )


def _question_prompt(reading_context: str) -> str:
    return (
        "You are a book recommendation assistant for a book club.\n\n"
        f"{reading_context}\n\n"
        "This is the first interaction. Ask ONE short, friendly clarifying question that helps "
        "narrow down the perfect recommendation, such as mood, fiction or non-fiction, or length. "
        "Keep it under 2 sentences and return only the question text."
    )


def parse_recommendations(text: str) -> List[Dict[str, Any]]:
    try:
        parsed = json.loads(strip_json_fence(text))
    except json.JSONDecodeError as e:
        raise RecommendationError(f"Model returned invalid JSON: {e}") from e
    if not isinstance(parsed, list):
        raise RecommendationError("Model returned JSON that is not a list")
    return [item for item in parsed if isinstance(item, dict) and item.get("title")]


def _read_by(title: str, author: str, data: ReadingData) -> Optional[List[str]]:
    title = title.lower()
    author = author.lower()
    names: List[str] = []
    for book in data.books + data.top_tens:
        if book.title.lower() == title and author in book.author.lower():
            name = book.member_name or book.member_email or ""
            if name and name not in names:
                names.append(name)
    return names or None


def _save_session(db: Session, member: Member, payload: RecommendationRequest, results: Dict[str, Any]) -> str:
    session = RecommendationSession(
        member_email=member.email,
        mode=payload.mode,
        request_payload=payload.model_dump(),
        results=results,
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    return session.id


def generate_recommendations(
    db: Session,
    member: Member,
    payload: RecommendationRequest,
    roster: List[Member],
) -> RecommendationsResponse:
    emails = [m.email for m in roster] if payload.include_all_members else [member.email]
    gateway = BookGateway(db)
    records = gateway.fetch_records(emails)
    profiles = get_profiles(db, emails)
    roster_names = {m.email: m.name for m in roster}
    member_names = {
        email: display_name_for(email, profiles) if email in profiles else roster_names.get(email, email)
        for email in emails
    }
    
    data = collect_reading_data(records, member_names)
    if data.is_empty:
        raise NoReadingDataError("No reading data found. Add some books to your library first.")
    reading_context = format_for_prompt(data)
    
    if payload.mode == "conversational" and not payload.conversation_history:
        question = _call_model(_question_prompt(reading_context), max_tokens=200).strip()
        session_id = _save_session(db, member, payload, {"question": question})
        logger.info("Asked clarifying question for %s (session %s)", member.email, session_id)
        return RecommendationsResponse(session_id=session_id, needs_more_info=True, question=question)
    
    history = [m.model_dump() for m in payload.conversation_history]
    prompt = _recommendations_prompt(
        reading_context,
        history,
        payload.include_all_members,
        [member_names.get(m.email, m.name) for m in roster],
    )
    raw = parse_recommendations(_call_model(prompt, max_tokens=2000))
    
    own_records = [r for r in records if r.member_email == member.email]
    recommendations: List[BookRecommendation] = []
    for item in raw:
        title = str(item.get("title", "")).strip()
        author = str(item.get("author", "")).strip()
        if is_already_owned(title, author, own_records):
            logger.debug("Skipping owned recommendation %r by %r", title, author)
            continue
        recommendations.append(
            BookRecommendation(
                title=title,
                author=author,
                genre=item.get("genre") or None,
                why=item.get("why") or "Recommended based on your reading profile",
                read_by=_read_by(title, author, data) if payload.include_all_members else None,
            )
        )
    recommendations = recommendations[:MAX_RECOMMENDATIONS]
    
    session_id = _save_session(
        db, member, payload, {"recommendations": [r.model_dump() for r in recommendations]}
    )
    logger.info(
        "Generated %d recommendation(s) for %s (session %s)", len(recommendations), member.email, session_id
    )
    return RecommendationsResponse(
        session_id=session_id,
        needs_more_info=False,
        recommendations=recommendations,
    )
