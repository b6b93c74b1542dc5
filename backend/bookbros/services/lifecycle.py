"""
Validated state transitions for book records.

Every function takes the current record (or None when creating) plus the
requested change and returns either a `Transition` describing the fields to
persist or a `TransitionError`. Nothing here touches the database; the
`BookGateway` applies the result as one unit of work.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from bookbros.core.members import normalize_email
from bookbros.services.book_records import (
    COMMENT_MAX_LENGTH,
    MAX_RATING,
    MIN_RATING,
    TOP_TEN_CAPACITY,
    BookRecord,
    BookStatus,
    Transition,
    TransitionAction,
    TransitionError,
    TransitionResult,
    conflict,
    not_found,
    validation_error,
)

_UNCHANGED: Any = object()


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.utcnow()


def _check_rating(rating: Optional[int]) -> Optional[TransitionError]:
    if rating is None:
        return None
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        return validation_error(f"rating must be between {MIN_RATING} and {MAX_RATING}")
    return None


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _check_new_book(member_email: str, title: str) -> Optional[TransitionError]:
    if not normalize_email(member_email):
        return validation_error("member email is required")
    if not _clean(title):
        return validation_error("title is required")
    return None


def _owned_by(records: Iterable[BookRecord], member_email: str) -> list[BookRecord]:
    member_email = normalize_email(member_email)
    return [r for r in records if r.member_email == member_email]


def create_wishlist(
    member_email: str,
    title: str,
    author: str = "",
    existing: Iterable[BookRecord] = (),
    cover_url: Optional[str] = None,
    genre: Optional[str] = None,
) -> TransitionResult:
    """Add a book to the member's wishlist, rejecting any book they already have."""
    error = _check_new_book(member_email, title)
    if error:
        return error
    
    for record in _owned_by(existing, member_email):
        if record.same_book(title, author):
            if record.status == BookStatus.WISHLIST:
                return validation_error("This book is already in your wishlist")
            return validation_error(f"This book is already in your library ({record.status.value})")
    
    return Transition(
        action=TransitionAction.INSERT,
        fields={
            "member_email": normalize_email(member_email),
            "status": BookStatus.WISHLIST,
            "title": _clean(title),
            "author": _clean(author),
            "cover_url": cover_url or None,
            "genre": genre or None,
            "in_library": False,
            "top_ten": False,
            "rating": None,
        },
    )


def create_current(
    member_email: str,
    title: str,
    author: str = "",
    comment: Optional[str] = None,
    cover_url: Optional[str] = None,
    challenge_year: Optional[int] = None,
    existing: Iterable[BookRecord] = (),
) -> TransitionResult:
    """
    Start reading a book.

    A member holds at most one current book per challenge year (untagged
    records form their own scope), so a second one is a conflict.
    """
    error = _check_new_book(member_email, title)
    if error:
        return error
    comment = _clean(comment)
    if len(comment) > COMMENT_MAX_LENGTH:
        return validation_error(f"Comment must be {COMMENT_MAX_LENGTH} characters or less")
    
    for record in _owned_by(existing, member_email):
        if record.status == BookStatus.CURRENT and record.reading_challenge_year == challenge_year:
            return conflict("You are already reading a book; finish or edit it first")
    
    return Transition(
        action=TransitionAction.INSERT,
        fields={
            "member_email": normalize_email(member_email),
            "status": BookStatus.CURRENT,
            "title": _clean(title),
            "author": _clean(author),
            "comment": comment,
            "cover_url": cover_url or None,
            "reading_challenge_year": challenge_year,
            "in_library": False,
            "completed_at": None,
        },
    )


def create_completed(
    member_email: str,
    title: str,
    author: str = "",
    rating: Optional[int] = None,
    comment: Optional[str] = None,
    cover_url: Optional[str] = None,
    genre: Optional[str] = None,
    challenge_year: Optional[int] = None,
    library: Optional[Iterable[BookRecord]] = None,
    now: Optional[datetime] = None,
) -> TransitionResult:
    """
    Record a book the member has already finished; it lands in their library.

    When `library` is given, an equivalent in-library record is a conflict.
    """
    error = _check_new_book(member_email, title) or _check_rating(rating)
    if error:
        return error
    comment = _clean(comment)
    if challenge_year is not None and len(comment) > COMMENT_MAX_LENGTH:
        return validation_error(f"Comment must be {COMMENT_MAX_LENGTH} characters or less")
    
    if library is not None:
        for record in _owned_by(library, member_email):
            if record.in_library and record.same_book(title, author):
                return conflict("This book is already in your library")
    
    return Transition(
        action=TransitionAction.INSERT,
        fields={
            "member_email": normalize_email(member_email),
            "status": BookStatus.COMPLETED,
            "title": _clean(title),
            "author": _clean(author),
            "rating": rating,
            "comment": comment,
            "cover_url": cover_url or None,
            "genre": genre or None,
            "reading_challenge_year": challenge_year,
            "in_library": True,
            "completed_at": _now(now),
        },
    )


def edit(
    record: Optional[BookRecord],
    title: str,
    author: Any = _UNCHANGED,
    comment: Any = _UNCHANGED,
    cover_url: Any = _UNCHANGED,
    rating: Any = _UNCHANGED,
    challenge_edit: bool = False,
) -> TransitionResult:
    """
    Edit the descriptive fields of a record in any status.

    Only the fields passed are written; omitted ones keep their stored value.
    The 200 character comment cap applies to reading challenge edits of the
    current book. A top ten record cannot lose its rating.
    """
    if record is None:
        return not_found("Book not found")
    if not _clean(title):
        return validation_error("title is required")
    
    fields: Dict[str, Any] = {"title": _clean(title)}
    if author is not _UNCHANGED:
        fields["author"] = _clean(author)
    
    if comment is not _UNCHANGED:
        comment = _clean(comment)
        if challenge_edit and record.status == BookStatus.CURRENT and len(comment) > COMMENT_MAX_LENGTH:
            return validation_error(f"Comment must be {COMMENT_MAX_LENGTH} characters or less")
        fields["comment"] = comment
    
    if cover_url is not _UNCHANGED:
        fields["cover_url"] = cover_url or None
    
    if rating is not _UNCHANGED:
        error = _check_rating(rating)
        if error:
            return error
        if rating is None and record.top_ten:
            return validation_error("rating required")
        fields["rating"] = rating
    
    return Transition(action=TransitionAction.UPDATE, fields=fields, record_id=record.id)


def mark_completed(
    record: Optional[BookRecord],
    rating: Optional[int] = None,
    replace_current: bool = False,
    now: Optional[datetime] = None,
) -> TransitionResult:
    """
    Finish the current book.

    `replace_current` is the home flow behaviour: a blank current record is
    inserted alongside so the member always has a current slot. The reading
    challenge flow leaves the member without a current book.
    An omitted rating keeps the stored one.
    """
    if record is None:
        return not_found("No current book found")
    if record.status != BookStatus.CURRENT:
        return conflict("Only the current book can be marked completed")
    error = _check_rating(rating)
    if error:
        return error
    
    follow_up = None
    if replace_current:
        follow_up = {
            "member_email": record.member_email,
            "status": BookStatus.CURRENT,
            "title": "",
            "author": "",
            "comment": "",
            "in_library": False,
        }
    
    fields: Dict[str, Any] = {
        "status": BookStatus.COMPLETED,
        "completed_at": _now(now),
        "in_library": True,
    }
    if rating is not None:
        fields["rating"] = rating
    
    return Transition(
        action=TransitionAction.UPDATE,
        record_id=record.id,
        fields=fields,
        follow_up=follow_up,
    )


def promote_wishlist(
    record: Optional[BookRecord],
    member_records: Iterable[BookRecord],
    now: Optional[datetime] = None,
) -> TransitionResult:
    """Move a wishlist book into the member's library as a completed read."""
    if record is None:
        return not_found("Book not found")
    if record.status != BookStatus.WISHLIST:
        return conflict("Only wishlist books can be moved to the library")
    
    for other in _owned_by(member_records, record.member_email):
        if other.id != record.id and other.in_library and other.same_book(record.title, record.author):
            return conflict("This book is already in your library")
    
    return Transition(
        action=TransitionAction.UPDATE,
        record_id=record.id,
        fields={
            "in_library": True,
            "status": BookStatus.COMPLETED,
            "completed_at": _now(now),
        },
    )


def _next_top_ten_rank(others: list[BookRecord]) -> int:
    taken = {r.top_ten_rank for r in others if r.top_ten_rank is not None}
    for candidate in range(1, TOP_TEN_CAPACITY + 1):
        if candidate not in taken:
            return candidate
    return len(others) + 1


def set_top_ten(
    record: Optional[BookRecord],
    enabled: bool,
    member_records: Iterable[BookRecord],
    rating: Optional[int] = None,
) -> TransitionResult:
    """
    Add a record to, or drop it from, the member's top ten.

    Re-enabling a record that is already in the top ten is always allowed.
    """
    if record is None:
        return not_found("Book not found")
    error = _check_rating(rating)
    if error:
        return error
    
    if not enabled:
        if not record.top_ten:
            return Transition(action=TransitionAction.NOOP, record_id=record.id)
        return Transition(
            action=TransitionAction.UPDATE,
            record_id=record.id,
            fields={"top_ten": False, "top_ten_rank": None},
        )
    
    effective_rating = rating if rating is not None else record.rating
    if effective_rating is None:
        return validation_error("rating required")
    
    if record.top_ten:
        if rating is None or rating == record.rating:
            return Transition(action=TransitionAction.NOOP, record_id=record.id)
        return Transition(action=TransitionAction.UPDATE, record_id=record.id, fields={"rating": rating})
    
    others = [
        r for r in _owned_by(member_records, record.member_email)
        if r.id != record.id and r.top_ten
    ]
    if any(r.same_book(record.title, record.author) for r in others):
        return conflict("already in top ten")
    if len(others) >= TOP_TEN_CAPACITY:
        return conflict("top ten full")
    
    return Transition(
        action=TransitionAction.UPDATE,
        record_id=record.id,
        fields={
            "top_ten": True,
            "top_ten_rank": _next_top_ten_rank(others),
            "rating": effective_rating,
        },
    )


def remove_from_library(record: Optional[BookRecord]) -> TransitionResult:
    """Take a book off the library shelf; the row and its history stay."""
    if record is None:
        return not_found("Book not found")
    if not record.in_library:
        return Transition(action=TransitionAction.NOOP, record_id=record.id)
    return Transition(action=TransitionAction.UPDATE, record_id=record.id, fields={"in_library": False})


def delete(record: Optional[BookRecord]) -> TransitionResult:
    if record is None:
        return not_found("Book not found")
    return Transition(action=TransitionAction.DELETE, record_id=record.id)


def combine(first: TransitionResult, second: TransitionResult) -> TransitionResult:
    """
    Merge two updates of the same record into one unit of work.

    The first error wins; fields of `second` override those of `first`.
    """
    if isinstance(first, TransitionError):
        return first
    if isinstance(second, TransitionError):
        return second
    if first.record_id != second.record_id:
        raise ValueError("Cannot combine transitions of different records")
    fields = dict(first.fields)
    fields.update(second.fields)
    action = TransitionAction.UPDATE if fields else TransitionAction.NOOP
    return Transition(
        action=action,
        record_id=first.record_id,
        fields=fields,
        follow_up=second.follow_up or first.follow_up,
    )
