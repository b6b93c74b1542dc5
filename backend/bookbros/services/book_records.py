"""
Typed book records and transition results shared by the reading engines.

Rows leave the database as `BookRecord` values (see `BookGateway`), so the
ranking, dedupe and lifecycle code never deals with loosely-typed rows.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Union
import enum

COMMENT_MAX_LENGTH = 200
TOP_TEN_CAPACITY = 10
MIN_RATING = 1
MAX_RATING = 5


class BookStatus(str, enum.Enum):
    CURRENT = "current"
    COMPLETED = "completed"
    WISHLIST = "wishlist"


def normalize_text(value: Optional[str]) -> str:
    return (value or "").strip().lower()


@dataclass(frozen=True)
class BookRecord:
    id: str
    member_email: str
    title: str
    status: BookStatus
    created_at: datetime
    author: str = ""
    in_library: bool = False
    top_ten: bool = False
    top_ten_rank: Optional[int] = None
    rating: Optional[int] = None
    comment: Optional[str] = None
    cover_url: Optional[str] = None
    genre: Optional[str] = None
    completed_at: Optional[datetime] = None
    reading_challenge_year: Optional[int] = None

    @property
    def book_key(self) -> tuple[str, str]:
        """Normalized (title, author) used for duplicate detection."""
        return (normalize_text(self.title), normalize_text(self.author))

    @property
    def sort_instant(self) -> datetime:
        return self.completed_at or self.created_at

    def same_book(self, title: str, author: str) -> bool:
        return self.book_key == (normalize_text(title), normalize_text(author))


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation_error"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class TransitionError:
    kind: ErrorKind
    message: str


class TransitionAction(str, enum.Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    NOOP = "noop"


@dataclass(frozen=True)
class Transition:
    """
    Field changes for a single record.

    `follow_up` holds the fields of an extra record to insert in the same
    unit of work (the replacement current book of the home flow).
    """
    action: TransitionAction
    fields: Dict[str, Any] = field(default_factory=dict)
    record_id: Optional[str] = None
    follow_up: Optional[Dict[str, Any]] = None


TransitionResult = Union[Transition, TransitionError]


def validation_error(message: str) -> TransitionError:
    return TransitionError(ErrorKind.VALIDATION, message)


def conflict(message: str) -> TransitionError:
    return TransitionError(ErrorKind.CONFLICT, message)


def not_found(message: str) -> TransitionError:
    return TransitionError(ErrorKind.NOT_FOUND, message)
