"""
Persistence gateway for book records.

Converts `Book` rows into `BookRecord` values at the boundary and applies
lifecycle transitions in a single commit.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from bookbros.core.members import normalize_email
from bookbros.models import Book
from bookbros.services.book_records import BookRecord, BookStatus, Transition, TransitionAction

logger = logging.getLogger(__name__)

_WRITABLE_FIELDS = {
    "member_email",
    "status",
    "title",
    "author",
    "comment",
    "cover_url",
    "genre",
    "in_library",
    "top_ten",
    "top_ten_rank",
    "rating",
    "reading_challenge_year",
    "completed_at",
}


@dataclass(frozen=True)
class RecordFilter:
    reading_challenge_year: Optional[int] = None
    in_library: Optional[bool] = None
    top_ten: Optional[bool] = None
    status: Optional[BookStatus] = None


def to_record(row: Book) -> BookRecord:
    """Validate a `books` row into a `BookRecord`."""
    status = row.status if isinstance(row.status, BookStatus) else BookStatus(str(row.status).lower())
    email = normalize_email(row.member_email)
    if not email:
        raise ValueError(f"Book {row.id} has no member_email")
    return BookRecord(
        id=row.id,
        member_email=email,
        title=row.title or "",
        author=row.author or "",
        status=status,
        in_library=bool(row.in_library),
        top_ten=bool(row.top_ten),
        top_ten_rank=row.top_ten_rank,
        rating=row.rating,
        comment=row.comment,
        cover_url=row.cover_url,
        genre=row.genre,
        created_at=row.created_at or datetime.utcnow(),
        completed_at=row.completed_at,
        reading_challenge_year=row.reading_challenge_year,
    )


class BookGateway:
    def __init__(self, db: Session):
        self.db = db
    
    def fetch_records(
        self,
        member_emails: Iterable[str],
        record_filter: Optional[RecordFilter] = None,
        order_by_title: bool = False,
    ) -> List[BookRecord]:
        emails = [normalize_email(e) for e in member_emails]
        if not emails:
            return []
        
        query = self.db.query(Book).filter(Book.member_email.in_(emails))
        if record_filter is not None:
            if record_filter.reading_challenge_year is not None:
                query = query.filter(Book.reading_challenge_year == record_filter.reading_challenge_year)
            if record_filter.in_library is not None:
                query = query.filter(Book.in_library == record_filter.in_library)
            if record_filter.top_ten is not None:
                query = query.filter(Book.top_ten == record_filter.top_ten)
            if record_filter.status is not None:
                query = query.filter(Book.status == record_filter.status)
        
        if order_by_title:
            query = query.order_by(Book.title.asc(), Book.created_at.asc())
        else:
            query = query.order_by(Book.created_at.asc())
        return [to_record(row) for row in query.all()]
    
    def get_record(self, record_id: str) -> Optional[BookRecord]:
        row = self.db.get(Book, record_id)
        return to_record(row) if row else None
    
    def _insert_row(self, fields: Dict[str, Any]) -> Book:
        row = Book(**{k: v for k, v in fields.items() if k in _WRITABLE_FIELDS})
        self.db.add(row)
        return row
    
    def insert_record(self, fields: Dict[str, Any]) -> BookRecord:
        row = self._insert_row(fields)
        self.db.commit()
        self.db.refresh(row)
        return to_record(row)
    
    def update_record(self, record_id: str, fields: Dict[str, Any]) -> Optional[BookRecord]:
        row = self.db.get(Book, record_id)
        if row is None:
            return None
        for key, value in fields.items():
            if key in _WRITABLE_FIELDS:
                setattr(row, key, value)
        self.db.commit()
        self.db.refresh(row)
        return to_record(row)
    
    def delete_record(self, record_id: str) -> bool:
        deleted = self.db.query(Book).filter(Book.id == record_id).delete(synchronize_session=False)
        self.db.commit()
        return deleted > 0
    
    def apply(self, transition: Transition) -> List[BookRecord]:
        """
        Apply a transition (and its follow-up insert) in one commit.

        Returns the records written, main record first. Deletes and no-ops
        return an empty list. Raises LookupError when the target row vanished.
        """
        if transition.action == TransitionAction.NOOP:
            return []
        
        try:
            written: List[Book] = []
            if transition.action == TransitionAction.INSERT:
                written.append(self._insert_row(transition.fields))
            elif transition.action == TransitionAction.UPDATE:
                # Conditional update by id; the database decides concurrent races
                row = self.db.get(Book, transition.record_id)
                if row is None:
                    raise LookupError(f"Book {transition.record_id} not found")
                for key, value in transition.fields.items():
                    if key in _WRITABLE_FIELDS:
                        setattr(row, key, value)
                written.append(row)
            elif transition.action == TransitionAction.DELETE:
                deleted = self.db.query(Book).filter(Book.id == transition.record_id).delete(synchronize_session=False)
                if not deleted:
                    raise LookupError(f"Book {transition.record_id} not found")
            
            if transition.follow_up:
                written.append(self._insert_row(transition.follow_up))
            
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        
        for row in written:
            self.db.refresh(row)
        logger.info(
            "Applied %s to book %s (%d row(s) written)",
            transition.action.value,
            transition.record_id or (written[0].id if written else None),
            len(written),
        )
        return [to_record(row) for row in written]
