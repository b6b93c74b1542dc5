"""
Book reports: long-form write-ups drafted privately and published to the club.
"""
import logging
import math
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from bookbros.core.members import Member, find_member
from bookbros.core.profile_helpers import get_profiles
from bookbros.models import BookReport, BookReportStatus, Profile
from bookbros.schemas.book_report import BookReportResponse

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200


class BookReportNotFoundError(LookupError):
    pass


class BookReportPermissionError(PermissionError):
    pass


class InvalidBookReportError(ValueError):
    pass


def reading_time_minutes(content: Optional[str]) -> int:
    """Minutes to read at 200 words per minute, rounded up; never below one."""
    words = len((content or "").split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def author_name(email: str, profiles: Dict[str, Profile], roster: List[Member]) -> str:
    profile = profiles.get(email)
    if profile and profile.display_name:
        return profile.display_name
    member = find_member(roster, email)
    return member.name if member and member.name else "Unknown"


def to_response(report: BookReport, profiles: Dict[str, Profile], roster: List[Member]) -> BookReportResponse:
    profile = profiles.get(report.user_email)
    return BookReportResponse(
        id=report.id,
        user_email=report.user_email,
        author_name=author_name(report.user_email, profiles, roster),
        author_avatar=profile.avatar_url if profile else None,
        title=report.title,
        book_title=report.book_title,
        book_author=report.book_author,
        book_cover_url=report.book_cover_url,
        content=report.content,
        status=report.status,
        reading_time_minutes=reading_time_minutes(report.content),
        created_at=report.created_at,
        updated_at=report.updated_at,
    )


def _responses(db: Session, reports: List[BookReport], roster: List[Member]) -> List[BookReportResponse]:
    profiles = get_profiles(db, {r.user_email for r in reports})
    return [to_response(r, profiles, roster) for r in reports]


def list_published(db: Session, roster: List[Member]) -> List[BookReportResponse]:
    reports = (
        db.query(BookReport)
        .filter(BookReport.status == BookReportStatus.PUBLISHED)
        .order_by(BookReport.updated_at.desc())
        .all()
    )
    return _responses(db, reports, roster)


def list_own(db: Session, member: Member, roster: List[Member]) -> List[BookReportResponse]:
    """Every report the member wrote, drafts included, newest first."""
    reports = (
        db.query(BookReport)
        .filter(BookReport.user_email == member.email)
        .order_by(BookReport.updated_at.desc())
        .all()
    )
    return _responses(db, reports, roster)


def get_report(
    db: Session,
    report_id: str,
    roster: List[Member],
    viewer: Optional[Member] = None,
) -> BookReportResponse:
    """
    A published report, or a draft when the viewer wrote it.

    Drafts look exactly like missing reports to everyone else.
    """
    report = db.get(BookReport, report_id)
    visible = report is not None and (
        report.status == BookReportStatus.PUBLISHED
        or (viewer is not None and report.user_email == viewer.email)
    )
    if not visible:
        raise BookReportNotFoundError("This book report doesn't exist or hasn't been published yet")
    return _responses(db, [report], roster)[0]


def _clean_required(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise InvalidBookReportError(f"{field} is required")
    return value


def create_report(db: Session, member: Member, fields: Dict[str, Any], roster: List[Member]) -> BookReportResponse:
    report = BookReport(
        user_email=member.email,
        title=_clean_required(fields.get("title"), "title"),
        book_title=_clean_required(fields.get("book_title"), "book_title"),
        book_author=(fields.get("book_author") or "").strip() or None,
        book_cover_url=fields.get("book_cover_url") or None,
        content=fields.get("content") or "",
        status=fields.get("status") or BookReportStatus.DRAFT,
    )
    db.add(report)
    db.commit()
    db.refresh(report)
    logger.info("Member %s created %s book report %s", member.email, report.status.value, report.id)
    return _responses(db, [report], roster)[0]


def _get_own_report(db: Session, report_id: str, member: Member) -> BookReport:
    report = db.get(BookReport, report_id)
    if report is None:
        raise BookReportNotFoundError(f"Book report {report_id} not found")
    if report.user_email != member.email:
        raise BookReportPermissionError("Only the author can change this book report")
    return report


def update_report(
    db: Session,
    report_id: str,
    member: Member,
    changes: Dict[str, Any],
    roster: List[Member],
) -> BookReportResponse:
    """Apply the given fields only; omitted ones keep their stored value."""
    report = _get_own_report(db, report_id, member)
    
    for field in ("title", "book_title"):
        if field in changes:
            setattr(report, field, _clean_required(changes[field], field))
    if "book_author" in changes:
        report.book_author = (changes["book_author"] or "").strip() or None
    if "book_cover_url" in changes:
        report.book_cover_url = changes["book_cover_url"] or None
    if "content" in changes:
        report.content = changes["content"] or ""
    if changes.get("status") is not None:
        report.status = changes["status"]
    
    db.commit()
    db.refresh(report)
    return _responses(db, [report], roster)[0]


def delete_report(db: Session, report_id: str, member: Member) -> None:
    report = _get_own_report(db, report_id, member)
    db.delete(report)
    db.commit()
    logger.info("Book report %s deleted by %s", report_id, member.email)
