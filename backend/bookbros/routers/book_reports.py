"""
Book reports: drafts are private to their author, published reports are public.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from bookbros.database import get_db
from bookbros.core.auth import get_current_member, get_optional_member
from bookbros.core.config import settings
from bookbros.core.members import Member
from bookbros.schemas.book_report import (
    BookReportCreate,
    BookReportResponse,
    BookReportsResponse,
    BookReportUpdate,
)
from bookbros.services import book_report_service
from bookbros.services.book_report_service import (
    BookReportNotFoundError,
    BookReportPermissionError,
    InvalidBookReportError,
)
from bookbros.utils.instrumentation import log_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/book-reports", tags=["book-reports"])


def _raise_for(error: Exception) -> None:
    if isinstance(error, BookReportNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, BookReportPermissionError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


@router.get("", response_model=BookReportsResponse)
def list_book_reports(db: Session = Depends(get_db)):
    """Published reports, most recently updated first."""
    return BookReportsResponse(reports=book_report_service.list_published(db, settings.members))


@router.get("/mine", response_model=BookReportsResponse)
def list_my_book_reports(
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    return BookReportsResponse(reports=book_report_service.list_own(db, member, settings.members))


@router.get("/{report_id}", response_model=BookReportResponse)
def get_book_report(
    report_id: str,
    viewer: Optional[Member] = Depends(get_optional_member),
    db: Session = Depends(get_db),
):
    try:
        return book_report_service.get_report(db, report_id, settings.members, viewer=viewer)
    except BookReportNotFoundError as e:
        _raise_for(e)


@router.post("", response_model=BookReportResponse, status_code=status.HTTP_201_CREATED)
def create_book_report(
    payload: BookReportCreate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    try:
        report = book_report_service.create_report(db, member, payload.model_dump(), settings.members)
    except InvalidBookReportError as e:
        _raise_for(e)
    
    log_event(db, "book_report_created", member.email, {"report_id": report.id, "status": report.status.value})
    return report


@router.put("/{report_id}", response_model=BookReportResponse)
def update_book_report(
    report_id: str,
    payload: BookReportUpdate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    try:
        return book_report_service.update_report(
            db,
            report_id,
            member,
            payload.model_dump(exclude_unset=True),
            settings.members,
        )
    except (BookReportNotFoundError, BookReportPermissionError, InvalidBookReportError) as e:
        _raise_for(e)


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_book_report(
    report_id: str,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    try:
        book_report_service.delete_report(db, report_id, member)
    except (BookReportNotFoundError, BookReportPermissionError) as e:
        _raise_for(e)
