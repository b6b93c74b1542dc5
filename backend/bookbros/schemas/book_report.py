from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from bookbros.models import BookReportStatus


class BookReportResponse(BaseModel):
    id: str
    user_email: str
    author_name: str
    author_avatar: Optional[str] = None
    title: str
    book_title: str
    book_author: Optional[str] = None
    book_cover_url: Optional[str] = None
    content: str
    status: BookReportStatus
    reading_time_minutes: int
    created_at: datetime
    updated_at: datetime


class BookReportCreate(BaseModel):
    title: str
    book_title: str
    book_author: Optional[str] = None
    book_cover_url: Optional[str] = None
    content: str = ""
    status: BookReportStatus = BookReportStatus.DRAFT


class BookReportUpdate(BaseModel):
    """Partial update: only the fields sent are changed."""
    title: Optional[str] = None
    book_title: Optional[str] = None
    book_author: Optional[str] = None
    book_cover_url: Optional[str] = None
    content: Optional[str] = None
    status: Optional[BookReportStatus] = None


class BookReportsResponse(BaseModel):
    reports: List[BookReportResponse]
