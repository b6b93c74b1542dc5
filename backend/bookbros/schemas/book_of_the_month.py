from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class BookOfTheMonthResponse(BaseModel):
    id: str
    year_month: str
    picker_email: str
    book_title: str
    book_author: str
    book_cover_url: Optional[str] = None
    book_summary: Optional[str] = None
    book_genre: Optional[str] = None
    why_picked: Optional[str] = None
    updated_at: datetime
    
    class Config:
        from_attributes = True


class BookOfTheMonthUpdate(BaseModel):
    book_title: str
    book_author: str = ""
    book_cover_url: Optional[str] = None
    book_summary: Optional[str] = None
    book_genre: Optional[str] = None
    why_picked: Optional[str] = None


class MonthPickResponse(BaseModel):
    year_month: str
    picker_email: Optional[str]
    picker_name: Optional[str]
    is_current_picker: bool
    pick: Optional[BookOfTheMonthResponse] = None
