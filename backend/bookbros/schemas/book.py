from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from bookbros.services.book_records import BookStatus


class BookResponse(BaseModel):
    id: str
    member_email: str
    title: str
    author: str
    status: BookStatus
    in_library: bool
    top_ten: bool
    top_ten_rank: Optional[int]
    rating: Optional[int]
    comment: Optional[str]
    cover_url: Optional[str]
    genre: Optional[str]
    reading_challenge_year: Optional[int]
    created_at: datetime
    completed_at: Optional[datetime]
    
    class Config:
        from_attributes = True


class CurrentBookCreate(BaseModel):
    title: str
    author: str = ""
    comment: Optional[str] = None
    cover_url: Optional[str] = None
    mark_completed: bool = False  # "already finished reading" fast path
    rating: Optional[int] = None


class CurrentBookUpdate(BaseModel):
    title: str
    author: str = ""
    comment: Optional[str] = None
    cover_url: Optional[str] = None
    mark_completed: bool = False
    rating: Optional[int] = None


class LibraryBookCreate(BaseModel):
    title: str
    author: str = ""
    cover_url: Optional[str] = None
    genre: Optional[str] = None
    rating: Optional[int] = None
    comment: Optional[str] = None


class LibraryBookUpdate(BaseModel):
    title: str
    author: str = ""
    cover_url: Optional[str] = None
    rating: Optional[int] = None
    comment: Optional[str] = None


class WishlistCreate(BaseModel):
    title: str
    author: str = ""
    cover_url: Optional[str] = None
    genre: Optional[str] = None


class TopTenUpdate(BaseModel):
    enabled: bool
    rating: Optional[int] = None


class MemberColumn(BaseModel):
    email: str
    name: str
    rank_index: int
    rank_label: str
    completed_count: int
    current: Optional[BookResponse] = None
    completed: List[BookResponse]


class LeaderboardResponse(BaseModel):
    """Buckets per member in rank order, plus the column order for display."""
    year: Optional[int] = None
    leaderboard: List[MemberColumn]
    display_order: List[str]


class MemberShelf(BaseModel):
    email: str
    name: str
    books: List[BookResponse]
