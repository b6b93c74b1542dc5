from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class ReactionGroup(BaseModel):
    emoji: str
    count: int
    users: List[str]  # emails of members who reacted


class CommentResponse(BaseModel):
    id: str
    book_identifier: Optional[str] = None  # book threads
    book_of_month_id: Optional[str] = None  # journey threads
    author_email: str
    author_name: str
    author_avatar: Optional[str] = None
    content: str
    parent_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    reactions: List[ReactionGroup] = []
    mentions: List[str] = []
    replies: List["CommentResponse"] = []


class CommentCreate(BaseModel):
    book_identifier: Optional[str] = None
    book_title: Optional[str] = None
    book_author: Optional[str] = None
    content: str
    parent_id: Optional[str] = None
    mentions: List[str] = []


class JourneyCommentCreate(BaseModel):
    book_of_month_id: str
    content: str
    parent_id: Optional[str] = None
    mentions: List[str] = []


class CommentUpdate(BaseModel):
    content: str


class ReactionCreate(BaseModel):
    emoji: str


class CommentsResponse(BaseModel):
    comments: List[CommentResponse]


CommentResponse.model_rebuild()
