from pydantic import BaseModel
from typing import Optional, List, Literal


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class RecommendationRequest(BaseModel):
    mode: Literal["instant", "conversational"] = "instant"
    include_all_members: bool = False
    conversation_history: List[ChatMessage] = []


class BookRecommendation(BaseModel):
    title: str
    author: str
    genre: Optional[str] = None
    why: str  # Why this matches the member
    read_by: Optional[List[str]] = None  # Club members who already read it


class RecommendationsResponse(BaseModel):
    session_id: str
    needs_more_info: bool
    question: Optional[str] = None
    recommendations: List[BookRecommendation] = []
