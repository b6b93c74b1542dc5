from pydantic import BaseModel
from typing import Optional


class NotificationPreferencesResponse(BaseModel):
    user_email: str
    email_on_mention: bool = True
    email_on_all_comments: bool = False
    
    class Config:
        from_attributes = True


class NotificationPreferencesUpdate(BaseModel):
    email_on_mention: Optional[bool] = None
    email_on_all_comments: Optional[bool] = None
