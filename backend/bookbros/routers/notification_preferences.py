"""
Per-member notification preferences. Members without a stored row get the
defaults: email on mention, not on every comment.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from bookbros.database import get_db
from bookbros.core.auth import get_current_member
from bookbros.core.members import Member
from bookbros.models import NotificationPreference
from bookbros.schemas.notification import NotificationPreferencesResponse, NotificationPreferencesUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/notification-preferences", tags=["notifications"])


@router.get("", response_model=NotificationPreferencesResponse)
def get_preferences(
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    prefs = db.get(NotificationPreference, member.email)
    if prefs is None:
        return NotificationPreferencesResponse(user_email=member.email)
    return prefs


@router.put("", response_model=NotificationPreferencesResponse)
def update_preferences(
    payload: NotificationPreferencesUpdate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    """Upsert; flags left out keep their stored (or default) value."""
    prefs = db.get(NotificationPreference, member.email)
    if prefs is None:
        prefs = NotificationPreference(user_email=member.email, email_on_mention=True, email_on_all_comments=False)
        db.add(prefs)
    
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(prefs, field, value)
    
    db.commit()
    db.refresh(prefs)
    logger.info(
        "Notification preferences for %s: mention=%s all_comments=%s",
        member.email,
        prefs.email_on_mention,
        prefs.email_on_all_comments,
    )
    return prefs
