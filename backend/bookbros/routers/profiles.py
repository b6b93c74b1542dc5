from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
import logging

from bookbros.database import get_db
from bookbros.core.auth import get_current_member
from bookbros.core.config import settings
from bookbros.core.members import Member
from bookbros.core.profile_helpers import get_or_create_profile
from bookbros.schemas.profile import ProfileResponse, ProfileUpdate

logger = logging.getLogger(__name__)
router = APIRouter(tags=["profiles"])


@router.get("/profiles", response_model=List[ProfileResponse])
def list_profiles(db: Session = Depends(get_db)):
    """Profiles for the whole roster, in roster order."""
    return [get_or_create_profile(db, m) for m in settings.members]


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    return get_or_create_profile(db, member)


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    payload: ProfileUpdate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    display_name = payload.display_name.strip()
    if not display_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="display_name cannot be empty",
        )
    
    profile = get_or_create_profile(db, member)
    profile.display_name = display_name
    profile.avatar_url = (payload.avatar_url or "").strip() or None
    db.commit()
    db.refresh(profile)
    logger.info(f"Updated profile for {member.email}")
    return profile
