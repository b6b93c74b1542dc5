"""
Helper functions for member profiles.
"""
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from bookbros.core.members import Member, normalize_email
from bookbros.models import Profile
import logging

logger = logging.getLogger(__name__)


def display_name_for(email: str, profiles: dict[str, Profile]) -> str:
    """Profile display name, falling back to the local part of the email."""
    profile = profiles.get(normalize_email(email))
    if profile and profile.display_name:
        return profile.display_name
    return normalize_email(email).split("@")[0]


def get_profiles(db: Session, emails) -> dict[str, Profile]:
    emails = list({normalize_email(e) for e in emails if e})
    if not emails:
        return {}
    rows = db.query(Profile).filter(Profile.email.in_(emails)).all()
    return {p.email: p for p in rows}


def get_or_create_profile(db: Session, member: Member) -> Profile:
    """
    Get the profile row for a roster member, creating it on first sight.

    The display name defaults to the roster name. Idempotent under concurrent
    requests: a lost insert race re-reads the winner's row.
    """
    email = normalize_email(member.email)
    profile = db.get(Profile, email)
    if profile:
        return profile
    
    profile = Profile(email=email, display_name=member.name or email.split("@")[0])
    db.add(profile)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.debug(f"Profile for {email} created concurrently, re-reading")
        profile = db.get(Profile, email)
        if profile is None:
            raise
        return profile
    db.refresh(profile)
    logger.info(f"Created profile for member {email}")
    return profile
