"""
Authentication helpers for verifying Supabase JWTs and resolving the current club member.
"""

from __future__ import annotations

import logging
from typing import Dict, Any, Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from bookbros.core.config import settings
from bookbros.core.members import Member, find_member, normalize_email
from bookbros.core.profile_helpers import get_or_create_profile
from bookbros.database import get_db

logger = logging.getLogger(__name__)


def _unauthorized(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _extract_bearer_token(request: Request) -> str:
    """
    Extract 'Bearer <token>' from Authorization header.
    """
    auth = request.headers.get("Authorization")
    if not auth:
        raise _unauthorized("Missing Authorization header")

    parts = auth.split()
    if len(parts) != 2:
        raise _unauthorized("Invalid Authorization header format. Expected 'Bearer <token>'")

    scheme, token = parts
    if scheme.lower() != "bearer":
        raise _unauthorized("Invalid auth scheme. Expected 'Bearer'")

    if not token.strip():
        raise _unauthorized("Empty bearer token")

    return token


def decode_supabase_jwt(token: str) -> Dict[str, Any]:
    """
    Decode and validate a Supabase access token (HS256, audience and issuer checked).
    """
    try:
        settings.require_supabase()
    except RuntimeError as e:
        logger.error(f"Supabase configuration missing: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Supabase environment variables not configured. Authentication is not available.",
        )

    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=["HS256"],
            audience=settings.SUPABASE_JWT_AUD,
            issuer=settings.jwt_issuer,
        )
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise _unauthorized("Token validation failed")


def get_current_member(
    request: Request,
    db: Session = Depends(get_db),
) -> Member:
    """
    FastAPI dependency: returns the authenticated club member.

    - Reads Authorization: Bearer <token>
    - Verifies JWT and extracts the email claim
    - Rejects anyone not on the club roster with 403
    - Ensures the member has a profiles row
    """
    token = _extract_bearer_token(request)
    payload = decode_supabase_jwt(token)

    email = normalize_email(payload.get("email") or "")
    if not email:
        raise _unauthorized("Token missing email claim")

    member = find_member(settings.members, email)
    if member is None:
        logger.warning(f"[AUTH] non-member sign-in rejected: email={email}, endpoint={request.method} {request.url.path}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only book club members can use this app",
        )

    get_or_create_profile(db, member)
    return member


def get_optional_member(
    request: Request,
    db: Session = Depends(get_db),
) -> Optional[Member]:
    """
    Like get_current_member, but anonymous requests and non-members get None.

    A token that is present but fails verification is still a 401.
    """
    if not request.headers.get("Authorization"):
        return None
    payload = decode_supabase_jwt(_extract_bearer_token(request))
    member = find_member(settings.members, normalize_email(payload.get("email") or ""))
    if member is not None:
        get_or_create_profile(db, member)
    return member
