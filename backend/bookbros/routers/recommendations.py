from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from bookbros.database import get_db
from bookbros.core.auth import get_current_member
from bookbros.core.config import settings
from bookbros.core.members import Member
from bookbros.schemas.recommendation import RecommendationRequest, RecommendationsResponse
from bookbros.services import recommendation_service
from bookbros.services.recommendation_service import NoReadingDataError, RecommendationError
from bookbros.utils.instrumentation import log_event
from bookbros.utils.timing import log_elapsed, now_ms

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.post("/generate", response_model=RecommendationsResponse)
def generate(
    payload: RecommendationRequest,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    t0 = now_ms()
    logger.info(
        "Generating %s recommendations for %s (all members=%s)",
        payload.mode, member.email, payload.include_all_members,
    )
    
    try:
        response = recommendation_service.generate_recommendations(db, member, payload, settings.members)
    except NoReadingDataError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RecommendationError as e:
        logger.error("Recommendation generation failed for %s: %s", member.email, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to generate recommendations",
        )
    
    if settings.DEBUG:
        log_elapsed(t0, f"recommendations user={member.email} mode={payload.mode}", logger.debug)
    
    log_event(
        db,
        "recommendations_generated",
        member.email,
        {
            "session_id": response.session_id,
            "mode": payload.mode,
            "needs_more_info": response.needs_more_info,
            "count": len(response.recommendations),
        },
    )
    return response
