"""
Server-side event logging helper.

Logs events to both the database (for querying) and structured logs (for immediate visibility).
"""
import logging
from typing import Any, Callable, Dict, Optional
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session
from bookbros.database import SessionLocal
from bookbros.models import EventLog

logger = logging.getLogger(__name__)


def log_event(
    db: Session,
    event_name: str,
    member_email: Optional[str] = None,
    properties: Optional[Dict[str, Any]] = None,
    commit: bool = True,
) -> None:
    """
    Log an event to the database and structured logs.
    
    Args:
        db: Database session
        event_name: Name of the event (e.g., "book_transition_applied", "recommendations_generated")
        member_email: Optional email of the acting member
        properties: Optional dict of event properties
        commit: Commit the event on its own; pass False to ride along the caller's transaction
    
    Never raises: a failed event write is rolled back and logged as a warning.
    """
    try:
        event = EventLog(
            event_name=event_name,
            member_email=member_email,
            properties=properties,
        )
        db.add(event)
        if commit:
            db.commit()
        else:
            db.flush()
        
        logger.info(
            "event_logged",
            extra={"event_name": event_name, "member_email": member_email, "properties": properties},
        )
    except Exception as e:
        # Never break the request path - log warning and continue
        db.rollback()
        logger.warning(
            "Failed to log event: event_name=%s, member_email=%s, error=%s",
            event_name,
            member_email,
            str(e),
            exc_info=True,
        )


def log_event_best_effort(
    event_name: str,
    member_email: Optional[str] = None,
    properties: Optional[Dict[str, Any]] = None,
    session_factory: Callable[[], Session] = SessionLocal,
) -> None:
    """
    Log an event in its own session, outside the caller's transaction.
    
    Used where the request session may already be broken (e.g. the unhandled
    exception handler). Never raises.
    """
    db = None
    try:
        db = session_factory()
        db.add(EventLog(event_name=event_name, member_email=member_email, properties=properties))
        db.commit()
        logger.info(
            "event_logged",
            extra={"event_name": event_name, "member_email": member_email, "properties": properties},
        )
    except (OperationalError, ProgrammingError) as e:
        if "does not exist" in str(e).lower() or "no such table" in str(e).lower():
            logger.warning("event_logs table missing; run 'alembic upgrade head'. Event not recorded.")
        else:
            logger.warning("Failed to log event (database error): event_name=%s, error=%s", event_name, e)
        if db:
            db.rollback()
    except Exception as e:
        logger.warning(
            "Failed to log event: event_name=%s, member_email=%s, error=%s",
            event_name,
            member_email,
            str(e),
            exc_info=True,
        )
    finally:
        if db:
            db.close()
