"""
HTTP mapping for transition errors returned by the lifecycle engine.
"""
from fastapi import HTTPException, status

from bookbros.core.members import Member
from bookbros.services.book_records import BookRecord, ErrorKind, Transition, TransitionError, TransitionResult

_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


def http_error(error: TransitionError) -> HTTPException:
    return HTTPException(
        status_code=_STATUS_BY_KIND[error.kind],
        detail={"error": error.kind.value, "message": error.message},
    )


def unwrap(result: TransitionResult) -> Transition:
    """Return the transition or raise the matching HTTPException."""
    if isinstance(result, TransitionError):
        raise http_error(result)
    return result


def require_owner(record: BookRecord | None, member: Member) -> BookRecord:
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")
    if record.member_email != member.email:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only change your own books",
        )
    return record
