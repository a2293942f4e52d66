"""
Domain error -> HTTP mapping
"""

from fastapi import HTTPException

from finedu.domain.errors import DuplicateWatchlistError, FinEduError, NotFoundError

STATUS_BY_ERROR = {
    NotFoundError: 404,
    DuplicateWatchlistError: 409,
}


def to_http_exception(exc: FinEduError) -> HTTPException:
    """Body: {"detail": {"code": ..., "message": ...}}; unmapped errors are 400"""
    status_code = 400
    for error_type, status in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            status_code = status
            break
    return HTTPException(
        status_code=status_code,
        detail={"code": exc.code, "message": exc.message},
    )
