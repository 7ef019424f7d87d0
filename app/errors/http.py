# app/errors/http.py

from fastapi import HTTPException, status

from app.errors.session_block_errors import (
    ConcurrencyConflict,
    InsufficientSessions,
    InvalidState,
    LedgerInvariantError,
    NoActiveBlock,
    NotFound,
    SessionBlockError,
)

STATUS_BY_ERROR = {
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidState: status.HTTP_400_BAD_REQUEST,
    NoActiveBlock: status.HTTP_400_BAD_REQUEST,
    InsufficientSessions: status.HTTP_400_BAD_REQUEST,
    ConcurrencyConflict: status.HTTP_409_CONFLICT,
    LedgerInvariantError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def to_http_exception(error: SessionBlockError) -> HTTPException:
    """Ledger error as an HTTPException whose detail carries the machine readable kind."""
    status_code = STATUS_BY_ERROR.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return HTTPException(status_code=status_code, detail=error.to_dict())
