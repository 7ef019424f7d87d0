# app/errors/session_block_errors.py

from typing import Any, Dict, Optional


class SessionBlockError(Exception):
    """Base exception for session block ledger errors."""
    kind = "SessionBlockError"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "message": self.message, **self.details}


class NotFound(SessionBlockError):
    """Raised when a customer or session block does not exist."""
    kind = "NotFound"


class InvalidState(SessionBlockError):
    """Raised when an operation would break a block invariant."""
    kind = "InvalidState"


class NoActiveBlock(SessionBlockError):
    """Raised when a customer has no block left to consume from."""
    kind = "NoActiveBlock"

    def __init__(self, requested: int):
        super().__init__(
            "No active session block with remaining sessions",
            {"requested": requested, "available": 0},
        )


class InsufficientSessions(SessionBlockError):
    """Raised when the requested sessions exceed the customer's total capacity."""
    kind = "InsufficientSessions"

    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Requested {requested} session(s) but only {available} remaining",
            {"requested": requested, "available": available},
        )


class ConcurrencyConflict(SessionBlockError):
    """Raised when the customer's ledger is busy or the transaction lost a race. Safe to retry."""
    kind = "ConcurrencyConflict"

    def __init__(self, message: str = "Another operation on this customer is in progress"):
        super().__init__(message, {"retryable": True})


class LedgerInvariantError(SessionBlockError):
    """Internal invariant failure, needs administrative correction."""
    kind = "LedgerInvariantError"
