"""
Errors raised by the ledger engine.

The engine has a single error kind. Precondition failures (no members,
non-positive total) and reconciliation failures (split mismatch) are both
ValidationError, told apart by ``code``.
"""

from typing import Optional


class ValidationError(ValueError):
    """
    Raised when an expense input cannot be turned into a record.

    Attributes:
        message (str): Human-readable message.
        code (str): Stable machine-readable code.
        detail (dict): Extra context (totals, offending member, ...).
    """

    def __init__(self, message: str, code: str = "invalid", detail: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.detail = detail or {}

    def to_dict(self) -> dict:
        """Convert the error to a JSON-serializable dictionary."""
        return {"code": self.code, "message": self.message, **self.detail}

    def __repr__(self) -> str:
        return f"ValidationError(code='{self.code}', message='{self.message}')"
