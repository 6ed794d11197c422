from __future__ import annotations

from decimal import Decimal


class SplitError(ValueError):
    """Base for every error the allocation engine raises.

    Each error is scoped to one request field so the caller can point the user
    at what to fix.
    """

    code = "SPLIT_ERROR"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message

    @property
    def field_errors(self) -> dict[str, str]:
        return {self.field: self.message}

    def to_dict(self) -> dict[str, object]:
        return {"code": self.code, "message": self.message, "fieldErrors": self.field_errors}


class ValidationError(SplitError):
    code = "VALIDATION_ERROR"


class ConsistencyError(SplitError):
    """A sum reconciliation check failed beyond the cent tolerance."""

    code = "CONSISTENCY_ERROR"

    def __init__(self, field: str, message: str, expected: Decimal, actual: Decimal) -> None:
        super().__init__(field, message)
        self.expected = expected
        self.actual = actual
