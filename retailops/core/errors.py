from __future__ import annotations

from typing import Any


class RetailOpsError(Exception):
    """Base for every failure the transaction engine reports to callers.

    ``kind`` is the stable identifier clients switch on; the message is meant
    for humans and may change between releases.
    """

    kind: str = "InternalError"
    status_code: int = 500

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.kind, "detail": self.message}
        if self.context:
            body["context"] = self.context
        return body


class NotFoundError(RetailOpsError):
    kind = "NotFound"
    status_code = 404


class InsufficientStockError(RetailOpsError):
    kind = "InsufficientStock"
    status_code = 409


class InvalidPriceError(RetailOpsError):
    kind = "InvalidPrice"
    status_code = 422


class NoRefundableItemsError(RetailOpsError):
    kind = "NoRefundableItems"
    status_code = 409


class ConcurrentModificationError(RetailOpsError):
    kind = "ConcurrentModification"
    status_code = 409


class InputValidationError(RetailOpsError):
    kind = "ValidationError"
    status_code = 422


class LedgerConsistencyError(RetailOpsError):
    # A stock counter changed without a matching ledger entry, or the entry
    # numbers do not follow from the movement direction.
    kind = "LedgerConsistency"
    status_code = 500


__all__ = [
    "ConcurrentModificationError",
    "InputValidationError",
    "InsufficientStockError",
    "InvalidPriceError",
    "LedgerConsistencyError",
    "NoRefundableItemsError",
    "NotFoundError",
    "RetailOpsError",
]
