"""
Ledger error types

Every error is local to the operation that raised it; the ledger validates
before mutating, so a raised error always leaves prior state untouched.
"""

from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base class for all ledger errors"""

    error_code = "ledger_error"
    status_code = 400

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to a response payload"""
        data = {"detail": self.message, "error": self.error_code}
        if self.context:
            data["context"] = {key: str(value) for key, value in self.context.items()}
        return data


class ValidationError(LedgerError, ValueError):
    """Input rejected: empty item list, missing table/address, bad amounts"""

    error_code = "validation_error"
    status_code = 422


class InvalidTransition(LedgerError, ValueError):
    """Illegal status change for an order, ticket item, line item or delivery"""

    error_code = "invalid_transition"
    status_code = 409


class AlreadyPaid(LedgerError):
    """Payment attempted on an order that is already paid"""

    error_code = "already_paid"
    status_code = 409


class NotFound(LedgerError, LookupError):
    """Unknown order, ticket, item, table or catalog id"""

    error_code = "not_found"
    status_code = 404


class PaymentFailed(LedgerError):
    """Payment collaborator declined or errored; order stays unpaid for retry"""

    error_code = "payment_failed"
    status_code = 402


class PermissionDenied(LedgerError):
    """Role is not allowed to use an API operation"""

    error_code = "permission_denied"
    status_code = 403
