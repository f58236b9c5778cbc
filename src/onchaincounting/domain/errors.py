"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as duplicate ids."""


class BackupError(DomainError):
    """Export file could not be applied to the store."""


class SyncError(DomainError):
    """The payment institution could not be reached or answered badly."""


class AuthorizationError(SyncError):
    """The payment institution rejected the credentials."""


class ExtractionError(DomainError):
    """A document could not be read for field extraction."""


def invoice_not_found(invoice_id: str) -> str:
    """Return message for missing invoice."""
    return f"Invoice {invoice_id} not found"


def expense_not_found(expense_id: str) -> str:
    """Return message for missing expense."""
    return f"Expense {expense_id} not found"


def withdrawal_not_found(withdrawal_id: str) -> str:
    """Return message for missing withdrawal."""
    return f"Withdrawal {withdrawal_id} not found"


def duplicate_id(kind: str, entity_id: str) -> str:
    """Return message for an id that is already taken."""
    return f"{kind} with id '{entity_id}' already exists"


def import_failed(merge: bool) -> str:
    """Return the single user-facing message for a failed import."""
    action = "merge" if merge else "import"
    return f"Failed to {action} database. Please check the file format."
