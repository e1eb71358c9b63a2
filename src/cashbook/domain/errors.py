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
    """Domain conflict, such as an operation on the wrong kind of record."""


class AuthRequired(DomainError):
    """No signed-in user is available for an owner-scoped operation."""


class OfflineError(DomainError):
    """Operation needs the remote store but the connection is down."""


class RemoteError(DomainError):
    """Base class for failures reported by the remote store."""


class RemoteUnavailable(RemoteError):
    """Remote store could not be reached (network, timeout, server error)."""


class RemoteRejected(RemoteError):
    """Remote store refused the request (validation, permission, duplicate)."""


class StorageUnavailable(DomainError):
    """Local persistence failed."""


def account_not_found(account_id: object) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def customer_not_found(customer_id: object) -> str:
    """Return message for missing customer."""
    return f"Customer {customer_id} not found"


def transaction_not_found(transaction_id: object) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def not_signed_in() -> str:
    return "Not signed in. Run 'cashbook auth login' first."


def offline_edit(entity: str, record_id: object) -> str:
    """Return message when a synced record is edited without a connection."""
    return f"Cannot update {entity} {record_id} while offline; it has already been synced"


def synced_transaction_delete(transaction_id: object) -> str:
    return f"Transaction {transaction_id} has been synced and cannot be deleted"


def unsynced_reference(field: str, record_id: object) -> str:
    """Return message when a payload points at a record that only exists locally."""
    return f"{field} refers to unsynced record {record_id}; sync it first"
