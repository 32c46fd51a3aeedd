"""Translate backend errors into the domain's user-facing errors."""

from stockflow.domain.exceptions import (
    INSUFFICIENT_STOCK_MARKER,
    BackendError,
    DuplicateEntityError,
    InsufficientStockError,
    RemoteOperationError,
)
from stockflow.infrastructure.supabase.supabase_client import UNIQUE_VIOLATION


def is_duplicate(error: BackendError) -> bool:
    return error.code == UNIQUE_VIOLATION


def operation_error(action: str, error: BackendError) -> RemoteOperationError:
    """``Erreur lors <action>: <remote message>``, typed by the remote cause."""
    message = f"Erreur lors {action}: {error.message}"
    if INSUFFICIENT_STOCK_MARKER in error.message:
        return InsufficientStockError(message, error)
    return RemoteOperationError(message, error)


def duplicate_or_operation_error(
    action: str, error: BackendError, duplicate_message: str
) -> RemoteOperationError:
    if is_duplicate(error):
        return DuplicateEntityError(duplicate_message, error)
    return operation_error(action, error)
