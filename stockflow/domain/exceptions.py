"""Domain-specific exceptions — framework-independent.

Messages are user-facing (French) and part of the contract: callers
discriminate some failures by substring, e.g. ``"Stock insuffisant"``.
"""

QUANTITY_MUST_BE_POSITIVE = "La quantité doit être positive"
INSUFFICIENT_STOCK_MARKER = "Stock insuffisant"


class StockflowError(Exception):
    """Base class for every error raised by this package."""


# ── Local preconditions (raised before any remote call) ─────────────


class InvalidQuantityError(StockflowError, ValueError):
    """Raised when a stock quantity is not a strictly positive integer."""

    def __init__(self, quantity: object):
        self.quantity = quantity
        super().__init__(QUANTITY_MUST_BE_POSITIVE)


class EmptyBatchError(StockflowError, ValueError):
    """Raised when a restock batch contains no items."""

    def __init__(self) -> None:
        super().__init__("Aucun produit sélectionné")


# ── Remote failures ─────────────────────────────────────────────────


class BackendError(StockflowError):
    """Raised when the backend answers with a non-2xx status.

    Carries the PostgREST error payload (``code``, ``message``, ``details``,
    ``hint``) so gateways can translate it into a domain error.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        code: str | None = None,
        details: str | None = None,
        hint: str | None = None,
    ):
        self.status_code = status_code
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint
        super().__init__(f"[{status_code}] {code or 'error'}: {message}")


class RemoteOperationError(StockflowError):
    """A remote operation failed; ``str(exc)`` is the user-facing message."""

    def __init__(self, message: str, cause: BackendError | None = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class InsufficientStockError(RemoteOperationError):
    """The backend refused a stock exit or restock for lack of stock."""


class DuplicateEntityError(RemoteOperationError):
    """A unique constraint was violated (email, slug, pending invitation)."""


class PermissionDeniedError(RemoteOperationError):
    """The signed-in user lacks the role required for the operation."""


class NotAuthenticatedError(RemoteOperationError):
    """The operation requires a signed-in user."""

    def __init__(self) -> None:
        super().__init__("Utilisateur non connecté")


class EntityNotFoundError(RemoteOperationError):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: str, message: str | None = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(message or f"{entity_type} with id '{entity_id}' not found")
