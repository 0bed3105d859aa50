# backend/services/errors.py


class InventoryError(Exception):
    """Base class for stock ledger failures reported to the caller."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InventoryError):
    """Malformed movement: unknown kind, non-finite quantity, missing reason."""


class NotFoundError(InventoryError):
    """No stock record exists for a product that is being decreased."""


class PersistenceError(InventoryError):
    """The storage transaction failed and was rolled back; nothing was written."""
