"""Storage error taxonomy.

Validation failures are not exceptions: they travel as ``ValidationResult``
values (see ``validation.py``). Storage faults are raised by the gateway and
handlers and mapped to HTTP responses in ``main.py``.
"""

from __future__ import annotations

from typing import Optional


class CragApiError(Exception):
    """Base de los errores del servicio."""


class StorageUnavailable(CragApiError):
    """The database connection is not established or has been lost."""

    def __init__(self, message: str = "Database not initialized. Call connect() first.") -> None:
        super().__init__(message)


class StorageOperationFailure(CragApiError):
    """The connection is live but a single statement failed."""

    def __init__(
        self,
        operation: str,
        collection: str,
        wall_id: Optional[str] = None,
    ) -> None:
        self.operation = operation
        self.collection = collection
        self.wall_id = wall_id
        detail = f"{operation} on '{collection}' failed"
        if wall_id is not None:
            detail = f"{detail} (wall_id={wall_id})"
        super().__init__(detail)
