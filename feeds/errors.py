"""Errors raised by the feeds store.

Callers tell failures apart by class: a service layer maps NotFoundError to
404 and ConstraintViolationError to 400.
"""

from typing import Any


class FeedsStoreError(Exception):
    """Base error for store failures."""


class NotFoundError(FeedsStoreError):
    """No row matched the lookup key."""

    def __init__(self, entity: str, key: Any) -> None:
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class ConstraintViolationError(FeedsStoreError):
    """A write broke a uniqueness or foreign key constraint."""


class ConnectivityError(FeedsStoreError):
    """The database could not be reached or the operation deadline expired."""
