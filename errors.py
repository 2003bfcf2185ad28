# errors.py
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from k8s import ObjectKey


class DeletionConfirmationError(Exception):
    """Base exception for the deletion confirmation gate."""


class ConfirmationRequiredError(DeletionConfirmationError):
    """Deletion was requested without a positive confirmation annotation."""

    def __init__(self, key: ObjectKey, annotation: str) -> None:
        super().__init__(f"{key} must have a \"{annotation}\" annotation to delete")
        self.key = key
        self.annotation = annotation


class StoreError(DeletionConfirmationError):
    """Raised when the object store rejects a read or a write."""

    def __init__(self, key: ObjectKey, message: str) -> None:
        super().__init__(f"{key}: {message}")
        self.key = key


class NotFoundError(StoreError):
    def __init__(self, key: ObjectKey) -> None:
        super().__init__(key, "not found")


class ConflictError(StoreError):
    """The stored resourceVersion no longer matches the one we wrote with."""

    def __init__(self, key: ObjectKey, message: str = "the object has been modified") -> None:
        super().__init__(key, message)


class OperationCancelled(DeletionConfirmationError):
    """The caller cancelled the operation or its deadline passed."""
