"""Errors raised by the reconciliation domain."""

from __future__ import annotations


class ReconciliationError(RuntimeError):
    """Base class for hard failures of an import, merge or commit call."""


class SourceFormatError(ReconciliationError):
    """Raised when an uploaded file cannot be read at all."""


class PermissionDeniedError(ReconciliationError):
    """Raised when the acting role may not perform an operation."""


class EntityNotFoundError(ReconciliationError):
    """Raised when a referenced guest, vendor or record does not exist."""


class MergeError(ReconciliationError):
    """Raised when a merge, delete or relink was rejected and rolled back."""


class InvalidOverrideError(ReconciliationError):
    """Raised when a human override asks for an impossible action."""
