"""
Custom exceptions for the AutoBrand CRM core.

Provides:
- Typed exception hierarchy for each failure mode the core surfaces
- Error context preservation for debugging

Every error here is recoverable: the caller shows a message and the store
keeps its prior state.
"""

from typing import Any


class CRMError(Exception):
    """Base exception for all CRM core errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


# =============================================================================
# Lookup Errors
# =============================================================================


class NotFoundError(CRMError):
    """An operation referenced a record id that is not in the store."""

    entity = 'record'

    def __init__(self, record_id: str, context: dict[str, Any] | None = None):
        ctx = {'id': record_id, **(context or {})}
        super().__init__(f"{self.entity.capitalize()} not found: {record_id}", context=ctx)
        self.record_id = record_id


class LeadNotFoundError(NotFoundError):
    entity = 'lead'


class DealNotFoundError(NotFoundError):
    entity = 'deal'


class ClientNotFoundError(NotFoundError):
    entity = 'client'


class ServiceNotFoundError(NotFoundError):
    entity = 'service'


class TaskNotFoundError(NotFoundError):
    entity = 'task'


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(CRMError):
    """A manual-entry submission carried an unknown or invalid field."""

    pass


class InvalidStageError(ValidationError):
    """A deal stage value outside the six-stage pipeline."""

    def __init__(self, stage: Any, context: dict[str, Any] | None = None):
        ctx = {'stage': stage, **(context or {})}
        super().__init__(f"Invalid deal stage: {stage!r}", context=ctx)
        self.stage = stage


# =============================================================================
# Import Errors
# =============================================================================


class LeadImportError(CRMError):
    """Base class for CSV lead import failures."""

    pass


class NotCSVError(LeadImportError):
    """The uploaded file is not a CSV file."""

    pass


class EmptyFileError(LeadImportError):
    """The file has no header plus data rows."""

    pass


class NoValidRowsError(LeadImportError):
    """The file parsed, but no row produced an acceptable lead."""

    pass


# =============================================================================
# Persistence Errors
# =============================================================================


class PersistenceError(CRMError):
    """Base class for key-value storage failures."""

    pass


class StorageReadError(PersistenceError):
    """The stored document could not be read or decoded."""

    pass


class StorageWriteError(PersistenceError):
    """The store snapshot could not be written, even after retrying."""

    pass


def wrap_storage_error(
    exc: Exception,
    operation: str,
    context: dict[str, Any] | None = None,
) -> PersistenceError:
    """
    Wrap a backend exception in our typed error hierarchy.

    Args:
        exc: The original exception
        operation: 'read' or 'write'
        context: Additional context for debugging

    Returns:
        Typed PersistenceError subclass
    """
    ctx = context or {}
    ctx['original_error'] = str(exc)
    ctx['error_type'] = type(exc).__name__

    if operation == 'write':
        return StorageWriteError(f"Storage write failed: {exc}", context=ctx)
    if operation == 'read':
        return StorageReadError(f"Storage read failed: {exc}", context=ctx)
    return PersistenceError(f"Storage error: {exc}", context=ctx)
