# storefront/errors.py
"""
Failure taxonomy for the write workflows.

Services raise these; the writer translates storage exceptions into them
(``classify_db_error``) after the transaction has been rolled back and the
connection released.
"""
from __future__ import annotations
import asyncio
from typing import Any, Dict, Optional

from sqlalchemy.exc import (
    DBAPIError, IntegrityError, InterfaceError, OperationalError,
    SQLAlchemyError, TimeoutError as PoolTimeoutError,
)

# PostgreSQL SQLSTATE codes
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


class WorkflowError(Exception):
    """Base class for classified workflow failures."""

    code = "workflow_error"
    status_code = 500
    retryable = False

    def __init__(self, message: str, *, entity: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.entity = entity
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.entity:
            out["entity"] = self.entity
        return out


class ValidationFailure(WorkflowError):
    """Malformed or missing required input, detected before any write."""
    code = "validation_failure"
    status_code = 400


class EntityNotFound(WorkflowError):
    code = "not_found"
    status_code = 404


class DuplicateParentKey(WorkflowError):
    """Unique violation on the parent's natural key (e.g. product handle)."""
    code = "duplicate_parent_key"
    status_code = 409


class ForeignKeyViolation(WorkflowError):
    """A referenced row (category, product, address...) does not exist."""
    code = "foreign_key_violation"
    status_code = 409


class TransientWriteFailure(WorkflowError):
    """Connection loss, pool exhaustion or timeout. Safe for the caller to retry."""
    code = "transient_write_failure"
    status_code = 503
    retryable = True


class UnknownWriteFailure(WorkflowError):
    code = "unknown_write_failure"
    status_code = 500


# ============================================================================
# Storage error classification
# ============================================================================

def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    for attr in ("sqlstate", "pgcode"):
        code = getattr(orig, attr, None)
        if code:
            return str(code)
    return None


def classify_db_error(exc: BaseException, entity: Optional[str] = None) -> WorkflowError:
    """Map a storage-layer exception to the workflow taxonomy."""
    if isinstance(exc, WorkflowError):
        return exc

    detail = str(getattr(exc, "orig", None) or exc)

    if isinstance(exc, IntegrityError):
        state = _sqlstate(exc)
        text = detail.lower()
        if state == UNIQUE_VIOLATION or "unique constraint" in text or "duplicate key" in text:
            return DuplicateParentKey(f"Duplicate key for {entity or 'entity'}", entity=entity, detail=detail)
        if state == FOREIGN_KEY_VIOLATION or "foreign key constraint" in text:
            return ForeignKeyViolation(f"Referenced record not found for {entity or 'entity'}", entity=entity, detail=detail)
        return UnknownWriteFailure(f"Integrity error for {entity or 'entity'}", entity=entity, detail=detail)

    if isinstance(exc, (asyncio.TimeoutError, PoolTimeoutError, OperationalError, InterfaceError, ConnectionError, OSError)):
        return TransientWriteFailure(f"Storage unavailable while writing {entity or 'entity'}", entity=entity, detail=detail)

    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return TransientWriteFailure(f"Connection lost while writing {entity or 'entity'}", entity=entity, detail=detail)

    if isinstance(exc, SQLAlchemyError):
        return UnknownWriteFailure(f"Write failed for {entity or 'entity'}", entity=entity, detail=detail)

    return UnknownWriteFailure(f"Write failed for {entity or 'entity'}: {exc}", entity=entity, detail=detail)
