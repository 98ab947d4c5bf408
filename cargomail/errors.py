"""
Error taxonomy shared by the entity stores and the HTTP layer.

Stores raise these; ``cargomail.main`` turns them into JSON error bodies.
"""
import logging
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class CargomailError(Exception):
    """Base class for every error the service raises on purpose."""

    code = "internal_error"
    status_code = 500

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class NotFoundError(CargomailError):
    """Record not found"""

    code = "not_found"
    status_code = 404


class DuplicateKeyError(CargomailError):
    """Record already exists"""

    code = "duplicate_key"
    status_code = 409


class MissingAuthContextError(CargomailError):
    """Missing authenticated user in request context"""

    code = "missing_user_context"
    status_code = 500


class StorageError(CargomailError):
    """Storage failure"""

    code = "storage_error"
    status_code = 500


class StorageTimeoutError(StorageError):
    """Storage operation exceeded its deadline"""

    code = "storage_timeout"
    status_code = 500


def classify_storage_error(
    exc: SQLAlchemyError,
    duplicate_signatures: Iterable[str] = (),
    duplicate_error: Optional[DuplicateKeyError] = None,
) -> CargomailError:
    """Map a SQLAlchemy failure onto the service taxonomy.

    An ``IntegrityError`` whose driver message mentions one of
    ``duplicate_signatures`` (constraint name or column list) becomes a
    ``DuplicateKeyError``; anything else is a generic ``StorageError``.
    """
    if "statement timeout" in str(exc):
        return StorageTimeoutError()

    if isinstance(exc, IntegrityError):
        detail = str(exc.orig) if exc.orig is not None else str(exc)
        for signature in duplicate_signatures:
            if signature and signature in detail:
                return duplicate_error or DuplicateKeyError()

    # Driver detail names tables and columns; it goes to the log only
    logger.error(f"Unclassified storage failure: {exc}")
    return StorageError()
