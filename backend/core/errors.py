# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Error taxonomy shared by the stores, the search engine and the HTTP layer.

Categories
----------
* ``NotFoundError``    – entity absent *or* owned by another tenant.  The two
                          cases are deliberately indistinguishable.
* ``ValidationError``  – malformed input, illegal block-type combination,
                          move into the block's own subtree.
* ``ConflictError``    – reserved; not raised by the stores today.
* ``StorageError``     – any backend failure.  The message is always generic;
                          the original exception is chained as ``__cause__``
                          and logged, never returned to the caller.

``main.py`` registers a handler that turns every ``AppError`` into a JSON
response with the matching status code.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.logger import get_logger

_log = get_logger("storage")


class AppError(Exception):
    status_code = 500
    code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"


class StorageError(AppError):
    status_code = 500
    code = "DATABASE_ERROR"

    def __init__(self, action: str):
        super().__init__("Storage operation failed")
        # Kept for logs only; not part of the client-facing message.
        self.action = action


@contextmanager
def storage_operation(db: Session, action: str) -> Iterator[None]:
    """
    Run a unit of store work against *db*.

    Domain errors propagate unchanged after the session is rolled back.
    Backend errors are logged with their traceback and re-raised as
    ``StorageError``.  The caller commits inside the block.
    """
    try:
        yield
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        _log.exception("Storage operation failed: %s", action)
        raise StorageError(action) from exc
