"""Translate SQLAlchemy failures into StorageError.

Learn: Lock contention, deadlocks, and serialization failures are worth a
retry; everything else (constraint violations, bad SQL) is not. PostgreSQL
reports the former via SQLSTATE codes; SQLite only via "database is locked".
"""

from sqlalchemy import exc as sa_exc

from liftlog.errors import StorageError

# serialization_failure, deadlock_detected, lock_not_available
TRANSIENT_SQLSTATES = frozenset({"40001", "40P01", "55P03"})


def is_transient(error: Exception) -> bool:
    """True if retrying the whole transaction may succeed."""
    if isinstance(error, sa_exc.TimeoutError):
        return True  # connection pool exhausted
    if not isinstance(error, sa_exc.DBAPIError):
        return False
    if error.connection_invalidated:
        return True
    orig = error.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code in TRANSIENT_SQLSTATES:
        return True
    return isinstance(error, sa_exc.OperationalError) and "locked" in str(orig).lower()


def as_storage_error(error: Exception, operation: str) -> StorageError:
    """Wrap a database error. The message is for logs only."""
    return StorageError(
        f"{operation}: {type(error).__name__}: {error}",
        transient=is_transient(error),
    )
