"""Classification of driver-level integrity failures.

Services never inspect driver messages themselves; they call
:func:`classify_integrity_error` and branch on the returned :class:`StorageError`.
"""

from enum import Enum

from sqlalchemy.exc import IntegrityError


class StorageError(str, Enum):
    UNIQUE_VIOLATION = "unique_violation"
    FOREIGN_KEY_VIOLATION = "foreign_key_violation"
    NOT_NULL_VIOLATION = "not_null_violation"
    UNKNOWN = "unknown"


# SQLSTATE class 23 codes (PostgreSQL).
_BY_SQLSTATE = {
    "23505": StorageError.UNIQUE_VIOLATION,
    "23503": StorageError.FOREIGN_KEY_VIOLATION,
    "23502": StorageError.NOT_NULL_VIOLATION,
}

# sqlite3 only exposes the message text.
_BY_SQLITE_MESSAGE = {
    "UNIQUE CONSTRAINT FAILED": StorageError.UNIQUE_VIOLATION,
    "FOREIGN KEY CONSTRAINT FAILED": StorageError.FOREIGN_KEY_VIOLATION,
    "NOT NULL CONSTRAINT FAILED": StorageError.NOT_NULL_VIOLATION,
}


def classify_integrity_error(exc: IntegrityError) -> StorageError:
    orig = exc.orig
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate:
        return _BY_SQLSTATE.get(sqlstate, StorageError.UNKNOWN)

    message = str(orig).upper()
    for prefix, kind in _BY_SQLITE_MESSAGE.items():
        if prefix in message:
            return kind
    return StorageError.UNKNOWN
