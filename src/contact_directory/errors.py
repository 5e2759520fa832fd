# errors.py
# Exception taxonomy shared by the catalog, compiler, stores, replayer and session.
# Every class derives from DirectoryError so the menu loop can report any of
# them and carry on.


class DirectoryError(Exception):
    """Base class for every error the directory reports to the operator."""


# ---------------------------------------------------------------------------
# Query construction
# ---------------------------------------------------------------------------


class UnknownFieldError(DirectoryError):
    """Raised when a field name is not in the catalog allow-list."""


class InvariantViolation(DirectoryError):
    """Raised when an internal contract is broken. Never expected from correct callers."""


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class StoreError(DirectoryError):
    """Raised when the underlying database rejects a read or write."""


# ---------------------------------------------------------------------------
# Undo replay
# ---------------------------------------------------------------------------


class ReplayError(DirectoryError):
    """Raised when the inverse of a recorded operation cannot be applied."""


class NotFoundError(ReplayError):
    """The record targeted by the inverse no longer exists."""


class StoreFailureError(ReplayError):
    """The store refused the inverse write."""


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class ValidationError(DirectoryError):
    """Raised when operator input fails a field rule."""


class DuplicateKeyError(ValidationError):
    """Raised when a unique key (contact e-mail, username) is already taken."""


class PermissionDeniedError(DirectoryError):
    """Raised when the logged-in role may not perform an operation."""


class AuthenticationError(DirectoryError):
    """Raised when a username/password pair does not match a stored user."""
