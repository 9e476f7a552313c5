"""Error taxonomy shared by services, clients and routers."""

from __future__ import annotations


class GitUtilsError(Exception):
    """Base class for all application errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(GitUtilsError):
    """A required field is missing or empty. Raised before any network call."""


class UpstreamRequestError(GitUtilsError):
    """A provider API answered with a non-2xx status.

    ``status_code`` is None when no response arrived or its payload had an
    unexpected shape.
    """

    def __init__(self, status_code: int | None, message: str):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class CryptoUnavailable(GitUtilsError):
    """The sealed-box primitive could not be loaded or initialised."""


class InvalidKey(GitUtilsError):
    """A recipient public key does not decode to the expected length."""


class PersistenceError(GitUtilsError):
    """The storage backend failed (quota, I/O, backend unavailable)."""


class StoreNotReady(PersistenceError):
    """A table operation was issued before the store finished opening."""
