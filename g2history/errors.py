# g2history/errors.py
"""Error taxonomy shared by the store, scraper, sync and HTTP layers."""

from typing import Optional


class G2HistoryError(Exception):
    """Base class for every error raised by this package."""


class StoreError(G2HistoryError):
    """Raised when the relational store cannot serve a request."""


class StoreUnavailable(StoreError):
    """Raised when a connection to the store cannot be established."""


class StoreQueryError(StoreError):
    """Raised for malformed statements or constraint violations."""


class FetchFailed(G2HistoryError):
    """Raised when a remote page cannot be loaded or read."""

    def __init__(self, url: str, cause: Optional[BaseException] = None):
        self.url = url
        self.cause = cause
        message = f"Failed to fetch {url}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class SyncPersistError(G2HistoryError):
    """Raised when fetched matches could not be written to the store."""


class NotFound(G2HistoryError):
    """Raised when a requested resource does not exist."""


class MatchNotFound(NotFound):
    """Raised when no upcoming match has the requested id."""


class InvalidDate(G2HistoryError):
    """Raised when a match date string cannot be parsed."""


class Unauthorized(G2HistoryError):
    """Raised when a protected route is called without a valid bearer token."""
