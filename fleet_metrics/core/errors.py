"""Query failures surfaced to callers.

Numeric edge cases (resets, gaps, zero normalizers) are deliberately absent:
those drop data points, they never fail a query.
"""


class QueryError(Exception):
    """Base class for errors raised by the query service."""

    retryable = False


class InvalidQuery(QueryError):
    """Query parameters out of range; raised before any store access."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class StoreUnavailable(QueryError):
    """The raw sample store (or directory) could not serve the request."""

    retryable = True


class QueryTimeout(StoreUnavailable):
    """The query deadline passed before every fetch completed."""


class FetchCancelled(QueryError):
    """A store read abandoned because its query already gave up on it."""
