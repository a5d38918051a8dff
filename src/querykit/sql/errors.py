"""
Exceptions raised while building or executing queries.

Every build error is terminal: the builder aborts without returning a partial
statement. Callers branch on the exception class, never on message text.
"""


class QueryKitError(Exception):
    """Base class for all querykit errors."""


class QueryBuildError(QueryKitError):
    """Raised when an INSERT statement cannot be built from the given target."""


class MissingParamError(QueryBuildError):
    """Raised when a requested column has no resolvable value."""

    def __init__(self, column: str):
        self.column = column
        super().__init__(f"param '{column}' not found")


class WrongTypeError(QueryBuildError):
    """Raised when a target or row is not of a supported shape."""


class NilPointerError(QueryBuildError):
    """Raised when a required target or row is None."""


class EmptySliceError(QueryBuildError):
    """Raised when a sequence target has no rows."""
