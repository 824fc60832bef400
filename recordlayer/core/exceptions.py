"""Custom exceptions for the record layer."""


class DbException(Exception):
    """Base exception for database-related errors."""
    pass


class TransactionAbortedException(Exception):
    """Raised when a transaction must be aborted."""
    pass


class TransactionConflictError(TransactionAbortedException):
    """
    Raised at commit time when a serializable read was invalidated by a
    concurrently committed write. Retrying the whole transaction is safe.
    """
    pass


class RecordLayerError(DbException):
    """Base class for errors raised by index maintainers and query APIs."""
    pass


class IndexNotFoundError(RecordLayerError):
    """Raised when a named index is not declared in the schema."""

    def __init__(self, name: str):
        super().__init__(f"Index not found: {name}")
        self.name = name


class InvalidArgumentError(RecordLayerError):
    """Raised when a caller-supplied value violates a documented precondition."""
    pass


class InternalError(RecordLayerError):
    """
    Raised on invariant violations: malformed stored data, missing projected
    values, values of the wrong kind for an index, or unimplemented operations.
    """
    pass


class InvalidKeyError(InternalError):
    """Raised when a stored key or tuple cannot be decoded."""
    pass
