"""Domain error types for transaction handling."""


class TransactionError(Exception):
    """Base class for errors raised while handling transactions."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TransactionError):
    """A candidate record violates a record-level invariant."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class InvalidFilterError(TransactionError):
    """A query parameter could not be turned into a filter."""

    def __init__(self, param: str, message: str):
        super().__init__(message)
        self.param = param

    def __str__(self) -> str:
        return f"{self.param}: {self.message}"


class PersistenceError(TransactionError):
    """The storage engine failed to complete an operation."""
