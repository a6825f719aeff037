"""Domain-level exceptions.

Services raise these errors to express business rule violations.
Route handlers catch them and map to appropriate HTTP status codes.
"""


class DomainError(Exception):
    """Base class for all domain errors."""


class NotFoundError(DomainError):
    """Requested entity does not exist."""


class ConflictError(DomainError):
    """Entity with the same unique key already exists."""


class ValidationError(DomainError):
    """Input violates a business validation rule."""


class NoResultsError(DomainError):
    """A search completed but matched nothing."""


class StorageError(DomainError):
    """The backing store failed to read or write."""


class DeserializationError(StorageError):
    """A stored record could not be decoded."""


class InternalError(DomainError):
    """Unexpected failure; details are logged, not exposed."""
