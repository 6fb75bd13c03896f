class RepositoryError(Exception):
    """Base repository error."""


class RepositoryUnavailableError(RepositoryError):
    """Raised when the database is unavailable or not configured."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when the requested entity does not exist."""


class RepositoryValidationError(RepositoryError):
    """Raised when a request is malformed before or during persistence."""


class EmptyUpdateError(RepositoryValidationError):
    """Raised when a partial update carries no fields."""


class InvalidCriteriaError(RepositoryValidationError):
    """Raised when filter criteria contradict each other."""


class RepositoryDuplicateError(RepositoryValidationError):
    """Raised when a unique key is already taken."""


class RepositoryReferentialError(RepositoryValidationError):
    """Raised when a referenced entity does not exist."""


class RepositoryForbiddenFieldError(RepositoryValidationError):
    """Raised when an update targets an immutable field."""
