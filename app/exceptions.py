"""Exception hierarchy for the Users API.

Domain errors are raised by the coordinator and mapped to HTTP responses in
one place (:mod:`app.handlers`).
"""


class UsersApiError(Exception):
    """Base class for all errors raised by the Users API core.

    Attributes:
        message: Human-readable error message.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(UsersApiError):
    """Raised when one or more fields fail validation.

    Every violated field is reported, keyed by its wire name
    (``emails.<index>`` for entries of the secondary address list).

    Attributes:
        errors: Mapping of field name to a list of messages.
    """

    def __init__(self, errors: dict[str, list[str]], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors


class ConflictError(ValidationError):
    """Raised when a phone number or address is already taken."""

    def __init__(self, errors: dict[str, list[str]]):
        super().__init__(errors, message="Value already taken")


class NotFoundError(UsersApiError):
    """Raised when the requested user does not exist."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class TransientStoreError(UsersApiError):
    """Raised on store timeouts or lost connections. Safe to retry."""
