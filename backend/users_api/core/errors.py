# users_api/core/errors.py
"""Errors raised by the user service.

Endpoints translate these into HTTP responses; nothing below the endpoint
layer raises ``HTTPException``.
"""


class UserServiceError(Exception):
    """Base class for user service failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UserConflictError(UserServiceError):
    """A unique field of the user is already taken."""


class EmailConflictError(UserConflictError):
    """A user with the same email already exists."""

    def __init__(self, email: str):
        super().__init__("Email must be unique")
        self.email = email


class PhoneConflictError(UserConflictError):
    """A user with the same phone number already exists."""

    def __init__(self, phone: str):
        super().__init__("Phone must be unique")
        self.phone = phone


class UserNotFoundError(UserServiceError):
    """No user matches the given identifier."""

    def __init__(self, user_id: str):
        super().__init__("User not found")
        self.user_id = user_id


class UserImportError(UserServiceError):
    """The bulk insert failed as a whole, so no counts are available."""

    def __init__(self, cause: Exception):
        super().__init__(f"Bulk import failed: {cause}")
        self.cause = cause
