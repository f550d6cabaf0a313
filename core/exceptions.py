# core/exceptions.py
"""Domain errors raised by repositories and services.

The API layer maps each class to an HTTP status code; the CLI prints the
message. Validation problems that are not covered here are raised as plain
ValueError, the same way the repositories always have.
"""


class BookShareError(Exception):
    """Base class for all BookShare errors"""


class NotFoundError(BookShareError):
    """The requested record does not exist"""

    def __init__(self, entity: str, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class AuthenticationError(BookShareError):
    """Missing, unknown or expired credentials"""


class PermissionDeniedError(BookShareError):
    """The caller is authenticated but may not do this"""


class ConflictError(BookShareError, ValueError):
    """A uniqueness rule would be broken"""


class InvalidTransitionError(BookShareError, ValueError):
    """A borrow request cannot move from its current status to the requested one"""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change borrow request from '{current}' to '{target}'")
