"""
Error taxonomy for the activity tracker core.

Every error is local and recoverable. ``ErrorKind`` lets the presentation
layer map failures to localized messages without matching on classes.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNAUTHENTICATED = "unauthenticated"
    INSUFFICIENT_LEVEL = "insufficient_level"
    FORBIDDEN = "forbidden"
    DUPLICATE_USERNAME = "duplicate_username"
    INVALID_LEVEL = "invalid_level"
    INVALID_USERNAME = "invalid_username"
    REGISTRATION_CLOSED = "registration_closed"
    ALREADY_AUTHENTICATED = "already_authenticated"


class TrackerError(Exception):
    """Base class for all activity tracker errors."""

    kind: ErrorKind


class NotFoundError(TrackerError):
    """
    Raised when a user id is unknown to the directory.

    Attributes:
        user_id: The id that was looked up
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class InvalidCredentialsError(TrackerError):
    """Raised when a login attempt is rejected."""

    kind = ErrorKind.INVALID_CREDENTIALS

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Invalid credentials for '{username}'")


class UnauthenticatedError(TrackerError):
    """Raised when an action requires an active session."""

    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Action requires an active session: {action}")


class InsufficientLevelError(TrackerError):
    """
    Raised when the current identity's level does not reach a view.

    Attributes:
        user_id: The user who was denied
        view: The view that was requested
        level: The user's privilege level
    """

    kind = ErrorKind.INSUFFICIENT_LEVEL

    def __init__(self, user_id: str, view: str, level: int):
        self.user_id = user_id
        self.view = view
        self.level = level
        super().__init__(f"User {user_id} (level {level}) cannot access view: {view}")


class ForbiddenError(TrackerError):
    """
    Raised when an admin-only action is attempted without the admin grant.

    Attributes:
        action: The action that was denied
        reason: Why the admin view was not granted
        user_id: The caller, if one is authenticated
    """

    kind = ErrorKind.FORBIDDEN

    def __init__(self, action: str, reason: ErrorKind, user_id: Optional[str] = None):
        self.action = action
        self.reason = reason
        self.user_id = user_id

        message = f"Admin action denied: {action} ({reason.value})"
        if user_id:
            message = f"User {user_id} denied admin action: {action} ({reason.value})"

        super().__init__(message)


class DuplicateUsernameError(TrackerError):
    """Raised when a username collides case-insensitively with an existing one."""

    kind = ErrorKind.DUPLICATE_USERNAME

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username already taken: '{username}'")


class InvalidLevelError(TrackerError):
    """Raised when a privilege level is outside 1-10."""

    kind = ErrorKind.INVALID_LEVEL

    def __init__(self, level: object):
        self.level = level
        super().__init__(f"Invalid level {level!r}: must be an integer between 1 and 10")


class InvalidUsernameError(TrackerError):
    """Raised when a username is empty or whitespace only."""

    kind = ErrorKind.INVALID_USERNAME

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Invalid username: {username!r}")


class RegistrationClosedError(TrackerError):
    """Raised when self-registration is attempted while it is disabled."""

    kind = ErrorKind.REGISTRATION_CLOSED

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Registration is disabled, cannot register '{username}'")


class AlreadyAuthenticatedError(TrackerError):
    """Raised when login is attempted while a session is already active."""

    kind = ErrorKind.ALREADY_AUTHENTICATED

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Session already active for '{username}', logout first")
