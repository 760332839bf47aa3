"""
View authorization for the activity dashboard.

This module provides:
- The closed set of dashboard views
- The level rule that decides whether each view is reachable
- Access checks returning a decision or raising

Every view rule lives in VIEW_RULES; nothing else compares levels.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional

from .errors import ErrorKind, InsufficientLevelError, UnauthenticatedError
from .models import UserRecord


class ViewId(str, Enum):
    """
    Enum of all dashboard views.
    """
    MAIN = "main"                   # Server overview
    PROFILE = "profile"             # Own stats and status switch
    STATISTICS = "statistics"       # Server statistics and leaderboard
    PLAYERS = "players"             # Player browser
    SETTINGS = "settings"           # Personal settings
    ADMIN = "admin"                 # Registration and user administration


STAFF_LEVEL = 5
ADMIN_LEVEL = 10


def _always(level: int) -> bool:
    return True


def _staff(level: int) -> bool:
    return level >= STAFF_LEVEL


def _admin(level: int) -> bool:
    # Equality, not a threshold
    return level == ADMIN_LEVEL


# Map each view to the level rule that unlocks it
VIEW_RULES: Dict[ViewId, Callable[[int], bool]] = {
    ViewId.MAIN: _always,
    ViewId.PROFILE: _always,
    ViewId.SETTINGS: _always,
    ViewId.STATISTICS: _staff,
    ViewId.PLAYERS: _staff,
    ViewId.ADMIN: _admin,
}


@dataclass(frozen=True)
class AccessDecision:
    """
    Outcome of a view request.

    Attributes:
        view: The requested view
        granted: Whether the view may be shown
        reason: Why the view was denied (None when granted)
    """
    view: ViewId
    granted: bool
    reason: Optional[ErrorKind] = None

    def __bool__(self) -> bool:
        return self.granted

    @classmethod
    def grant(cls, view: ViewId) -> "AccessDecision":
        return cls(view=view, granted=True)

    @classmethod
    def deny(cls, view: ViewId, reason: ErrorKind) -> "AccessDecision":
        return cls(view=view, granted=False, reason=reason)


def reachable_views(identity: Optional[UserRecord]) -> FrozenSet[ViewId]:
    """
    Get every view an identity may open.

    Args:
        identity: The authenticated user, or None when anonymous

    Returns:
        FrozenSet[ViewId]: Reachable views (empty when anonymous)
    """
    if identity is None:
        return frozenset()
    return frozenset(view for view, rule in VIEW_RULES.items() if rule(identity.level))


def check_view(identity: Optional[UserRecord], view: ViewId) -> AccessDecision:
    """
    Decide whether an identity may open a view. Side-effect free.

    Args:
        identity: The authenticated user, or None when anonymous
        view: The requested view (ViewId or its string value)

    Returns:
        AccessDecision: Granted, or denied with UNAUTHENTICATED or
        INSUFFICIENT_LEVEL

    Raises:
        ValueError: If view is not a known view name
    """
    view = ViewId(view)

    if identity is None:
        return AccessDecision.deny(view, ErrorKind.UNAUTHENTICATED)

    if view not in reachable_views(identity):
        return AccessDecision.deny(view, ErrorKind.INSUFFICIENT_LEVEL)

    return AccessDecision.grant(view)


def require_view(identity: Optional[UserRecord], view: ViewId) -> None:
    """
    Require access to a view, raising if it is not granted.

    Args:
        identity: The authenticated user, or None when anonymous
        view: The required view

    Raises:
        UnauthenticatedError: If there is no identity
        InsufficientLevelError: If the identity's level does not reach the view
    """
    decision = check_view(identity, view)
    if decision.granted:
        return

    if decision.reason is ErrorKind.UNAUTHENTICATED:
        raise UnauthenticatedError(f"open view '{decision.view.value}'")

    raise InsufficientLevelError(
        user_id=identity.user_id,
        view=decision.view.value,
        level=identity.level,
    )
