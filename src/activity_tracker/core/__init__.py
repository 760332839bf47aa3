"""
Core engine for the activity tracker.

Provides the user directory, presence state machine and level-based view
authorization.
"""

from .models import Presence, UserStats, UserRecord, Session
from .directory import Directory
from .controller import DashboardState, SessionController
from .credentials import BcryptVerifier, CredentialVerifier
from .config import (
    DEFAULT_SEED,
    SeedUser,
    TrackerConfig,
    build_directory,
    build_verifier,
    configure_logging,
    load_seed,
)
from .errors import (
    AlreadyAuthenticatedError,
    DuplicateUsernameError,
    ErrorKind,
    ForbiddenError,
    InsufficientLevelError,
    InvalidCredentialsError,
    InvalidLevelError,
    InvalidUsernameError,
    NotFoundError,
    RegistrationClosedError,
    TrackerError,
    UnauthenticatedError,
)
from .permissions import (
    ADMIN_LEVEL,
    STAFF_LEVEL,
    VIEW_RULES,
    AccessDecision,
    ViewId,
    check_view,
    reachable_views,
    require_view,
)
from .statistics import (
    LeaderboardEntry,
    ServerSummary,
    format_online_time,
    leaderboard,
    search_players,
    summarize,
)

__all__ = [
    # Models and directory
    "Presence",
    "UserStats",
    "UserRecord",
    "Session",
    "Directory",
    # Controller
    "SessionController",
    "DashboardState",
    # Credentials
    "CredentialVerifier",
    "BcryptVerifier",
    # Configuration
    "TrackerConfig",
    "SeedUser",
    "DEFAULT_SEED",
    "build_directory",
    "build_verifier",
    "configure_logging",
    "load_seed",
    # Errors
    "ErrorKind",
    "TrackerError",
    "NotFoundError",
    "InvalidCredentialsError",
    "UnauthenticatedError",
    "InsufficientLevelError",
    "ForbiddenError",
    "DuplicateUsernameError",
    "InvalidLevelError",
    "InvalidUsernameError",
    "RegistrationClosedError",
    "AlreadyAuthenticatedError",
    # View authorization
    "ViewId",
    "AccessDecision",
    "VIEW_RULES",
    "STAFF_LEVEL",
    "ADMIN_LEVEL",
    "check_view",
    "reachable_views",
    "require_view",
    # Statistics
    "ServerSummary",
    "LeaderboardEntry",
    "summarize",
    "leaderboard",
    "search_players",
    "format_online_time",
]
