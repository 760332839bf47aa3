"""
Session and access controller.

Holds at most one authenticated identity and mediates every intent from
the presentation layer against the shared directory.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, FrozenSet, List, Optional

from loguru import logger
from .credentials import CredentialVerifier
from .directory import Directory
from .errors import (
    AlreadyAuthenticatedError,
    ErrorKind,
    ForbiddenError,
    InvalidCredentialsError,
    RegistrationClosedError,
    UnauthenticatedError,
)
from .models import Presence, Session, UserRecord
from .permissions import AccessDecision, ViewId, check_view, reachable_views, require_view
from .statistics import LeaderboardEntry, ServerSummary, leaderboard, search_players, summarize

SELF_REGISTRATION_LEVEL = 1


@dataclass(frozen=True)
class DashboardState:
    """
    Observable state handed to the presentation layer.

    Attributes:
        session: Active session, or None when anonymous
        identity: Fresh snapshot of the authenticated user
        views: Views the identity may open
        registration_enabled: Whether self-registration is open
        roster: Snapshot of every user in directory order
    """
    session: Optional[Session]
    identity: Optional[UserRecord]
    views: FrozenSet[ViewId]
    registration_enabled: bool
    roster: List[UserRecord] = field(default_factory=list)

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None


class SessionController:
    """
    Session and access controller.

    States: anonymous (initial) and authenticated. ``login`` moves to
    authenticated, ``logout`` returns to anonymous, ``set_status`` is a
    self-transition. View access is recomputed from the directory on every
    request so level changes apply immediately.

    Each connection owns one controller; all controllers share one
    directory.
    """

    def __init__(self, directory: Directory, verifier: Optional[CredentialVerifier] = None):
        """
        Initialize controller.

        Args:
            directory: Shared user directory
            verifier: Credential verifier. Without one, login accepts only
                an explicit ``True`` credential-accepted signal.
        """
        self.directory = directory
        self.verifier = verifier
        self._session: Optional[Session] = None

    # ========================================================================
    # Session State
    # ========================================================================

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    @property
    def identity(self) -> Optional[UserRecord]:
        """Fresh snapshot of the authenticated user, or None."""
        if self._session is None:
            return None
        return self.directory.get(self._session.user_id)

    def login(self, username: str, credential: Any) -> Session:
        """
        Authenticate a user and mark them online.

        Args:
            username: Username (case-insensitive)
            credential: Proof handed to the verifier, or ``True`` when an
                external collaborator has already accepted the credential

        Returns:
            The new Session

        Raises:
            AlreadyAuthenticatedError: If a session is already active
            InvalidCredentialsError: If the user is unknown or the proof is rejected
        """
        if self._session is not None:
            logger.warning(f"Login refused: session already active for '{self._session.username}'")
            raise AlreadyAuthenticatedError(self._session.username)

        # Get user
        user = self.directory.find_by_username(username)
        if not user:
            logger.warning(f"Login failed: user '{username}' not found")
            raise InvalidCredentialsError(username)

        # Verify credential
        if not self._credential_accepted(user, credential):
            logger.warning(f"Login failed: credential rejected for '{username}'")
            raise InvalidCredentialsError(username)

        session = Session(
            session_id=str(uuid.uuid4()),
            user_id=user.user_id,
            username=user.username,
            authenticated_at=self.directory.now(),
        )
        self.directory.update_presence(user.user_id, Presence.ONLINE)
        self._session = session

        logger.success(f"User logged in: {user.username} ({user.user_id})")
        return session

    def logout(self) -> None:
        """
        Mark the current user offline and end the session.

        Calling this while anonymous does nothing. Presence belongs to the
        user, not the connection: other controllers still logged in as the
        same user stay authenticated but see the user as offline until one
        of them calls set_status.
        """
        if self._session is None:
            return

        session = self._session
        self.directory.update_presence(session.user_id, Presence.OFFLINE)
        self._session = None

        logger.info(f"User logged out: {session.username}")

    def set_status(self, presence: Presence) -> UserRecord:
        """
        Change the current user's presence.

        Repeated identical calls are safe; see Directory.update_presence.

        Args:
            presence: New presence state

        Returns:
            Updated UserRecord

        Raises:
            UnauthenticatedError: If no session is active
        """
        session = self._require_session("set status")
        return self.directory.update_presence(session.user_id, presence)

    # ========================================================================
    # Access Evaluation
    # ========================================================================

    def reachable_views(self) -> FrozenSet[ViewId]:
        """
        Views the current identity may open.

        Returns:
            FrozenSet[ViewId]: Empty when anonymous
        """
        return reachable_views(self.identity)

    def request_view(self, view: ViewId) -> AccessDecision:
        """
        Check whether the current identity may open a view.

        Pure check: neither the session nor the directory changes.

        Args:
            view: Requested view (ViewId or its string value)

        Returns:
            AccessDecision
        """
        decision = check_view(self.identity, view)
        if not decision.granted:
            logger.warning(f"View '{decision.view.value}' denied: {decision.reason.value}")
        return decision

    def require_view(self, view: ViewId) -> UserRecord:
        """
        Like request_view, but raises on denial.

        Args:
            view: Required view (ViewId or its string value)

        Returns:
            The authenticated UserRecord

        Raises:
            UnauthenticatedError: If no session is active
            InsufficientLevelError: If the level does not reach the view
        """
        identity = self.identity
        require_view(identity, view)
        return identity

    # ========================================================================
    # Roster Queries
    # ========================================================================

    def roster(self) -> List[UserRecord]:
        """Snapshot of every user in directory order. Not gated."""
        return self.directory.list_all()

    def server_summary(self) -> ServerSummary:
        """
        Headline numbers for the main view.

        Returns:
            ServerSummary

        Raises:
            UnauthenticatedError: If no session is active
        """
        self.require_view(ViewId.MAIN)
        return summarize(self.directory.list_all())

    def leaderboard(self, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        """
        Users ranked by online time, for the statistics view.

        Args:
            limit: Maximum number of entries (None for all)

        Returns:
            List[LeaderboardEntry]

        Raises:
            UnauthenticatedError: If no session is active
            InsufficientLevelError: If the level does not reach statistics
        """
        self.require_view(ViewId.STATISTICS)
        return leaderboard(self.directory.list_all(), limit)

    def search_players(self, query: str) -> List[UserRecord]:
        """
        Case-insensitive username search, for the players view.

        Args:
            query: Substring to look for (empty matches everyone)

        Returns:
            List[UserRecord]: Matches in directory order

        Raises:
            UnauthenticatedError: If no session is active
            InsufficientLevelError: If the level does not reach players
        """
        self.require_view(ViewId.PLAYERS)
        return search_players(self.directory.list_all(), query)

    def state(self) -> DashboardState:
        """
        Snapshot of everything the presentation layer renders.

        Returns:
            DashboardState
        """
        identity = self.identity
        return DashboardState(
            session=self._session,
            identity=identity,
            views=reachable_views(identity),
            registration_enabled=self.directory.registration_enabled,
            roster=self.directory.list_all(),
        )

    # ========================================================================
    # Registration and Administration
    # ========================================================================

    def register(self, username: str, password: Optional[str] = None) -> UserRecord:
        """
        Self-register a new level 1 account.

        Args:
            username: Desired username
            password: Initial password, stored through the verifier's
                ``set_password`` (e.g. BcryptVerifier)

        Returns:
            Created UserRecord

        Raises:
            RegistrationClosedError: If registration is disabled
            DuplicateUsernameError: If the username is taken
            ValueError: If a password is given but the verifier cannot store one
        """
        if not self.directory.registration_enabled:
            logger.warning(f"Registration refused for '{username}': registration disabled")
            raise RegistrationClosedError(username)

        set_password = getattr(self.verifier, "set_password", None)
        if password is not None and set_password is None:
            raise ValueError("Configured verifier cannot store passwords")

        user = self.directory.create(username, SELF_REGISTRATION_LEVEL)
        if password is not None:
            set_password(user, password)
        return user

    def toggle_registration(self, enabled: bool) -> bool:
        """
        Open or close self-registration. Admin only.

        Args:
            enabled: Whether non-privileged callers may register

        Returns:
            The new registration state

        Raises:
            ForbiddenError: If the admin view is not granted
        """
        self._require_admin("toggle registration")
        self.directory.set_registration_enabled(enabled)
        return self.directory.registration_enabled

    def create_user(self, username: str, level: int) -> UserRecord:
        """
        Create a user with any level. Admin only.

        The admin check runs before the directory is touched.

        Args:
            username: Unique username (case-insensitive)
            level: Privilege level (1-10)

        Returns:
            Created UserRecord

        Raises:
            ForbiddenError: If the admin view is not granted
            DuplicateUsernameError: If the username is taken
            InvalidLevelError: If level is outside 1-10
        """
        self._require_admin("create user")
        return self.directory.create(username, level)

    def update_level(self, user_id: str, level: int) -> UserRecord:
        """
        Change another user's privilege level. Admin only.

        Args:
            user_id: User to update
            level: New privilege level (1-10)

        Returns:
            Updated UserRecord

        Raises:
            ForbiddenError: If the admin view is not granted
            NotFoundError: If user_id is unknown
            InvalidLevelError: If level is outside 1-10
        """
        self._require_admin("update level")
        return self.directory.set_level(user_id, level)

    def _require_session(self, action: str) -> Session:
        if self._session is None:
            raise UnauthenticatedError(action)
        return self._session

    def _require_admin(self, action: str) -> UserRecord:
        identity = self.identity
        decision = check_view(identity, ViewId.ADMIN)
        if not decision.granted:
            user_id = identity.user_id if identity else None
            logger.warning(f"Admin action '{action}' denied for {user_id or 'anonymous'}")
            raise ForbiddenError(action, decision.reason or ErrorKind.FORBIDDEN, user_id=user_id)
        return identity

    def _credential_accepted(self, user: UserRecord, credential: Any) -> bool:
        if self.verifier is None:
            return credential is True
        return bool(self.verifier(user, credential))
