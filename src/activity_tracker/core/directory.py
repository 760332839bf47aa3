"""
In-memory user directory.

Thread-safe registry of user records and their live presence state.
"""

import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from loguru import logger
from .errors import (
    DuplicateUsernameError,
    InvalidLevelError,
    InvalidUsernameError,
    NotFoundError,
)
from .models import Presence, UserRecord, UserStats

MIN_LEVEL = 1
MAX_LEVEL = 10


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def fold_username(username: str) -> str:
    """Case-folded key used by the username index."""
    return username.strip().casefold()


def validate_level(level: object) -> int:
    """
    Check that a privilege level is an integer in [1, 10].

    Raises:
        InvalidLevelError: If the level is out of range or not an integer
    """
    if isinstance(level, bool) or not isinstance(level, int):
        raise InvalidLevelError(level)
    if not MIN_LEVEL <= level <= MAX_LEVEL:
        raise InvalidLevelError(level)
    return level


class Directory:
    """
    Thread-safe user directory.

    Holds every known user record in insertion order, keyed by id, with a
    case-folded username index. All operations are protected by
    threading.RLock, so readers never observe a half-applied write.

    The directory enforces data invariants only. Access policy (who may
    create users, whether registration is open) lives in the controller.
    Every record handed out is a detached copy.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize directory.

        Args:
            clock: Callable returning the current time (default: UTC now)
        """
        self._clock = clock or utc_now
        self._lock = threading.RLock()
        self._records: Dict[str, UserRecord] = {}
        self._by_username: Dict[str, str] = {}
        self._registration_enabled = True

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._records

    def now(self) -> datetime:
        """Current time according to the directory clock."""
        return self._clock()

    # ========================================================================
    # Population
    # ========================================================================

    def seed(self, records: Iterable[UserRecord]) -> int:
        """
        Bulk-load records at startup.

        The whole batch is checked before anything is inserted, so a batch
        containing a collision leaves the directory unchanged.

        Args:
            records: Records to insert (presence and stats kept as given)

        Returns:
            Number of records inserted

        Raises:
            DuplicateUsernameError: If a username collides case-insensitively
            InvalidLevelError: If a record has a level outside 1-10
            ValueError: If a record has an unknown presence or a duplicate id
        """
        batch = [record.copy() for record in records]

        with self._lock:
            seen_names = set(self._by_username)
            seen_ids = set(self._records)
            for record in batch:
                validate_level(record.level)
                record.presence = Presence(record.presence)
                key = fold_username(record.username)
                if not key:
                    raise InvalidUsernameError(record.username)
                if key in seen_names:
                    raise DuplicateUsernameError(record.username)
                if record.user_id in seen_ids:
                    raise ValueError(f"Duplicate user id in seed: {record.user_id}")
                seen_names.add(key)
                seen_ids.add(record.user_id)

            now = self._clock()
            for record in batch:
                if record.presence is Presence.ONLINE and record.online_since is None:
                    record.online_since = now
                self._records[record.user_id] = record
                self._by_username[fold_username(record.username)] = record.user_id

        logger.info(f"Directory seeded with {len(batch)} users")
        return len(batch)

    # ========================================================================
    # User Operations
    # ========================================================================

    def create(self, username: str, level: int) -> UserRecord:
        """
        Create a new offline user with zeroed stats.

        Args:
            username: Unique username (case-insensitive)
            level: Privilege level (1-10)

        Returns:
            Created UserRecord

        Raises:
            InvalidUsernameError: If the username is blank
            DuplicateUsernameError: If the username is already taken
            InvalidLevelError: If level is outside 1-10
        """
        key = fold_username(username)
        if not key:
            raise InvalidUsernameError(username)

        with self._lock:
            if key in self._by_username:
                logger.warning(f"Create failed: username '{username}' already taken")
                raise DuplicateUsernameError(username)
            validate_level(level)

            record = UserRecord(
                user_id=str(uuid.uuid4()),
                username=username.strip(),
                level=level,
                presence=Presence.OFFLINE,
                stats=UserStats(),
            )
            self._records[record.user_id] = record
            self._by_username[key] = record.user_id

            logger.info(f"User created: {record.username} ({record.user_id}) with level {level}")
            return record.copy()

    def find_by_username(self, username: str) -> Optional[UserRecord]:
        """
        Get user by username, ignoring case.

        Args:
            username: Username to search for

        Returns:
            UserRecord if found, None otherwise
        """
        with self._lock:
            user_id = self._by_username.get(fold_username(username))
            if user_id is None:
                return None
            return self._records[user_id].copy()

    def get(self, user_id: str) -> Optional[UserRecord]:
        """
        Get user by ID.

        Args:
            user_id: User ID to search for

        Returns:
            UserRecord if found, None otherwise
        """
        with self._lock:
            record = self._records.get(user_id)
            return record.copy() if record else None

    def list_all(self) -> List[UserRecord]:
        """
        Snapshot of every record in insertion order.

        Returns:
            List of detached UserRecord copies
        """
        with self._lock:
            return [record.copy() for record in self._records.values()]

    def update_presence(self, user_id: str, presence: Presence) -> UserRecord:
        """
        Set a user's presence.

        ``last_seen`` is stamped on every call, including repeats of the
        current state. ``session_count`` grows only on a transition into
        online from another state. Leaving online adds the whole minutes
        of the finished online period to ``total_online_minutes``.

        Args:
            user_id: User to update
            presence: New presence state

        Returns:
            Updated UserRecord

        Raises:
            NotFoundError: If user_id is unknown
            ValueError: If presence is not a valid Presence value
        """
        presence = Presence(presence)

        with self._lock:
            record = self._records.get(user_id)
            if record is None:
                raise NotFoundError(user_id)

            now = self._clock()
            previous = record.presence

            if presence is Presence.ONLINE and previous is not Presence.ONLINE:
                record.stats.session_count += 1
                record.online_since = now
            elif previous is Presence.ONLINE and presence is not Presence.ONLINE:
                record.stats.total_online_minutes += self._elapsed_minutes(record.online_since, now)
                record.online_since = None

            record.presence = presence
            record.stats.last_seen = now

            logger.debug(f"Presence of {record.username}: {previous.value} -> {presence.value}")
            return record.copy()

    def set_level(self, user_id: str, level: int) -> UserRecord:
        """
        Change a user's privilege level.

        Args:
            user_id: User to update
            level: New privilege level (1-10)

        Returns:
            Updated UserRecord

        Raises:
            NotFoundError: If user_id is unknown
            InvalidLevelError: If level is outside 1-10
        """
        validate_level(level)

        with self._lock:
            record = self._records.get(user_id)
            if record is None:
                raise NotFoundError(user_id)

            previous = record.level
            record.level = level

            logger.info(f"Level of {record.username} changed: {previous} -> {level}")
            return record.copy()

    # ========================================================================
    # Registration Toggle
    # ========================================================================

    @property
    def registration_enabled(self) -> bool:
        with self._lock:
            return self._registration_enabled

    def set_registration_enabled(self, enabled: bool) -> None:
        """
        Open or close self-registration for the whole process.

        Args:
            enabled: Whether non-privileged callers may register
        """
        with self._lock:
            self._registration_enabled = bool(enabled)

        logger.info(f"Registration {'enabled' if enabled else 'disabled'}")

    @staticmethod
    def _elapsed_minutes(since: Optional[datetime], now: datetime) -> int:
        if since is None or now <= since:
            return 0
        return int((now - since).total_seconds() // 60)
