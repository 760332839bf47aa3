"""
Activity tracker data models.

Data classes for user records, presence, statistics and sessions.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional


class Presence(str, Enum):
    """
    Live presence state of a user.
    """
    ONLINE = "online"
    AWAY = "away"
    OFFLINE = "offline"


@dataclass
class UserStats:
    """
    Activity counters for one user.

    Attributes:
        total_online_minutes: Accumulated minutes spent online
        session_count: Number of online periods started
        last_seen: Timestamp of the last presence transition
    """
    total_online_minutes: int = 0
    session_count: int = 0
    last_seen: Optional[datetime] = None


@dataclass
class UserRecord:
    """
    User account as held by the directory.

    Attributes:
        user_id: Unique user identifier, immutable
        username: Login handle, unique case-insensitively
        level: Privilege level (1-10)
        presence: Current presence state
        stats: Activity counters
        online_since: When the current online period started (None if not online)
    """
    user_id: str
    username: str
    level: int
    presence: Presence = Presence.OFFLINE
    stats: UserStats = field(default_factory=UserStats)
    online_since: Optional[datetime] = None

    @property
    def is_online(self) -> bool:
        return self.presence is Presence.ONLINE

    def copy(self) -> "UserRecord":
        """Detached snapshot; mutating it never touches the directory."""
        return replace(self, stats=replace(self.stats))


@dataclass(frozen=True)
class Session:
    """
    Active authenticated session.

    Attributes:
        session_id: Unique session identifier
        user_id: User who owns this session
        username: Username as stored in the directory
        authenticated_at: Login timestamp
    """
    session_id: str
    user_id: str
    username: str
    authenticated_at: datetime
