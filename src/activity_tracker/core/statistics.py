"""
Roster aggregation.

Pure functions over directory snapshots. Nothing here mutates records or
their order.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from .models import Presence, UserRecord


@dataclass(frozen=True)
class ServerSummary:
    """
    Headline numbers for the main view.

    Attributes:
        total_players: Number of known users
        online: Users currently online
        away: Users currently away
        offline: Users currently offline
        online_ratio: online / total_players (0.0 for an empty roster)
        average_level: Mean privilege level (0.0 for an empty roster)
    """
    total_players: int
    online: int
    away: int
    offline: int
    online_ratio: float
    average_level: float


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    user: UserRecord


def summarize(records: Sequence[UserRecord]) -> ServerSummary:
    """
    Aggregate presence counts and level average over a roster.

    Args:
        records: Roster snapshot

    Returns:
        ServerSummary
    """
    total = len(records)
    counts = {presence: 0 for presence in Presence}
    for record in records:
        counts[record.presence] += 1

    if total == 0:
        return ServerSummary(0, 0, 0, 0, 0.0, 0.0)

    return ServerSummary(
        total_players=total,
        online=counts[Presence.ONLINE],
        away=counts[Presence.AWAY],
        offline=counts[Presence.OFFLINE],
        online_ratio=counts[Presence.ONLINE] / total,
        average_level=sum(record.level for record in records) / total,
    )


def leaderboard(records: Iterable[UserRecord], limit: Optional[int] = None) -> List[LeaderboardEntry]:
    """
    Rank users by total online time, highest first.

    Ties keep roster order.

    Args:
        records: Roster snapshot
        limit: Maximum number of entries (None for all)

    Returns:
        List[LeaderboardEntry]: Entries with 1-based ranks
    """
    ranked = sorted(records, key=lambda record: record.stats.total_online_minutes, reverse=True)
    if limit is not None:
        ranked = ranked[:max(limit, 0)]
    return [LeaderboardEntry(rank=index + 1, user=record) for index, record in enumerate(ranked)]


def search_players(records: Iterable[UserRecord], query: str) -> List[UserRecord]:
    """
    Case-insensitive substring search on usernames.

    An empty query matches everyone.
    """
    needle = query.strip().casefold()
    return [record for record in records if needle in record.username.casefold()]


def format_online_time(minutes: int) -> str:
    """
    Render online time as days and remaining hours.

    Examples:
        >>> format_online_time(48563)
        '33d 17h'
        >>> format_online_time(59)
        '0d 0h'
    """
    hours = max(minutes, 0) // 60
    return f"{hours // 24}d {hours % 24}h"
