"""
Unit tests for roster aggregation.
"""

import pytest

from activity_tracker.core import (
    Presence,
    UserRecord,
    UserStats,
    format_online_time,
    leaderboard,
    search_players,
    summarize,
)


def make_user(user_id, username, level, presence=Presence.OFFLINE, minutes=0):
    return UserRecord(
        user_id=user_id,
        username=username,
        level=level,
        presence=presence,
        stats=UserStats(total_online_minutes=minutes),
    )


@pytest.fixture
def roster():
    return [
        make_user("1", "AdminPro", 10, Presence.ONLINE, 48563),
        make_user("2", "Player007", 7, Presence.ONLINE, 25420),
        make_user("3", "NoviceGamer", 3, Presence.AWAY, 5200),
        make_user("4", "ElitePlayer", 9, Presence.OFFLINE, 38900),
    ]


class TestSummarize:
    """Test server summary aggregation."""

    def test_counts(self, roster):
        """Test presence counts, ratio and average level."""
        summary = summarize(roster)

        assert summary.total_players == 4
        assert summary.online == 2
        assert summary.away == 1
        assert summary.offline == 1
        assert summary.online_ratio == pytest.approx(0.5)
        assert summary.average_level == pytest.approx(7.25)

    def test_empty_roster(self):
        """Test that an empty roster yields zeros instead of dividing by zero."""
        summary = summarize([])

        assert summary.total_players == 0
        assert summary.online_ratio == 0.0
        assert summary.average_level == 0.0


class TestLeaderboard:
    """Test ranking by online time."""

    def test_order_and_ranks(self, roster):
        """Test that users are ranked by total online minutes."""
        entries = leaderboard(roster)

        assert [entry.user.username for entry in entries] == [
            "AdminPro", "ElitePlayer", "Player007", "NoviceGamer",
        ]
        assert [entry.rank for entry in entries] == [1, 2, 3, 4]

    def test_does_not_reorder_input(self, roster):
        """Test that the input roster keeps its order."""
        leaderboard(roster)

        assert [user.user_id for user in roster] == ["1", "2", "3", "4"]

    def test_limit(self, roster):
        """Test that limit truncates the ranking."""
        assert len(leaderboard(roster, limit=2)) == 2
        assert leaderboard(roster, limit=0) == []

    def test_ties_keep_roster_order(self):
        """Test that equal online time keeps roster order."""
        users = [make_user("a", "First", 1, minutes=10), make_user("b", "Second", 1, minutes=10)]

        assert [entry.user.user_id for entry in leaderboard(users)] == ["a", "b"]


class TestSearchPlayers:
    """Test username search."""

    def test_case_insensitive_substring(self, roster):
        """Test that search matches substrings ignoring case."""
        assert [user.username for user in search_players(roster, "PLAYER")] == [
            "Player007", "ElitePlayer",
        ]

    def test_empty_query_matches_all(self, roster):
        """Test that an empty query returns everyone."""
        assert len(search_players(roster, "  ")) == 4

    def test_no_match(self, roster):
        """Test that unmatched queries return nothing."""
        assert search_players(roster, "zzz") == []


class TestFormatOnlineTime:
    """Test online time rendering."""

    @pytest.mark.parametrize(
        "minutes,expected",
        [(0, "0d 0h"), (59, "0d 0h"), (60, "0d 1h"), (1440, "1d 0h"), (48563, "33d 17h"), (-5, "0d 0h")],
    )
    def test_format(self, minutes, expected):
        """Test days and remaining hours."""
        assert format_online_time(minutes) == expected
