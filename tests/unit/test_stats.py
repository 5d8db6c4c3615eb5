"""Unit tests for user statistics."""

from datetime import datetime, timedelta, timezone

from resolver.dedup import group_duplicates
from resolver.dedup.result import DuplicateReport
from resolver.records import UserRecord
from resolver.stats import compute_user_stats, stats_from_records, unique_user_count

NOW = datetime(2024, 6, 15, tzinfo=timezone.utc)


class TestUniqueUserCount:
    def test_without_report(self):
        assert unique_user_count(10, None) == 10

    def test_subtracts_duplicates(self, sample_users, sample_signals):
        report = group_duplicates(sample_users, sample_signals)
        assert unique_user_count(len(sample_users), report) == 2

    def test_empty_report(self):
        assert unique_user_count(3, DuplicateReport()) == 3


class TestComputeUserStats:
    def test_counts(self, sample_users):
        stats = compute_user_stats(sample_users, now=NOW)

        assert stats.total_users == 4
        assert stats.anonymous_users == 1
        assert stats.active_users == 1
        assert stats.total_generations == 7
        assert stats.unique_users == 4

    def test_active_window(self):
        users = [
            UserRecord("recent", last_used=NOW - timedelta(days=29)),
            UserRecord("stale", last_used=NOW - timedelta(days=31)),
            UserRecord("never"),
        ]

        assert compute_user_stats(users, now=NOW).active_users == 1
        assert compute_user_stats(users, now=NOW, active_window_days=60).active_users == 2

    def test_naive_now(self):
        users = [UserRecord("u", last_used=NOW - timedelta(days=1))]
        stats = compute_user_stats(users, now=NOW.replace(tzinfo=None))
        assert stats.active_users == 1

    def test_empty(self):
        stats = compute_user_stats([], now=NOW)
        assert stats.to_dict() == {
            "totalUsers": 0,
            "anonymousUsers": 0,
            "activeUsers": 0,
            "totalGenerations": 0,
            "uniqueUsers": 0,
        }


class TestStatsFromRecords:
    def test_includes_unique_users(self, sample_users, sample_signals):
        stats = stats_from_records(sample_users, sample_signals, now=NOW)

        assert stats.unique_users == 2
        assert stats.to_dict()["uniqueUsers"] == 2
        assert stats.total_users == 4
