"""Dashboard counters for the user table."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from resolver.dedup.detector import group_duplicates
from resolver.dedup.result import DuplicateReport
from resolver.records import ActivitySignal, UserRecord


@dataclass(frozen=True)
class UserStats:
    total_users: int
    anonymous_users: int
    active_users: int
    total_generations: int
    unique_users: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalUsers": self.total_users,
            "anonymousUsers": self.anonymous_users,
            "activeUsers": self.active_users,
            "totalGenerations": self.total_generations,
            "uniqueUsers": self.unique_users,
        }


def unique_user_count(total_users: int, report: Optional[DuplicateReport]) -> int:
    """Users left after every reported duplicate is folded into its primary."""
    if report is None:
        return total_users
    return total_users - report.total_duplicates


def compute_user_stats(
    users: Iterable[UserRecord],
    report: Optional[DuplicateReport] = None,
    now: Optional[datetime] = None,
    active_window_days: int = 30,
) -> UserStats:
    """Count users for the admin dashboard.

    A user is active when ``last_used`` falls inside the last
    ``active_window_days``. ``total_generations`` sums paid generations only.
    """
    users = list(users)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    cutoff = now - timedelta(days=active_window_days)

    return UserStats(
        total_users=len(users),
        anonymous_users=sum(1 for u in users if u.is_anonymous),
        active_users=sum(1 for u in users if u.last_used and u.last_used >= cutoff),
        total_generations=sum(u.total_paid_generation for u in users),
        unique_users=unique_user_count(len(users), report),
    )


def stats_from_records(
    users: List[UserRecord],
    signals: List[ActivitySignal],
    now: Optional[datetime] = None,
    active_window_days: int = 30,
) -> UserStats:
    """Stats including the unique-user count from a fresh duplicate pass."""
    report = group_duplicates(users, signals)
    return compute_user_stats(users, report, now=now, active_window_days=active_window_days)
