"""Primary-user selection policy.

Within a group the member to keep is, in order of precedence:

1. a registered account rather than an anonymous one,
2. the account with more paid generations,
3. the account used most recently (unknown counts as never).

``sorted`` is stable, so members that tie on all three keep the order in
which the store returned them.
"""

from __future__ import annotations

from typing import Iterable, List, Tuple

from resolver.records import UserRecord


def primary_rank_key(user: UserRecord) -> Tuple[bool, int, float]:
    last_used = user.last_used.timestamp() if user.last_used else float("-inf")
    return (user.is_anonymous, -user.total_paid_generation, -last_used)


def rank_members(users: Iterable[UserRecord]) -> List[UserRecord]:
    """Return the members best merge target first."""
    return sorted(users, key=primary_rank_key)
