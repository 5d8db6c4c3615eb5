"""Identity keys and partitioning of users into candidate groups."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from resolver.records import ActivitySignal, UserRecord

UNKNOWN_FINGERPRINT = "unknown"


def build_signal_map(signals: Iterable[ActivitySignal]) -> Dict[str, ActivitySignal]:
    """Map each user to its activity signal.

    The first row seen for a user wins; rows arrive in store order, which
    is not sorted by recency.
    """
    signal_map: Dict[str, ActivitySignal] = {}
    for signal in signals:
        if signal.user_id not in signal_map:
            signal_map[signal.user_id] = signal
    return signal_map


def identity_key(user_id: str, signal: Optional[ActivitySignal]) -> str:
    """Key users are grouped on.

    Users without a usable IP get a key of their own, so they always end up
    alone in their group.
    """
    if signal is not None and signal.ip_address:
        fingerprint = signal.device_fingerprint or UNKNOWN_FINGERPRINT
        return f"ip:{signal.ip_address}:{fingerprint}"
    return f"unique:{user_id}"


def partition_users(
    users: Iterable[UserRecord], signal_map: Dict[str, ActivitySignal]
) -> Dict[str, List[UserRecord]]:
    """Group users by identity key.

    Both the groups and the members inside each group keep first-seen order.
    """
    groups: Dict[str, List[UserRecord]] = {}
    for user in users:
        key = identity_key(user.user_id, signal_map.get(user.user_id))
        groups.setdefault(key, []).append(user)
    return groups
