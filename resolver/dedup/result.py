"""Data classes for duplicate detection results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from resolver.records import UserRecord


@dataclass(frozen=True)
class DuplicateGroup:
    """Users sharing one identity key, ranked for merging.

    Attributes:
        group_key: The identity key the members share
            (``ip:<address>:<fingerprint>``).
        users: All members, best merge target first.
    """

    group_key: str
    users: List[UserRecord]

    @property
    def primary_user(self) -> UserRecord:
        return self.users[0]

    @property
    def duplicate_users(self) -> List[UserRecord]:
        return self.users[1:]

    @property
    def size(self) -> int:
        return len(self.users)

    def member(self, user_id: str) -> UserRecord | None:
        for user in self.users:
            if user.user_id == user_id:
                return user
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "groupKey": self.group_key,
            "users": [u.to_dict() for u in self.users],
            "primaryUser": self.primary_user.to_dict(),
            "duplicateUsers": [u.to_dict() for u in self.duplicate_users],
        }


@dataclass(frozen=True)
class DuplicateReport:
    """Every duplicate group found in one detection pass."""

    duplicate_groups: List[DuplicateGroup] = field(default_factory=list)

    @property
    def total_groups(self) -> int:
        return len(self.duplicate_groups)

    @property
    def total_duplicates(self) -> int:
        return sum(len(g.duplicate_users) for g in self.duplicate_groups)

    def get(self, group_key: str) -> DuplicateGroup | None:
        for group in self.duplicate_groups:
            if group.group_key == group_key:
                return group
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duplicateGroups": [g.to_dict() for g in self.duplicate_groups],
            "totalGroups": self.total_groups,
            "totalDuplicates": self.total_duplicates,
        }
