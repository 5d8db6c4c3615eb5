"""Merging duplicate users.

Applying a merge is not built yet: ``merge_duplicates`` validates its input
and then always raises ``MergeNotImplementedError``. ``preview_merge`` only
computes what a merge would produce and never touches the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from resolver.dedup.detector import require_group_key
from resolver.dedup.result import DuplicateGroup
from resolver.errors import MergeNotImplementedError, MissingInputError
from resolver.records import PROFILE_FIELDS, UserRecord
from resolver.utils.logger import log_info

# Fields where the literal string "None" has been stored for missing values
_NONE_STRING_FIELDS = {"user_name", "email"}


@dataclass(frozen=True)
class MergePreview:
    """What merging a group into one primary account would produce."""

    group_key: str
    primary_user_id: str
    duplicate_user_ids: List[str]
    total_summary_generation: int
    total_paid_generation: int
    last_used: Optional[datetime]
    profile: Dict[str, Any] = field(default_factory=dict)

    @property
    def duplicate_count(self) -> int:
        return len(self.duplicate_user_ids)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "groupKey": self.group_key,
            "primaryUserId": self.primary_user_id,
            "duplicateUserIds": list(self.duplicate_user_ids),
            "duplicateCount": self.duplicate_count,
            "totalSummaryGen": self.total_summary_generation,
            "totalPaidGen": self.total_paid_generation,
            "lastUsed": self.last_used.isoformat() if self.last_used else None,
            "profile": dict(self.profile),
        }


def merge_duplicates(group_key: Optional[str], primary_user_id: Optional[str] = None) -> None:
    """Merge a duplicate group into one account.

    Raises:
        MissingInputError: if ``group_key`` is missing.
        MergeNotImplementedError: always, once the input is valid.
    """
    key = require_group_key(group_key)
    log_info("Merge requested but not available", group_key=key, primary_user_id=primary_user_id)
    raise MergeNotImplementedError()


def _has_value(name: str, value: Any) -> bool:
    if not value:
        return False
    return not (name in _NONE_STRING_FIELDS and value == "None")


def _merged_profile(primary: UserRecord, others: List[UserRecord]) -> Dict[str, Any]:
    profile = {}
    for name in PROFILE_FIELDS:
        value = primary.profile_value(name)
        if not value:
            for other in others:
                candidate = other.profile_value(name)
                if _has_value(name, candidate):
                    value = candidate
                    break
        profile[name] = value
    return profile


def preview_merge(group: DuplicateGroup, primary_user_id: Optional[str] = None) -> MergePreview:
    """Compute the merged account without applying anything.

    Args:
        group: A duplicate group from the current report.
        primary_user_id: Member to keep; defaults to the group's ranked
            primary.

    Raises:
        MissingInputError: if ``primary_user_id`` is not a member of the group.
    """
    if primary_user_id:
        primary = group.member(primary_user_id)
        if primary is None:
            raise MissingInputError("Selected primary user not found in duplicate group")
    else:
        primary = group.primary_user

    others = [u for u in group.users if u.user_id != primary.user_id]
    timestamps = [u.last_used for u in group.users if u.last_used is not None]

    return MergePreview(
        group_key=group.group_key,
        primary_user_id=primary.user_id,
        duplicate_user_ids=[u.user_id for u in others],
        total_summary_generation=sum(u.total_summary_generation for u in group.users),
        total_paid_generation=sum(u.total_paid_generation for u in group.users),
        last_used=max(timestamps) if timestamps else None,
        profile=_merged_profile(primary, others),
    )
