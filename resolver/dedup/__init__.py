"""Duplicate-user detection for the identity resolver.

Users are grouped on the IP address and device fingerprint of the first
activity row the store returns for them;
each group is ranked so its first member is the account to keep.
"""

from resolver.records import ActivitySignal, UserRecord
from resolver.dedup.result import DuplicateGroup, DuplicateReport
from resolver.dedup.detector import DuplicateResolver, group_duplicates

__all__ = [
    "ActivitySignal",
    "DuplicateGroup",
    "DuplicateReport",
    "DuplicateResolver",
    "UserRecord",
    "group_duplicates",
]
