"""Exception types raised by the resolver.

Callers distinguish three outcomes: the upstream store failed
(``UpstreamFetchError``), the caller supplied bad input
(``MissingInputError``, ``GroupNotFoundError``), or the capability is not
built yet (``MergeNotImplementedError``).
"""

from __future__ import annotations

from typing import Optional


class ResolverError(Exception):
    """Base class for all resolver errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class UpstreamFetchError(ResolverError):
    """A read from the user or activity store failed."""

    def __init__(self, message: str, table: Optional[str] = None, status_code: Optional[int] = None):
        self.table = table
        self.status_code = status_code
        super().__init__(message)


class MissingInputError(ResolverError):
    """A required argument was absent or did not match anything usable."""


class GroupNotFoundError(ResolverError):
    """No duplicate group exists for the requested key."""

    def __init__(self, group_key: str):
        self.group_key = group_key
        super().__init__(f"No duplicate group found for key: {group_key}")


class MergeNotImplementedError(ResolverError):
    """Merging duplicate users is not available yet."""

    def __init__(
        self,
        message: str = (
            "Merge functionality not yet implemented. "
            "Please use the duplicate detection to identify groups first."
        ),
    ):
        super().__init__(message)
