"""Orchestrator for duplicate-user detection.

``group_duplicates`` is the pure pipeline: map users to their first activity
signal, partition by identity key, drop singletons, rank each group.
``DuplicateResolver`` wraps it with the two store reads; if either read
fails the whole pass fails and nothing is reported.
"""

from __future__ import annotations

import asyncio
from typing import Any, Iterable, List, Optional, Tuple

from resolver import metrics
from resolver.dedup.grouping import build_signal_map, partition_users
from resolver.dedup.ordering import rank_members
from resolver.dedup.result import DuplicateGroup, DuplicateReport
from resolver.errors import GroupNotFoundError, MissingInputError
from resolver.records import ActivitySignal, UserRecord
from resolver.store import client as store_client
from resolver.store.async_client import AsyncStoreClient
from resolver.utils.logger import log_debug, log_duplicate_report


def group_duplicates(
    users: Iterable[UserRecord], signals: Iterable[ActivitySignal]
) -> DuplicateReport:
    """Build the duplicate report from already-fetched records.

    Args:
        users: Every user record, in store order.
        signals: Activity rows with a non-null IP, in store order.

    Returns:
        ``DuplicateReport`` holding only groups of two or more users, in the
        order their first member was seen.
    """
    signal_map = build_signal_map(signals)
    groups = partition_users(users, signal_map)
    log_debug(
        "Users partitioned by identity key",
        signals=len(signal_map),
        groups=len(groups),
    )

    duplicate_groups = [
        DuplicateGroup(group_key=key, users=rank_members(members))
        for key, members in groups.items()
        if len(members) > 1
    ]
    return DuplicateReport(duplicate_groups=duplicate_groups)


def require_group_key(group_key: Optional[str]) -> str:
    if group_key is None or not str(group_key).strip():
        raise MissingInputError("Group key is required")
    return str(group_key)


def select_group(report: DuplicateReport, group_key: str) -> DuplicateGroup:
    group = report.get(group_key)
    if group is None:
        raise GroupNotFoundError(group_key)
    return group


class DuplicateResolver:
    """Detect duplicate users from the live stores.

    Args:
        store: Object exposing ``fetch_users()`` and
            ``fetch_activity_signals()``. Defaults to the synchronous
            Supabase client module.
        async_store: Object exposing the same two methods as coroutines,
            used by the async path. When omitted a live
            ``AsyncStoreClient`` is opened per call.

    Usage::

        resolver = DuplicateResolver()
        report = resolver.detect()
        for group in report.duplicate_groups:
            ...
    """

    def __init__(self, store: Optional[Any] = None, async_store: Optional[Any] = None):
        self.store = store if store is not None else store_client
        self.async_store = async_store

    def fetch(self) -> Tuple[List[UserRecord], List[ActivitySignal]]:
        """Read the user table, then the activity table."""
        users = list(self.store.fetch_users())
        signals = list(self.store.fetch_activity_signals())
        return users, signals

    async def fetch_async(
        self, client: Optional[AsyncStoreClient] = None
    ) -> Tuple[List[UserRecord], List[ActivitySignal]]:
        """Read both tables concurrently.

        Args:
            client: An open ``AsyncStoreClient`` (or any async store). Falls
                back to ``async_store``, then to a client opened for the
                duration of the call.
        """
        client = client if client is not None else self.async_store
        if client is None:
            async with AsyncStoreClient() as owned:
                return await self.fetch_async(owned)

        users, signals = await asyncio.gather(
            client.fetch_users(),
            client.fetch_activity_signals(),
        )
        return list(users), list(signals)

    def detect(self) -> DuplicateReport:
        """Fetch both tables and build the report.

        Raises:
            UpstreamFetchError: if either read fails.
        """
        return self._finish(*self.fetch())

    async def detect_async(self, client: Optional[AsyncStoreClient] = None) -> DuplicateReport:
        """Same as ``detect`` with both reads issued concurrently."""
        return self._finish(*await self.fetch_async(client))

    def find_group(self, group_key: Optional[str]) -> DuplicateGroup:
        """Recompute the report and return the group with ``group_key``.

        Raises:
            MissingInputError: if ``group_key`` is empty.
            GroupNotFoundError: if no duplicate group has that key.
            UpstreamFetchError: if either read fails.
        """
        key = require_group_key(group_key)
        return select_group(self.detect(), key)

    async def find_group_async(
        self, group_key: Optional[str], client: Optional[AsyncStoreClient] = None
    ) -> DuplicateGroup:
        key = require_group_key(group_key)
        return select_group(await self.detect_async(client), key)

    def _finish(self, users: List[UserRecord], signals: List[ActivitySignal]) -> DuplicateReport:
        report = group_duplicates(users, signals)
        log_duplicate_report(
            report.total_groups,
            report.total_duplicates,
            total_users=len(users),
        )
        metrics.gauge("duplicates.groups", report.total_groups)
        metrics.gauge("duplicates.users", report.total_duplicates)
        return report
