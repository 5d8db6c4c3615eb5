"""Async HTTP client for the Supabase REST API using httpx.

Lets the resolver read the user and activity tables concurrently.
Uses connection pooling; open it with ``async with``.
"""
from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import httpx

from resolver import metrics
from resolver.config import get_config
from resolver.errors import UpstreamFetchError
from resolver.records import ActivitySignal, UserRecord
from resolver.store.client import (
    RANGE_NOT_SATISFIABLE,
    activity_query,
    check_page,
    users_query,
)
from resolver.utils.logger import log_api_response, log_debug, log_error


class AsyncStoreClient:
    """Async Supabase client with connection pooling."""

    def __init__(self):
        """Initialize async client with configuration."""
        self.config = get_config()
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Context manager entry - creates HTTP client."""
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(float(self.config.store_timeout)),
            limits=httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10
            )
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - closes HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _headers(self, offset: int, limit: int) -> Dict[str, str]:
        """Generate auth and paging headers.

        Returns:
            Headers dictionary with the service-role key
        """
        return {
            "apikey": self.config.supabase_service_role_key,
            "Authorization": f"Bearer {self.config.supabase_service_role_key}",
            "Accept": "application/json",
            "Accept-Profile": self.config.supabase_schema,
            "Range-Unit": "items",
            "Range": f"{offset}-{offset + limit - 1}",
        }

    def is_configured(self) -> bool:
        """Check if Supabase is properly configured.

        Returns:
            True if all required config present
        """
        return all([
            self.config.supabase_url,
            self.config.supabase_service_role_key,
        ])

    async def fetch_rows(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        """Read every row of ``table`` matching ``params``.

        Args:
            table: Table name exposed through PostgREST
            params: PostgREST query parameters

        Returns:
            All rows, in store order

        Raises:
            UpstreamFetchError: on any failure; no partial result is returned
        """
        if not self.is_configured():
            raise UpstreamFetchError("Supabase store is not configured", table=table)

        if not self._client:
            raise UpstreamFetchError(
                "AsyncStoreClient not initialized - use 'async with' context", table=table
            )

        url = self.config.rest_url(table)
        page_size = self.config.store_page_size
        rows: List[Dict[str, Any]] = []
        offset = 0
        started = time.perf_counter()

        while True:
            try:
                resp = await self._client.get(
                    url,
                    headers=self._headers(offset, page_size),
                    params=params,
                )
                if resp.status_code == RANGE_NOT_SATISFIABLE and offset > 0:
                    break
                resp.raise_for_status()
                page = check_page(table, resp.json())
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                log_error("Store async read failed", table=table, error=str(e), status_code=status)
                metrics.incr("store.fetch_failed", table=table)
                raise UpstreamFetchError(str(e), table=table, status_code=status) from e
            except httpx.HTTPError as e:
                log_error("Store async read failed", table=table, error=str(e))
                metrics.incr("store.fetch_failed", table=table)
                raise UpstreamFetchError(str(e), table=table) from e
            except ValueError as e:
                log_error("Store returned an undecodable body", table=table, error=str(e))
                metrics.incr("store.fetch_failed", table=table)
                raise UpstreamFetchError(f"Invalid response from {table}: {e}", table=table) from e

            log_debug("Store page fetched (async)", table=table, offset=offset, rows=len(page))
            if not page:
                break
            rows.extend(page)
            offset += len(page)

        elapsed_ms = (time.perf_counter() - started) * 1000
        log_api_response(f"Supabase read {table} (async)", 200, {"rows": len(rows)})
        metrics.timing("store.fetch_duration", elapsed_ms, table=table)
        metrics.incr("store.rows_fetched", len(rows), table=table)
        return rows

    async def fetch_users(self) -> List[UserRecord]:
        rows = await self.fetch_rows(self.config.users_table, users_query())
        return [UserRecord.from_row(row) for row in rows]

    async def fetch_activity_signals(self) -> List[ActivitySignal]:
        rows = await self.fetch_rows(self.config.activity_table, activity_query())
        return [ActivitySignal.from_row(row) for row in rows]
