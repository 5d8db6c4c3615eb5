"""HTTP client helpers for the Supabase REST (PostgREST) API.

Reads are paged with ``Range`` headers until the store returns an empty page
(or 416 past the last row). Offsets advance by the rows actually returned,
since PostgREST may cap a page below the requested size.
Unlike the best-effort helpers elsewhere in the codebase, a failed read
raises ``UpstreamFetchError``: a duplicate report built from a partial
table would be wrong, so nothing is returned at all.
"""
from __future__ import annotations

import time
from typing import Any, Dict, List

import requests
from dotenv import load_dotenv

from resolver import metrics
from resolver.config import get_config
from resolver.errors import UpstreamFetchError
from resolver.records import ActivitySignal, UserRecord
from resolver.utils.logger import log_api_response, log_debug, log_error

load_dotenv()

ACTIVITY_COLUMNS = "user_id,ip_address,device_fingerprint"
RANGE_NOT_SATISFIABLE = 416


def is_configured() -> bool:
    config = get_config()
    return all([
        config.supabase_url,
        config.supabase_service_role_key,
    ])


def _headers(offset: int = 0, limit: int | None = None) -> Dict[str, str]:
    config = get_config()
    headers = {
        "apikey": config.supabase_service_role_key,
        "Authorization": f"Bearer {config.supabase_service_role_key}",
        "Accept": "application/json",
        "Accept-Profile": config.supabase_schema,
    }
    if limit is not None:
        headers["Range-Unit"] = "items"
        headers["Range"] = f"{offset}-{offset + limit - 1}"
    return headers


def users_query() -> Dict[str, str]:
    return {"select": "*"}


def activity_query() -> Dict[str, str]:
    return {"select": ACTIVITY_COLUMNS, "ip_address": "not.is.null"}


def check_page(table: str, data: Any) -> List[Dict[str, Any]]:
    """Validate one decoded page; PostgREST returns a JSON array of rows."""
    if not isinstance(data, list):
        raise UpstreamFetchError(
            f"Unexpected response shape from {table}: expected a list of rows",
            table=table,
        )
    return data


def fetch_rows(table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
    """Read every row of ``table`` matching ``params``.

    Raises:
        UpstreamFetchError: if the store is not configured, unreachable, or
            answers with an error or a malformed body.
    """
    if not is_configured():
        raise UpstreamFetchError("Supabase store is not configured", table=table)

    config = get_config()
    url = config.rest_url(table)
    page_size = config.store_page_size
    rows: List[Dict[str, Any]] = []
    offset = 0
    pages = 0
    started = time.perf_counter()

    while True:
        try:
            resp = requests.get(
                url,
                headers=_headers(offset, page_size),
                params=params,
                timeout=config.store_timeout,
            )
            if resp.status_code == RANGE_NOT_SATISFIABLE and offset > 0:
                # Offset is past the last row
                break
            resp.raise_for_status()
            page = check_page(table, resp.json())
        except requests.RequestException as e:
            status = getattr(getattr(e, "response", None), "status_code", None)
            log_error("Store read failed", table=table, error=str(e), status_code=status)
            metrics.incr("store.fetch_failed", table=table)
            raise UpstreamFetchError(str(e), table=table, status_code=status) from e
        except ValueError as e:
            log_error("Store returned an undecodable body", table=table, error=str(e))
            metrics.incr("store.fetch_failed", table=table)
            raise UpstreamFetchError(f"Invalid response from {table}: {e}", table=table) from e

        pages += 1
        log_debug("Store page fetched", table=table, offset=offset, rows=len(page))
        # The server may cap a page below page_size (db-max-rows); only an
        # empty page marks the end.
        if not page:
            break
        rows.extend(page)
        offset += len(page)

    elapsed_ms = (time.perf_counter() - started) * 1000
    log_api_response(f"Supabase read {table}", 200, {"rows": len(rows), "pages": pages})
    metrics.timing("store.fetch_duration", elapsed_ms, table=table)
    metrics.incr("store.rows_fetched", len(rows), table=table)
    return rows


def fetch_users() -> List[UserRecord]:
    """Every user record in the user table."""
    table = get_config().users_table
    return [UserRecord.from_row(row) for row in fetch_rows(table, users_query())]


def fetch_activity_signals() -> List[ActivitySignal]:
    """Activity rows with a non-null IP, in store order."""
    table = get_config().activity_table
    return [ActivitySignal.from_row(row) for row in fetch_rows(table, activity_query())]
