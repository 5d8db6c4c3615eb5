"""
Admin API routes for duplicate users.

Provides endpoints for:
- Duplicate group detection and lookup
- Merge (not yet available) and merge preview
- User statistics
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel

from resolver.config import get_config
from resolver.dedup import DuplicateResolver
from resolver.healthcheck import run_health_checks
from resolver.merge import merge_duplicates, preview_merge
from resolver.stats import stats_from_records


router = APIRouter()


# ============================================================================
# Pydantic Models
# ============================================================================

class MergeRequest(BaseModel):
    """Request to merge (or preview merging) one duplicate group."""
    groupKey: Optional[str] = None
    primaryUserId: Optional[str] = None


# ============================================================================
# Dependencies
# ============================================================================

def get_resolver() -> DuplicateResolver:
    return DuplicateResolver()


# ============================================================================
# Endpoints
# ============================================================================

@router.get("/api/admin/users/duplicates")
async def list_duplicates(resolver: DuplicateResolver = Depends(get_resolver)):
    """Detect duplicate users based on IP/device."""
    report = await resolver.detect_async()
    return {"success": True, "data": report.to_dict()}


@router.get("/api/admin/users/duplicates/group")
async def get_duplicate_group(
    group_key: Optional[str] = Query(None, alias="groupKey"),
    resolver: DuplicateResolver = Depends(get_resolver),
):
    """All users of one duplicate group."""
    group = await resolver.find_group_async(group_key)
    return {"success": True, "data": group.to_dict()}


@router.post("/api/admin/users/duplicates/merge")
async def merge_group(body: MergeRequest):
    """Merge duplicate users. Not available yet; always answers 501."""
    merge_duplicates(body.groupKey, body.primaryUserId)


@router.post("/api/admin/users/duplicates/merge/preview")
async def preview_group_merge(
    body: MergeRequest,
    resolver: DuplicateResolver = Depends(get_resolver),
):
    """Totals and profile a merge would produce, without applying it."""
    group = await resolver.find_group_async(body.groupKey)
    preview = preview_merge(group, body.primaryUserId)
    return {"success": True, "data": preview.to_dict()}


@router.get("/api/admin/users/stats")
async def user_stats(resolver: DuplicateResolver = Depends(get_resolver)):
    users, signals = await resolver.fetch_async()
    stats = stats_from_records(
        users, signals, active_window_days=get_config().active_window_days
    )
    return {"success": True, "data": stats.to_dict()}


@router.get("/health")
def health(response: Response):
    all_healthy, results = run_health_checks(verbose=False)
    if not all_healthy:
        response.status_code = 503
    return {"healthy": all_healthy, "checks": [r.to_dict() for r in results]}
