"""Health check module for verifying the store connection.

Reads one row from each configured table so that a bad URL, a bad key or a
missing table is reported before a full detection pass is attempted.
"""
from __future__ import annotations
import sys
from typing import Dict, Any, List, Tuple
from dataclasses import dataclass, field

import requests

from resolver.config import get_config
from resolver.utils.logger import log_info, log_error


@dataclass
class HealthCheckResult:
    """Result of a single health check."""
    service: str
    healthy: bool
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service": self.service,
            "healthy": self.healthy,
            "message": self.message,
            "details": dict(self.details),
        }


def check_table(table: str) -> HealthCheckResult:
    """Check that ``table`` is readable through the Supabase REST API.

    Returns:
        HealthCheckResult with connection status
    """
    service = f"Supabase:{table}"
    config = get_config()

    missing = []
    if not config.supabase_url:
        missing.append("SUPABASE_URL")
    if not config.supabase_service_role_key:
        missing.append("SUPABASE_SERVICE_ROLE_KEY")
    if missing:
        return HealthCheckResult(
            service=service,
            healthy=False,
            message=f"Missing: {', '.join(missing)}"
        )

    headers = {
        "apikey": config.supabase_service_role_key,
        "Authorization": f"Bearer {config.supabase_service_role_key}",
        "Accept-Profile": config.supabase_schema,
    }

    try:
        response = requests.get(
            config.rest_url(table),
            headers=headers,
            params={"select": "user_id", "limit": 1},
            timeout=10,
        )
    except requests.RequestException as e:
        error_msg = str(e)
        if len(error_msg) > 100:
            error_msg = error_msg[:100] + "..."
        return HealthCheckResult(
            service=service,
            healthy=False,
            message=f"Connection failed: {error_msg}"
        )

    if response.status_code == 200:
        return HealthCheckResult(
            service=service,
            healthy=True,
            message=f"Connected ({table})",
            details={"table": table, "schema": config.supabase_schema}
        )
    elif response.status_code in (401, 403):
        return HealthCheckResult(
            service=service,
            healthy=False,
            message="Authentication failed (check SUPABASE_SERVICE_ROLE_KEY)"
        )
    elif response.status_code == 404:
        return HealthCheckResult(
            service=service,
            healthy=False,
            message=f"Table not found: {table}"
        )
    return HealthCheckResult(
        service=service,
        healthy=False,
        message=f"API returned {response.status_code}"
    )


def run_health_checks(verbose: bool = True) -> Tuple[bool, List[HealthCheckResult]]:
    """Run all health checks.

    Args:
        verbose: If True, print results to stdout

    Returns:
        Tuple of (all_healthy, list of results)
    """
    config = get_config()
    results = []

    if verbose:
        print("\n🔍 Running health checks...\n")

    for table in (config.users_table, config.activity_table):
        if verbose:
            print(f"  Checking table {table}...", end=" ", flush=True)
        result = check_table(table)
        results.append(result)
        if verbose:
            icon = "✓" if result.healthy else "✗"
            print(f"{icon} {result.message}")

    all_healthy = all(r.healthy for r in results)

    if verbose:
        print()
        if all_healthy:
            print("✅ Store ready!\n")
        else:
            failed = [r.service for r in results if not r.healthy]
            print(f"❌ Health check failed for: {', '.join(failed)}\n")

    # Log results
    for result in results:
        if result.healthy:
            log_info(f"Health check passed: {result.service}", **result.details)
        else:
            log_error(f"Health check failed: {result.service}", message=result.message)

    return all_healthy, results


if __name__ == "__main__":
    # Allow running directly: python -m resolver.healthcheck
    from dotenv import load_dotenv
    load_dotenv()

    all_healthy, _ = run_health_checks()
    sys.exit(0 if all_healthy else 1)
