"""DogStatsD counters, gauges and timings for resolver runs.

Nothing is sent unless METRICS_ENABLED=true. If the DogStatsD client cannot
be built the module quietly falls back to a null client, so callers never
need to guard their calls.

Every metric carries ``service:<METRICS_SERVICE>`` and ``env:<METRICS_ENV>``
plus any per-call tags:
  - resolver.store.fetch_duration   (timing, ms; tagged with table)
  - resolver.store.rows_fetched     (count; tagged with table)
  - resolver.store.fetch_failed     (count; tagged with table)
  - resolver.duplicates.groups      (gauge)
  - resolver.duplicates.users       (gauge)
"""

from __future__ import annotations

import atexit
from typing import Any, Dict, List, Optional

from resolver.utils.logger import log_debug, log_info, log_warning


class _NoOpStatsd:
    """Null client used while metrics are off."""

    def increment(self, *a, **kw):
        pass

    def gauge(self, *a, **kw):
        pass

    def timing(self, *a, **kw):
        pass

    def close(self):
        pass


_client = None


def _constant_tags(config: Any) -> List[str]:
    """Tags attached to every metric this process sends."""
    return _tags({"service": config.metrics_service, "env": config.metrics_env})


def _init_client() -> None:
    global _client
    if _client is not None:
        return

    from resolver.config import get_config

    config = get_config()
    if not config.metrics_enabled:
        log_debug("Metrics disabled", setting="METRICS_ENABLED")
        _client = _NoOpStatsd()
        return

    constant_tags = _constant_tags(config)
    try:
        from datadog import DogStatsd

        client = DogStatsd(
            host=config.dd_agent_host,
            port=config.dd_agent_port,
            namespace=config.metrics_prefix,
            constant_tags=constant_tags,
        )
    except Exception as exc:
        log_warning("DogStatsD unavailable, metrics disabled", error=str(exc))
        _client = _NoOpStatsd()
        return

    atexit.register(client.close)
    _client = client
    log_info(
        "Sending metrics to DogStatsD",
        agent=f"{config.dd_agent_host}:{config.dd_agent_port}",
        namespace=config.metrics_prefix,
        tags=",".join(constant_tags),
    )


def _get_client():
    if _client is None:
        _init_client()
    return _client


def _tags(extra: Optional[Dict[str, Any]] = None) -> List[str]:
    """``key:value`` strings for every pair with a truthy value."""
    return [f"{k}:{v}" for k, v in (extra or {}).items() if v]


def incr(metric: str, value: int = 1, **tags) -> None:
    _get_client().increment(metric, value=value, tags=_tags(tags) or None)


def gauge(metric: str, value: float, **tags) -> None:
    _get_client().gauge(metric, value=value, tags=_tags(tags) or None)


def timing(metric: str, value_ms: float, **tags) -> None:
    """Record a duration in milliseconds."""
    _get_client().timing(metric, value=value_ms, tags=_tags(tags) or None)
