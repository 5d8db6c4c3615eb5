"""Input records read from the user and activity stores."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from pydantic import TypeAdapter, ValidationError

from resolver.utils.logger import log_debug

# Values the user table has been seen to store for "anonymous"
_ANONYMOUS_MARKERS = {"TRUE", "true", "1"}

PROFILE_FIELDS = ("user_name", "email", "mobile_number", "city", "gender", "dob")

_DATETIME = TypeAdapter(datetime)


def coerce_anonymous(value: Any) -> bool:
    """Interpret the store's ``is_anonymous`` column.

    Booleans are taken as-is; ``1`` and the strings ``"TRUE"``, ``"true"``
    and ``"1"`` mean anonymous. Anything else, including a missing value,
    means a registered account.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value == 1
    if isinstance(value, str):
        return value in _ANONYMOUS_MARKERS
    return False


def coerce_count(value: Any) -> int:
    """Generation counters: missing or non-numeric values count as zero."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware datetime.

    Accepts Postgres ``timestamptz`` text, including fractions with trailing
    zeros dropped (``12:00:00.12345+00:00``). Naive values are assumed to be
    UTC. Returns ``None`` for missing or unparseable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = _DATETIME.validate_python(value.strip())
        except ValidationError:
            log_debug("Unparseable timestamp treated as missing", value=value)
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class UserRecord:
    """One row of the user table, with the fields ranking depends on coerced.

    Attributes:
        user_id: Primary identifier.
        is_anonymous: ``True`` for guest accounts.
        total_paid_generation: Number of paid generations.
        total_summary_generation: Number of generations overall.
        last_used: Last activity time, ``None`` when unknown.
        row: The untouched row as returned by the store.
    """

    user_id: str
    is_anonymous: bool = False
    total_paid_generation: int = 0
    total_summary_generation: int = 0
    last_used: Optional[datetime] = None
    row: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "UserRecord":
        return cls(
            user_id=str(row.get("user_id")),
            is_anonymous=coerce_anonymous(row.get("is_anonymous")),
            total_paid_generation=coerce_count(row.get("total_paid_generation")),
            total_summary_generation=coerce_count(row.get("total_summary_generation")),
            last_used=parse_timestamp(row.get("last_used")),
            row=dict(row),
        )

    def profile_value(self, name: str) -> Any:
        return self.row.get(name)

    def to_dict(self) -> Dict[str, Any]:
        """The record as the store returned it."""
        if self.row:
            return dict(self.row)
        return {
            "user_id": self.user_id,
            "is_anonymous": self.is_anonymous,
            "total_paid_generation": self.total_paid_generation,
            "total_summary_generation": self.total_summary_generation,
            "last_used": self.last_used.isoformat() if self.last_used else None,
        }


@dataclass(frozen=True)
class ActivitySignal:
    """Best-known network identity for a user."""

    user_id: str
    ip_address: Optional[str]
    device_fingerprint: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ActivitySignal":
        fingerprint = row.get("device_fingerprint")
        return cls(
            user_id=str(row.get("user_id")),
            ip_address=row.get("ip_address"),
            device_fingerprint=fingerprint if fingerprint else None,
        )
