# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Type definitions for the quota rotation package.

This module contains the dataclasses shared by the quota store,
the credential selector and the search tool built on top of them.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


DEFAULT_DAILY_LIMIT = 100
CURRENT_SCHEMA_VERSION = "1.0.0"


def utc_today() -> str:
    """Current calendar date in UTC as YYYY-MM-DD."""
    return datetime.now(timezone.utc).date().isoformat()


def utc_now_iso() -> str:
    """Current UTC timestamp in ISO-8601 format with millisecond precision."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def _int_field(data: Dict[str, Any], name: str, default: int) -> int:
    # bool is an int subclass; JSON true/false is not a counter
    value = data.get(name, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} for {data.get('id')} is not an integer")
    return value


# =============================================================================
# ENUMS
# =============================================================================


class CallOutcome(str, Enum):
    """Classification of an upstream search call."""

    SUCCESS = "success"
    QUOTA_OR_AUTH_REJECTION = "quota_or_auth_rejection"  # Deactivates the key
    OTHER_FAILURE = "other_failure"  # Network errors, malformed responses, 5xx


# =============================================================================
# CREDENTIAL TYPES
# =============================================================================


@dataclass
class CredentialRecord:
    """
    One configured API key and its usage for the current UTC day.

    Field names are snake_case in memory; the on-disk document keeps the
    camelCase keys written by earlier installations.
    """

    id: str  # "key_1", "key_2", ... in setup order
    api_key: str
    search_engine_id: str
    daily_usage: int = 0
    daily_limit: int = DEFAULT_DAILY_LIMIT
    last_reset: str = field(default_factory=utc_today)
    is_active: bool = True

    @property
    def remaining(self) -> int:
        """Requests left today. Negative if the file was edited by hand."""
        return self.daily_limit - self.daily_usage

    @property
    def is_eligible(self) -> bool:
        """True if the key may serve a request right now."""
        return self.is_active and self.daily_usage < self.daily_limit

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "apiKey": self.api_key,
            "searchEngineId": self.search_engine_id,
            "dailyUsage": self.daily_usage,
            "dailyLimit": self.daily_limit,
            "lastReset": self.last_reset,
            "isActive": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CredentialRecord":
        """
        Build a record from its stored form.

        Raises:
            KeyError: If the id is missing
            TypeError: If a counter is not an integer or isActive is not a boolean
            ValueError: If a counter is out of range
        """
        daily_usage = _int_field(data, "dailyUsage", 0)
        daily_limit = _int_field(data, "dailyLimit", DEFAULT_DAILY_LIMIT)
        is_active = data.get("isActive", True)
        if not isinstance(is_active, bool):
            raise TypeError(f"isActive for {data['id']} is not a boolean")
        if daily_usage < 0:
            raise ValueError(f"negative dailyUsage for {data['id']}")
        if daily_limit <= 0:
            raise ValueError(f"non-positive dailyLimit for {data['id']}")

        return cls(
            id=str(data["id"]),
            api_key=str(data.get("apiKey") or ""),
            search_engine_id=str(data.get("searchEngineId") or ""),
            daily_usage=daily_usage,
            daily_limit=daily_limit,
            last_reset=str(data.get("lastReset") or ""),
            is_active=is_active,
        )


# =============================================================================
# SNAPSHOT TYPES
# =============================================================================


@dataclass(frozen=True)
class CredentialStatus:
    """Point-in-time view of one credential's quota."""

    id: str
    used: int
    limit: int
    remaining: int
    active: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "used": self.used,
            "limit": self.limit,
            "remaining": self.remaining,
            "active": self.active,
        }


@dataclass(frozen=True)
class QuotaSnapshot:
    """
    Aggregated quota status across all credentials.

    total_used is always the sum of the individual usages.
    """

    total_used: int
    total_limit: int
    keys_status: List[CredentialStatus] = field(default_factory=list)

    @classmethod
    def from_records(cls, records: List[CredentialRecord]) -> "QuotaSnapshot":
        statuses = [
            CredentialStatus(
                id=record.id,
                used=record.daily_usage,
                limit=record.daily_limit,
                remaining=record.remaining,
                active=record.is_active,
            )
            for record in records
        ]
        return cls(
            total_used=sum(status.used for status in statuses),
            total_limit=sum(status.limit for status in statuses),
            keys_status=statuses,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalUsed": self.total_used,
            "totalLimit": self.total_limit,
            "keysStatus": [status.to_dict() for status in self.keys_status],
        }


# =============================================================================
# STORAGE TYPES
# =============================================================================


@dataclass
class StoreDocument:
    """
    The persisted quota file.

    version is None when the file predates schema versioning.
    """

    keys: List[CredentialRecord] = field(default_factory=list)
    last_updated: Optional[str] = None
    version: Optional[str] = CURRENT_SCHEMA_VERSION
