"""
Data provider interfaces.

The pipeline depends only on these protocols.  Each ``fetch_*`` method may
return a model instance, a plain dict/list in the documented shape, or
``None`` when the source has nothing for the user.  Raising is allowed: the
collector treats any exception as "source unavailable".

``StaticDataProvider`` satisfies all five protocols from a single payload
dict, typically loaded from a JSON export::

    {
      "user_id": "u-123",
      "snapshot":      {...},   # Snapshot fields
      "insights":      [...],   # list of Insight fields
      "health":        {...},   # HealthMetrics fields
      "relationships": {...},   # RelationalGraph fields
      "preferences":   {...}    # UserPreferences fields
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol, Union

from wealth_strategist.models.snapshot import (
    HealthMetrics,
    Insight,
    RelationalGraph,
    Snapshot,
    UserPreferences,
)

logger = logging.getLogger(__name__)

Payload = Union[dict[str, Any], None]


class SnapshotProvider(Protocol):
    def fetch_snapshot(self, user_id: str) -> Union[Snapshot, Payload]: ...


class InsightsProvider(Protocol):
    def fetch_insights(self, user_id: str) -> Union[list[Insight], list[dict[str, Any]], None]: ...


class HealthProvider(Protocol):
    def fetch_health(self, user_id: str) -> Union[HealthMetrics, Payload]: ...


class RelationshipProvider(Protocol):
    def fetch_relationships(self, user_id: str) -> Union[RelationalGraph, Payload]: ...


class PreferencesProvider(Protocol):
    def fetch_preferences(self, user_id: str) -> Union[UserPreferences, Payload]: ...


@dataclass(frozen=True)
class DataProviders:
    """The five sources the aggregator fans out to."""

    snapshot: SnapshotProvider
    insights: InsightsProvider
    health: HealthProvider
    relationships: RelationshipProvider
    preferences: PreferencesProvider

    @classmethod
    def from_single(cls, provider: Any) -> "DataProviders":
        """Use one object implementing all five protocols for every source."""
        return cls(
            snapshot=provider,
            insights=provider,
            health=provider,
            relationships=provider,
            preferences=provider,
        )


class StaticDataProvider:
    """All five providers backed by an in-memory payload dict.

    The payload is not keyed by user: every ``user_id`` sees the same data.
    """

    def __init__(self, payload: dict[str, Any]) -> None:
        self._payload = payload

    @classmethod
    def from_json_file(cls, path: Path) -> "StaticDataProvider":
        """Load a packet export written as JSON.

        Raises:
            FileNotFoundError: If ``path`` does not exist.
            json.JSONDecodeError: If the file is not valid JSON.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Input file not found: {path}")
        with path.open(encoding="utf-8") as f:
            payload = json.load(f)
        logger.debug("Loaded provider payload from %s (keys=%s)", path, sorted(payload))
        return cls(payload)

    @property
    def user_id(self) -> str:
        return str(self._payload.get("user_id", "local-user"))

    def fetch_snapshot(self, user_id: str) -> Optional[dict[str, Any]]:
        return self._payload.get("snapshot")

    def fetch_insights(self, user_id: str) -> list[dict[str, Any]]:
        return list(self._payload.get("insights") or [])

    def fetch_health(self, user_id: str) -> Optional[dict[str, Any]]:
        return self._payload.get("health")

    def fetch_relationships(self, user_id: str) -> Optional[dict[str, Any]]:
        return self._payload.get("relationships")

    def fetch_preferences(self, user_id: str) -> Optional[dict[str, Any]]:
        return self._payload.get("preferences")
