"""
Concurrent data collection.

``collect_data_packet()`` submits the five provider fetches to a thread pool
at once and joins on all of them before building the ``DataPacket``.
Each fetch runs in a copy of the caller's ``contextvars`` context so log
records keep the run-context fields.

Failure handling
----------------
A source that raises, times out in its own client, or returns a payload of
the wrong shape (a list where one record is expected, or the reverse) or one
that fails validation is logged at ERROR and replaced by its empty value
(``None``, or ``()`` for insights).  One bad source never fails the join.
Only an error outside the per-source wrappers (e.g. the packet itself failing
to build) propagates, and the orchestrator treats that as fatal.
"""

from __future__ import annotations

import contextvars
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Any, Callable, Optional

from pydantic import BaseModel

from wealth_strategist.aggregation.providers import DataProviders
from wealth_strategist.errors import DataSourceError
from wealth_strategist.models.snapshot import (
    DataPacket,
    HealthMetrics,
    Insight,
    RelationalGraph,
    Snapshot,
    UserPreferences,
)
from wealth_strategist.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

SOURCE_NAMES: tuple[str, ...] = (
    "snapshot", "insights", "health", "relationships", "preferences",
)

# Sources whose payload is a list of records rather than one record.
LIST_SOURCES: frozenset[str] = frozenset({"insights"})


def collect_data_packet(
    user_id: str,
    providers: DataProviders,
    max_workers: int = len(SOURCE_NAMES),
    now: Optional[datetime] = None,
) -> DataPacket:
    """Fetch every source concurrently and assemble a ``DataPacket``.

    Args:
        user_id:     User whose data to fetch.
        providers:   The five source providers.
        max_workers: Thread pool size (at most 5 are ever busy).
        now:         Packet timestamp; defaults to the current UTC time.

    Returns:
        Immutable ``DataPacket``; unavailable sources are ``None`` / empty.
    """
    fetchers: dict[str, tuple[Callable[[str], Any], type[BaseModel]]] = {
        "snapshot":      (providers.snapshot.fetch_snapshot, Snapshot),
        "insights":      (providers.insights.fetch_insights, Insight),
        "health":        (providers.health.fetch_health, HealthMetrics),
        "relationships": (providers.relationships.fetch_relationships, RelationalGraph),
        "preferences":   (providers.preferences.fetch_preferences, UserPreferences),
    }

    t0 = time.monotonic()
    results: dict[str, Any] = {}
    workers = max(1, min(max_workers, len(fetchers)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="collect") as pool:
        futures = {
            pool.submit(contextvars.copy_context().run, _fetch_source, name, fetch, model, user_id): name
            for name, (fetch, model) in fetchers.items()
        }
        for future in as_completed(futures):
            results[futures[future]] = future.result()

    available = [name for name in SOURCE_NAMES if results.get(name)]
    logger.info(
        "Collected data for user=%s | sources=%d/%d (%s) | %.0f ms",
        user_id, len(available), len(SOURCE_NAMES), ", ".join(available) or "none",
        (time.monotonic() - t0) * 1000,
    )

    return DataPacket(
        user_id=user_id,
        snapshot=results.get("snapshot"),
        insights=results.get("insights") or (),
        health=results.get("health"),
        relationships=results.get("relationships"),
        preferences=results.get("preferences"),
        timestamp=now or utcnow(),
    )


def _fetch_source(
    name: str,
    fetch: Callable[[str], Any],
    model: type[BaseModel],
    user_id: str,
) -> Any:
    """Run one provider call; never raises."""
    try:
        return _coerce(name, fetch(user_id), model)
    except Exception as exc:
        logger.error("Data source '%s' unavailable for user=%s: %s", name, user_id, exc)
        return () if name == "insights" else None


def _coerce(name: str, payload: Any, model: type[BaseModel]) -> Any:
    """Validate a provider payload into its model.

    Insights must be a list of records and come back as a tuple of models;
    every other source must be a single record.  Any other shape raises
    ``DataSourceError`` so the caller degrades the source.
    """
    if payload is None:
        return None
    if name in LIST_SOURCES:
        if not isinstance(payload, (list, tuple)):
            raise DataSourceError(
                f"Source '{name}' returned {type(payload).__name__}, expected a list "
                f"of {model.__name__}."
            )
        return tuple(
            item if isinstance(item, model) else model.model_validate(item)
            for item in payload
        )
    if isinstance(payload, model):
        return payload
    if isinstance(payload, dict):
        return model.model_validate(payload)
    raise DataSourceError(
        f"Source '{name}' returned {type(payload).__name__}, expected dict or "
        f"{model.__name__}."
    )
