from __future__ import annotations

import asyncio
import itertools
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

from servicecenter.common.models import CallRecord, ServiceRecord, Vehicle
from servicecenter.core.cache import TTLCache
from servicecenter.core.config import settings
from servicecenter.db.client import db

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Everything the analytics engine reads for one user, fetched in one go."""

    user_id: str
    version: int
    vehicles: Tuple[Vehicle, ...]
    records: Tuple[ServiceRecord, ...]
    call_record_count: int


snapshot_cache = TTLCache(settings.analytics.cache_ttl_seconds)
view_cache = TTLCache(settings.analytics.cache_ttl_seconds)
_versions = itertools.count(1)
_snapshot_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)


async def fetch_vehicles(user_id: str) -> List[Vehicle]:
    rows = await db.vehicle.find_many(where={"user_id": user_id}, order={"created_at": "desc"})
    return [Vehicle.model_validate(row) for row in rows]


async def fetch_service_records(user_id: str, vehicle_id: Optional[str] = None) -> List[ServiceRecord]:
    where: dict[str, Any] = {"user_id": user_id}
    if vehicle_id:
        where["vehicle_id"] = vehicle_id
    rows = await db.servicerecord.find_many(where=where, order={"date": "desc"})
    return [ServiceRecord.model_validate(row) for row in rows]


async def fetch_call_records(user_id: str) -> List[CallRecord]:
    rows = await db.callrecord.find_many(where={"user_id": user_id}, order={"created_at": "desc"})
    return [CallRecord.model_validate(row) for row in rows]


async def load_snapshot(user_id: str) -> Snapshot:
    """Return the user's cached snapshot, refetching once it has gone stale."""

    cached = snapshot_cache.get((user_id,))
    if cached is not None:
        return cached

    # Concurrent misses for one user share a single fetch.
    async with _snapshot_locks[user_id]:
        cached = snapshot_cache.get((user_id,))
        if cached is not None:
            return cached

        await db.connect()
        try:
            vehicles = await fetch_vehicles(user_id)
            records = await fetch_service_records(user_id)
            call_count = await db.callrecord.count(where={"user_id": user_id})
        finally:
            await db.disconnect()

        snapshot = Snapshot(
            user_id=user_id,
            version=next(_versions),
            vehicles=tuple(vehicles),
            records=tuple(records),
            call_record_count=call_count,
        )
        # Views built from older versions can never be hit again.
        view_cache.invalidate(user_id)
        snapshot_cache.set((user_id,), snapshot)

    logger.debug(
        "Loaded snapshot v%s for %s: %d vehicles, %d records",
        snapshot.version,
        user_id,
        len(vehicles),
        len(records),
    )
    return snapshot


def cached_view(
    snapshot: Snapshot,
    name: str,
    params: Tuple[Hashable, ...],
    builder: Callable[[], Any],
) -> Any:
    """Memoize a derived view on ``(user, snapshot version, view name, params)``."""

    return view_cache.get_or_set((snapshot.user_id, snapshot.version, name, params), builder)


def invalidate_snapshot(user_id: str) -> None:
    snapshot_cache.invalidate(user_id)
    view_cache.invalidate(user_id)
