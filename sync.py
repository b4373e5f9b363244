"""
Offline-first sync orchestration.

SyncOrchestrator owns the in-memory merged hotspot set and moves between
four states:

    synced  --connectivity lost-->  offline  --connectivity back-->  syncing
    syncing --fetch ok-->  synced      syncing --fetch failed-->  error
    error   --connectivity lost-->  offline

A cycle is fetch -> merge -> persist -> stamp last_sync. The cache is only
written after a complete fetch and merge, in a single transaction, so a
failed fetch leaves the persisted copy exactly as it was. Transport and
storage failures become status values; nothing here raises to the caller.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional

from errors import TransportError
from hotspots import Category, MergedHotspots, PointOfInterest, Provenance
from merge import merge_hotspots, records_to_persist
from models import LocalCacheStore
from presets import PRESET_HOTSPOTS
from remote_source import RemoteHotspotSource
from sync_trace import traced
from temporal import Clock

logger = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    SYNCED = "synced"
    SYNCING = "syncing"
    OFFLINE = "offline"
    ERROR = "error"


def _to_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def filter_hotspots(
    points: Iterable[PointOfInterest],
    category=None,
    area: Optional[str] = None,
    safe_only: bool = False,
) -> List[PointOfInterest]:
    """Narrow a hotspot list by category, area and safety flag."""
    cat = Category.parse(category) if category else None
    result = []
    for poi in points:
        if cat is not None and poi.category is not cat:
            continue
        if area and poi.area != area:
            continue
        if safe_only and not poi.is_safe_zone:
            continue
        result.append(poi)
    return result


class SyncOrchestrator:
    def __init__(
        self,
        cache: LocalCacheStore,
        remote: RemoteHotspotSource,
        presets: Iterable[PointOfInterest] = PRESET_HOTSPOTS,
        is_online: bool = True,
        clock: Optional[Clock] = None,
    ):
        self.cache = cache
        self.remote = remote
        self.presets = list(presets)
        self.is_online = is_online
        self._clock = clock or datetime.now

        self.status = SyncStatus.SYNCED
        self._points: List[PointOfInterest] = list(self.presets)
        self._remote_points: List[PointOfInterest] = []
        self._last_sync_ms: Optional[int] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> SyncStatus:
        """Load persisted state, then either go offline or run the first fetch."""
        self._last_sync_ms = self.cache.get_last_sync()
        if not self.is_online:
            self._enter_offline()
            return self.status
        return self.sync()

    def set_connectivity(self, is_online: bool) -> SyncStatus:
        was_online = self.is_online
        self.is_online = bool(is_online)
        if was_online and not self.is_online:
            logger.info("[sync] connectivity lost (was %s)", self.status.value)
            self._enter_offline()
        elif not was_online and self.is_online:
            logger.info("[sync] connectivity regained, fetching")
            self.sync()
        return self.status

    def force_sync(self) -> bool:
        """User-triggered sync. Ignored while offline."""
        if not self.is_online:
            logger.info("[sync] force sync ignored while offline")
            return False
        self.sync()
        return self.status is SyncStatus.SYNCED

    # ------------------------------------------------------------------
    # Sync cycle
    # ------------------------------------------------------------------

    def sync(self) -> SyncStatus:
        if not self.is_online:
            self._enter_offline()
            return self.status

        self.status = SyncStatus.SYNCING
        with traced("sync") as trace:
            try:
                with trace.stage("fetch"):
                    remote_points = self.remote.fetch_all()
            except TransportError as e:
                logger.warning("[sync] remote fetch failed, keeping last-known data: %s", e)
                self.status = SyncStatus.ERROR
                return self.status

            with trace.stage("merge"):
                merged = merge_hotspots(self.presets, remote_points, [], is_online=True)

            with trace.stage("persist"):
                self._persist(merged)

            self._remote_points = remote_points
            self._points = merged
            self.status = SyncStatus.SYNCED
            logger.info(
                "[sync] synced %d hotspots (%d remote)", len(merged), len(remote_points)
            )
            return self.status

    def _persist(self, merged: List[PointOfInterest]) -> None:
        if not self.cache.upsert_all(records_to_persist(merged)):
            logger.warning("[sync] cache write failed; last_sync not advanced")
            return
        now_ms = _to_ms(self._clock())
        if self.cache.set_last_sync(now_ms):
            self._last_sync_ms = now_ms

    def _enter_offline(self) -> None:
        self.status = SyncStatus.OFFLINE
        cached = [record.poi for record in self.cache.get_all()]
        if cached:
            self._points = merge_hotspots(self.presets, [], cached, is_online=False)
            logger.info("[sync] offline, serving %d cached hotspots", len(self._points))
        else:
            self._points = merge_hotspots(self.presets, self._remote_points, [], is_online=True)
            logger.info("[sync] offline with empty cache, serving %d in-memory hotspots",
                        len(self._points))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def last_synced_at(self) -> Optional[datetime]:
        if self._last_sync_ms is None:
            return None
        return datetime.fromtimestamp(self._last_sync_ms / 1000)

    def get_merged_points_of_interest(self) -> MergedHotspots:
        points = list(self._points)
        # Offline records are all tagged CACHED; match those against the bundled catalogue.
        preset_ids = {p.id for p in self.presets if p.provenance is Provenance.PRESET}
        preset_count = sum(
            1 for p in points
            if p.provenance is Provenance.PRESET
            or (p.provenance is Provenance.CACHED and p.id in preset_ids)
        )
        return MergedHotspots(
            points=points,
            sync_status=(self.status if self.is_online else SyncStatus.OFFLINE).value,
            last_synced_at=self.last_synced_at,
            preset_count=preset_count,
            community_count=len(points) - preset_count,
            is_online=self.is_online,
        )

    def format_last_sync(self, now: Optional[datetime] = None) -> str:
        if self._last_sync_ms is None:
            return "not synced yet"
        now = now or self._clock()
        elapsed_min = (_to_ms(now) - self._last_sync_ms) // 60000
        if elapsed_min < 1:
            return "just now"
        if elapsed_min < 60:
            return f"{elapsed_min} min ago"
        hours = elapsed_min // 60
        if hours < 24:
            return f"{hours} h ago"
        return f"{hours // 24} d ago"
