"""
Merging bundled presets, remote records and the offline cache into one
hotspot set keyed by id.
"""

import logging
from typing import Dict, Iterable, List

from hotspots import PointOfInterest, Provenance

logger = logging.getLogger(__name__)


def dedupe_by_id(records: Iterable[PointOfInterest]) -> List[PointOfInterest]:
    """Drop later duplicates of an id, keeping first-seen order."""
    seen = set()
    unique = []
    for poi in records:
        if poi.id in seen:
            continue
        seen.add(poi.id)
        unique.append(poi)
    return unique


def merge_hotspots(
    presets: Iterable[PointOfInterest],
    remote: Iterable[PointOfInterest],
    cached: Iterable[PointOfInterest],
    is_online: bool,
) -> List[PointOfInterest]:
    """Combine the three sources into the set the app should show.

    Offline with a non-empty cache: the cache alone, deduplicated and
    tagged CACHED. Otherwise presets first, then remote records. A remote
    record replaces an earlier entry with the same id unless that entry
    is a preset.
    """
    cached = list(cached or ())
    if not is_online and cached:
        return [poi.with_provenance(Provenance.CACHED) for poi in dedupe_by_id(cached)]

    merged: Dict[str, PointOfInterest] = {}
    for poi in presets or ():
        merged[poi.id] = poi

    shadowed = 0
    for poi in remote or ():
        existing = merged.get(poi.id)
        if existing is not None and existing.provenance is Provenance.PRESET:
            shadowed += 1
            continue
        merged[poi.id] = poi

    if shadowed:
        logger.debug("[merge] %d remote records shadowed by presets", shadowed)
    return list(merged.values())


def records_to_persist(merged: Iterable[PointOfInterest]) -> List[PointOfInterest]:
    """The online merged set as written to the cache.

    Records keep their preset/remote provenance on disk so a later offline
    session can still tell them apart; CACHED is applied on the way out.
    """
    return [poi for poi in merged if poi.provenance is not Provenance.CACHED]
