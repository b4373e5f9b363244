"""
Point-of-interest ("hotspot") data model shared by the ranking engine,
the local cache and the sync layer.

Records are immutable once built. Provenance is stored on every record
when it is created; nothing downstream infers it from the id.
"""

import math
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from geo import is_valid_coordinate
from peak_windows import parse_window


class Category(str, Enum):
    CAMPUS = "campus"
    SCHOOL = "school"
    MALL = "mall"
    FOODCOURT = "foodcourt"
    STATION = "station"
    HOSPITAL = "hospital"
    OFFICE = "office"
    TOURISM = "tourism"
    GENERAL = "general"

    @classmethod
    def parse(cls, value) -> "Category":
        """Strict lookup. Missing/empty means GENERAL, unknown raises."""
        if isinstance(value, Category):
            return value
        if value is None or str(value).strip() == "":
            return cls.GENERAL
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown hotspot category: {value!r}") from None


class Provenance(str, Enum):
    PRESET = "preset"
    REMOTE = "remote"
    CACHED = "cached"

    @property
    def rank(self) -> int:
        """Lower wins on id collision."""
        return _PROVENANCE_RANK[self]


_PROVENANCE_RANK = {
    Provenance.PRESET: 0,
    Provenance.REMOTE: 1,
    Provenance.CACHED: 2,
}


@dataclass(frozen=True)
class PointOfInterest:
    id: str
    name: str
    latitude: float
    longitude: float
    category: Category
    provenance: Provenance
    description: Optional[str] = None
    peak_hours: Tuple[str, ...] = ()
    is_safe_zone: bool = True
    verified: bool = False
    is_preset: bool = False
    upvotes: int = 0
    tips: Optional[str] = None
    area: Optional[str] = None

    @property
    def coordinates(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)

    def has_valid_coordinates(self) -> bool:
        return is_valid_coordinate(self.latitude, self.longitude)

    def with_provenance(self, provenance: Provenance) -> "PointOfInterest":
        return replace(self, provenance=provenance)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "category": self.category.value,
            "peak_hours": list(self.peak_hours),
            "is_safe_zone": self.is_safe_zone,
            "verified": self.verified,
            "is_preset": self.is_preset,
            "upvotes": self.upvotes,
            "tips": self.tips,
            "area": self.area,
            "provenance": self.provenance.value,
        }

    @classmethod
    def from_record(cls, data: Dict[str, Any], provenance: Provenance) -> "PointOfInterest":
        """Build from a plain dict (remote row or cache row).

        Missing optional fields take the backend's defaults. Raises
        ValueError for a missing id, non-numeric coordinates, an unknown
        category or a peak window that is not "HH:MM-HH:MM".
        """
        record_id = data.get("id")
        if record_id is None or str(record_id) == "":
            raise ValueError("Hotspot record has no id")
        try:
            lat = float(data["latitude"])
            lng = float(data["longitude"])
        except (KeyError, TypeError, ValueError):
            raise ValueError(f"Hotspot {record_id} has no usable coordinates") from None
        if not (math.isfinite(lat) and math.isfinite(lng)):
            raise ValueError(f"Hotspot {record_id} has non-finite coordinates")

        safe = data.get("is_safe_zone")
        return cls(
            id=str(record_id),
            name=data.get("name") or "",
            description=data.get("description"),
            latitude=lat,
            longitude=lng,
            category=Category.parse(data.get("category")),
            provenance=provenance,
            peak_hours=_parse_peak_hours(record_id, data.get("peak_hours")),
            is_safe_zone=True if safe is None else bool(safe),
            verified=bool(data.get("verified") or False),
            is_preset=bool(data.get("is_preset") or False),
            upvotes=int(data.get("upvotes") or 0),
            tips=data.get("tips"),
            area=data.get("area"),
        )



def _parse_peak_hours(record_id, value) -> Tuple[str, ...]:
    """Validate a peak_hours field as a list of "HH:MM-HH:MM" strings."""
    if not value:
        return ()
    if not isinstance(value, (list, tuple)) or not all(isinstance(w, str) for w in value):
        raise ValueError(f"Hotspot {record_id} has malformed peak_hours: {value!r}")
    for window in value:
        try:
            parse_window(window)
        except ValueError as e:
            raise ValueError(f"Hotspot {record_id}: {e}") from None
    return tuple(value)

@dataclass(frozen=True)
class CacheRecord:
    """A hotspot as persisted locally, stamped with its write time (epoch ms)."""
    poi: PointOfInterest
    synced_at: int


@dataclass
class MergedHotspots:
    """What the sync layer exposes to the rest of the app."""
    points: List[PointOfInterest]
    sync_status: str
    last_synced_at: Optional[datetime] = None
    preset_count: int = 0
    community_count: int = 0
    is_online: bool = True

    @property
    def total_count(self) -> int:
        return len(self.points)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "points": [p.to_record() for p in self.points],
            "sync_status": self.sync_status,
            "last_synced_at": self.last_synced_at.isoformat() if self.last_synced_at else None,
            "total_count": self.total_count,
            "preset_count": self.preset_count,
            "community_count": self.community_count,
            "is_online": self.is_online,
        }
