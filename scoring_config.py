"""
Scoring model configuration for hotspot recommendations.

Owns every numeric constant that affects a hotspot's score, plus the
per-category policy table (peak windows, weather affinity, day-type
adjustments). The ranking logic itself lives in recommendation_engine.py.

Frozen dataclasses provide type checking and IDE support without
the indirection of YAML/JSON config files.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from hotspots import Category


# =============================================================================
# Dataclasses
# =============================================================================

@dataclass(frozen=True)
class DistanceTier:
    """Points awarded when the hotspot is at most max_km away."""
    max_km: float
    points: int


@dataclass(frozen=True)
class PeakPattern:
    """Expected busy windows for a category, per day type.

    An empty tuple for a day type means "rarely busy on that day type"
    and is penalised, not ignored.
    """
    weekday_windows: Tuple[str, ...]
    weekend_windows: Tuple[str, ...]
    priority: int


class WeatherAffinity(str, Enum):
    INDOOR = "indoor"     # covered / air-conditioned; good when it rains or is hot
    OUTDOOR = "outdoor"   # busy in good weather, empty in the rain
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class CategoryPolicy:
    """Everything the ranking engine needs to know about one category."""
    peak_pattern: Optional[PeakPattern]   # None = no time-pattern modelled
    weather_affinity: WeatherAffinity
    weekday_adjustment: int = 0
    weekend_adjustment: int = 0
    commute_hub: bool = False             # earns the rush-hour bonus


@dataclass(frozen=True)
class WeatherPoints:
    rain_indoor: int = 25
    rain_outdoor: int = -15
    good_outdoor: int = 20
    good_other: int = 10
    hot_indoor: int = 15
    hot_threshold_c: float = 32.0


@dataclass(frozen=True)
class ScoringModel:
    """Top-level container for all scoring parameters.

    A single module-level instance (SCORING_MODEL) is the source of truth.
    Bump `version` on every change that alters score outputs.
    """
    version: str
    distance_tiers: Tuple[DistanceTier, ...]
    very_close_km: float
    peak_now_bonus: int
    empty_day_penalty: int
    peak_priority_multiplier: int
    rush_hour_bonus: int
    safety_bonus: int
    precision_bonus: int
    weather: WeatherPoints


# =============================================================================
# Pure scoring helpers
# =============================================================================

def apply_distance_tiers(tiers: Tuple[DistanceTier, ...], distance_km: float) -> int:
    """Return the points of the first tier whose max_km covers the distance.

    Tiers are assumed sorted nearest first. Beyond the last tier: 0.
    """
    for tier in tiers:
        if distance_km <= tier.max_km:
            return tier.points
    return 0


# =============================================================================
# SCORING_MODEL — current production values
# =============================================================================

SCORING_MODEL = ScoringModel(
    version="1.0.0",

    distance_tiers=(
        DistanceTier(0.5, 50),
        DistanceTier(1.0, 40),
        DistanceTier(2.0, 30),
        DistanceTier(3.0, 20),
        DistanceTier(5.0, 10),
    ),
    very_close_km=1.0,

    peak_now_bonus=30,
    empty_day_penalty=-20,
    peak_priority_multiplier=3,
    rush_hour_bonus=15,

    safety_bonus=10,
    precision_bonus=10,

    weather=WeatherPoints(),
)


# =============================================================================
# Category policies
# =============================================================================

# Weekend +25 for leisure/retail/food, -30 for work/school; weekday +20 for
# work/education. Commute hubs get the rush-hour bonus outside their peaks.
CATEGORY_POLICIES: Dict[Category, CategoryPolicy] = {
    Category.CAMPUS: CategoryPolicy(
        peak_pattern=PeakPattern(
            weekday_windows=("07:00-09:00", "11:00-13:00", "16:00-18:00"),
            weekend_windows=("09:00-12:00",),
            priority=10,
        ),
        weather_affinity=WeatherAffinity.OUTDOOR,
        weekday_adjustment=20,
        commute_hub=True,
    ),
    Category.SCHOOL: CategoryPolicy(
        peak_pattern=PeakPattern(
            weekday_windows=("06:00-07:30", "11:00-12:00", "14:00-16:00"),
            weekend_windows=(),
            priority=8,
        ),
        weather_affinity=WeatherAffinity.OUTDOOR,
        weekday_adjustment=20,
        weekend_adjustment=-30,
    ),
    Category.MALL: CategoryPolicy(
        peak_pattern=PeakPattern(
            weekday_windows=("11:00-14:00", "17:00-21:00"),
            weekend_windows=("10:00-22:00",),
            priority=9,
        ),
        weather_affinity=WeatherAffinity.INDOOR,
        weekend_adjustment=25,
    ),
    Category.FOODCOURT: CategoryPolicy(
        peak_pattern=PeakPattern(
            weekday_windows=("11:00-14:00", "18:00-21:00"),
            weekend_windows=("11:00-22:00",),
            priority=8,
        ),
        weather_affinity=WeatherAffinity.OUTDOOR,
        weekend_adjustment=25,
    ),
    Category.STATION: CategoryPolicy(
        peak_pattern=PeakPattern(
            weekday_windows=("05:00-08:00", "16:00-20:00"),
            weekend_windows=("07:00-20:00",),
            priority=10,
        ),
        weather_affinity=WeatherAffinity.INDOOR,
        commute_hub=True,
    ),
    Category.HOSPITAL: CategoryPolicy(
        peak_pattern=PeakPattern(
            weekday_windows=("07:00-12:00", "14:00-17:00"),
            weekend_windows=("08:00-12:00",),
            priority=7,
        ),
        weather_affinity=WeatherAffinity.INDOOR,
    ),
    Category.OFFICE: CategoryPolicy(
        peak_pattern=PeakPattern(
            weekday_windows=("07:00-09:00", "16:00-19:00"),
            weekend_windows=(),
            priority=8,
        ),
        weather_affinity=WeatherAffinity.INDOOR,
        weekday_adjustment=20,
        weekend_adjustment=-30,
        commute_hub=True,
    ),
    Category.TOURISM: CategoryPolicy(
        peak_pattern=PeakPattern(
            weekday_windows=("09:00-17:00",),
            weekend_windows=("08:00-18:00",),
            priority=6,
        ),
        weather_affinity=WeatherAffinity.OUTDOOR,
        weekend_adjustment=25,
    ),
    Category.GENERAL: CategoryPolicy(
        peak_pattern=None,
        weather_affinity=WeatherAffinity.NEUTRAL,
    ),
}


def category_policy(category: Category) -> CategoryPolicy:
    """Total lookup: every Category has a policy (checked at import)."""
    return CATEGORY_POLICIES[Category.parse(category)]


# Validate the table at import time (ValueError, not assert, so validation
# is never stripped by python -O).
_missing = [c.value for c in Category if c not in CATEGORY_POLICIES]
if _missing:
    raise ValueError(f"Categories without a scoring policy: {_missing}")
if [t.max_km for t in SCORING_MODEL.distance_tiers] != sorted(
    t.max_km for t in SCORING_MODEL.distance_tiers
):
    raise ValueError("distance_tiers must be sorted nearest first")
