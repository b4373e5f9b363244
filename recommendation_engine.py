"""
Hotspot ranking engine.

Turns a set of hotspots plus live context (reference point, time of day,
day type, weather) into a sorted, explainable recommendation list. Every
contribution is a small pure function returning (points, reason) so the
final score can be audited term by term.

Score = distance tier (max 50)
      + 30 if the hotspot's own peak_hours match now
      + category time-pattern modifier (may be -20)
      + weather modifier (may be -15)
      + day-type modifier (may be -30)
      + 10 safety bonus for safe zones
      + 10 precision bonus for a live device fix
floored at 0. Hotspots beyond max_distance_km are dropped, not down-ranked.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from geo import distance_km, is_valid_coordinate
from hotspots import Category, PointOfInterest
from peak_windows import is_peak_now, is_within
from scoring_config import SCORING_MODEL, apply_distance_tiers, category_policy
from temporal import (
    Clock,
    DayType,
    TimeContext,
    day_type_label,
    get_time_context,
    time_of_day_label,
)
from weather import WeatherObservation, weather_context_label, weather_modifier

logger = logging.getLogger(__name__)

DEFAULT_MAX_DISTANCE_KM = 5.0

# Reason strings surfaced to the driver.
REASON_VERY_CLOSE = "very close"
REASON_BUSY_NOW = "currently busy"
REASON_COMMUTE = "commute rush hour"
REASON_WEEKEND = "busy on weekends"
REASON_WEEKDAY = "active weekday"
REASON_CAUTION = "caution zone"


# =============================================================================
# Data classes
# =============================================================================

@dataclass(frozen=True)
class RankingContext:
    reference_point: Tuple[float, float]
    time_context: TimeContext
    weather: Optional[WeatherObservation] = None
    max_distance_km: float = DEFAULT_MAX_DISTANCE_KM
    is_live_fix: bool = False

    @classmethod
    def build(
        cls,
        reference_point: Tuple[float, float],
        weather: Optional[WeatherObservation] = None,
        max_distance_km: float = DEFAULT_MAX_DISTANCE_KM,
        is_live_fix: bool = False,
        clock: Optional[Clock] = None,
    ) -> "RankingContext":
        return cls(
            reference_point=reference_point,
            time_context=get_time_context(clock),
            weather=weather,
            max_distance_km=max_distance_km,
            is_live_fix=is_live_fix,
        )

    @property
    def day_type(self) -> DayType:
        return self.time_context.day_type


@dataclass
class ScoredCandidate:
    poi: PointOfInterest
    score: float
    distance_km: float
    reasons: Tuple[str, ...] = ()
    is_peak_now: bool = False
    weather_bonus: int = 0
    time_bonus: int = 0
    day_type_bonus: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = self.poi.to_record()
        data.update({
            "score": self.score,
            "distance_km": round(self.distance_km, 3),
            "reasons": list(self.reasons),
            "is_peak_now": self.is_peak_now,
            "weather_bonus": self.weather_bonus,
            "time_bonus": self.time_bonus,
            "day_type_bonus": self.day_type_bonus,
        })
        return data


@dataclass
class RecommendationSummary:
    total_spots: int
    top_category: Optional[str]
    time_context: str
    day_type: str
    weather_context: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_spots": self.total_spots,
            "top_category": self.top_category,
            "time_context": self.time_context,
            "day_type": self.day_type,
            "weather_context": self.weather_context,
        }


# =============================================================================
# Contributions
# =============================================================================

def distance_score(distance: float) -> int:
    return apply_distance_tiers(SCORING_MODEL.distance_tiers, distance)


def time_pattern_modifier(category: Category, ctx: TimeContext) -> Tuple[int, Optional[str]]:
    """Category-level busy-window adjustment.

    No pattern -> 0. No windows for today's day type -> -20 (dead zone).
    Inside a window -> priority x 3. Rush hour at a commute hub -> +15.
    """
    policy = category_policy(category)
    pattern = policy.peak_pattern
    if pattern is None:
        return 0, None

    windows = pattern.weekend_windows if ctx.is_weekend else pattern.weekday_windows
    if not windows:
        return SCORING_MODEL.empty_day_penalty, None

    if is_within(ctx.hour, ctx.minute, windows):
        return (
            pattern.priority * SCORING_MODEL.peak_priority_multiplier,
            f"peak hours for {Category.parse(category).value}",
        )

    if ctx.is_rush_hour and policy.commute_hub:
        return SCORING_MODEL.rush_hour_bonus, REASON_COMMUTE

    return 0, None


def day_type_modifier(category: Category, ctx: TimeContext) -> Tuple[int, Optional[str]]:
    policy = category_policy(category)
    if ctx.is_weekend:
        points = policy.weekend_adjustment
        reason = REASON_WEEKEND
    else:
        points = policy.weekday_adjustment
        reason = REASON_WEEKDAY
    return points, (reason if points > 0 else None)


def score_candidate(poi: PointOfInterest, context: RankingContext) -> ScoredCandidate:
    """Score one hotspot. Does not apply the distance filter."""
    ctx = context.time_context
    reasons: List[str] = []
    score = 0

    distance = distance_km(context.reference_point, poi.coordinates)
    score += distance_score(distance)
    if distance <= SCORING_MODEL.very_close_km:
        reasons.append(REASON_VERY_CLOSE)

    peak_now = is_peak_now(poi.peak_hours, ctx)
    time_bonus = 0
    if peak_now:
        time_bonus = SCORING_MODEL.peak_now_bonus
        score += time_bonus
        reasons.append(REASON_BUSY_NOW)

    pattern_points, pattern_reason = time_pattern_modifier(poi.category, ctx)
    score += pattern_points
    time_bonus += max(0, pattern_points)
    if pattern_reason:
        reasons.append(pattern_reason)

    adjustment = weather_modifier(context.weather, poi.category)
    score += adjustment.score
    if adjustment.reason:
        reasons.append(adjustment.reason)

    day_points, day_reason = day_type_modifier(poi.category, ctx)
    score += day_points
    if day_reason:
        reasons.append(day_reason)

    if poi.is_safe_zone:
        score += SCORING_MODEL.safety_bonus
    else:
        reasons.append(REASON_CAUTION)

    if context.is_live_fix:
        score += SCORING_MODEL.precision_bonus

    return ScoredCandidate(
        poi=poi,
        score=max(0, score),
        distance_km=distance,
        reasons=tuple(reasons),
        is_peak_now=peak_now,
        weather_bonus=max(0, adjustment.score),
        time_bonus=time_bonus,
        day_type_bonus=max(0, day_points),
    )


# =============================================================================
# Ranking
# =============================================================================

def rank(candidates: Iterable[PointOfInterest], context: RankingContext) -> List[ScoredCandidate]:
    """Score, filter by max distance, and sort (score desc, distance asc).

    Bad input never raises: an invalid reference point or an empty
    candidate set gives [], and hotspots with invalid coordinates are
    skipped. Unknown categories and malformed peak windows do raise,
    since they mean the data itself is broken.
    """
    lat, lng = context.reference_point
    if not is_valid_coordinate(lat, lng):
        logger.warning("Invalid reference point (%s, %s); returning no recommendations", lat, lng)
        return []

    scored = []
    for poi in candidates or ():
        if not poi.has_valid_coordinates():
            logger.warning("Skipping hotspot %s with invalid coordinates", poi.id)
            continue
        candidate = score_candidate(poi, context)
        if candidate.distance_km > context.max_distance_km:
            continue
        scored.append(candidate)

    scored.sort(key=lambda c: (-c.score, c.distance_km))
    return scored


def get_ranked_recommendations(
    candidates: Iterable[PointOfInterest], context: RankingContext
) -> List[ScoredCandidate]:
    """Public entry point used by the app layer."""
    ranked = rank(candidates, context)
    logger.info(
        "Ranked %d hotspots (model %s, %s, %s, max %.1f km)",
        len(ranked),
        SCORING_MODEL.version,
        context.time_context.time_of_day.value,
        context.day_type.value,
        context.max_distance_km,
    )
    return ranked


def summarize(scored: List[ScoredCandidate], context: RankingContext) -> RecommendationSummary:
    """Headline for the recommendation panel.

    top_category is the most frequent category among the first 10 results;
    ties go to the category seen first.
    """
    counts = Counter(c.poi.category.value for c in scored[:10])
    top_category = counts.most_common(1)[0][0] if counts else None
    return RecommendationSummary(
        total_spots=len(scored),
        top_category=top_category,
        time_context=time_of_day_label(context.time_context),
        day_type=day_type_label(context.day_type),
        weather_context=weather_context_label(context.weather),
    )
