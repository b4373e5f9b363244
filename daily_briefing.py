"""
Once-per-session daily briefing: a greeting, a line of motivation, up to
three category suggestions for the current time and weather, and one
concrete place to start.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from hotspots import Category, PointOfInterest
from presets import PRESET_HOTSPOTS
from temporal import TimeContext, TimeOfDay, day_type_label, time_of_day_label
from weather import Condition, WeatherObservation

MAX_SUGGESTIONS = 3
DEFAULT_SPOT = "Paris Van Java"

_RAIN_CONDITIONS = {Condition.RAIN, Condition.SHOWERS, Condition.DRIZZLE, Condition.THUNDERSTORM}


@dataclass(frozen=True)
class CategorySuggestion:
    label: str
    categories: Tuple[Category, ...]
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "categories": [c.value for c in self.categories],
            "reason": self.reason,
        }


@dataclass
class DailyBriefing:
    greeting: str
    motivation: str
    time_context: str
    day_type: str
    weather_description: Optional[str]
    suggestions: List[CategorySuggestion] = field(default_factory=list)
    suggested_spot: str = DEFAULT_SPOT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "greeting": self.greeting,
            "motivation": self.motivation,
            "time_context": self.time_context,
            "day_type": self.day_type,
            "weather_description": self.weather_description,
            "suggestions": [s.to_dict() for s in self.suggestions],
            "suggested_spot": self.suggested_spot,
        }


_MESSAGES = {
    (True, TimeOfDay.MORNING): (
        "Good morning!",
        "Weekend crowds head out early. Work the tourist spots and malls.",
    ),
    (True, TimeOfDay.MIDDAY): (
        "Hello, driver!",
        "Weekend lunchtime is busy around food streets and malls.",
    ),
    (True, TimeOfDay.EVENING): (
        "Good afternoon!",
        "Weekend golden hour: families are heading home from outings.",
    ),
    (True, TimeOfDay.NIGHT): (
        "Good evening!",
        "Saturday night crowds go out late. Stay near cafes and nightlife.",
    ),
    (False, TimeOfDay.MORNING): (
        "Good morning!",
        "Morning rush! Focus on campuses, schools and offices.",
    ),
    (False, TimeOfDay.MIDDAY): (
        "Keep going!",
        "Lunch hour brings plenty of food orders around office blocks.",
    ),
    (False, TimeOfDay.EVENING): (
        "Good afternoon!",
        "Evening rush: students and workers are heading home.",
    ),
    (False, TimeOfDay.NIGHT): (
        "Good evening!",
        "Night time belongs to food streets and cafes. Drive safely.",
    ),
}


def _is_raining(weather: Optional[WeatherObservation]) -> bool:
    return weather is not None and weather.condition in _RAIN_CONDITIONS


def category_suggestions(
    ctx: TimeContext, weather: Optional[WeatherObservation]
) -> List[CategorySuggestion]:
    suggestions = []
    if _is_raining(weather):
        suggestions.append(CategorySuggestion(
            "Mall & Indoor", (Category.MALL, Category.STATION), "Rain: stick to indoor pick-ups"))

    tod = ctx.time_of_day
    if ctx.is_weekend:
        if tod in (TimeOfDay.MORNING, TimeOfDay.MIDDAY):
            suggestions.append(CategorySuggestion(
                "Tourist spots", (Category.TOURISM,), "Weekend mornings draw sightseers"))
        suggestions.append(CategorySuggestion(
            "Malls & Food", (Category.MALL, Category.FOODCOURT), "Shopping centers stay busy all weekend"))
    elif tod is TimeOfDay.MORNING:
        suggestions.append(CategorySuggestion(
            "Campus & School", (Category.CAMPUS, Category.SCHOOL), "Classes are starting"))
        suggestions.append(CategorySuggestion(
            "Offices", (Category.OFFICE,), "Commuters heading to work"))
    elif tod is TimeOfDay.MIDDAY:
        suggestions.append(CategorySuggestion(
            "Food areas", (Category.FOODCOURT,), "Office lunch hour"))
    elif tod is TimeOfDay.EVENING:
        suggestions.append(CategorySuggestion(
            "Campus & Offices", (Category.CAMPUS, Category.OFFICE), "Classes and shifts are ending"))
        suggestions.append(CategorySuggestion(
            "Stations", (Category.STATION,), "Commuter rush hour"))
    else:
        suggestions.append(CategorySuggestion(
            "Food & Cafes", (Category.FOODCOURT,), "Evening hangout spots"))

    return suggestions[:MAX_SUGGESTIONS]


def _spot_category(ctx: TimeContext) -> Category:
    if not ctx.is_weekend and ctx.time_of_day in (TimeOfDay.MORNING, TimeOfDay.EVENING):
        return Category.CAMPUS
    if ctx.time_of_day is TimeOfDay.MIDDAY:
        return Category.FOODCOURT
    return Category.MALL


def suggest_spot(ctx: TimeContext, presets: Iterable[PointOfInterest] = PRESET_HOTSPOTS) -> str:
    """Name of the most upvoted preset in the category that fits right now."""
    category = _spot_category(ctx)
    candidates = [p for p in presets if p.category is category]
    if not candidates:
        return DEFAULT_SPOT
    # max() keeps the first of equal upvote counts.
    return max(candidates, key=lambda p: p.upvotes).name


def build_daily_briefing(
    ctx: TimeContext,
    weather: Optional[WeatherObservation] = None,
    presets: Iterable[PointOfInterest] = PRESET_HOTSPOTS,
) -> DailyBriefing:
    greeting, motivation = _MESSAGES[(ctx.is_weekend, ctx.time_of_day)]
    return DailyBriefing(
        greeting=greeting,
        motivation=motivation,
        time_context=time_of_day_label(ctx),
        day_type=day_type_label(ctx.day_type),
        weather_description=weather.description if weather else None,
        suggestions=category_suggestions(ctx, weather),
        suggested_spot=suggest_spot(ctx, presets),
    )
