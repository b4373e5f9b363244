"""
Weather Context — current conditions for hotspot scoring.

Fetches current observed weather from the Open-Meteo Forecast API (free,
no key required), classifies the WMO weather code into a small condition
vocabulary, and turns an observation + hotspot category into a score
adjustment.

Data source:
  - Open-Meteo Forecast API (api.open-meteo.com), `current=` block

Limitations:
  - Model grid is ~1-11 km; a shower over one district may not show up.
  - "Good for driving" is a coarse flag derived only from the weather code.

Weather is optional context: every failure path returns None and the
scoring engine treats a missing observation as a no-op.
"""

import json
import logging
import os
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import requests

from errors import TransportError
from geo import is_valid_coordinate
from hotspots import Category
from scoring_config import SCORING_MODEL, WeatherAffinity, category_policy
from sync_trace import record_call

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

_API_BASE = os.environ.get("OPEN_METEO_BASE_URL", "https://api.open-meteo.com/v1/forecast")
_API_TIMEOUT = 10  # seconds
_CACHE_TTL_SECONDS = int(os.environ.get("WEATHER_CACHE_TTL_SECONDS", "600"))


# =============================================================================
# DATA CLASSES
# =============================================================================

class Condition(str, Enum):
    CLEAR = "clear"
    RAIN = "rain"
    SHOWERS = "showers"
    DRIZZLE = "drizzle"
    FOG = "fog"
    SNOW = "snow"
    THUNDERSTORM = "thunderstorm"
    UNCLASSIFIED = "unclassified"


_PRECIPITATION_CONDITIONS = {Condition.RAIN, Condition.SHOWERS, Condition.DRIZZLE}


@dataclass
class WeatherObservation:
    """Current weather at a point."""
    temperature: float                    # °C
    condition: Condition
    description: str
    is_good_for_driving: bool
    wind_speed: float = 0.0               # km/h
    precipitation: Optional[float] = None  # mm in the last hour
    weather_code: Optional[int] = None


@dataclass(frozen=True)
class WeatherAdjustment:
    score: int
    reason: Optional[str] = None


# =============================================================================
# CLASSIFICATION
# =============================================================================

def interpret_weather_code(code: Optional[int]) -> Tuple[Condition, str, bool]:
    """Map a WMO weather code to (condition, description, good_for_driving)."""
    code = int(code or 0)
    if 0 <= code <= 3:
        return Condition.CLEAR, ("Clear" if code == 0 else "Partly cloudy"), True
    if 45 <= code <= 48:
        return Condition.FOG, "Foggy", False
    if 51 <= code <= 57:
        # Light enough to keep driving.
        return Condition.DRIZZLE, "Drizzle", True
    if 61 <= code <= 67:
        return Condition.RAIN, "Rain", False
    if 71 <= code <= 77:
        return Condition.SNOW, "Snow", False
    if 80 <= code <= 82:
        return Condition.SHOWERS, "Heavy showers", False
    if code >= 95:
        return Condition.THUNDERSTORM, "Thunderstorm", False
    return Condition.UNCLASSIFIED, "Overcast", True


def is_precipitating(obs: WeatherObservation) -> bool:
    """Rain, showers or drizzle, or any measured precipitation."""
    if obs.condition in _PRECIPITATION_CONDITIONS:
        return True
    return bool(obs.precipitation and obs.precipitation > 0)


# =============================================================================
# SCORE MODIFIER
# =============================================================================

def weather_modifier(obs: Optional[WeatherObservation], category: Category) -> WeatherAdjustment:
    """Score adjustment for a category under the observed weather.

    Rules, first match wins:
      1. precipitating + indoor  -> +25 "indoor, suited to rain"
      2. precipitating + outdoor -> -15 (no reason)
         precipitating + neutral -> 0
      3. good for driving + outdoor -> +20 "good weather for outdoor"
      4. good for driving -> +10 (no reason)
      5. > 32 °C + indoor -> +15 "hot day, prefer air-conditioned"
      6. otherwise 0
    """
    if obs is None:
        return WeatherAdjustment(0)

    points = SCORING_MODEL.weather
    affinity = category_policy(category).weather_affinity

    if is_precipitating(obs):
        if affinity is WeatherAffinity.INDOOR:
            return WeatherAdjustment(points.rain_indoor, "indoor, suited to rain")
        if affinity is WeatherAffinity.OUTDOOR:
            return WeatherAdjustment(points.rain_outdoor)
        return WeatherAdjustment(0)

    if obs.is_good_for_driving:
        if affinity is WeatherAffinity.OUTDOOR:
            return WeatherAdjustment(points.good_outdoor, "good weather for outdoor")
        return WeatherAdjustment(points.good_other)

    if obs.temperature > points.hot_threshold_c and affinity is WeatherAffinity.INDOOR:
        return WeatherAdjustment(points.hot_indoor, "hot day, prefer air-conditioned")

    return WeatherAdjustment(0)


def weather_context_label(obs: Optional[WeatherObservation]) -> str:
    if obs is None:
        return "Weather unavailable"
    if obs.is_good_for_driving:
        return f"{obs.description} - safe to drive"
    return f"{obs.description} - drive carefully"


# =============================================================================
# OPEN-METEO API CLIENT
# =============================================================================

def _round_coords(lat: float, lng: float) -> str:
    """Round coordinates to 2 decimal places (~1km) for the cache key."""
    return f"{lat:.2f},{lng:.2f}"


def _fetch_current(lat: float, lng: float) -> dict:
    """Fetch the current-conditions block. Raises TransportError on failure."""
    t0 = time.time()
    params = {
        "latitude": lat,
        "longitude": lng,
        "current": "temperature_2m,weather_code,wind_speed_10m,precipitation",
        "timezone": "auto",
    }
    try:
        resp = requests.get(_API_BASE, params=params, timeout=_API_TIMEOUT)
    except requests.Timeout:
        record_call("open_meteo", "timeout", int((time.time() - t0) * 1000))
        raise TransportError(f"Open-Meteo timed out for ({lat:.2f}, {lng:.2f})")
    except requests.RequestException as e:
        record_call("open_meteo", "exception", int((time.time() - t0) * 1000))
        raise TransportError(f"Open-Meteo request failed: {e}") from e

    record_call("open_meteo", "ok" if resp.ok else "http_error",
                int((time.time() - t0) * 1000), resp.status_code)
    if not resp.ok:
        raise TransportError(f"Open-Meteo returned {resp.status_code}")
    try:
        return resp.json()
    except ValueError:
        raise TransportError("Open-Meteo returned non-JSON response") from None


def _parse_current(raw: dict) -> Optional[WeatherObservation]:
    current = raw.get("current")
    if not current:
        return None
    code = current.get("weather_code") or 0
    condition, description, good = interpret_weather_code(code)
    return WeatherObservation(
        temperature=float(current.get("temperature_2m") or 0),
        condition=condition,
        description=description,
        is_good_for_driving=good,
        wind_speed=float(current.get("wind_speed_10m") or 0),
        precipitation=float(current.get("precipitation") or 0),
        weather_code=int(code),
    )


def get_current_weather(lat: float, lng: float, cache=None) -> Optional[WeatherObservation]:
    """Current weather at (lat, lng), or None on any failure.

    ``cache`` is an optional LocalCacheStore; observations are cached for
    WEATHER_CACHE_TTL_SECONDS keyed by coordinates rounded to ~1 km.
    """
    if not is_valid_coordinate(lat, lng):
        logger.warning("Skipping weather lookup for invalid coordinates (%s, %s)", lat, lng)
        return None
    lat, lng = float(lat), float(lng)

    cache_key = _round_coords(lat, lng)
    if cache is not None:
        cached = cache.get_weather_cache(cache_key, _CACHE_TTL_SECONDS)
        if cached is not None:
            try:
                obs = deserialize_observation(json.loads(cached))
                record_call("open_meteo", "cache_hit")
                return obs
            except (ValueError, KeyError, TypeError):
                logger.warning("Failed to deserialize cached weather data", exc_info=True)

    try:
        raw = _fetch_current(lat, lng)
    except TransportError:
        logger.warning("Weather lookup failed for (%.2f, %.2f)", lat, lng, exc_info=True)
        return None

    obs = _parse_current(raw)
    if obs is None:
        logger.warning("Open-Meteo response had no current block for (%.2f, %.2f)", lat, lng)
        return None

    if cache is not None:
        cache.set_weather_cache(cache_key, json.dumps(serialize_observation(obs)))
    return obs


# =============================================================================
# SERIALIZATION
# =============================================================================

def serialize_observation(obs: Optional[WeatherObservation]) -> Optional[dict]:
    if obs is None:
        return None
    return {
        "temperature": obs.temperature,
        "condition": obs.condition.value,
        "description": obs.description,
        "is_good_for_driving": obs.is_good_for_driving,
        "wind_speed": obs.wind_speed,
        "precipitation": obs.precipitation,
        "weather_code": obs.weather_code,
    }


def deserialize_observation(data: dict) -> WeatherObservation:
    return WeatherObservation(
        temperature=data["temperature"],
        condition=Condition(data["condition"]),
        description=data["description"],
        is_good_for_driving=data["is_good_for_driving"],
        wind_speed=data.get("wind_speed", 0.0),
        precipitation=data.get("precipitation"),
        weather_code=data.get("weather_code"),
    )
