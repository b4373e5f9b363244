"""
Reference-point resolution for ranking.

A position provider is any callable returning (lat, lng) or raising
LocationError. GeolocationService bounds it with a timeout and reuses a
recent fix; resolve_reference_point() turns the outcome into the point
the ranking engine should measure from, falling back to a fixed city
center when no live fix is available.
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from errors import LocationError, LocationFailure
from geo import Coordinates, is_valid_coordinate

logger = logging.getLogger(__name__)

# Bandung city center.
FALLBACK_CENTER = Coordinates(
    float(os.environ.get("HOTSPOT_FALLBACK_LAT", "-6.9175")),
    float(os.environ.get("HOTSPOT_FALLBACK_LNG", "107.6191")),
)

DEFAULT_TIMEOUT_S = 10.0
DEFAULT_MAX_AGE_S = 60.0

PositionProvider = Callable[[], Tuple[float, float]]


@dataclass(frozen=True)
class LocationResult:
    coordinates: Optional[Coordinates] = None
    failure: Optional[LocationFailure] = None

    @property
    def ok(self) -> bool:
        return self.coordinates is not None and self.failure is None

    @classmethod
    def success(cls, lat: float, lng: float) -> "LocationResult":
        return cls(coordinates=Coordinates(float(lat), float(lng)))

    @classmethod
    def failed(cls, failure: LocationFailure) -> "LocationResult":
        return cls(failure=failure)

    @classmethod
    def from_reported(cls, lat: Optional[float], lng: Optional[float]) -> "LocationResult":
        """A fix reported by the client, checked for presence and range."""
        if lat is None or lng is None or not is_valid_coordinate(lat, lng):
            return cls.failed(LocationFailure.POSITION_UNAVAILABLE)
        return cls.success(lat, lng)


@dataclass(frozen=True)
class ReferencePoint:
    coordinates: Coordinates
    is_live_fix: bool


class GeolocationService:
    """Bounded, cache-aware access to a position provider.

    ``clock`` returns monotonic seconds and is injectable for tests.
    """

    def __init__(
        self,
        provider: PositionProvider,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        max_age_s: float = DEFAULT_MAX_AGE_S,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.provider = provider
        self.timeout_s = timeout_s
        self.max_age_s = max_age_s
        self._clock = clock or time.monotonic
        self._last_fix: Optional[Coordinates] = None
        self._last_fix_at: Optional[float] = None

    def acquire(self) -> LocationResult:
        """Return a fix no older than max_age_s, or a failure kind."""
        now = self._clock()
        if self._last_fix is not None and now - self._last_fix_at <= self.max_age_s:
            return LocationResult(coordinates=self._last_fix)

        executor = ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(self.provider)
            try:
                lat, lng = future.result(timeout=self.timeout_s)
            except FutureTimeoutError:
                logger.warning("[geo] position request timed out after %.1fs", self.timeout_s)
                return LocationResult.failed(LocationFailure.TIMEOUT)
            except LocationError as e:
                logger.warning("[geo] position unavailable: %s", e.failure.value)
                return LocationResult.failed(e.failure)
            except Exception:
                logger.warning("[geo] position provider failed", exc_info=True)
                return LocationResult.failed(LocationFailure.UNKNOWN)
        finally:
            # A hung provider must not block the caller.
            executor.shutdown(wait=False)

        if not is_valid_coordinate(lat, lng):
            logger.warning("[geo] provider returned invalid coordinates (%s, %s)", lat, lng)
            return LocationResult.failed(LocationFailure.POSITION_UNAVAILABLE)

        result = LocationResult.success(lat, lng)
        self._last_fix = result.coordinates
        self._last_fix_at = self._clock()
        return result


def resolve_reference_point(
    result: Optional[LocationResult], fallback: Optional[Coordinates] = None
) -> ReferencePoint:
    """Live fix when there is one, otherwise the fallback center."""
    if result is not None and result.ok:
        return ReferencePoint(result.coordinates, is_live_fix=True)
    if result is not None and result.failure is not None:
        logger.info("[geo] using fallback center (%s)", result.failure.value)
    return ReferencePoint(fallback or FALLBACK_CENTER, is_live_fix=False)
