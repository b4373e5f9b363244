"""
Time-of-day and day-type context for scoring.

Everything here reads the wall clock through an injectable ``clock``
callable so tests can pin the time. Public holidays are not modelled:
a national holiday on a Tuesday is still a weekday.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

Clock = Callable[[], datetime]


class TimeOfDay(str, Enum):
    MORNING = "morning"   # [05:00, 11:00)
    MIDDAY = "midday"     # [11:00, 15:00)
    EVENING = "evening"   # [15:00, 18:00)
    NIGHT = "night"       # [18:00, 05:00)


class DayType(str, Enum):
    WEEKDAY = "weekday"
    WEEKEND = "weekend"


@dataclass(frozen=True)
class TimeContext:
    hour: int
    minute: int
    time_of_day: TimeOfDay
    is_rush_hour: bool
    day_type: DayType

    @property
    def is_weekend(self) -> bool:
        return self.day_type is DayType.WEEKEND


def _now(clock: Optional[Clock]) -> datetime:
    return clock() if clock is not None else datetime.now()


def classify_time_of_day(hour: int) -> TimeOfDay:
    if 5 <= hour < 11:
        return TimeOfDay.MORNING
    if 11 <= hour < 15:
        return TimeOfDay.MIDDAY
    if 15 <= hour < 18:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


def is_rush_hour(hour: int) -> bool:
    """Commute peaks: 06:00-09:00 and 16:00-20:00 (end exclusive)."""
    return 6 <= hour < 9 or 16 <= hour < 20


def classify_day_type(moment: datetime) -> DayType:
    # weekday(): Monday=0 .. Sunday=6
    return DayType.WEEKEND if moment.weekday() >= 5 else DayType.WEEKDAY


def get_day_type(clock: Optional[Clock] = None) -> DayType:
    return classify_day_type(_now(clock))


def get_time_context(clock: Optional[Clock] = None) -> TimeContext:
    """Snapshot the current hour/minute, bucket, rush flag and day type."""
    moment = _now(clock)
    return TimeContext(
        hour=moment.hour,
        minute=moment.minute,
        time_of_day=classify_time_of_day(moment.hour),
        is_rush_hour=is_rush_hour(moment.hour),
        day_type=classify_day_type(moment),
    )


_TIME_OF_DAY_LABELS = {
    TimeOfDay.MORNING: "Morning",
    TimeOfDay.MIDDAY: "Midday",
    TimeOfDay.EVENING: "Evening",
    TimeOfDay.NIGHT: "Night",
}


def time_of_day_label(ctx: TimeContext) -> str:
    """Human label, e.g. "Morning" or "Morning rush hour"."""
    label = _TIME_OF_DAY_LABELS[ctx.time_of_day]
    if ctx.is_rush_hour:
        return f"{label} rush hour"
    return label


def day_type_label(day_type: DayType) -> str:
    return "Weekend" if day_type is DayType.WEEKEND else "Weekday"
