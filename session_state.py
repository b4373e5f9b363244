"""
Per-process session flags, passed explicitly to whatever needs them.

Two kinds of flag live here:
  - onboarding_completed: persisted in the cache metadata table so it
    survives restarts
  - daily_briefing_shown: in memory only, so the briefing comes back the
    next time the app starts
"""

import logging
from dataclasses import dataclass
from typing import Optional

from models import LocalCacheStore

logger = logging.getLogger(__name__)

ONBOARDING_KEY = "onboarding_completed"
ONBOARDING_STEPS = ("dashboard", "hotspot", "finance", "safety")


@dataclass
class AppSession:
    cache: Optional[LocalCacheStore] = None
    onboarding_completed: bool = False
    onboarding_step: int = 0
    daily_briefing_shown: bool = False

    @classmethod
    def load(cls, cache: Optional[LocalCacheStore]) -> "AppSession":
        """Build a session from persisted flags. A missing store means a first run."""
        completed = False
        if cache is not None:
            completed = bool(cache.get_metadata(ONBOARDING_KEY))
        return cls(cache=cache, onboarding_completed=completed)

    # --- Daily briefing ---

    def should_show_daily_briefing(self) -> bool:
        return not self.daily_briefing_shown

    def mark_daily_briefing_shown(self) -> None:
        self.daily_briefing_shown = True

    # --- Onboarding ---

    @property
    def show_onboarding(self) -> bool:
        return not self.onboarding_completed

    @property
    def onboarding_step_name(self) -> str:
        return ONBOARDING_STEPS[self.onboarding_step]

    def next_onboarding_step(self) -> None:
        if self.onboarding_step < len(ONBOARDING_STEPS) - 1:
            self.onboarding_step += 1
        else:
            self.complete_onboarding()

    def previous_onboarding_step(self) -> None:
        if self.onboarding_step > 0:
            self.onboarding_step -= 1

    def complete_onboarding(self) -> None:
        self.onboarding_completed = True
        if self.cache is not None and not self.cache.set_metadata(ONBOARDING_KEY, True):
            logger.warning("Could not persist onboarding flag; it will reset on restart")

    def reset_onboarding(self) -> None:
        self.onboarding_completed = False
        self.onboarding_step = 0
        if self.cache is not None:
            self.cache.delete_metadata(ONBOARDING_KEY)

    def to_dict(self) -> dict:
        return {
            "onboarding_completed": self.onboarding_completed,
            "onboarding_step": self.onboarding_step_name,
            "daily_briefing_shown": self.daily_briefing_shown,
        }
