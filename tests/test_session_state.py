"""Tests for session_state.py — onboarding and daily-briefing flags."""

from unittest.mock import MagicMock

from models import LocalCacheStore
from session_state import ONBOARDING_KEY, ONBOARDING_STEPS, AppSession


class TestLoad:
    def test_first_run(self, cache_store):
        session = AppSession.load(cache_store)
        assert not session.onboarding_completed
        assert session.show_onboarding
        assert session.should_show_daily_briefing()

    def test_persisted_onboarding(self, cache_store):
        cache_store.set_metadata(ONBOARDING_KEY, True)
        assert AppSession.load(cache_store).onboarding_completed

    def test_without_store(self):
        session = AppSession.load(None)
        session.complete_onboarding()
        assert session.onboarding_completed


class TestDailyBriefing:
    def test_shown_once_per_session(self, cache_store):
        session = AppSession.load(cache_store)
        session.mark_daily_briefing_shown()
        assert not session.should_show_daily_briefing()

    def test_new_session_shows_again(self, cache_store):
        AppSession.load(cache_store).mark_daily_briefing_shown()
        assert AppSession.load(cache_store).should_show_daily_briefing()


class TestOnboarding:
    def test_complete_persists(self, cache_store):
        AppSession.load(cache_store).complete_onboarding()
        assert AppSession.load(cache_store).onboarding_completed

    def test_reset_clears(self, cache_store):
        session = AppSession.load(cache_store)
        session.complete_onboarding()
        session.reset_onboarding()
        assert not session.onboarding_completed
        assert cache_store.get_metadata(ONBOARDING_KEY) is None
        assert not AppSession.load(cache_store).onboarding_completed

    def test_steps(self, cache_store):
        session = AppSession.load(cache_store)
        assert session.onboarding_step_name == ONBOARDING_STEPS[0]
        session.previous_onboarding_step()
        assert session.onboarding_step == 0

        for _ in range(len(ONBOARDING_STEPS) - 1):
            session.next_onboarding_step()
        assert session.onboarding_step_name == ONBOARDING_STEPS[-1]
        assert not session.onboarding_completed

        session.next_onboarding_step()
        assert session.onboarding_completed

    def test_persist_failure_keeps_in_memory_flag(self):
        store = MagicMock(spec=LocalCacheStore)
        store.get_metadata.return_value = None
        store.set_metadata.return_value = False

        session = AppSession.load(store)
        session.complete_onboarding()
        assert session.onboarding_completed
