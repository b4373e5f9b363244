"""Tests for recommendation_engine.py — per-term contributions, ranking
properties and end-to-end scenarios against the bundled presets.
"""

import pytest

from hotspots import Category
from presets import PRESET_HOTSPOTS
from recommendation_engine import (
    REASON_BUSY_NOW,
    REASON_CAUTION,
    REASON_COMMUTE,
    REASON_VERY_CLOSE,
    REASON_WEEKDAY,
    REASON_WEEKEND,
    RankingContext,
    day_type_modifier,
    distance_score,
    get_ranked_recommendations,
    rank,
    summarize,
    time_pattern_modifier,
)
from temporal import get_time_context
from weather import Condition, WeatherObservation


ITB = (-6.8915, 107.6107)
CLEAR = WeatherObservation(temperature=26.0, condition=Condition.CLEAR,
                           description="Clear", is_good_for_driving=True)
RAIN = WeatherObservation(temperature=23.0, condition=Condition.RAIN,
                          description="Rain", is_good_for_driving=False, precipitation=2.0)

# ~6 km north of the equator origin
SIX_KM_LAT = 6.0 / 111.19


def _ctx(fixed_clock, hour, minute=0, weekend=False, reference=ITB, weather=None,
         max_km=5.0, live=False):
    return RankingContext.build(
        reference,
        weather=weather,
        max_distance_km=max_km,
        is_live_fix=live,
        clock=fixed_clock(hour, minute, weekend=weekend),
    )


# =========================================================================
# Contributions
# =========================================================================

class TestDistanceScore:
    def test_tiers(self):
        assert distance_score(0.2) == 50
        assert distance_score(0.9) == 40
        assert distance_score(4.0) == 10
        assert distance_score(5.5) == 0


class TestTimePatternModifier:
    def test_inside_window(self, fixed_clock):
        ctx = get_time_context(fixed_clock(7, 30))
        assert time_pattern_modifier(Category.CAMPUS, ctx) == (30, "peak hours for campus")

    def test_empty_day_penalty(self, fixed_clock):
        ctx = get_time_context(fixed_clock(10, weekend=True))
        assert time_pattern_modifier(Category.OFFICE, ctx) == (-20, None)
        assert time_pattern_modifier(Category.SCHOOL, ctx) == (-20, None)

    def test_rush_hour_commute_hub(self, fixed_clock):
        # 08:30 is past the station's 05:00-08:00 window but still rush hour
        ctx = get_time_context(fixed_clock(8, 30))
        assert time_pattern_modifier(Category.STATION, ctx) == (15, REASON_COMMUTE)

    def test_rush_hour_non_hub(self, fixed_clock):
        ctx = get_time_context(fixed_clock(8, 30))
        assert time_pattern_modifier(Category.MALL, ctx) == (0, None)

    def test_general_has_no_pattern(self, fixed_clock):
        ctx = get_time_context(fixed_clock(7, 30))
        assert time_pattern_modifier(Category.GENERAL, ctx) == (0, None)


class TestDayTypeModifier:
    def test_weekend_bonus(self, fixed_clock):
        ctx = get_time_context(fixed_clock(12, weekend=True))
        assert day_type_modifier(Category.MALL, ctx) == (25, REASON_WEEKEND)

    def test_weekend_penalty_has_no_reason(self, fixed_clock):
        ctx = get_time_context(fixed_clock(12, weekend=True))
        assert day_type_modifier(Category.OFFICE, ctx) == (-30, None)

    def test_weekday_bonus(self, fixed_clock):
        ctx = get_time_context(fixed_clock(12))
        assert day_type_modifier(Category.CAMPUS, ctx) == (20, REASON_WEEKDAY)

    def test_no_adjustment(self, fixed_clock):
        ctx = get_time_context(fixed_clock(12))
        assert day_type_modifier(Category.HOSPITAL, ctx) == (0, None)


# =========================================================================
# Scenarios
# =========================================================================

class TestScenarios:
    def test_a_campus_at_weekday_morning_peak(self, fixed_clock):
        ctx = _ctx(fixed_clock, 7, 30, weather=CLEAR)
        ranked = rank(PRESET_HOTSPOTS, ctx)

        top = ranked[0]
        assert top.poi.id == "campus-itb"
        assert "peak hours for campus" in top.reasons
        assert REASON_WEEKDAY in top.reasons
        assert REASON_VERY_CLOSE in top.reasons
        assert REASON_BUSY_NOW in top.reasons
        # 50 distance + 30 own peak + 30 category + 20 weather + 20 weekday + 10 safety
        assert top.score == 160
        assert top.time_bonus == 60
        assert top.weather_bonus == 20
        assert top.day_type_bonus == 20

    def test_b_rain_favours_indoor(self, fixed_clock, make_poi):
        mall = make_poi(id="mall", lat=ITB[0], lng=ITB[1], category=Category.MALL)
        park = make_poi(id="park", lat=ITB[0], lng=ITB[1], category=Category.TOURISM)
        ranked = rank([park, mall], _ctx(fixed_clock, 12, weather=RAIN))

        scores = {c.poi.id: c.score for c in ranked}
        assert scores["mall"] > scores["park"]
        mall_entry = next(c for c in ranked if c.poi.id == "mall")
        assert "indoor, suited to rain" in mall_entry.reasons

    def test_c_beyond_max_distance_excluded(self, fixed_clock, make_poi):
        far = make_poi(id="far", lat=SIX_KM_LAT, lng=0.0)
        near = make_poi(id="near", lat=0.01, lng=0.0)
        ranked = rank([far, near], _ctx(fixed_clock, 12, reference=(0.0, 0.0), max_km=5))
        assert [c.poi.id for c in ranked] == ["near"]

    def test_e_caution_zone(self, fixed_clock, make_poi):
        safe = make_poi(id="safe", lat=ITB[0], lng=ITB[1])
        unsafe = make_poi(id="unsafe", lat=ITB[0], lng=ITB[1], is_safe_zone=False)
        ranked = rank([unsafe, safe], _ctx(fixed_clock, 12))

        assert [c.poi.id for c in ranked] == ["safe", "unsafe"]
        assert ranked[0].score - ranked[1].score == 10
        assert REASON_CAUTION in ranked[1].reasons
        assert REASON_CAUTION not in ranked[0].reasons


# =========================================================================
# Ranking properties
# =========================================================================

class TestRankProperties:
    @pytest.mark.parametrize("hour,weekend,weather", [
        (7, False, CLEAR), (12, True, RAIN), (18, False, None), (23, True, CLEAR), (3, False, RAIN),
    ])
    def test_sorted_filtered_non_negative(self, fixed_clock, hour, weekend, weather):
        ctx = _ctx(fixed_clock, hour, weekend=weekend, weather=weather,
                   reference=(-6.9175, 107.6191), max_km=3.0)
        ranked = rank(PRESET_HOTSPOTS, ctx)

        assert ranked
        for c in ranked:
            assert c.score >= 0
            assert c.distance_km <= 3.0
        for a, b in zip(ranked, ranked[1:]):
            assert a.score > b.score or (a.score == b.score and a.distance_km <= b.distance_km)

    def test_score_floor(self, fixed_clock, make_poi):
        school = make_poi(id="school", lat=ITB[0] + 0.043, lng=ITB[1],
                          category=Category.SCHOOL, is_safe_zone=False)
        [c] = rank([school], _ctx(fixed_clock, 3, weekend=True, weather=RAIN))
        assert c.score == 0

    def test_live_fix_precision_bonus(self, fixed_clock, make_poi):
        poi = make_poi(lat=ITB[0], lng=ITB[1])
        approx = rank([poi], _ctx(fixed_clock, 12))[0].score
        live = rank([poi], _ctx(fixed_clock, 12, live=True))[0].score
        assert live - approx == 10

    def test_equal_scores_closer_first(self, fixed_clock, make_poi):
        a = make_poi(id="a", lat=ITB[0] + 0.001, lng=ITB[1])
        b = make_poi(id="b", lat=ITB[0] + 0.002, lng=ITB[1])
        ranked = rank([b, a], _ctx(fixed_clock, 12))
        assert ranked[0].score == ranked[1].score
        assert [c.poi.id for c in ranked] == ["a", "b"]


class TestBadInput:
    def test_empty_candidates(self, fixed_clock):
        assert rank([], _ctx(fixed_clock, 12)) == []

    def test_invalid_reference(self, fixed_clock):
        assert rank(PRESET_HOTSPOTS, _ctx(fixed_clock, 12, reference=(float("nan"), 0))) == []

    def test_invalid_candidate_skipped(self, fixed_clock, make_poi):
        ranked = rank([make_poi(id="bad", lat=500), make_poi(id="ok", lat=ITB[0], lng=ITB[1])],
                      _ctx(fixed_clock, 12))
        assert [c.poi.id for c in ranked] == ["ok"]

    def test_unknown_category_raises(self, fixed_clock, make_poi):
        with pytest.raises(ValueError):
            rank([make_poi(category="casino", lat=ITB[0], lng=ITB[1])], _ctx(fixed_clock, 12))

    def test_malformed_peak_window_raises(self, fixed_clock, make_poi):
        poi = make_poi(lat=ITB[0], lng=ITB[1], peak_hours=("7am-9am",))
        with pytest.raises(ValueError):
            rank([poi], _ctx(fixed_clock, 12))


# =========================================================================
# Summary and public entry point
# =========================================================================

class TestSummary:
    def test_summary_fields(self, fixed_clock):
        ctx = _ctx(fixed_clock, 7, 30, weather=CLEAR)
        ranked = get_ranked_recommendations(PRESET_HOTSPOTS, ctx)
        summary = summarize(ranked, ctx)

        assert summary.total_spots == len(ranked)
        assert summary.time_context == "Morning rush hour"
        assert summary.day_type == "Weekday"
        assert summary.weather_context == "Clear - safe to drive"
        top10 = [c.poi.category.value for c in ranked[:10]]
        assert top10.count(summary.top_category) == max(top10.count(c) for c in set(top10))

    def test_empty_summary(self, fixed_clock):
        ctx = _ctx(fixed_clock, 12)
        summary = summarize([], ctx)
        assert summary.total_spots == 0
        assert summary.top_category is None
        assert summary.weather_context == "Weather unavailable"

    def test_candidate_to_dict(self, fixed_clock):
        ctx = _ctx(fixed_clock, 7, 30, weather=CLEAR)
        data = rank(PRESET_HOTSPOTS, ctx)[0].to_dict()
        assert data["id"] == "campus-itb"
        assert data["score"] == 160
        assert isinstance(data["reasons"], list)
