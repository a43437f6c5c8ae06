from datetime import datetime, timedelta, timezone

import pytest

from steamrec.services.weighting import (
    LibraryEntry,
    WeightingOptions,
    calculate_game_weight,
    calculate_playtime_weight,
    calculate_quality_weight,
    calculate_recency_weight,
)

NOW = datetime(2026, 1, 15, tzinfo=timezone.utc)


def test_playtime_weight_is_monotonic():
    hours = [h / 4 for h in range(0, 4001)]  # 0 to 1000 hours in 15-minute steps
    weights = [calculate_playtime_weight(h) for h in hours]
    assert all(a <= b for a, b in zip(weights, weights[1:]))


def test_playtime_weight_regime_boundaries():
    assert calculate_playtime_weight(0) == pytest.approx(0.1)
    assert calculate_playtime_weight(1) == pytest.approx(0.3)
    assert calculate_playtime_weight(2) == pytest.approx(0.5)
    assert calculate_playtime_weight(6) == pytest.approx(0.75)
    assert calculate_playtime_weight(10) == pytest.approx(1.0)
    assert calculate_playtime_weight(50) == pytest.approx(2.0)
    assert calculate_playtime_weight(60) == pytest.approx(2.0 + 0.3 * 1.041393, abs=1e-5)
    assert calculate_playtime_weight(200) == pytest.approx(2.5)


def test_upper_regimes_are_capped():
    assert calculate_playtime_weight(150) == pytest.approx(2.45)
    assert calculate_playtime_weight(199.9) == pytest.approx(2.45)
    assert calculate_playtime_weight(10_000) == pytest.approx(2.55)


def test_playtime_weight_flat_cap_past_200_hours():
    for hours in (200, 500, 1000, 5000, 10_000):
        assert 2.5 <= calculate_playtime_weight(hours) <= 2.6


def test_negative_playtime_is_clamped():
    assert calculate_playtime_weight(-5) == pytest.approx(0.1)


def test_recency_weight_without_date_is_neutral():
    assert calculate_recency_weight(None) == 0.5


def test_recency_weight_half_life():
    assert calculate_recency_weight(NOW, now=NOW) == pytest.approx(1.0)
    two_years_ago = NOW - timedelta(days=24 * 30)
    assert calculate_recency_weight(two_years_ago, 24, now=NOW) == pytest.approx(0.5)
    one_year_ago = NOW - timedelta(days=12 * 30)
    assert calculate_recency_weight(one_year_ago, 12, now=NOW) == pytest.approx(0.5)


def test_recency_weight_floor():
    ten_years_ago = NOW - timedelta(days=3650)
    assert calculate_recency_weight(ten_years_ago, 24, now=NOW) == 0.2


def test_recency_weight_accepts_naive_datetimes():
    naive = (NOW - timedelta(days=24 * 30)).replace(tzinfo=None)
    assert calculate_recency_weight(naive, 24, now=NOW) == pytest.approx(0.5)


def test_quality_weight_completion_ratio():
    assert calculate_quality_weight(9, avg_completion_hours=10) == pytest.approx(1.3)
    assert calculate_quality_weight(1, avg_completion_hours=10) == pytest.approx(0.7)
    assert calculate_quality_weight(5, avg_completion_hours=10) == pytest.approx(1.0)


def test_quality_weight_achievements():
    assert calculate_quality_weight(5, achievements_earned=30, achievements_total=50) == pytest.approx(1.2)
    # Low achievement ratio only penalized with real playtime
    assert calculate_quality_weight(20, achievements_earned=1, achievements_total=50) == pytest.approx(0.9)
    assert calculate_quality_weight(5, achievements_earned=1, achievements_total=50) == pytest.approx(1.0)
    # No achievements in the game at all
    assert calculate_quality_weight(20, achievements_earned=0, achievements_total=0) == pytest.approx(1.0)


def test_quality_weight_adjustments_compound():
    weight = calculate_quality_weight(
        40, avg_completion_hours=30, achievements_earned=40, achievements_total=50
    )
    assert weight == pytest.approx(1.3 * 1.2)


def test_game_weight_combines_signals():
    entry = LibraryEntry(
        app_id=1,
        playtime_minutes=6 * 60,
        last_played=NOW,
        avg_completion_hours=5,
    )
    weight = calculate_game_weight(entry, WeightingOptions(), now=NOW)
    assert weight == pytest.approx(0.75 * 1.0 * 1.3)


def test_game_weight_quality_can_be_disabled():
    entry = LibraryEntry(app_id=1, playtime_minutes=6 * 60, avg_completion_hours=5)
    options = WeightingOptions(enable_quality_weighting=False)
    assert calculate_game_weight(entry, options, now=NOW) == pytest.approx(0.75 * 0.5)
