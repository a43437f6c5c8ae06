import math

import pytest

from steamrec.services.diversity import (
    DiversityNormalizer,
    WeightedGame,
    match_franchises,
    normalize_for_diversity,
)


def test_ten_same_genre_games_share_sqrt_penalty():
    games = [WeightedGame(app_id=i, weight=2.0, genres=["Action"]) for i in range(10)]
    adjusted = normalize_for_diversity(games)
    for i in range(10):
        assert adjusted[i] == pytest.approx(2.0 / math.sqrt(10))


def test_singleton_genre_keeps_full_weight():
    games = [
        WeightedGame(app_id=1, weight=1.5, genres=["FPS"]),
        WeightedGame(app_id=2, weight=1.5, genres=["FPS"]),
        WeightedGame(app_id=3, weight=1.0, genres=["Puzzle"]),
    ]
    adjusted = normalize_for_diversity(games)
    assert adjusted[1] == pytest.approx(1.5 * 0.70710678)
    assert adjusted[2] == pytest.approx(1.5 * 0.70710678)
    assert adjusted[3] == pytest.approx(1.0)


def test_only_primary_genre_counts():
    games = [
        WeightedGame(app_id=1, weight=1.0, genres=["RPG", "Action"]),
        WeightedGame(app_id=2, weight=1.0, genres=["Action", "RPG"]),
    ]
    adjusted = normalize_for_diversity(games)
    assert adjusted == {1: pytest.approx(1.0), 2: pytest.approx(1.0)}


def test_missing_genres_grouped_as_unknown():
    games = [
        WeightedGame(app_id=1, weight=1.0),
        WeightedGame(app_id=2, weight=1.0, genres=[]),
        WeightedGame(app_id=3, weight=1.0, genres=["Strategy"]),
    ]
    assert games[0].primary_genre == "Unknown"
    adjusted = normalize_for_diversity(games)
    assert adjusted[1] == pytest.approx(1 / math.sqrt(2))
    assert adjusted[3] == pytest.approx(1.0)


def test_franchise_penalty_stacks_with_genre_penalty():
    games = [
        WeightedGame(app_id=1, weight=1.0, genres=["Strategy"], tags=["Total War", "Historical"]),
        WeightedGame(app_id=2, weight=1.0, genres=["Strategy"], tags=["Total War"]),
        WeightedGame(app_id=3, weight=1.0, genres=["Strategy"], tags=["total war: warhammer"]),
        WeightedGame(app_id=4, weight=1.0, genres=["Puzzle"], tags=["Relaxing"]),
    ]
    adjusted = normalize_for_diversity(games)
    # Strategy appears 3 times; Total War matched by all three (case-insensitive)
    assert adjusted[1] == pytest.approx(1 / math.sqrt(3) / math.sqrt(3))
    assert adjusted[4] == pytest.approx(1.0)


def test_multiple_franchises_use_the_most_represented():
    games = [
        WeightedGame(app_id=1, weight=1.0, genres=["A"], tags=["Star Wars", "LEGO"]),
        WeightedGame(app_id=2, weight=1.0, genres=["B"], tags=["LEGO"]),
        WeightedGame(app_id=3, weight=1.0, genres=["C"], tags=["LEGO Batman"]),
        WeightedGame(app_id=4, weight=1.0, genres=["D"], tags=["Star Wars"]),
    ]
    adjusted = normalize_for_diversity(games)
    # LEGO: 3 games, Star Wars: 2 games
    assert adjusted[1] == pytest.approx(1 / math.sqrt(3))
    assert adjusted[4] == pytest.approx(1 / math.sqrt(2))


def test_match_franchises_is_substring_and_case_insensitive():
    assert match_franchises(["The Witcher 3", "Open World"]) == ["Witcher"]
    assert match_franchises(["dark souls remastered"]) == ["Dark Souls"]
    assert match_franchises([]) == []
    assert match_franchises(None) == []


def test_custom_franchise_markers():
    normalizer = DiversityNormalizer(franchise_markers=("Zelda",))
    games = [
        WeightedGame(app_id=1, weight=1.0, genres=["X"], tags=["Zelda-like"]),
        WeightedGame(app_id=2, weight=1.0, genres=["Y"], tags=["Zelda-like"]),
        WeightedGame(app_id=3, weight=1.0, genres=["Z"], tags=["Star Wars"]),
    ]
    adjusted = normalizer.normalize(games)
    assert adjusted[1] == pytest.approx(1 / math.sqrt(2))
    assert adjusted[3] == pytest.approx(1.0)


def test_empty_input():
    assert normalize_for_diversity([]) == {}
