import asyncio

import numpy as np
import pytest

from conftest import unit
from steamrec.services.recommendation_service import RecommendationService
from steamrec.services.vector_learning import FeedbackType, VectorLearningService

DIM = 4


class StubEmbedder:
    dimension = DIM

    def __init__(self, vector):
        self.vector = np.asarray(vector, dtype=np.float64)
        self.queries = []

    async def embed(self, text):
        self.queries.append(text)
        return self.vector


@pytest.fixture
def catalogue(game_store):
    game_store.add(1, [1.0, 0.0, 0.0, 0.0], name="Doom")
    game_store.add(2, [0.9, 0.1, 0.0, 0.0], name="Quake")
    game_store.add(3, [0.8, 0.2, 0.0, 0.0], name="Halo")
    game_store.add(4, [0.0, 1.0, 0.0, 0.0], name="Tetris")
    game_store.add(5, [0.0, 0.0, 1.0, 0.0], name="Stardew Valley")
    return game_store


def test_recommend_returns_none_without_preference_vector(profile_store, catalogue):
    profile_store.add_user("u1")
    service = RecommendationService(profile_store, catalogue)
    assert asyncio.run(service.recommend("u1")) is None
    assert asyncio.run(service.recommend("ghost")) is None


def test_recommend_orders_by_similarity(profile_store, catalogue):
    profile_store.add_user("u1", preference=unit(DIM, 0))
    service = RecommendationService(profile_store, catalogue)

    result = asyncio.run(service.recommend("u1", limit=3))

    assert [g.app_id for g in result.games] == [1, 2, 3]
    assert result.games[0].similarity == pytest.approx(1.0)
    assert not result.used_hybrid_vector


def test_recommend_excludes_owned_and_not_interested(profile_store, catalogue):
    profile_store.add_user("u1", preference=unit(DIM, 0))
    learning = VectorLearningService(profile_store, catalogue)
    asyncio.run(learning.submit_feedback("u1", 2, FeedbackType.NOT_INTERESTED))

    service = RecommendationService(profile_store, catalogue)
    result = asyncio.run(service.recommend("u1", limit=10, exclude_ids=[1]))

    returned = [g.app_id for g in result.games]
    assert 1 not in returned
    assert 2 not in returned
    assert result.games_excluded == 2
    assert result.used_hybrid_vector


def test_recommend_uses_hybrid_vector(profile_store, catalogue):
    profile_store.add_user("u1", preference=unit(DIM, 0), learned=unit(DIM, 2))
    service = RecommendationService(profile_store, catalogue)

    result = asyncio.run(service.recommend("u1", limit=5))

    assert result.used_hybrid_vector
    # The learned direction pulls Stardew Valley above Tetris
    returned = [g.app_id for g in result.games]
    assert returned.index(5) < returned.index(4)


def test_hybrid_ignored_without_access(profile_store, catalogue, premium_gating):
    profile_store.add_user("u1", preference=unit(DIM, 0), learned=unit(DIM, 2))
    service = RecommendationService(profile_store, catalogue)

    result = asyncio.run(service.recommend("u1", limit=5))

    assert not result.used_hybrid_vector
    assert [g.app_id for g in result.games][:3] == [1, 2, 3]


def test_find_similar_games_excludes_the_game_itself(profile_store, catalogue):
    service = RecommendationService(profile_store, catalogue)

    similar = asyncio.run(service.find_similar_games(1, limit=2))

    assert [g.app_id for g in similar] == [2, 3]
    assert asyncio.run(service.find_similar_games(404)) is None


def test_search_by_text(profile_store, catalogue):
    embedder = StubEmbedder(unit(DIM, 1))
    service = RecommendationService(profile_store, catalogue)

    results = asyncio.run(service.search_by_text(embedder, "falling blocks", limit=1))

    assert embedder.queries == ["falling blocks"]
    assert [g.name for g in results] == ["Tetris"]


def test_recommend_loads_the_profile_once(profile_store, catalogue):
    profile_store.add_user("u1", preference=unit(DIM, 0), learned=unit(DIM, 2))
    service = RecommendationService(profile_store, catalogue)

    asyncio.run(service.recommend("u1", limit=3))

    assert profile_store.loads == 1


def test_search_with_zero_query_vector_returns_nothing(profile_store, catalogue):
    embedder = StubEmbedder(np.zeros(DIM))
    service = RecommendationService(profile_store, catalogue)

    assert asyncio.run(service.search_by_text(embedder, "   ")) == []
