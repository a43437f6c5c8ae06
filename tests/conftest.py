"""In-memory stand-ins for GameVectorStore and ProfileStore."""

import asyncio
from dataclasses import replace
from datetime import datetime, timezone

import numpy as np
import pytest

from steamrec.services.vector_math import as_vector, l2_norm
from steamrec.services.vector_store import (
    FeedbackRecord,
    GameEmbedding,
    SimilarGame,
    UserVectors,
)

NOW = datetime(2026, 1, 15, tzinfo=timezone.utc)


def unit(dim: int, index: int) -> np.ndarray:
    vector = np.zeros(dim)
    vector[index] = 1.0
    return vector


def cosine_similarity(a, b) -> float:
    denom = l2_norm(a) * l2_norm(b)
    if denom == 0:
        return 0.0
    return float(np.dot(a, b) / denom)


class FakeGameStore:
    def __init__(self, games: list[GameEmbedding] | None = None):
        self.games = {g.app_id: g for g in games or []}
        self.requested_ids: list[int] = []

    def add(self, app_id, embedding, name=None, genres=None, tags=None):
        self.games[app_id] = GameEmbedding(
            app_id=app_id,
            embedding=as_vector(embedding),
            name=name or f"Game {app_id}",
            genres=list(genres or []),
            tags=list(tags or []),
        )

    async def get_embedding(self, app_id):
        return self.games.get(app_id)

    async def get_embeddings(self, app_ids):
        app_ids = list(app_ids)
        self.requested_ids.extend(app_ids)
        return {i: self.games[i] for i in app_ids if i in self.games}

    async def find_nearest(self, query_vector, k=20, exclude_ids=None):
        exclude = set(exclude_ids or ())
        scored = []
        for game in self.games.values():
            if game.app_id in exclude:
                continue
            distance = 1 - cosine_similarity(query_vector, game.embedding)
            scored.append(SimilarGame(
                app_id=game.app_id,
                name=game.name,
                similarity=1 - distance / 2,
                genres=game.genres,
            ))
        scored.sort(key=lambda g: g.similarity, reverse=True)
        return scored[:k]


class FakeProfileStore:
    def __init__(self):
        self.users: dict[str, UserVectors] = {}
        self.feedback: dict[tuple[str, int], FeedbackRecord] = {}
        self.game_names: dict[int, str] = {}
        self.commits = 0
        self.rollbacks = 0
        self.loads = 0

    def add_user(self, user_id, preference=None, learned=None, tier="free", expires_at=None):
        self.users[user_id] = UserVectors(
            user_id=user_id,
            preference_vector=None if preference is None else as_vector(preference),
            learned_vector=None if learned is None else as_vector(learned),
            subscription_tier=tier,
            subscription_expires_at=expires_at,
        )
        return self.users[user_id]

    async def load_vectors(self, user_id, for_update=False):
        # Yield like a real query and hand back a snapshot, not the stored row
        await asyncio.sleep(0)
        self.loads += 1
        user = self.users.get(user_id)
        return replace(user) if user else None

    async def save_preference_vector(self, user_id, vector, games_analyzed, total_playtime_hours):
        user = self.users.get(user_id) or self.add_user(user_id)
        user.preference_vector = as_vector(vector)
        user.games_analyzed = games_analyzed
        user.total_playtime_hours = total_playtime_hours
        user.last_updated = NOW

    async def save_learned_vector(self, user_id, vector):
        if user_id in self.users:
            self.users[user_id].learned_vector = None if vector is None else as_vector(vector)

    async def upsert_feedback(self, user_id, app_id, feedback_type):
        existing = self.feedback.get((user_id, app_id))
        created_at = existing.created_at if existing else datetime.utcnow()
        self.feedback[(user_id, app_id)] = FeedbackRecord(
            app_id=app_id,
            feedback_type=feedback_type,
            created_at=created_at,
            updated_at=datetime.utcnow(),
            game_name=self.game_names.get(app_id),
        )

    async def increment_feedback_count(self, user_id, positive):
        user = self.users[user_id]
        if positive:
            user.feedback_likes_count += 1
        else:
            user.feedback_dislikes_count += 1

    async def reset_feedback_counts(self, user_id):
        user = self.users[user_id]
        user.feedback_likes_count = 0
        user.feedback_dislikes_count = 0

    async def delete_feedback(self, user_id, app_id):
        return self.feedback.pop((user_id, app_id), None) is not None

    async def clear_feedback(self, user_id):
        keys = [key for key in self.feedback if key[0] == user_id]
        for key in keys:
            del self.feedback[key]
        return len(keys)

    async def list_feedback(self, user_id, limit=50):
        records = [r for (uid, _), r in self.feedback.items() if uid == user_id]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records[:limit]

    async def feedback_ids_by_type(self, user_id, feedback_type):
        return [
            app_id for (uid, app_id), r in self.feedback.items()
            if uid == user_id and r.feedback_type == feedback_type
        ]

    async def count_feedback(self, user_id):
        return sum(1 for uid, _ in self.feedback if uid == user_id)

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1


@pytest.fixture
def game_store():
    return FakeGameStore()


@pytest.fixture
def profile_store():
    return FakeProfileStore()


@pytest.fixture
def premium_gating():
    """Turn subscription gating on for the duration of a test."""
    from steamrec.config import get_settings

    settings = get_settings()
    previous = settings.premium_features_required
    settings.premium_features_required = True
    yield settings
    settings.premium_features_required = previous
