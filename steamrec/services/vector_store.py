"""
Storage collaborators for the vector engine.

GameVectorStore reads game embeddings and runs nearest-neighbour search
through pgvector's cosine distance operator. ProfileStore reads and writes
the per-user preference/learned vectors and feedback records.

Both take an AsyncSession and never commit on their own except through
`commit()`, so a service can group several writes into one transaction.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

import numpy as np
from sqlalchemy import select, update, delete, func
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from steamrec.config import get_settings
from steamrec.db.models import Game, UserProfile, UserFeedback
from steamrec.services.vector_math import (
    as_vector,
    distance_to_similarity,
    vector_from_db,
    vector_to_db,
)

logger = logging.getLogger(__name__)


@dataclass
class GameEmbedding:
    """A game's embedding plus the metadata used for diversity normalization."""

    app_id: int
    embedding: np.ndarray
    name: str = ""
    genres: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


@dataclass
class SimilarGame:
    """One nearest-neighbour hit."""

    app_id: int
    name: str
    similarity: float  # 1 - cosine_distance / 2, 1 = identical
    genres: list[str] = field(default_factory=list)
    release_year: Optional[int] = None
    review_positive_pct: Optional[int] = None


@dataclass
class UserVectors:
    """The vector-relevant slice of a user profile."""

    user_id: str
    preference_vector: Optional[np.ndarray]
    learned_vector: Optional[np.ndarray]
    subscription_tier: str = "free"
    subscription_expires_at: Optional[datetime] = None
    games_analyzed: int = 0
    total_playtime_hours: float = 0.0
    feedback_likes_count: int = 0
    feedback_dislikes_count: int = 0
    last_updated: Optional[datetime] = None


@dataclass
class FeedbackRecord:
    app_id: int
    feedback_type: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    game_name: Optional[str] = None


class GameVectorStore:
    """Read access to game embeddings and cosine nearest-neighbour search."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.dimension = get_settings().embedding_dimension

    def _to_embedding(self, game: Game) -> GameEmbedding:
        return GameEmbedding(
            app_id=game.app_id,
            embedding=as_vector(game.embedding, self.dimension),
            name=game.name,
            genres=list(game.genres or []),
            tags=list(game.tags or []),
        )

    async def get_embedding(self, app_id: int) -> Optional[GameEmbedding]:
        """Embedding for one game, or None if the game or its embedding is missing."""
        result = await self.db.execute(
            select(Game).where(Game.app_id == app_id).where(Game.embedding.isnot(None))
        )
        game = result.scalar_one_or_none()
        return self._to_embedding(game) if game else None

    async def get_embeddings(self, app_ids: Iterable[int]) -> dict[int, GameEmbedding]:
        """Batch lookup. Games without an embedding are simply absent from the result."""
        app_ids = list(app_ids)
        if not app_ids:
            return {}

        result = await self.db.execute(
            select(Game).where(Game.app_id.in_(app_ids)).where(Game.embedding.isnot(None))
        )
        return {game.app_id: self._to_embedding(game) for game in result.scalars().all()}

    async def find_nearest(
        self,
        query_vector: np.ndarray,
        k: int = 20,
        exclude_ids: Optional[Iterable[int]] = None,
    ) -> list[SimilarGame]:
        """
        K nearest games by cosine distance, most similar first.

        Excluded ids never appear in the result.
        """
        query = as_vector(query_vector, self.dimension)
        exclude = set(exclude_ids or ())

        distance = Game.embedding.cosine_distance(query.tolist()).label("distance")
        stmt = (
            select(
                Game.app_id,
                Game.name,
                Game.genres,
                Game.release_year,
                Game.review_positive_pct,
                distance,
            )
            .where(Game.embedding.isnot(None))
            .order_by(distance)
            .limit(k)
        )
        if exclude:
            stmt = stmt.where(Game.app_id.notin_(exclude))

        result = await self.db.execute(stmt)
        return [
            SimilarGame(
                app_id=app_id,
                name=name,
                similarity=distance_to_similarity(float(dist)),
                genres=list(genres or []),
                release_year=release_year,
                review_positive_pct=review_pct,
            )
            for app_id, name, genres, release_year, review_pct, dist in result.all()
        ]


class ProfileStore:
    """Persistence for user vectors and feedback records."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.dimension = get_settings().embedding_dimension

    def _to_user_vectors(self, profile: UserProfile) -> UserVectors:
        return UserVectors(
            user_id=profile.id,
            preference_vector=vector_from_db(profile.preference_vector, self.dimension),
            learned_vector=vector_from_db(profile.learned_vector, self.dimension),
            subscription_tier=profile.subscription_tier or "free",
            subscription_expires_at=profile.subscription_expires_at,
            games_analyzed=profile.games_analyzed or 0,
            total_playtime_hours=profile.total_playtime_hours or 0.0,
            feedback_likes_count=profile.feedback_likes_count or 0,
            feedback_dislikes_count=profile.feedback_dislikes_count or 0,
            last_updated=profile.last_updated,
        )

    async def load_vectors(self, user_id: str, for_update: bool = False) -> Optional[UserVectors]:
        """
        Load a user's vectors.

        With for_update=True the profile row stays locked until the
        transaction ends, serializing concurrent learned-vector updates.
        """
        stmt = select(UserProfile).where(UserProfile.id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        profile = result.scalar_one_or_none()
        return self._to_user_vectors(profile) if profile else None

    async def save_preference_vector(
        self,
        user_id: str,
        vector: np.ndarray,
        games_analyzed: int,
        total_playtime_hours: float,
    ):
        """Full replace of the preference vector and its stats. Creates the profile if needed."""
        now = datetime.utcnow()
        values = {
            "preference_vector": vector_to_db(as_vector(vector, self.dimension)),
            "games_analyzed": games_analyzed,
            "total_playtime_hours": total_playtime_hours,
            "last_updated": now,
            "updated_at": now,
        }
        stmt = insert(UserProfile).values(id=user_id, created_at=now, **values)
        stmt = stmt.on_conflict_do_update(index_elements=["id"], set_=values)
        await self.db.execute(stmt)

    async def save_learned_vector(self, user_id: str, vector: Optional[np.ndarray]):
        """Store (or clear, with None) the learned vector."""
        stored = vector_to_db(as_vector(vector, self.dimension)) if vector is not None else None
        await self.db.execute(
            update(UserProfile)
            .where(UserProfile.id == user_id)
            .values(learned_vector=stored, updated_at=datetime.utcnow())
        )

    async def upsert_feedback(self, user_id: str, app_id: int, feedback_type: str):
        """Insert or overwrite the single active feedback record for (user, game)."""
        now = datetime.utcnow()
        stmt = insert(UserFeedback).values(
            user_id=user_id,
            app_id=app_id,
            feedback_type=feedback_type,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "app_id"],
            set_={
                "feedback_type": stmt.excluded.feedback_type,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self.db.execute(stmt)

    async def increment_feedback_count(self, user_id: str, positive: bool):
        column = (
            UserProfile.feedback_likes_count if positive
            else UserProfile.feedback_dislikes_count
        )
        await self.db.execute(
            update(UserProfile)
            .where(UserProfile.id == user_id)
            .values({column: column + 1})
        )

    async def reset_feedback_counts(self, user_id: str):
        await self.db.execute(
            update(UserProfile)
            .where(UserProfile.id == user_id)
            .values(feedback_likes_count=0, feedback_dislikes_count=0)
        )

    async def delete_feedback(self, user_id: str, app_id: int) -> bool:
        result = await self.db.execute(
            delete(UserFeedback)
            .where(UserFeedback.user_id == user_id)
            .where(UserFeedback.app_id == app_id)
        )
        return (result.rowcount or 0) > 0

    async def clear_feedback(self, user_id: str) -> int:
        result = await self.db.execute(
            delete(UserFeedback).where(UserFeedback.user_id == user_id)
        )
        return result.rowcount or 0

    async def list_feedback(self, user_id: str, limit: int = 50) -> list[FeedbackRecord]:
        """Feedback history, newest first, with game names."""
        result = await self.db.execute(
            select(
                UserFeedback.app_id,
                UserFeedback.feedback_type,
                UserFeedback.created_at,
                UserFeedback.updated_at,
                Game.name,
            )
            .join(Game, Game.app_id == UserFeedback.app_id)
            .where(UserFeedback.user_id == user_id)
            .order_by(UserFeedback.created_at.desc())
            .limit(limit)
        )
        return [
            FeedbackRecord(
                app_id=app_id,
                feedback_type=feedback_type,
                created_at=created_at,
                updated_at=updated_at,
                game_name=name,
            )
            for app_id, feedback_type, created_at, updated_at, name in result.all()
        ]

    async def feedback_ids_by_type(self, user_id: str, feedback_type: str) -> list[int]:
        result = await self.db.execute(
            select(UserFeedback.app_id)
            .where(UserFeedback.user_id == user_id)
            .where(UserFeedback.feedback_type == feedback_type)
        )
        return [row[0] for row in result.all()]

    async def count_feedback(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(UserFeedback).where(UserFeedback.user_id == user_id)
        )
        return result.scalar_one_or_none() or 0

    async def commit(self):
        await self.db.commit()

    async def rollback(self):
        await self.db.rollback()
