"""
Personalized recommendation retrieval.

Query vector = hybrid vector (preference + learned), falling back to the
stored preference vector. Owned games supplied by the caller and games
marked "not interested" are excluded from the nearest-neighbour search.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from steamrec.config import get_settings
from steamrec.core.access import can_use_taste_learning
from steamrec.services.embedding_service import Embedder
from steamrec.services.vector_learning import VectorLearningService, blend_hybrid
from steamrec.services.vector_math import l2_norm
from steamrec.services.vector_store import GameVectorStore, ProfileStore, SimilarGame

logger = logging.getLogger(__name__)


@dataclass
class RecommendationResult:
    games: list[SimilarGame] = field(default_factory=list)
    used_hybrid_vector: bool = False
    games_excluded: int = 0


class RecommendationService:
    """Nearest-neighbour recommendations over game embeddings."""

    def __init__(self, profiles: ProfileStore, games: GameVectorStore):
        self.profiles = profiles
        self.games = games
        self.learning = VectorLearningService(profiles, games)

    async def recommend(
        self,
        user_id: str,
        limit: int = 20,
        exclude_ids: Optional[Iterable[int]] = None,
    ) -> Optional[RecommendationResult]:
        """
        Recommend games for a user.

        Returns None when the user has no preference vector yet.
        """
        user = await self.profiles.load_vectors(user_id)
        if user is None or user.preference_vector is None:
            return None

        used_hybrid = user.learned_vector is not None and can_use_taste_learning(
            user.subscription_tier, user.subscription_expires_at
        )
        query_vector = blend_hybrid(
            user.preference_vector,
            user.learned_vector if used_hybrid else None,
            preference_weight=get_settings().hybrid_preference_weight,
        )

        excluded = set(exclude_ids or ())
        excluded.update(await self.learning.get_not_interested_games(user_id))

        games = await self.games.find_nearest(query_vector, k=limit, exclude_ids=excluded)
        logger.info(
            f"Generated {len(games)} recommendations for {user_id} "
            f"(hybrid={used_hybrid}, excluded={len(excluded)})"
        )
        return RecommendationResult(
            games=games,
            used_hybrid_vector=used_hybrid,
            games_excluded=len(excluded),
        )

    async def find_similar_games(self, app_id: int, limit: int = 10) -> Optional[list[SimilarGame]]:
        """Games closest to one game's embedding. None if the game has no embedding."""
        game = await self.games.get_embedding(app_id)
        if game is None:
            return None
        return await self.games.find_nearest(game.embedding, k=limit, exclude_ids={app_id})

    async def search_by_text(self, embedder: Embedder, query: str, limit: int = 20) -> list[SimilarGame]:
        """
        Free-text search: embed the query and look up its nearest games.

        A query that embeds to the zero vector has no direction to search
        along and returns no results.
        """
        vector = await embedder.embed(query)
        if l2_norm(vector) == 0:
            return []
        return await self.games.find_nearest(vector, k=limit)
