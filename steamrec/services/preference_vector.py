"""
User preference vector generation.

Turns a user's Steam library into one vector describing "what this user
likes": a weighted average of the embeddings of the games they played,
where each game's weight combines playtime, recency and quality signals
and is then softened by genre/franchise diversity normalization.

The builder's output is the raw weighted average. The storage step
unit-normalizes it before it is persisted, so every stored preference
vector is ready for cosine search and hybrid blending.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import numpy as np

from steamrec.config import get_settings
from steamrec.services.diversity import DiversityNormalizer, WeightedGame
from steamrec.services.vector_math import normalize, weighted_average
from steamrec.services.vector_store import GameEmbedding, GameVectorStore, ProfileStore
from steamrec.services.weighting import (
    LibraryEntry,
    WeightingOptions,
    calculate_game_weight,
)

logger = logging.getLogger(__name__)


@dataclass
class PreferenceStats:
    """Diagnostics over the playtime-filtered library."""

    min_playtime: float  # hours
    max_playtime: float
    avg_playtime: float
    games_skipped: int  # below the minimum playtime
    games_included: int  # contributed to the vector


@dataclass
class PreferenceVectorResult:
    vector: np.ndarray  # weighted average, not unit-normalized
    games_analyzed: int
    total_weight: float
    stats: PreferenceStats


@dataclass
class PreferenceUpdateResult:
    success: bool
    games_analyzed: int = 0
    error: Optional[str] = None


class PreferenceVectorBuilder:
    """Build a preference vector from library entries and stored embeddings."""

    def __init__(
        self,
        games: GameVectorStore,
        options: Optional[WeightingOptions] = None,
        normalizer: Optional[DiversityNormalizer] = None,
    ):
        self.games = games
        self.options = options or WeightingOptions()
        self.normalizer = normalizer or DiversityNormalizer()

    async def generate(
        self,
        entries: list[LibraryEntry],
        now: Optional[datetime] = None,
    ) -> Optional[PreferenceVectorResult]:
        """
        Generate the weighted-average preference vector.

        Returns None when no game passes the playtime filter or none of the
        retained games has an embedding.
        """
        options = self.options

        # Step 1: minimum playtime filter (excluded entirely, not down-weighted)
        filtered = [
            entry for entry in entries
            if entry.playtime_hours >= options.min_playtime_hours
        ]
        if not filtered:
            logger.warning("No games meet minimum playtime threshold")
            return None

        # Step 2-3: raw weights, top N
        weighted = [
            (entry, calculate_game_weight(entry, options, now=now))
            for entry in filtered
        ]
        weighted.sort(key=lambda pair: pair[1], reverse=True)
        top_games = weighted[: options.max_games_to_include]

        # Step 4: embeddings; games without one are dropped
        embeddings = await self.games.get_embeddings(entry.app_id for entry, _ in top_games)

        candidates: list[tuple[WeightedGame, GameEmbedding]] = []
        for entry, weight in top_games:
            game = embeddings.get(entry.app_id)
            if game is None:
                continue
            candidates.append((
                WeightedGame(
                    app_id=entry.app_id,
                    weight=weight,
                    genres=entry.genres or game.genres,
                    tags=entry.tags or game.tags,
                ),
                game,
            ))

        if not candidates:
            logger.warning("No games with embeddings found")
            return None

        missing = len(top_games) - len(candidates)
        if missing:
            logger.info(f"Skipped {missing} games without embeddings")

        # Step 5: diversity normalization
        if options.enable_genre_diversification:
            final_weights = self.normalizer.normalize([c for c, _ in candidates])
        else:
            final_weights = {c.app_id: c.weight for c, _ in candidates}

        # Step 6: weighted average
        weights = [final_weights.get(c.app_id, 0.0) for c, _ in candidates]
        vector = weighted_average([g.embedding for _, g in candidates], weights)
        if vector is None:
            logger.warning("Preference weights summed to zero")
            return None

        # Step 7: stats
        playtimes = [entry.playtime_hours for entry in filtered]
        stats = PreferenceStats(
            min_playtime=min(playtimes),
            max_playtime=max(playtimes),
            avg_playtime=sum(playtimes) / len(playtimes),
            games_skipped=len(entries) - len(filtered),
            games_included=len(candidates),
        )

        return PreferenceVectorResult(
            vector=vector,
            games_analyzed=len(candidates),
            total_weight=float(sum(weights)),
            stats=stats,
        )


class PreferenceVectorService:
    """Regenerate and persist a user's preference vector."""

    def __init__(self, profiles: ProfileStore, games: GameVectorStore):
        self.profiles = profiles
        self.games = games

    async def update_user_preference_vector(
        self,
        user_id: str,
        entries: list[LibraryEntry],
        options: Optional[WeightingOptions] = None,
        now: Optional[datetime] = None,
    ) -> PreferenceUpdateResult:
        """
        Rebuild the stored preference vector from scratch.

        Idempotent full replace: the previous vector and stats are overwritten.
        """
        options = options or WeightingOptions.from_settings(get_settings())
        builder = PreferenceVectorBuilder(self.games, options)

        result = await builder.generate(entries, now=now)
        if result is None:
            return PreferenceUpdateResult(
                success=False,
                error="Could not generate preference vector (no valid games)",
            )

        total_playtime_hours = sum(entry.playtime_hours for entry in entries)

        try:
            await self.profiles.save_preference_vector(
                user_id,
                normalize(result.vector),
                games_analyzed=result.games_analyzed,
                total_playtime_hours=total_playtime_hours,
            )
            await self.profiles.commit()
        except Exception as e:
            logger.error(f"Failed to store preference vector for user {user_id}: {e}")
            await self.profiles.rollback()
            raise

        logger.info(
            f"Updated preference vector for user {user_id} "
            f"({result.games_analyzed} games analyzed, "
            f"{result.stats.games_skipped} below playtime threshold)"
        )
        return PreferenceUpdateResult(success=True, games_analyzed=result.games_analyzed)


async def generate_preference_vector(
    games: GameVectorStore,
    entries: list[LibraryEntry],
    options: Optional[WeightingOptions] = None,
    now: Optional[datetime] = None,
) -> Optional[PreferenceVectorResult]:
    """
    Convenience function to build a preference vector.

    Args:
        games: Embedding lookup collaborator
        entries: The user's library
        options: Builder options (defaults match WeightingOptions())
        now: Reference time for recency decay (defaults to current UTC time)

    Returns:
        PreferenceVectorResult, or None when there is not enough data
    """
    builder = PreferenceVectorBuilder(games, options)
    return await builder.generate(entries, now=now)
