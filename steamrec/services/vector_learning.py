"""
Vector learning from explicit feedback.

Each feedback event nudges the user's learned vector toward (or away
from) the rated game's embedding and renormalizes it:

    learned = normalize(learned + embedding * FEEDBACK_WEIGHTS[type])

The learned vector is seeded from the preference vector on the first
event. Updates are online and order-dependent: overwriting or deleting a
feedback record does NOT replay history, so earlier contributions stay
in the vector until the taste is reset.

At recommendation time the two vectors are blended:

    hybrid = normalize(0.6 * preference + 0.4 * learned)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from steamrec.config import get_settings
from steamrec.core.access import can_use_taste_learning
from steamrec.core.locks import KeyedLocks
from steamrec.services.vector_math import add_scaled, blend, normalize
from steamrec.services.vector_store import FeedbackRecord, GameVectorStore, ProfileStore

logger = logging.getLogger(__name__)


class FeedbackType(str, Enum):
    LOVE = "love"
    LIKE = "like"
    DISLIKE = "dislike"
    NOT_INTERESTED = "not_interested"


# Negative signals are deliberately stronger than positive ones
FEEDBACK_WEIGHTS: dict[FeedbackType, float] = {
    FeedbackType.LOVE: 0.15,
    FeedbackType.LIKE: 0.10,
    FeedbackType.DISLIKE: -0.20,
    FeedbackType.NOT_INTERESTED: -0.30,
}

POSITIVE_FEEDBACK = frozenset({FeedbackType.LOVE, FeedbackType.LIKE})

# One lock per user for the learned-vector read-modify-write
_user_locks = KeyedLocks()


@dataclass
class FeedbackResult:
    success: bool
    feedback_recorded: bool = False
    vector_updated: bool = False
    error: Optional[str] = None
    requires_premium: bool = False


def apply_feedback(
    learned: np.ndarray,
    embedding: np.ndarray,
    feedback_type: FeedbackType,
) -> np.ndarray:
    """One online update step: shift by the signed feedback weight, then renormalize."""
    weight = FEEDBACK_WEIGHTS[FeedbackType(feedback_type)]
    return normalize(add_scaled(learned, embedding, weight))


def blend_hybrid(
    preference: np.ndarray,
    learned: Optional[np.ndarray],
    preference_weight: float = 0.6,
) -> np.ndarray:
    """Hybrid query vector; the preference vector alone when nothing was learned."""
    if learned is None:
        return preference
    return blend(preference, learned, preference_weight)


class VectorLearningService:
    """Feedback submission, learned-vector updates and hybrid vector composition."""

    def __init__(self, profiles: ProfileStore, games: GameVectorStore):
        self.profiles = profiles
        self.games = games
        self.settings = get_settings()

    async def submit_feedback(
        self,
        user_id: str,
        app_id: int,
        feedback_type: FeedbackType,
    ) -> FeedbackResult:
        """
        Record feedback and update the learned vector.

        The feedback record is persisted even when the vector update cannot
        happen (missing embedding or no baseline vector); in that case the
        result has success=False and feedback_recorded=True.
        """
        feedback_type = FeedbackType(feedback_type)

        async with _user_locks.get(user_id):
            user = await self.profiles.load_vectors(user_id, for_update=True)
            if user is None:
                return FeedbackResult(success=False, error="User profile not found")

            if not can_use_taste_learning(user.subscription_tier, user.subscription_expires_at):
                await self.profiles.rollback()
                return FeedbackResult(
                    success=False,
                    error="Premium subscription required for feedback features",
                    requires_premium=True,
                )

            try:
                await self.profiles.upsert_feedback(user_id, app_id, feedback_type.value)
                await self.profiles.increment_feedback_count(
                    user_id, positive=feedback_type in POSITIVE_FEEDBACK
                )

                error = await self._update_learned_vector(user, app_id, feedback_type)
                await self.profiles.commit()
            except Exception as e:
                logger.error(f"Failed to submit feedback for user {user_id}, game {app_id}: {e}")
                await self.profiles.rollback()
                raise

        if error:
            logger.warning(f"Feedback stored without vector update for user {user_id}: {error}")
            return FeedbackResult(success=False, feedback_recorded=True, error=error)

        return FeedbackResult(success=True, feedback_recorded=True, vector_updated=True)

    async def _update_learned_vector(self, user, app_id: int, feedback_type: FeedbackType) -> Optional[str]:
        """Apply one feedback event. Returns an error message instead of raising for recoverable cases."""
        game = await self.games.get_embedding(app_id)
        if game is None:
            return "Game not found or missing embedding"

        if user.learned_vector is not None:
            learned = user.learned_vector
        elif user.preference_vector is not None:
            learned = user.preference_vector
        else:
            return "User has no preference vector to learn from"

        updated = apply_feedback(learned, game.embedding, feedback_type)
        await self.profiles.save_learned_vector(user.user_id, updated)
        return None

    async def get_hybrid_vector(self, user_id: str) -> Optional[np.ndarray]:
        """
        Query vector for recommendations.

        None when the user has no preference vector yet; the preference
        vector unchanged when there is no learned vector (or no access).
        """
        user = await self.profiles.load_vectors(user_id)
        if user is None or user.preference_vector is None:
            return None

        learned = user.learned_vector
        if not can_use_taste_learning(user.subscription_tier, user.subscription_expires_at):
            learned = None

        return blend_hybrid(
            user.preference_vector,
            learned,
            preference_weight=self.settings.hybrid_preference_weight,
        )

    async def get_not_interested_games(self, user_id: str) -> list[int]:
        """Games the user never wants to see again."""
        return await self.profiles.feedback_ids_by_type(user_id, FeedbackType.NOT_INTERESTED.value)

    async def delete_feedback(self, user_id: str, app_id: int) -> bool:
        """
        Remove a feedback record.

        The learned vector is not recomputed; the record's past
        contribution stays until the taste is reset.
        """
        deleted = await self.profiles.delete_feedback(user_id, app_id)
        await self.profiles.commit()
        return deleted

    async def get_user_feedback(self, user_id: str, limit: int = 50) -> list[FeedbackRecord]:
        return await self.profiles.list_feedback(user_id, limit)

    async def reset_taste(self, user_id: str, clear_feedback_history: bool = False) -> Optional[int]:
        """
        Drop the learned vector (it is re-seeded on the next feedback event).

        Returns the number of feedback records deleted, or None if the user
        does not exist. The preference vector is preserved.
        """
        async with _user_locks.get(user_id):
            user = await self.profiles.load_vectors(user_id, for_update=True)
            if user is None:
                return None

            await self.profiles.save_learned_vector(user_id, None)

            deleted = 0
            if clear_feedback_history:
                deleted = await self.profiles.clear_feedback(user_id)
                await self.profiles.reset_feedback_counts(user_id)

            await self.profiles.commit()

        logger.info(f"Reset taste for user {user_id} ({deleted} feedback records cleared)")
        return deleted
