"""
Taste profile endpoints.

The library payload is produced by the Steam ingestion layer (owned games,
playtime, achievements, genres). This service only turns it into vectors.
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from steamrec.api.deps import get_game_store, get_profile_store
from steamrec.config import get_settings
from steamrec.core.rate_limit import limiter
from steamrec.db import schemas
from steamrec.services.preference_vector import PreferenceVectorService
from steamrec.services.vector_learning import VectorLearningService
from steamrec.services.vector_store import GameVectorStore, ProfileStore
from steamrec.services.weighting import WeightingOptions

router = APIRouter()


@router.put("/{user_id}/preference-vector", response_model=schemas.PreferenceVectorResponse)
@limiter.limit("10/minute")
async def rebuild_preference_vector(
    request: Request,
    user_id: str,
    body: schemas.PreferenceVectorRequest,
    profiles: ProfileStore = Depends(get_profile_store),
    games: GameVectorStore = Depends(get_game_store),
):
    """
    Rebuild the user's preference vector from their library.

    Full replace: previous vector and library stats are overwritten.
    """
    options = WeightingOptions.from_settings(get_settings())
    if body.options:
        options = body.options.merge(options)

    service = PreferenceVectorService(profiles, games)
    result = await service.update_user_preference_vector(
        user_id,
        [game.to_entry() for game in body.games],
        options=options,
    )

    if not result.success:
        raise HTTPException(
            status_code=422,
            detail="Not enough library data to build a taste profile",
        )

    return schemas.PreferenceVectorResponse(success=True, games_analyzed=result.games_analyzed)


@router.get("/{user_id}/taste", response_model=schemas.TasteProfileResponse)
async def get_taste_profile(
    user_id: str,
    profiles: ProfileStore = Depends(get_profile_store),
):
    """Summary of what is stored for a user."""
    user = await profiles.load_vectors(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")

    return schemas.TasteProfileResponse(
        user_id=user_id,
        has_preference_vector=user.preference_vector is not None,
        has_learned_vector=user.learned_vector is not None,
        games_analyzed=user.games_analyzed,
        total_playtime_hours=user.total_playtime_hours,
        feedback_likes_count=user.feedback_likes_count,
        feedback_dislikes_count=user.feedback_dislikes_count,
        feedback_count=await profiles.count_feedback(user_id),
        last_updated=user.last_updated,
    )


@router.post("/{user_id}/reset-taste", response_model=schemas.ResetTasteResponse)
async def reset_taste(
    user_id: str,
    body: schemas.ResetTasteRequest,
    profiles: ProfileStore = Depends(get_profile_store),
    games: GameVectorStore = Depends(get_game_store),
):
    """
    Reset the feedback-learned vector.

    The library-derived preference vector is preserved. Feedback history
    is kept unless clear_feedback_history is set.
    """
    service = VectorLearningService(profiles, games)
    deleted = await service.reset_taste(user_id, body.clear_feedback_history)
    if deleted is None:
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")

    if body.clear_feedback_history:
        message = f"Taste training reset. {deleted} ratings cleared."
    else:
        message = "Taste training reset. Your rating history was preserved."

    return schemas.ResetTasteResponse(success=True, feedback_deleted=deleted, message=message)
