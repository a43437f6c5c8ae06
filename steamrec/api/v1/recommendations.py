"""
Personalized recommendation endpoint.

============================================================================
QUERY VECTOR
============================================================================
hybrid = normalize(0.6 * preference_vector + 0.4 * learned_vector)

Falls back to the preference vector alone until the user has given
feedback. Games the user owns (passed by the caller as `exclude`) and
games marked "not_interested" never appear in the results.
============================================================================
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from steamrec.api.deps import get_game_store, get_profile_store
from steamrec.config import get_settings
from steamrec.core.rate_limit import limiter
from steamrec.db import schemas
from steamrec.services.recommendation_service import RecommendationService
from steamrec.services.vector_store import GameVectorStore, ProfileStore

router = APIRouter()
settings = get_settings()


@router.get("/{user_id}", response_model=schemas.RecommendationsResponse)
@limiter.limit("30/minute")
async def get_recommendations(
    request: Request,
    user_id: str,
    limit: Optional[int] = Query(default=None, ge=1, description="Number of recommendations"),
    exclude: list[int] = Query(default=[], description="App IDs to exclude (e.g. owned games)"),
    profiles: ProfileStore = Depends(get_profile_store),
    games: GameVectorStore = Depends(get_game_store),
):
    """Nearest games to the user's hybrid taste vector."""
    limit = min(limit or settings.default_recommendation_limit, settings.max_recommendation_limit)

    service = RecommendationService(profiles, games)
    result = await service.recommend(user_id, limit=limit, exclude_ids=exclude)

    if result is None:
        raise HTTPException(
            status_code=404,
            detail="User has no preference vector. Please ingest user library first.",
        )

    return schemas.RecommendationsResponse(
        user_id=user_id,
        recommendations=[schemas.GameMatch(**g.__dict__) for g in result.games],
        used_hybrid_vector=result.used_hybrid_vector,
        games_excluded=result.games_excluded,
    )
