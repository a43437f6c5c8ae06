"""Feedback endpoints (love / like / dislike / not_interested)."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.exc import IntegrityError

from steamrec.api.deps import get_game_store, get_profile_store
from steamrec.config import get_settings
from steamrec.core.rate_limit import limiter
from steamrec.db import schemas
from steamrec.services.vector_learning import VectorLearningService
from steamrec.services.vector_store import GameVectorStore, ProfileStore

router = APIRouter()
settings = get_settings()


@router.post("", response_model=schemas.FeedbackResponse)
@limiter.limit("60/minute")
async def submit_feedback(
    request: Request,
    body: schemas.FeedbackRequest,
    profiles: ProfileStore = Depends(get_profile_store),
    games: GameVectorStore = Depends(get_game_store),
):
    """
    Submit feedback on a game and update the learned taste vector.

    Re-submitting for the same game overwrites the previous feedback.
    """
    service = VectorLearningService(profiles, games)
    try:
        result = await service.submit_feedback(body.user_id, body.app_id, body.feedback_type)
    except IntegrityError:
        # Feedback rows reference games.app_id
        raise HTTPException(status_code=404, detail=f"Game {body.app_id} not found")

    if result.requires_premium:
        raise HTTPException(status_code=403, detail=result.error)

    if not result.feedback_recorded:
        raise HTTPException(status_code=404, detail=result.error or "User profile not found")

    return schemas.FeedbackResponse(
        success=result.success,
        feedback_recorded=result.feedback_recorded,
        vector_updated=result.vector_updated,
        message="Feedback submitted successfully" if result.success else result.error,
    )


@router.get("/{user_id}", response_model=schemas.FeedbackHistoryResponse)
async def get_feedback_history(
    user_id: str,
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    profiles: ProfileStore = Depends(get_profile_store),
    games: GameVectorStore = Depends(get_game_store),
):
    """Feedback history, newest first."""
    service = VectorLearningService(profiles, games)
    records = await service.get_user_feedback(user_id, limit or settings.feedback_history_limit)

    return schemas.FeedbackHistoryResponse(
        feedback=[
            schemas.FeedbackItem(
                app_id=str(r.app_id),
                feedback_type=r.feedback_type,
                created_at=r.created_at,
                game_name=r.game_name,
            )
            for r in records
        ],
        count=len(records),
    )


@router.delete("/{user_id}/{app_id}")
async def delete_feedback(
    user_id: str,
    app_id: int,
    profiles: ProfileStore = Depends(get_profile_store),
    games: GameVectorStore = Depends(get_game_store),
):
    """
    Remove feedback for a game.

    Does not undo the feedback's effect on the learned vector; use
    reset-taste for that.
    """
    service = VectorLearningService(profiles, games)
    if not await service.delete_feedback(user_id, app_id):
        raise HTTPException(status_code=404, detail="Feedback not found")
    return {"success": True, "message": "Feedback deleted successfully"}
