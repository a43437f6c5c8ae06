"""Game similarity and free-text search endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from steamrec.api.deps import get_embedder, get_game_store, get_profile_store
from steamrec.core.rate_limit import limiter
from steamrec.db import schemas
from steamrec.services.embedding_service import Embedder
from steamrec.services.recommendation_service import RecommendationService
from steamrec.services.vector_store import GameVectorStore, ProfileStore

router = APIRouter()


@router.get("/games/{app_id}/similar", response_model=schemas.SimilarGamesResponse)
async def get_similar_games(
    app_id: int,
    limit: int = Query(default=10, ge=1, le=50),
    profiles: ProfileStore = Depends(get_profile_store),
    games: GameVectorStore = Depends(get_game_store),
):
    """Games whose embeddings are closest to this game's."""
    service = RecommendationService(profiles, games)
    similar = await service.find_similar_games(app_id, limit=limit)
    if similar is None:
        raise HTTPException(status_code=404, detail="Game not found or missing embedding")

    return schemas.SimilarGamesResponse(
        app_id=app_id,
        similar=[schemas.GameMatch(**g.__dict__) for g in similar],
    )


@router.get("/search", response_model=schemas.SearchResponse)
@limiter.limit("20/minute")
async def search_games(
    request: Request,
    q: str = Query(min_length=1, max_length=500, description="Free-text description"),
    limit: int = Query(default=20, ge=1, le=50),
    profiles: ProfileStore = Depends(get_profile_store),
    games: GameVectorStore = Depends(get_game_store),
    embedder: Embedder = Depends(get_embedder),
):
    """Semantic search: embed the query text and return the nearest games."""
    if not q.strip():
        raise HTTPException(status_code=422, detail="Search query must not be blank")

    service = RecommendationService(profiles, games)
    results = await service.search_by_text(embedder, q, limit=limit)
    return schemas.SearchResponse(
        query=q,
        results=[schemas.GameMatch(**g.__dict__) for g in results],
    )
