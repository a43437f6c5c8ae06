"""API v1 router - aggregates all endpoint routers."""

from fastapi import APIRouter

from steamrec.api.v1 import profile, feedback, recommendations, games

api_router = APIRouter()

api_router.include_router(profile.router, prefix="/profile", tags=["profile"])
api_router.include_router(feedback.router, prefix="/feedback", tags=["feedback"])
api_router.include_router(recommendations.router, prefix="/recommendations", tags=["recommendations"])
api_router.include_router(games.router, tags=["games"])
