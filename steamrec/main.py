"""Steam Taste Vector API - FastAPI Application."""

import logging
from contextlib import asynccontextmanager

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from steamrec.logging import configure_logging

configure_logging()

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from steamrec.config import get_settings
from steamrec.api.v1.router import api_router
from steamrec.core.rate_limit import limiter
from steamrec.db.database import init_db, get_db
from steamrec.db.models import Game, UserProfile
from steamrec.middleware import CorrelationIDMiddleware

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    logger.info(
        f"Database ready (embedding dimension {settings.embedding_dimension}, "
        f"premium gating {'on' if settings.premium_features_required else 'off'})"
    )

    yield

    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    description="Personalized Steam game recommendations from taste vectors",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Correlation-ID"],
)

# Correlation ID middleware for request tracing
app.add_middleware(CorrelationIDMiddleware)

# Include API routes
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/health/db")
async def db_status(db: AsyncSession = Depends(get_db)):
    """Check database status and embedding coverage."""
    try:
        result = await db.execute(select(func.count()).select_from(Game))
        game_count = result.scalar_one_or_none() or 0

        result = await db.execute(
            select(func.count()).select_from(Game).where(Game.embedding.isnot(None))
        )
        with_embedding = result.scalar_one_or_none() or 0

        result = await db.execute(
            select(func.count()).select_from(UserProfile).where(UserProfile.preference_vector.isnot(None))
        )
        profiles_with_vectors = result.scalar_one_or_none() or 0

        return {
            "status": "healthy",
            "game_count": game_count,
            "games_with_embedding": with_embedding,
            "profiles_with_preference_vector": profiles_with_vectors,
        }
    except Exception as e:
        logger.error(f"Health check DB error: {e}")
        return {
            "status": "error",
            "error": "Database health check failed",
        }


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }
