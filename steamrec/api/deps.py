"""FastAPI dependencies wiring the storage collaborators."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from steamrec.db.database import get_db
from steamrec.services.embedding_service import Embedder, get_embedding_service
from steamrec.services.vector_store import GameVectorStore, ProfileStore


async def get_profile_store(db: AsyncSession = Depends(get_db)) -> ProfileStore:
    return ProfileStore(db)


async def get_game_store(db: AsyncSession = Depends(get_db)) -> GameVectorStore:
    return GameVectorStore(db)


def get_embedder() -> Embedder:
    return get_embedding_service()
