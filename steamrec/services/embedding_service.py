"""
Text embedding capability.

The vector engine only needs `embed(text) -> vector` of the deployment's
dimension. The default implementation wraps a sentence-transformers
model that is loaded lazily, once per process; concurrent first callers
wait on the same load instead of loading the model twice.

sentence-transformers is an optional dependency (the `embeddings`
extra). It is imported on first use so the rest of the service runs
without it.
"""

import asyncio
import logging
from functools import lru_cache
from typing import Protocol

import numpy as np

from steamrec.config import get_settings
from steamrec.services.vector_math import as_vector

logger = logging.getLogger(__name__)


class Embedder(Protocol):
    dimension: int

    async def embed(self, text: str) -> np.ndarray:
        ...


class EmbeddingService:
    """Sentence-transformers backed embedder (process-wide singleton model)."""

    _model = None
    _load_lock: asyncio.Lock | None = None

    def __init__(self, model_name: str | None = None, dimension: int | None = None):
        settings = get_settings()
        self.model_name = model_name or settings.embedding_model_name
        self.dimension = dimension or settings.embedding_dimension

    @classmethod
    def _get_load_lock(cls) -> asyncio.Lock:
        if cls._load_lock is None:
            cls._load_lock = asyncio.Lock()
        return cls._load_lock

    async def _get_model(self):
        if EmbeddingService._model is not None:
            return EmbeddingService._model

        async with self._get_load_lock():
            if EmbeddingService._model is None:
                from sentence_transformers import SentenceTransformer

                logger.info(f"Loading embedding model {self.model_name}")
                EmbeddingService._model = await asyncio.to_thread(
                    SentenceTransformer, self.model_name
                )
        return EmbeddingService._model

    async def embed(self, text: str) -> np.ndarray:
        """
        Embed text as a unit-length vector.

        Blank text maps to the zero vector.
        """
        if not text or not text.strip():
            return np.zeros(self.dimension, dtype=np.float64)

        model = await self._get_model()
        embedding = await asyncio.to_thread(
            model.encode,
            text,
            normalize_embeddings=True,
            show_progress_bar=False,
        )
        return as_vector(embedding, self.dimension)


@lru_cache
def get_embedding_service() -> EmbeddingService:
    """Shared embedder instance."""
    return EmbeddingService()
