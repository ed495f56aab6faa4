# services/embedding_pipeline.py
"""Batched chunk embedding with a degrade-not-fail policy"""
import asyncio
import logging
from typing import List, Optional
from uuid import uuid4

from config import settings
from core.cancellation import CancellationToken, check
from core.domain import Chunk, EmbeddedChunk
from core.enums import IngestionStage
from core.interfaces import IEmbeddingService

logger = logging.getLogger(settings.LOGGER_NAME)


class EmbeddingPipeline:
    """
    Embeds chunks in fixed-size batches.

    A failed or timed-out batch gets the fallback vector (every entry =
    fallback_value) for each of its chunks; other batches are unaffected and
    output order always matches input order.
    """

    def __init__(
        self,
        embedding_service: IEmbeddingService,
        batch_size: int = settings.EMBEDDING_BATCH_SIZE,
        timeout: float = settings.EMBEDDING_TIMEOUT_SEC,
        batch_delay: float = settings.EMBEDDING_BATCH_DELAY_SEC,
        fallback_value: float = settings.FALLBACK_EMBEDDING_VALUE
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.embedding_service = embedding_service
        self.batch_size = batch_size
        self.timeout = timeout
        self.batch_delay = batch_delay
        self.fallback_value = fallback_value

    @property
    def dimension(self) -> int:
        return self.embedding_service.dimension

    def fallback_vector(self) -> List[float]:
        return [self.fallback_value] * self.dimension

    async def embed(
        self, chunks: List[Chunk], token: Optional[CancellationToken] = None
    ) -> List[List[float]]:
        """One vector per chunk, same order as the input."""
        embeddings: List[List[float]] = []
        total_batches = (len(chunks) + self.batch_size - 1) // self.batch_size

        for batch_no, start in enumerate(range(0, len(chunks), self.batch_size), start=1):
            check(token, IngestionStage.DURING_EMBEDDING)

            batch = chunks[start:start + self.batch_size]
            logger.info(f"Generating embeddings for batch {batch_no}/{total_batches}")
            embeddings.extend(await self._embed_batch([c.content for c in batch]))

            if start + self.batch_size < len(chunks) and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

        return embeddings

    async def _embed_batch(self, texts: List[str]) -> List[List[float]]:
        try:
            vectors = await asyncio.wait_for(
                self.embedding_service.generate_embeddings(texts),
                timeout=self.timeout
            )
            if len(vectors) != len(texts) or any(len(v) != self.dimension for v in vectors):
                raise ValueError(
                    f"Embedding shape mismatch: {len(vectors)} vectors for {len(texts)} texts"
                )
            return [list(v) for v in vectors]
        except asyncio.TimeoutError:
            logger.error(f"Embedding batch timed out after {self.timeout}s, using fallback vectors")
        except Exception as e:
            logger.error(f"Error generating embeddings for batch: {e}, using fallback vectors")
        return [self.fallback_vector() for _ in texts]

    async def embed_chunks(
        self,
        chunks: List[Chunk],
        token: Optional[CancellationToken] = None
    ) -> List[EmbeddedChunk]:
        """Pair each chunk with a fresh id, its position, and its vector."""
        vectors = await self.embed(chunks, token)
        return [
            EmbeddedChunk(
                id=str(uuid4()),
                content=chunk.content,
                metadata=chunk.metadata,
                chunk_index=index,
                embedding_model=self.embedding_service.model_name,
                embedding=vector,
            )
            for index, (chunk, vector) in enumerate(zip(chunks, vectors))
        ]

    async def embed_query(self, query: str) -> List[float]:
        """Query vector; the fallback vector when the capability fails."""
        try:
            return await asyncio.wait_for(
                self.embedding_service.generate_query_embedding(query),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"Query embedding timed out after {self.timeout}s, using fallback vector")
        except Exception as e:
            logger.error(f"Error getting query embedding: {e}, using fallback vector")
        return self.fallback_vector()
