# infrastructure/vector_stores.py
"""ChromaDB-backed vector index"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.domain import IndexedFile, IndexPoint, RetrievedChunk
from core.exceptions import VectorIndexError
from core.interfaces import IVectorIndex
from config import settings

logger = logging.getLogger(settings.LOGGER_NAME)

INDEXED_FIELDS = ("fileId", "documentType", "section", "pageNumber")


def build_where(filter: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """{"a": 1, "b": 2} → chroma where clause (AND of equality matches)."""
    if not filter:
        return None
    conditions = [{key: value} for key, value in filter.items()]
    if len(conditions) == 1:
        return conditions[0]
    return {"$and": conditions}


def is_zero_vector(vector: List[float]) -> bool:
    return all(v == 0 for v in vector)


class ChromaDBVectorIndex(IVectorIndex):
    """
    Cosine-distance collection; point payload is the chroma metadata plus the
    chunk content stored as the chroma document.

    Scores are cosine similarity, 1 - distance, clamped to [0, 1].
    """

    def __init__(
        self,
        client: Any,
        collection_name: str = settings.COLLECTION_NAME,
        vector_size: int = settings.VECTOR_SIZE
    ):
        self._client = client
        self._collection_name = collection_name
        self._vector_size = vector_size
        self._collection: Any = None

    async def ensure_collection(self) -> bool:
        """get_or_create makes concurrent first calls safe."""
        if self._collection is None:
            try:
                self._collection = await asyncio.to_thread(
                    self._client.get_or_create_collection,
                    name=self._collection_name,
                    metadata={
                        "hnsw:space": "cosine",
                        "vector_size": self._vector_size,
                        "indexed_fields": ",".join(INDEXED_FIELDS),
                    }
                )
                logger.info(f"Collection '{self._collection_name}' ready")
            except Exception as e:
                logger.error(f"Error initializing collection: {e}")
                raise VectorIndexError(f"Cannot initialize collection: {e}") from e
        return True

    async def upsert(self, points: List[IndexPoint]) -> int:
        await self.ensure_collection()
        if not points:
            return 0

        ids = [p.id for p in points]
        vectors = [p.vector for p in points]
        documents = [p.payload.get("content", "") for p in points]
        metadatas = [{k: v for k, v in p.payload.items() if k != "content"} for p in points]

        try:
            await asyncio.to_thread(
                self._collection.upsert,
                ids=ids,
                embeddings=vectors,
                documents=documents,
                metadatas=metadatas
            )
        except Exception as e:
            logger.error(f"Error storing embeddings: {e}")
            raise VectorIndexError(f"Upsert failed: {e}") from e

        logger.info(f"Stored {len(points)} embeddings in '{self._collection_name}'")
        return len(points)

    async def search_similar(
        self,
        query_vector: List[float],
        limit: int = 5,
        filter: Optional[Dict[str, Any]] = None
    ) -> List[RetrievedChunk]:
        if not isinstance(query_vector, list) or not query_vector:
            logger.error(f"Query vector is not a non-empty list: {type(query_vector).__name__}")
            return []

        if is_zero_vector(query_vector) and not filter:
            logger.warning("Zero vector provided without filter, returning empty results")
            return []

        await self.ensure_collection()
        try:
            results = await asyncio.to_thread(
                self._collection.query,
                query_embeddings=[query_vector],
                n_results=limit,
                where=build_where(filter),
                include=["metadatas", "documents", "distances"]
            )
        except Exception as e:
            logger.error(f"Error searching vectors: {e}")
            raise VectorIndexError(f"Search failed: {e}") from e

        hits: List[RetrievedChunk] = []
        if results["ids"] and results["ids"][0]:
            for i, point_id in enumerate(results["ids"][0]):
                similarity = 1.0 - results["distances"][0][i]
                hits.append(RetrievedChunk(
                    id=point_id,
                    content=results["documents"][0][i] or "",
                    score=max(0.0, min(1.0, similarity)),
                    metadata=dict(results["metadatas"][0][i] or {})
                ))

        hits.sort(key=lambda h: h.score, reverse=True)
        return hits

    async def _scroll(self, filter: Dict[str, Any], limit: Optional[int]) -> List[RetrievedChunk]:
        """Filter-only read; membership, so every score is 1.0"""
        await self.ensure_collection()
        try:
            results = await asyncio.to_thread(
                self._collection.get,
                where=build_where(filter),
                limit=limit,
                include=["metadatas", "documents"]
            )
        except Exception as e:
            logger.error(f"Error scrolling with filter {filter}: {e}")
            raise VectorIndexError(f"Scroll failed: {e}") from e

        return [
            RetrievedChunk(
                id=point_id,
                content=(results["documents"][i] or ""),
                score=1.0,
                metadata=dict(results["metadatas"][i] or {})
            )
            for i, point_id in enumerate(results["ids"])
        ]

    async def search_by_file_id(self, file_id: str, limit: int = 10) -> List[RetrievedChunk]:
        return await self._scroll({"fileId": file_id}, limit)

    async def search_by_file_id_and_page(
        self, file_id: str, page_number: int, limit: int = 10
    ) -> List[RetrievedChunk]:
        logger.info(f"Searching for fileId: {file_id}, pageNumber: {page_number}")
        hits = await self._scroll({"fileId": file_id, "pageNumber": page_number}, limit)
        logger.info(f"Page scroll found {len(hits)} points")
        return hits

    async def search_by_document_type(self, document_type: str, limit: int = 10) -> List[RetrievedChunk]:
        return await self._scroll({"documentType": document_type}, limit)

    async def delete_by_file_id(self, file_id: str) -> bool:
        await self.ensure_collection()
        try:
            await asyncio.to_thread(self._collection.delete, where={"fileId": file_id})
        except Exception as e:
            logger.error(f"Error deleting embeddings: {e}")
            raise VectorIndexError(f"Delete failed: {e}") from e
        logger.info(f"Deleted embeddings for file: {file_id}")
        return True

    async def list_files(self) -> List[IndexedFile]:
        await self.ensure_collection()
        try:
            results = await asyncio.to_thread(self._collection.get, limit=1000, include=["metadatas"])
        except Exception as e:
            raise VectorIndexError(f"Listing files failed: {e}") from e

        files: Dict[str, IndexedFile] = {}
        for metadata in results["metadatas"] or []:
            file_id = metadata.get("fileId")
            if file_id not in files:
                files[file_id] = IndexedFile(
                    file_id=file_id,
                    document_type=metadata.get("documentType"),
                    chunks_count=0,
                    uploaded_at=metadata.get("uploadedAt")
                )
            files[file_id].chunks_count += 1
        return list(files.values())

    async def get_stats(self) -> Dict[str, Any]:
        await self.ensure_collection()
        try:
            count = await asyncio.to_thread(self._collection.count)
        except Exception as e:
            raise VectorIndexError(f"Stats failed: {e}") from e
        metadata = self._collection.metadata or {}
        return {
            "name": self._collection_name,
            "vectorSize": metadata.get("vector_size", self._vector_size),
            "distance": metadata.get("hnsw:space", "cosine"),
            "pointsCount": count,
        }

    async def health_check(self) -> Dict[str, Any]:
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            await asyncio.to_thread(self._client.heartbeat)
            return {"status": "healthy", "timestamp": timestamp}
        except Exception as e:
            return {"status": "unhealthy", "error": str(e), "timestamp": timestamp}
