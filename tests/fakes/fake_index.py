"""In-memory vector index for behavioral tests."""

import math
from typing import Any, Dict, List, Optional

from core.domain import IndexedFile, IndexPoint, RetrievedChunk
from core.interfaces import IVectorIndex


def _cosine(a: List[float], b: List[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryVectorIndex(IVectorIndex):
    """Points kept in insertion order; every call is recorded in `calls`."""

    def __init__(self):
        self.points: Dict[str, IndexPoint] = {}
        self.calls: List[str] = []
        self.collection_ready = False

    def _matches(self, point: IndexPoint, filter: Optional[Dict[str, Any]]) -> bool:
        return all(point.payload.get(k) == v for k, v in (filter or {}).items())

    def _to_chunk(self, point: IndexPoint, score: float) -> RetrievedChunk:
        metadata = {k: v for k, v in point.payload.items() if k != "content"}
        return RetrievedChunk(id=point.id, content=point.payload.get("content", ""), score=score, metadata=metadata)

    def _scroll(self, filter: Dict[str, Any], limit: int) -> List[RetrievedChunk]:
        hits = [self._to_chunk(p, 1.0) for p in self.points.values() if self._matches(p, filter)]
        return hits[:limit]

    async def ensure_collection(self) -> bool:
        self.calls.append("ensure_collection")
        self.collection_ready = True
        return True

    async def upsert(self, points: List[IndexPoint]) -> int:
        self.calls.append("upsert")
        for point in points:
            self.points[point.id] = point
        return len(points)

    async def search_similar(self, query_vector, limit=5, filter=None) -> List[RetrievedChunk]:
        self.calls.append("search_similar")
        if not query_vector or (all(v == 0 for v in query_vector) and not filter):
            return []
        scored = [
            self._to_chunk(p, max(0.0, min(1.0, _cosine(query_vector, p.vector))))
            for p in self.points.values()
            if self._matches(p, filter)
        ]
        scored.sort(key=lambda c: c.score, reverse=True)
        return scored[:limit]

    async def search_by_file_id(self, file_id, limit=10) -> List[RetrievedChunk]:
        self.calls.append("search_by_file_id")
        return self._scroll({"fileId": file_id}, limit)

    async def search_by_file_id_and_page(self, file_id, page_number, limit=10) -> List[RetrievedChunk]:
        self.calls.append("search_by_file_id_and_page")
        return self._scroll({"fileId": file_id, "pageNumber": page_number}, limit)

    async def search_by_document_type(self, document_type, limit=10) -> List[RetrievedChunk]:
        self.calls.append("search_by_document_type")
        return self._scroll({"documentType": document_type}, limit)

    async def delete_by_file_id(self, file_id) -> bool:
        self.calls.append("delete_by_file_id")
        self.points = {k: p for k, p in self.points.items() if p.payload.get("fileId") != file_id}
        return True

    async def list_files(self) -> List[IndexedFile]:
        files: Dict[str, IndexedFile] = {}
        for p in self.points.values():
            file_id = p.payload.get("fileId")
            if file_id not in files:
                files[file_id] = IndexedFile(
                    file_id=file_id,
                    document_type=p.payload.get("documentType"),
                    chunks_count=0,
                    uploaded_at=p.payload.get("uploadedAt"),
                )
            files[file_id].chunks_count += 1
        return list(files.values())

    async def get_stats(self) -> Dict[str, Any]:
        return {"name": "test", "vectorSize": 8, "distance": "cosine", "pointsCount": len(self.points)}

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy"}
