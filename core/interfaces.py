# core/interfaces.py
"""Core interfaces for the PDF chat system"""
from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional

from core.domain import (
    DocumentRecord, IndexedFile, IndexPoint, ParsedPdf, RetrievedChunk, StoredBlob
)

# ============= Vector Index Interface =============
class IVectorIndex(ABC):
    """
    Remote vector-search capability.

    Filters are plain field → value mappings, combined with AND
    (e.g. {"fileId": "...", "pageNumber": 3}).
    """

    @abstractmethod
    async def ensure_collection(self) -> bool:
        """Create the cosine collection if absent (idempotent)"""
        pass

    @abstractmethod
    async def upsert(self, points: List[IndexPoint]) -> int:
        """Insert or replace points by id; returns the number written"""
        pass

    @abstractmethod
    async def search_similar(
        self,
        query_vector: List[float],
        limit: int = 5,
        filter: Optional[Dict[str, Any]] = None
    ) -> List[RetrievedChunk]:
        """Ranked by descending similarity. All-zero vector without filter → []"""
        pass

    @abstractmethod
    async def search_by_file_id(self, file_id: str, limit: int = 10) -> List[RetrievedChunk]:
        """Membership lookup; every score is 1.0"""
        pass

    @abstractmethod
    async def search_by_file_id_and_page(
        self, file_id: str, page_number: int, limit: int = 10
    ) -> List[RetrievedChunk]:
        """Membership lookup restricted to one page; every score is 1.0"""
        pass

    @abstractmethod
    async def search_by_document_type(self, document_type: str, limit: int = 10) -> List[RetrievedChunk]:
        pass

    @abstractmethod
    async def delete_by_file_id(self, file_id: str) -> bool:
        """Remove every point of a file (idempotent)"""
        pass

    @abstractmethod
    async def list_files(self) -> List[IndexedFile]:
        pass

    @abstractmethod
    async def get_stats(self) -> Dict[str, Any]:
        """name, vectorSize, distance, pointsCount"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """{"status": "healthy"|"unhealthy", ...}; never raises"""
        pass

# ============= Embedding Service Interface =============
class IEmbeddingService(ABC):
    """Interface for embedding generation"""

    model_name: str
    dimension: int

    @abstractmethod
    async def generate_embeddings(self, texts: List[str]) -> List[List[float]]:
        """Generate embeddings for text chunks (one vector per input, same order)"""
        pass

    @abstractmethod
    async def generate_query_embedding(self, query: str) -> List[float]:
        """Generate embedding for search query"""
        pass

# ============= Remote Model Interfaces =============
class IChatModelClient(ABC):
    """Chat-completion capability (OpenAI-compatible request/response)"""

    @abstractmethod
    async def complete(self, model: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send one completion request for `model`.

        Args:
            model: Candidate model id
            payload: messages, max_tokens, temperature, top_p

        Returns:
            Raw response body ({"choices": [{"message": {"content": ...}}], ...})
        """
        pass

class IEntityExtractor(ABC):
    """Token-classification (NER) capability"""

    model_name: str

    @abstractmethod
    async def extract(self, text: str) -> List[Dict[str, Any]]:
        """Entities as {"entity_group", "word", "score", "start", "end"}"""
        pass

# ============= PDF Parser Interface =============
class IPdfParser(ABC):
    """Page-wise text extraction"""

    @abstractmethod
    async def parse(self, content: bytes) -> ParsedPdf:
        pass

# ============= File Storage Interface =============
class IFileStorage(ABC):
    """Interface for uploaded blob storage (put/delete)"""

    @abstractmethod
    async def save(self, content: bytes, original_name: str, file_id: str) -> StoredBlob:
        """
        Store the upload under a name derived from file_id.

        Returns:
            StoredBlob with the stored file name and its URL

        Raises:
            Exception: If the blob cannot be written
        """
        pass

    @abstractmethod
    async def delete(self, file_name: str) -> bool:
        """Delete a stored blob; False when it does not exist."""
        pass

# ============= Repository Interface =============
class IDocumentRepository(ABC):
    """
    Upload registry (original name, stored blob, ingest summary).

    Does NOT handle: blobs (see IFileStorage) or vectors (see IVectorIndex).
    """

    @abstractmethod
    async def create(self, record: DocumentRecord) -> DocumentRecord:
        pass

    @abstractmethod
    async def update_summary(
        self, file_id: str, document_type: str, total_pages: int, chunk_count: int
    ) -> bool:
        pass

    @abstractmethod
    async def get_by_id(self, file_id: str) -> Optional[DocumentRecord]:
        pass

    @abstractmethod
    async def delete(self, file_id: str) -> bool:
        pass
