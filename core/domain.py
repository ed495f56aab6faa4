# core/domain.py
"""Domain models for the PDF chat pipeline"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Dict, Any, Optional

from core.enums import ChunkType, DocumentType, RetrievalKind, SourceKind

# ============= Document Structure =============

@dataclass(frozen=True)
class Page:
    """One PDF page; page_number is 1-based and equals its position."""
    page_number: int
    text: str
    word_count: int

@dataclass(frozen=True)
class Section:
    """Heuristically detected section: a header line plus the lines under it."""
    title: str
    content: List[str] = field(default_factory=list)

@dataclass(frozen=True)
class ParsedPdf:
    """Raw page-wise text extracted from a PDF"""
    total_pages: int
    pages: List[Page]
    raw_text: str
    info: Dict[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class Document:
    """
    Structured document produced once per upload.

    Never mutated; post-processing returns a new instance via dataclasses.replace.
    """
    document_type: DocumentType
    pages: List[Page]
    sections: List[Section]
    summary: str = ""
    suggestions: Optional[List[str]] = None
    explanations: Optional[Dict[str, str]] = None
    entities: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    confidence: float = 0.6
    model_used: Optional[str] = None

# ============= Chunks =============

@dataclass(frozen=True)
class ChunkMetadata:
    source_kind: SourceKind
    document_type: DocumentType
    word_count: int
    file_id: Optional[str] = None
    page_number: Optional[int] = None
    page_index: Optional[int] = None
    section_title: Optional[str] = None
    section_index: Optional[int] = None
    chunk_type: Optional[ChunkType] = None
    chunk_part: Optional[int] = None
    start_word_index: Optional[int] = None
    explanation_type: Optional[str] = None
    total_sections: Optional[int] = None
    total_pages: Optional[int] = None

@dataclass(frozen=True)
class Chunk:
    """Content chunk; content always starts with a locator such as 'Page 3 (Part 2): '."""
    content: str
    metadata: ChunkMetadata

@dataclass
class EmbeddedChunk:
    """Chunk paired with its vector, ready for the index"""
    id: str
    content: str
    metadata: ChunkMetadata
    chunk_index: int
    embedding_model: str
    embedding: List[float]

    def to_payload(self, uploaded_at: datetime) -> Dict[str, Any]:
        """Index payload; keys with no value are omitted."""
        md = self.metadata
        payload = {
            "content": self.content,
            "fileId": md.file_id,
            "documentType": md.document_type.value,
            "section": md.source_kind.value,
            "sectionTitle": md.section_title,
            "sectionIndex": md.section_index,
            "pageNumber": md.page_number,
            "pageIndex": md.page_index,
            "chunkType": md.chunk_type.value if md.chunk_type else None,
            "chunkPart": md.chunk_part,
            "startWordIndex": md.start_word_index,
            "explanationType": md.explanation_type,
            "chunkIndex": self.chunk_index,
            "wordCount": md.word_count,
            "embeddingModel": self.embedding_model,
            "uploadedAt": uploaded_at.isoformat(),
        }
        return {k: v for k, v in payload.items() if v is not None}

# ============= Index =============

@dataclass
class IndexPoint:
    id: str
    vector: List[float]
    payload: Dict[str, Any]

@dataclass
class RetrievedChunk:
    """A chunk read back from the index; metadata is the payload without content"""
    id: str
    content: str
    score: float
    metadata: Dict[str, Any] = field(default_factory=dict)

@dataclass
class IndexedFile:
    file_id: str
    document_type: Optional[str]
    chunks_count: int
    uploaded_at: Optional[str] = None

# ============= Retrieval =============

@dataclass(frozen=True)
class QueryClassification:
    is_page_specific: bool
    page_number: Optional[int] = None

@dataclass(frozen=True)
class RetrievalPlan:
    kind: RetrievalKind
    limit: int
    query: str
    file_id: Optional[str] = None
    page_number: Optional[int] = None

    @property
    def is_page_specific(self) -> bool:
        return self.kind == RetrievalKind.PAGE

# ============= Uploads =============

@dataclass
class StoredBlob:
    file_id: str
    file_name: str
    original_name: str
    blob_url: str
    size: int

@dataclass
class DocumentRecord:
    """Upload registry entry (blob location and ingest summary)"""
    file_id: str
    original_name: str
    stored_filename: str
    blob_url: str
    file_hash: str
    document_type: Optional[str] = None
    total_pages: int = 0
    chunk_count: int = 0
    uploaded_at: Optional[datetime] = None

@dataclass
class IngestionResult:
    file_id: str
    file_name: str
    original_name: str
    blob_url: str
    document_type: DocumentType
    total_pages: int
    section_count: int
    chunk_count: int
    summary: str
    suggestions: List[str] = field(default_factory=list)
