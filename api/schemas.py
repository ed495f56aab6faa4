from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# ---------- Chat ----------

class ChatMessage(CamelModel):
    role: Literal["user", "assistant"]
    content: str

class ChatQueryRequest(CamelModel):
    query: Optional[str] = None
    file_id: Optional[str] = None
    chat_history: List[ChatMessage] = Field(default_factory=list)

class ChatContext(CamelModel):
    chunks_used: int
    top_chunk_preview: str
    confidence: float
    is_page_specific: bool
    target_page: Optional[int] = None

class ChatMetadata(CamelModel):
    query: str
    file_id: Optional[str] = None
    timestamp: datetime

class ChatQueryResponse(CamelModel):
    success: bool = True
    response: str
    context: ChatContext
    metadata: ChatMetadata

class AnalyzeRequest(CamelModel):
    file_id: Optional[str] = None

class AnalyzeResponse(CamelModel):
    success: bool = True
    analysis: str
    document_type: str
    chunks_analyzed: int

class ImproveRequest(CamelModel):
    file_id: Optional[str] = None
    section_name: Optional[str] = None
    improvement_type: Optional[str] = None

class ImproveResponse(CamelModel):
    success: bool = True
    original_section: str
    improved_section: str
    section_name: str
    improvement_type: str

class SuggestionsResponse(CamelModel):
    success: bool = True
    questions: List[str]
    document_type: str

class CompareRequest(CamelModel):
    file_ids: List[str] = Field(default_factory=list)
    comparison_type: Optional[str] = None

class CompareResponse(CamelModel):
    success: bool = True
    comparison: str
    files_compared: List[str]
    comparison_type: str

# ---------- Search ----------

class SearchMatch(CamelModel):
    content: str
    score: float
    section: Optional[str] = None

class SearchGroup(CamelModel):
    file_id: Optional[str] = None
    document_type: Optional[str] = None
    matches: List[SearchMatch] = Field(default_factory=list)

class SearchResponse(CamelModel):
    success: bool = True
    query: str
    results: List[SearchGroup]
    total_results: int

class SectionGroupsResponse(CamelModel):
    """Chunks of one file grouped by section title"""
    success: bool = True
    file_id: str
    document_type: Optional[str] = None
    sections: Dict[str, List[Any]]
    total_chunks: int

# ---------- Files ----------

class UploadData(CamelModel):
    file_id: str
    file_name: str
    original_name: str
    blob_url: str
    document_type: str
    total_pages: int
    section_count: int
    chunk_count: int
    summary: str
    suggestions: List[str] = Field(default_factory=list)

class UploadResponse(CamelModel):
    success: bool = True
    message: str = "PDF processed successfully"
    data: UploadData

class FileItem(CamelModel):
    file_id: Optional[str] = None
    document_type: Optional[str] = None
    chunks_count: int
    uploaded_at: Optional[str] = None

class FilesResponse(CamelModel):
    success: bool = True
    files: List[FileItem]

class DeleteResponse(CamelModel):
    success: bool = True
    message: str

class HealthResponse(CamelModel):
    success: bool = True
    services: Dict[str, str]
    timestamp: datetime

class Stats(CamelModel):
    total_files: int
    total_chunks: int
    vector_size: int
    document_types: Dict[str, int]

class StatsResponse(CamelModel):
    success: bool = True
    stats: Stats
