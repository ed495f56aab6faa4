# core/enums.py
"""Shared enumerations used across the application."""
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for user-facing error messages."""
    NO_FILE = "NO_FILE"
    INVALID_FORMAT = "INVALID_FORMAT"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    PARSE_FAILED = "PARSE_FAILED"
    PROCESSING_FAILED = "PROCESSING_FAILED"
    INDEX_UNAVAILABLE = "INDEX_UNAVAILABLE"


class DocumentType(str, Enum):
    """Document categories recognised by the structurer."""
    RESUME = "resume"
    INVOICE = "invoice"
    RESEARCH_PAPER = "research_paper"
    CONTRACT = "contract"
    GENERAL = "general"


class SourceKind(str, Enum):
    """Origin of a chunk inside its document (stored as payload `section`)."""
    DOCUMENT_INFO = "document_info"
    PAGE_CONTENT = "page_content"
    SECTION_CONTENT = "section_content"
    SUGGESTIONS = "suggestions"
    EXPLANATIONS = "explanations"


class ChunkType(str, Enum):
    PAGE = "page"
    SECTION = "section"


class RetrievalKind(str, Enum):
    """Retrieval strategy chosen for a chat query."""
    PAGE = "page"      # fileId + pageNumber filter
    FILE = "file"      # fileId filter
    CORPUS = "corpus"  # semantic search over everything


class TerminalPolicy(str, Enum):
    """What the fallback invoker does once every candidate failed."""
    RAISE = "raise"
    EMPTY = "empty"


class IngestionStage(str, Enum):
    """Pipeline boundaries where cancellation is checked."""
    BEFORE_UPLOAD = "before_upload"
    AFTER_UPLOAD = "after_upload"
    AFTER_PARSE = "after_parse"
    AFTER_STRUCTURING = "after_structuring"
    BEFORE_EMBEDDING = "before_embedding"
    DURING_EMBEDDING = "during_embedding"
    BEFORE_STORE = "before_store"
