# config.py
"""Application configuration"""
from typing import List
from pydantic_settings import BaseSettings
from utils.common import get_log_file_path, get_project_root

class Settings(BaseSettings):
    """Application configuration"""

    # Logger configuration
    LOG_FILE_PATH: str = get_log_file_path()
    LOGGER_NAME: str = "pdfchat"
    DEBUG: bool = False  # Expose upstream error detail in API responses

    # Database (upload registry)
    DATABASE_URL: str = "sqlite+aiosqlite:///./pdfchat.db"

    # Vector store
    VECTOR_DB_PATH: str = "./vector_db"
    VECTOR_STORE_TYPE: str = "chromadb"
    COLLECTION_NAME: str = "pdf_chunks"
    VECTOR_SIZE: int = 384  # all-MiniLM-L6-v2

    # Hugging Face inference
    HUGGINGFACE_API_KEY: str = ""
    HF_INFERENCE_URL: str = "https://router.huggingface.co/hf-inference/models"
    HF_CHAT_URL: str = "https://router.huggingface.co/v1/chat/completions"

    # Embedding model
    EMBEDDING_PROVIDER: str = "huggingface"  # Options: huggingface, local
    EMBEDDING_MODEL_NAME: str = "sentence-transformers/all-MiniLM-L6-v2"
    EMBEDDING_BATCH_SIZE: int = 5
    EMBEDDING_TIMEOUT_SEC: float = 30.0
    EMBEDDING_BATCH_DELAY_SEC: float = 0.1
    FALLBACK_EMBEDDING_VALUE: float = 0.1

    # NER model
    NER_MODEL: str = "dslim/bert-base-NER"
    NER_TIMEOUT_SEC: float = 30.0

    # Chat models, tried in order
    PRIMARY_MODEL: str = "Qwen/Qwen2-7B-Instruct"
    FALLBACK_MODEL_1: str = "zai-org/GLM-4.5"
    FALLBACK_MODEL_2: str = "microsoft/DialoGPT-medium"

    @property
    def CHAT_MODELS(self) -> List[str]:
        return [m for m in (self.PRIMARY_MODEL, self.FALLBACK_MODEL_1, self.FALLBACK_MODEL_2) if m]

    # Per-feature model budgets
    CHAT_TIMEOUT_SEC: float = 30.0
    CHAT_MAX_TOKENS: int = 500
    FOLLOW_UP_TIMEOUT_SEC: float = 20.0
    FOLLOW_UP_MAX_TOKENS: int = 300
    ANALYSIS_TIMEOUT_SEC: float = 30.0
    ANALYSIS_MAX_TOKENS: int = 600
    IMPROVE_TIMEOUT_SEC: float = 25.0
    IMPROVE_MAX_TOKENS: int = 500
    CHAT_HISTORY_LIMIT: int = 5

    # Document processing
    CHUNK_SIZE: int = 512  # words
    CHUNK_OVERLAP: int = 50  # words
    MAX_FILE_SIZE: int = 50 * 1024 * 1024
    UPLOADS_DIR: str = f"{get_project_root()}/uploads"
    ALLOWED_MIME_TYPES: List[str] = ["application/pdf"]

    # Retrieval limits
    FILE_CHUNK_LIMIT: int = 10
    PAGE_CHUNK_LIMIT: int = 10
    CORPUS_CHUNK_LIMIT: int = 5
    TOP_CHUNK_PREVIEW_LENGTH: int = 200

    # App metadata
    APP_TITLE: str = "PDF Chat RAG System"
    APP_VERSION: str = "1.0.0"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
