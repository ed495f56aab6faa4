# services/factory.py
from functools import lru_cache
from typing import Optional

import chromadb
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from core.interfaces import (
    IChatModelClient, IDocumentRepository, IEmbeddingService, IEntityExtractor,
    IFileStorage, IPdfParser, IVectorIndex
)
from database.session import get_db
from infrastructure.embedding_services import HuggingFaceInferenceEmbedding, SentenceTransformerEmbedding
from infrastructure.entity_extractors import HuggingFaceEntityExtractor
from infrastructure.file_storage import LocalFileStorage
from infrastructure.pdf_converters import PyMuPDFParser
from infrastructure.repositories import SQLDocumentRepository
from infrastructure.vector_stores import ChromaDBVectorIndex
from services.chat_service import ChatService
from services.chunk_builder import ChunkBuilder
from services.document_structurer import DocumentStructurer
from services.embedding_pipeline import EmbeddingPipeline
from services.ingestion_service import IngestionService
from services.llm_service import HuggingFaceChatClient
from services.model_fallback import ModelFallbackInvoker
from services.query_router import QueryRouter

# Provider functions for each component. Clients that hold connections or
# model weights are cached; everything else is cheap and built per request.

@lru_cache
def get_vector_index() -> IVectorIndex:
    """Create vector index based on configuration."""
    if settings.VECTOR_STORE_TYPE == "chromadb":
        client = chromadb.PersistentClient(path=settings.VECTOR_DB_PATH)
        return ChromaDBVectorIndex(client, settings.COLLECTION_NAME, settings.VECTOR_SIZE)
    raise ValueError(f"Unknown vector store type: {settings.VECTOR_STORE_TYPE}")

@lru_cache
def get_embedding_service() -> IEmbeddingService:
    """Create embedding service based on configuration."""
    if settings.EMBEDDING_PROVIDER == "local":
        return SentenceTransformerEmbedding(settings.EMBEDDING_MODEL_NAME)
    if settings.EMBEDDING_PROVIDER == "huggingface":
        return HuggingFaceInferenceEmbedding(
            api_key=settings.HUGGINGFACE_API_KEY,
            model_name=settings.EMBEDDING_MODEL_NAME,
            dimension=settings.VECTOR_SIZE,
        )
    raise ValueError(f"Unknown embedding provider: {settings.EMBEDDING_PROVIDER}")

def get_entity_extractor() -> Optional[IEntityExtractor]:
    """None without an API key; structuring then stays heuristic."""
    if not settings.HUGGINGFACE_API_KEY:
        return None
    return HuggingFaceEntityExtractor(api_key=settings.HUGGINGFACE_API_KEY)

def get_chat_client() -> IChatModelClient:
    """Without an API key every completion fails and the fallback chain reports it."""
    return HuggingFaceChatClient(api_key=settings.HUGGINGFACE_API_KEY)

def get_file_storage() -> IFileStorage:
    """Create file storage based on configuration."""
    return LocalFileStorage(base_path=settings.UPLOADS_DIR)

def get_pdf_parser() -> IPdfParser:
    return PyMuPDFParser()

def get_document_repository(session: AsyncSession = Depends(get_db)) -> IDocumentRepository:
    """Create document repository with injected session."""
    return SQLDocumentRepository(session)

def get_embedding_pipeline(
    embedding_service: IEmbeddingService = Depends(get_embedding_service)
) -> EmbeddingPipeline:
    return EmbeddingPipeline(
        embedding_service,
        batch_size=settings.EMBEDDING_BATCH_SIZE,
        timeout=settings.EMBEDDING_TIMEOUT_SEC,
        batch_delay=settings.EMBEDDING_BATCH_DELAY_SEC,
        fallback_value=settings.FALLBACK_EMBEDDING_VALUE,
    )

def get_query_router(
    vector_index: IVectorIndex = Depends(get_vector_index),
    embedding_pipeline: EmbeddingPipeline = Depends(get_embedding_pipeline)
) -> QueryRouter:
    return QueryRouter(vector_index, embedding_pipeline)

def get_model_invoker(client: IChatModelClient = Depends(get_chat_client)) -> ModelFallbackInvoker:
    return ModelFallbackInvoker(client, settings.CHAT_MODELS)

# Main service providers using FastAPI DI
def get_ingestion_service(
    parser: IPdfParser = Depends(get_pdf_parser),
    entity_extractor: Optional[IEntityExtractor] = Depends(get_entity_extractor),
    embedding_pipeline: EmbeddingPipeline = Depends(get_embedding_pipeline),
    vector_index: IVectorIndex = Depends(get_vector_index),
    file_storage: IFileStorage = Depends(get_file_storage),
    document_repo: IDocumentRepository = Depends(get_document_repository)
) -> IngestionService:
    """
    Create ingestion service with full dependency injection.

    Easy to override individual components for testing.
    """
    return IngestionService(
        parser=parser,
        structurer=DocumentStructurer(entity_extractor),
        chunk_builder=ChunkBuilder(settings.CHUNK_SIZE, settings.CHUNK_OVERLAP),
        embedding_pipeline=embedding_pipeline,
        vector_index=vector_index,
        file_storage=file_storage,
        document_repo=document_repo,
    )

def get_chat_service(
    router: QueryRouter = Depends(get_query_router),
    invoker: ModelFallbackInvoker = Depends(get_model_invoker)
) -> ChatService:
    return ChatService(router, invoker)
