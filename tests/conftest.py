"""Pytest configuration and fixtures."""

import os
import tempfile

# Settings are read at import time, so the environment is set before any app module loads.
_TMP = tempfile.mkdtemp(prefix="pdfchat-tests-")
os.environ["HUGGINGFACE_API_KEY"] = ""
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["VECTOR_DB_PATH"] = os.path.join(_TMP, "vector_db")
os.environ["UPLOADS_DIR"] = os.path.join(_TMP, "uploads")
os.environ["DEBUG"] = "false"

import pytest  # noqa: E402

from services.chat_service import ChatService  # noqa: E402
from services.chunk_builder import ChunkBuilder  # noqa: E402
from services.document_structurer import DocumentStructurer  # noqa: E402
from services.embedding_pipeline import EmbeddingPipeline  # noqa: E402
from services.ingestion_service import IngestionService  # noqa: E402
from services.model_fallback import ModelFallbackInvoker  # noqa: E402
from services.query_router import QueryRouter  # noqa: E402
from tests.fakes.fake_index import InMemoryVectorIndex  # noqa: E402
from tests.fakes.fake_services import (  # noqa: E402
    FIVE_PAGES, MODELS, InMemoryDocumentRepository, InMemoryFileStorage, ScriptedChatClient,
    ScriptedEmbeddingService, StaticPdfParser
)



@pytest.fixture
def vector_index():
    return InMemoryVectorIndex()


@pytest.fixture
def embedding_service():
    return ScriptedEmbeddingService(dimension=8)


@pytest.fixture
def embedding_pipeline(embedding_service):
    return EmbeddingPipeline(embedding_service, batch_size=5, timeout=1.0, batch_delay=0, fallback_value=0.1)


@pytest.fixture
def file_storage():
    return InMemoryFileStorage()


@pytest.fixture
def document_repo():
    return InMemoryDocumentRepository()


@pytest.fixture
def make_ingestion_service(vector_index, embedding_pipeline, file_storage, document_repo):
    def _make(page_texts=FIVE_PAGES, pipeline=None):
        return IngestionService(
            parser=StaticPdfParser(page_texts),
            structurer=DocumentStructurer(),
            chunk_builder=ChunkBuilder(),
            embedding_pipeline=pipeline or embedding_pipeline,
            vector_index=vector_index,
            file_storage=file_storage,
            document_repo=document_repo,
        )
    return _make


@pytest.fixture
def chat_client():
    return ScriptedChatClient({m: f"answer from {m}" for m in MODELS})


@pytest.fixture
def chat_service(vector_index, embedding_pipeline, chat_client):
    router = QueryRouter(vector_index, embedding_pipeline)
    return ChatService(router, ModelFallbackInvoker(chat_client, MODELS))
