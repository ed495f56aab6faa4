# api/endpoints.py
"""
API endpoints for the PDF chat system.

/api/pdf  : upload, list, inspect, delete, health, stats
/api/chat : query, analyze, improve, suggestions, search, context, compare

No authentication: endpoints are open.
"""
import asyncio
import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, Response, UploadFile

from api.schemas import (
    AnalyzeRequest, AnalyzeResponse, ChatQueryRequest, ChatQueryResponse, CompareRequest,
    CompareResponse, DeleteResponse, FileItem, FilesResponse, HealthResponse, ImproveRequest,
    ImproveResponse, SearchResponse, SectionGroupsResponse, Stats, StatsResponse,
    SuggestionsResponse, UploadData, UploadResponse
)
from config import settings
from core.cancellation import CancellationToken
from core.exceptions import NotFoundError, OperationCancelled
from core.interfaces import IVectorIndex
from services.chat_service import ChatService
from services.factory import get_chat_service, get_ingestion_service, get_vector_index
from services.ingestion_service import IngestionService
from utils.common import validate_pdf_content, validate_uploaded_pdf

logger = logging.getLogger(settings.LOGGER_NAME)

pdf_router = APIRouter(prefix="/api/pdf", tags=["pdf"])
chat_router = APIRouter(prefix="/api/chat", tags=["chat"])

FILE_DETAILS_CHUNK_LIMIT = 50
DISCONNECT_POLL_SEC = 0.5
CLIENT_CLOSED_REQUEST = 499


# ---------- Helpers ----------
def _server_error(message: str, error: Exception) -> HTTPException:
    """Generic 500; the underlying error is only exposed in debug mode."""
    logger.error(f"{message}: {error}")
    detail = f"{message}: {error}" if settings.DEBUG else message
    return HTTPException(status_code=500, detail=detail)


async def _watch_disconnect(request: Request, token: CancellationToken) -> None:
    """Cancel the token as soon as the client goes away."""
    while not token.is_cancelled:
        if await request.is_disconnected():
            token.cancel("client disconnected")
            return
        await asyncio.sleep(DISCONNECT_POLL_SEC)


# ---------- PDF ----------
@pdf_router.post("/upload", response_model=UploadResponse)
async def upload_pdf(
    request: Request,
    pdf: Optional[UploadFile] = File(None),
    ingestion_service: IngestionService = Depends(get_ingestion_service),
):
    validate_uploaded_pdf(pdf)
    content = await pdf.read()
    if len(content) > settings.MAX_FILE_SIZE:
        raise HTTPException(status_code=413, detail="File too large")
    validate_pdf_content(content)

    token = CancellationToken()
    watcher = asyncio.create_task(_watch_disconnect(request, token))
    try:
        result = await ingestion_service.ingest(content, pdf.filename, token)
    except OperationCancelled:
        logger.info("PDF processing aborted due to client disconnect")
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    except Exception as e:
        raise _server_error("Failed to process PDF", e)
    finally:
        watcher.cancel()

    return UploadResponse(data=UploadData(
        file_id=result.file_id,
        file_name=result.file_name,
        original_name=result.original_name,
        blob_url=result.blob_url,
        document_type=result.document_type.value,
        total_pages=result.total_pages,
        section_count=result.section_count,
        chunk_count=result.chunk_count,
        summary=result.summary,
        suggestions=result.suggestions,
    ))


@pdf_router.get("/files", response_model=FilesResponse)
async def list_files(vector_index: IVectorIndex = Depends(get_vector_index)) -> FilesResponse:
    try:
        files = await vector_index.list_files()
    except Exception as e:
        raise _server_error("Failed to get files", e)
    return FilesResponse(files=[
        FileItem(
            file_id=f.file_id,
            document_type=f.document_type,
            chunks_count=f.chunks_count,
            uploaded_at=f.uploaded_at,
        )
        for f in files
    ])


@pdf_router.get("/file/{file_id}", response_model=SectionGroupsResponse)
async def get_file(
    file_id: str,
    chat_service: ChatService = Depends(get_chat_service),
) -> SectionGroupsResponse:
    try:
        return await chat_service.get_context(file_id, limit=FILE_DETAILS_CHUNK_LIMIT, with_scores=False)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="File not found")
    except Exception as e:
        raise _server_error("Failed to get file", e)


@pdf_router.delete("/file/{file_id}", response_model=DeleteResponse)
async def delete_file(
    file_id: str,
    ingestion_service: IngestionService = Depends(get_ingestion_service),
) -> DeleteResponse:
    try:
        await ingestion_service.delete_file(file_id)
    except Exception as e:
        raise _server_error("Failed to delete file", e)
    return DeleteResponse(message="File deleted successfully")


@pdf_router.get("/health", response_model=HealthResponse)
async def health(vector_index: IVectorIndex = Depends(get_vector_index)) -> HealthResponse:
    index_health = await vector_index.health_check()
    return HealthResponse(
        services={
            "pdfProcessing": "healthy",
            "vectorDatabase": index_health.get("status", "unhealthy"),
            "embeddingService": "healthy",
        },
        timestamp=datetime.now(timezone.utc),
    )


@pdf_router.get("/stats", response_model=StatsResponse)
async def stats(vector_index: IVectorIndex = Depends(get_vector_index)) -> StatsResponse:
    try:
        info = await vector_index.get_stats()
        files = await vector_index.list_files()
    except Exception as e:
        raise _server_error("Failed to get stats", e)
    return StatsResponse(stats=Stats(
        total_files=len(files),
        total_chunks=info.get("pointsCount", 0),
        vector_size=info.get("vectorSize", settings.VECTOR_SIZE),
        document_types=dict(Counter(f.document_type or "unknown" for f in files)),
    ))


# ---------- Chat ----------
@chat_router.post("/query", response_model=ChatQueryResponse)
async def chat_query(
    chat_request: ChatQueryRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatQueryResponse:
    if not chat_request.query or not chat_request.query.strip():
        raise HTTPException(status_code=400, detail="Query is required")

    logger.info(f"Chat query: {chat_request.query}" + (f" (File: {chat_request.file_id})" if chat_request.file_id else ""))
    try:
        return await chat_service.chat(chat_request.query, chat_request.file_id, chat_request.chat_history)
    except Exception as e:
        raise _server_error("Chat query failed", e)


@chat_router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(
    analyze_request: AnalyzeRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> AnalyzeResponse:
    if not analyze_request.file_id:
        raise HTTPException(status_code=400, detail="File ID is required")
    try:
        return await chat_service.analyze_document(analyze_request.file_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise _server_error("Document analysis failed", e)


@chat_router.post("/improve", response_model=ImproveResponse)
async def improve(
    improve_request: ImproveRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> ImproveResponse:
    if not (improve_request.file_id and improve_request.section_name and improve_request.improvement_type):
        raise HTTPException(
            status_code=400, detail="File ID, section name, and improvement type are required"
        )
    try:
        return await chat_service.improve_section(
            improve_request.file_id, improve_request.section_name, improve_request.improvement_type
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise _server_error("Section improvement failed", e)


@chat_router.get("/suggestions/{file_id}", response_model=SuggestionsResponse)
async def suggestions(
    file_id: str,
    chat_service: ChatService = Depends(get_chat_service),
) -> SuggestionsResponse:
    try:
        return await chat_service.get_suggestions(file_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise _server_error("Failed to generate suggestions", e)


@chat_router.get("/search", response_model=SearchResponse)
async def search(
    query: Optional[str] = Query(None),
    document_type: Optional[str] = Query(None, alias="documentType"),
    limit: int = Query(10, ge=1, le=100),
    chat_service: ChatService = Depends(get_chat_service),
) -> SearchResponse:
    if not query or not query.strip():
        raise HTTPException(status_code=400, detail="Search query is required")
    try:
        return await chat_service.search(query, document_type, limit)
    except Exception as e:
        raise _server_error("Search failed", e)


@chat_router.get("/context/{file_id}", response_model=SectionGroupsResponse)
async def context(
    file_id: str,
    chat_service: ChatService = Depends(get_chat_service),
) -> SectionGroupsResponse:
    try:
        return await chat_service.get_context(file_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise _server_error("Failed to get context", e)


@chat_router.post("/compare", response_model=CompareResponse)
async def compare(
    compare_request: CompareRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> CompareResponse:
    if len(compare_request.file_ids) < 2:
        raise HTTPException(status_code=400, detail="At least two file IDs are required for comparison")
    try:
        return await chat_service.compare_documents(compare_request.file_ids, compare_request.comparison_type)
    except Exception as e:
        raise _server_error("Document comparison failed", e)


router = APIRouter()
router.include_router(pdf_router)
router.include_router(chat_router)
