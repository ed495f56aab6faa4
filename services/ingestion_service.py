# services/ingestion_service.py
"""Upload → parse → structure → chunk/embed → index, with cooperative cancellation"""
import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from config import settings
from core.cancellation import CancellationToken, check
from core.domain import DocumentRecord, IndexPoint, IngestionResult, StoredBlob
from core.enums import ErrorCode, IngestionStage
from core.exceptions import DocumentProcessingError, OperationCancelled, VectorIndexError
from core.interfaces import IDocumentRepository, IFileStorage, IPdfParser, IVectorIndex
from services.chunk_builder import ChunkBuilder
from services.document_structurer import DocumentStructurer
from services.embedding_pipeline import EmbeddingPipeline
from utils.common import get_file_hash

logger = logging.getLogger(settings.LOGGER_NAME)


class IngestionService:
    def __init__(
        self,
        parser: IPdfParser,
        structurer: DocumentStructurer,
        chunk_builder: ChunkBuilder,
        embedding_pipeline: EmbeddingPipeline,
        vector_index: IVectorIndex,
        file_storage: IFileStorage,
        document_repo: IDocumentRepository
    ):
        self.parser = parser
        self.structurer = structurer
        self.chunk_builder = chunk_builder
        self.embedding_pipeline = embedding_pipeline
        self.vector_index = vector_index
        self.file_storage = file_storage
        self.document_repo = document_repo

    async def ingest(
        self,
        content: bytes,
        original_name: str,
        token: Optional[CancellationToken] = None
    ) -> IngestionResult:
        """
        Process one PDF end to end.

        The token is checked at every stage boundary and between embedding
        batches. Once cancellation is observed nothing more is written to the
        index, and the stored blob and its record are removed.

        Raises:
            OperationCancelled: the caller went away
            DocumentProcessingError: upload, parse, or processing failure
            VectorIndexError: the index is unreachable
        """
        check(token, IngestionStage.BEFORE_UPLOAD)
        logger.info(f"Processing PDF: {original_name}")

        file_id = str(uuid4())
        blob = await self._store(content, original_name, file_id)
        upsert_started = False

        try:
            check(token, IngestionStage.AFTER_UPLOAD)

            parsed = await self.parser.parse(content)
            check(token, IngestionStage.AFTER_PARSE)

            document = await self.structurer.structure(parsed)
            check(token, IngestionStage.AFTER_STRUCTURING)

            document = self.structurer.post_process(document)
            check(token, IngestionStage.BEFORE_EMBEDDING)

            chunks = self.chunk_builder.build(document, file_id=file_id)
            logger.info(f"Created {len(chunks)} chunks for {file_id}")
            embedded = await self.embedding_pipeline.embed_chunks(chunks, token)
            check(token, IngestionStage.BEFORE_STORE)

            await self.vector_index.ensure_collection()
            uploaded_at = datetime.now(timezone.utc)
            points = [
                IndexPoint(id=e.id, vector=e.embedding, payload=e.to_payload(uploaded_at))
                for e in embedded
            ]
            upsert_started = True
            await self.vector_index.upsert(points)

            await self.document_repo.update_summary(
                file_id, document.document_type.value, len(parsed.pages), len(embedded)
            )
        except OperationCancelled:
            logger.info(f"PDF processing aborted for {file_id}, discarding upload")
            await self._discard(blob, upsert_started)
            raise
        except (DocumentProcessingError, VectorIndexError) as e:
            logger.error(f"Processing failed for '{original_name}': {e}")
            await self._discard(blob, upsert_started)
            raise
        except Exception as e:
            logger.error(f"Processing failed for '{original_name}': {e}", exc_info=True)
            await self._discard(blob, upsert_started)
            raise DocumentProcessingError(
                f"PDF processing failed: {e}", ErrorCode.PROCESSING_FAILED
            ) from e

        logger.info(f"PDF {file_id} processed: {len(parsed.pages)} pages, {len(embedded)} chunks")
        return IngestionResult(
            file_id=file_id,
            file_name=blob.file_name,
            original_name=original_name,
            blob_url=blob.blob_url,
            document_type=document.document_type,
            total_pages=parsed.total_pages,
            section_count=len(document.sections),
            chunk_count=len(embedded),
            summary=document.summary,
            suggestions=list(document.suggestions or []),
        )

    async def _store(self, content: bytes, original_name: str, file_id: str) -> StoredBlob:
        try:
            blob = await self.file_storage.save(content, original_name, file_id)
        except Exception as e:
            raise DocumentProcessingError(
                f"Failed to upload PDF: {e}", ErrorCode.UPLOAD_FAILED
            ) from e

        try:
            await self.document_repo.create(DocumentRecord(
                file_id=file_id,
                original_name=original_name,
                stored_filename=blob.file_name,
                blob_url=blob.blob_url,
                file_hash=get_file_hash(content),
            ))
        except Exception as e:
            await self.file_storage.delete(blob.file_name)
            raise DocumentProcessingError(
                f"Failed to register upload: {e}", ErrorCode.UPLOAD_FAILED
            ) from e
        return blob

    async def _discard(self, blob: StoredBlob, remove_vectors: bool) -> None:
        """Rollback: vectors (if any were sent), record, and stored blob."""
        if remove_vectors:
            try:
                await self.vector_index.delete_by_file_id(blob.file_id)
            except VectorIndexError as e:
                logger.error(f"Could not remove partial vectors for {blob.file_id}: {e}")
        try:
            await self.document_repo.delete(blob.file_id)
        except Exception as e:
            logger.error(f"Could not remove record for {blob.file_id}: {e}")
        await self.file_storage.delete(blob.file_name)

    async def delete_file(self, file_id: str) -> bool:
        """Remove a file's vectors, then its stored blob and record. Idempotent."""
        await self.vector_index.delete_by_file_id(file_id)

        record = await self.document_repo.get_by_id(file_id)
        if record is None:
            logger.info(f"No upload record for {file_id}; deleted vectors only")
            return True

        await self.file_storage.delete(record.stored_filename)
        await self.document_repo.delete(file_id)
        logger.info(f"Deleted file {file_id} ({record.original_name})")
        return True
