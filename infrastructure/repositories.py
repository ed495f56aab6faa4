# infrastructure/repositories.py
"""Database repository implementations"""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.interfaces import IDocumentRepository
from core.domain import DocumentRecord
from database.session import DocumentEntity
from config import settings

logger = logging.getLogger(settings.LOGGER_NAME)

class SQLDocumentRepository(IDocumentRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_domain(self, db_doc: Optional[DocumentEntity]) -> Optional[DocumentRecord]:
        """Converts an SQLAlchemy entity to a domain model."""
        if db_doc is None:
            return None
        return DocumentRecord(
            file_id=db_doc.file_id, # type: ignore
            original_name=db_doc.original_name, # type: ignore
            stored_filename=db_doc.stored_filename, # type: ignore
            blob_url=db_doc.blob_url, # type: ignore
            file_hash=db_doc.file_hash, # type: ignore
            document_type=db_doc.document_type, # type: ignore
            total_pages=db_doc.total_pages or 0, # type: ignore
            chunk_count=db_doc.chunk_count or 0, # type: ignore
            uploaded_at=db_doc.uploaded_at, # type: ignore
        )

    async def create(self, record: DocumentRecord) -> DocumentRecord:
        db_doc = DocumentEntity(
            file_id=record.file_id,
            original_name=record.original_name,
            stored_filename=record.stored_filename,
            blob_url=record.blob_url,
            file_hash=record.file_hash,
        )
        self.session.add(db_doc)
        await self.session.commit()
        await self.session.refresh(db_doc)
        logger.info(f"Created document {record.file_id} in database")

        result = self._to_domain(db_doc)
        assert result is not None, "Created document should never be None"
        return result

    async def update_summary(
        self, file_id: str, document_type: str, total_pages: int, chunk_count: int
    ) -> bool:
        db_doc = await self.session.get(DocumentEntity, file_id)
        if not db_doc:
            return False
        db_doc.document_type = document_type # type: ignore
        db_doc.total_pages = total_pages # type: ignore
        db_doc.chunk_count = chunk_count # type: ignore
        await self.session.commit()
        return True

    async def get_by_id(self, file_id: str) -> Optional[DocumentRecord]:
        db_doc = await self.session.get(DocumentEntity, file_id)
        return self._to_domain(db_doc)

    async def delete(self, file_id: str) -> bool:
        doc = await self.session.get(DocumentEntity, file_id)
        if not doc:
            return False
        await self.session.delete(doc)
        await self.session.commit()
        return True
