# services/chunk_builder.py
"""Document → ordered, overlapping, word-bounded chunks.

Ordering is fixed: document-info chunk, page chunks (page order), section
chunks (section order), suggestions, explanations. Oversized pages and
sections are split into windows of `max_chunk_size` words that overlap the
previous window by `overlap_size` words; the last window holds the remainder.
"""
import logging
from typing import Iterator, List, Optional, Tuple

from config import settings
from core.domain import Chunk, ChunkMetadata, Document, Page, Section
from core.enums import ChunkType, SourceKind

logger = logging.getLogger(settings.LOGGER_NAME)


def split_words(
    words: List[str], max_chunk_size: int, overlap_size: int
) -> Iterator[Tuple[int, int, List[str]]]:
    """
    Yield (part_number, start_word_index, window) for an oversized word list.

    Windows start every (max_chunk_size - overlap_size) words. Splitting stops
    as soon as a window reaches the end, so N words give
    ceil((N - overlap) / (max - overlap)) windows.
    """
    step = max_chunk_size - overlap_size
    start = 0
    while True:
        window = words[start:start + max_chunk_size]
        yield start // step + 1, start, window
        if start + max_chunk_size >= len(words):
            break
        start += step


class ChunkBuilder:
    """Pure transformation; no I/O."""

    def __init__(
        self,
        max_chunk_size: int = settings.CHUNK_SIZE,
        overlap_size: int = settings.CHUNK_OVERLAP
    ):
        if max_chunk_size <= overlap_size:
            raise ValueError("max_chunk_size must be greater than overlap_size")
        self.max_chunk_size = max_chunk_size
        self.overlap_size = overlap_size

    def build(self, document: Document, file_id: Optional[str] = None) -> List[Chunk]:
        sections = document.sections or []
        pages = document.pages or []

        chunks: List[Chunk] = [self._document_info_chunk(document, file_id, sections, pages)]

        for page_index, page in enumerate(pages):
            if page.text and page.text.strip():
                chunks.extend(self._chunk_page(page, page_index, document, file_id))

        for section_index, section in enumerate(sections):
            chunks.extend(self._chunk_section(section, section_index, document, file_id))

        if document.suggestions:
            content = f"Suggestions: {'. '.join(document.suggestions)}"
            chunks.append(Chunk(
                content=content,
                metadata=ChunkMetadata(
                    source_kind=SourceKind.SUGGESTIONS,
                    document_type=document.document_type,
                    word_count=len(content.split()),
                    file_id=file_id,
                ),
            ))

        for key, explanation in (document.explanations or {}).items():
            content = f"{key[:1].upper()}{key[1:]}: {explanation}"
            chunks.append(Chunk(
                content=content,
                metadata=ChunkMetadata(
                    source_kind=SourceKind.EXPLANATIONS,
                    document_type=document.document_type,
                    word_count=len(content.split()),
                    file_id=file_id,
                    explanation_type=key,
                ),
            ))

        logger.debug(f"Built {len(chunks)} chunks ({len(pages)} pages, {len(sections)} sections)")
        return chunks

    def _document_info_chunk(
        self, document: Document, file_id: Optional[str], sections: List[Section], pages: List[Page]
    ) -> Chunk:
        content = f"Document Type: {document.document_type.value}. {document.summary or ''}".strip()
        return Chunk(
            content=content,
            metadata=ChunkMetadata(
                source_kind=SourceKind.DOCUMENT_INFO,
                document_type=document.document_type,
                word_count=len(content.split()),
                file_id=file_id,
                total_sections=len(sections),
                total_pages=len(pages),
            ),
        )

    def _chunk_page(
        self, page: Page, page_index: int, document: Document, file_id: Optional[str]
    ) -> List[Chunk]:
        return self._chunk_unit(
            text=page.text.strip(),
            locator=f"Page {page.page_number}",
            base=dict(
                source_kind=SourceKind.PAGE_CONTENT,
                document_type=document.document_type,
                file_id=file_id,
                page_number=page.page_number,
                page_index=page_index,
                chunk_type=ChunkType.PAGE,
            ),
        )

    def _chunk_section(
        self, section: Section, section_index: int, document: Document, file_id: Optional[str]
    ) -> List[Chunk]:
        return self._chunk_unit(
            text=" ".join(section.content),
            locator=section.title,
            base=dict(
                source_kind=SourceKind.SECTION_CONTENT,
                document_type=document.document_type,
                file_id=file_id,
                section_title=section.title,
                section_index=section_index,
                chunk_type=ChunkType.SECTION,
            ),
        )

    def _chunk_unit(self, text: str, locator: str, base: dict) -> List[Chunk]:
        """Shared split for pages and sections."""
        words = text.split()

        if len(words) <= self.max_chunk_size:
            return [Chunk(
                content=f"{locator}: {text}",
                metadata=ChunkMetadata(word_count=len(words), **base),
            )]

        chunks = []
        for part, start, window in split_words(words, self.max_chunk_size, self.overlap_size):
            chunks.append(Chunk(
                content=f"{locator} (Part {part}): {' '.join(window)}",
                metadata=ChunkMetadata(
                    word_count=len(window),
                    chunk_part=part,
                    start_word_index=start,
                    **base,
                ),
            ))
        return chunks
