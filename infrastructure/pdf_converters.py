# infrastructure/pdf_converters.py
"""Page-wise PDF text extraction with PyMuPDF."""
import asyncio
import logging
from typing import List, Optional, Tuple

import fitz  # PyMuPDF

from config import settings
from core.domain import Page, ParsedPdf
from core.enums import ErrorCode
from core.exceptions import DocumentProcessingError
from core.interfaces import IPdfParser
from utils.common import count_words

logger = logging.getLogger(settings.LOGGER_NAME)


def split_text_into_pages(text: str, num_pages: int) -> List[str]:
    """
    Distribute document-level text over `num_pages` pages on line boundaries.

    Each page is closed once it reaches the estimated page length; the last
    page takes the remainder and missing pages are padded with "".
    """
    num_pages = max(num_pages, 1)
    target_length = -(-len(text) // num_pages)  # ceil
    pages: List[str] = []
    current: List[str] = []
    current_length = 0

    for line in text.split("\n"):
        current.append(line)
        current_length += len(line) + 1
        if current_length >= target_length and len(pages) < num_pages - 1:
            pages.append("\n".join(current))
            current = []
            current_length = 0

    if current:
        pages.append("\n".join(current))
    while len(pages) < num_pages:
        pages.append("")
    return pages[:num_pages]


class PyMuPDFParser(IPdfParser):
    """
    PyMuPDF-based text extraction.

    Pages are read one by one; when a page cannot be read on its own the
    text that could be extracted is re-distributed over the page count.
    """

    def _extract(self, content: bytes) -> Tuple[int, Optional[List[str]], str, dict]:
        with fitz.open(stream=content, filetype="pdf") as doc:
            page_count = doc.page_count
            info = {k: v for k, v in (doc.metadata or {}).items() if v}
            texts: List[str] = []
            page_wise = True
            for page_index in range(page_count):
                try:
                    texts.append(doc.load_page(page_index).get_text())
                except Exception as e:
                    logger.warning(f"Page {page_index + 1} text unavailable: {e}")
                    page_wise = False
        raw_text = "\n".join(texts)
        return page_count, (texts if page_wise else None), raw_text, info

    def _build(self, content: bytes) -> ParsedPdf:
        page_count, page_texts, raw_text, info = self._extract(content)
        if page_count == 0:
            raise ValueError("document has no pages")

        if page_texts is None:
            logger.info(f"Splitting document text into {page_count} estimated pages")
            page_texts = split_text_into_pages(raw_text, page_count)

        pages = [
            Page(page_number=i + 1, text=text, word_count=count_words(text))
            for i, text in enumerate(page_texts)
        ]
        return ParsedPdf(total_pages=len(pages), pages=pages, raw_text=raw_text, info=info)

    async def parse(self, content: bytes) -> ParsedPdf:
        try:
            parsed = await asyncio.to_thread(self._build, content)
        except Exception as e:
            logger.error(f"Error parsing PDF: {e}")
            raise DocumentProcessingError(
                f"PDF parsing failed: {e}", ErrorCode.PARSE_FAILED
            ) from e

        logger.info(f"Parsed {parsed.total_pages} pages ({count_words(parsed.raw_text)} words)")
        return parsed
