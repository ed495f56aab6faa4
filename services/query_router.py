# services/query_router.py
"""Query classification (page / file / corpus) and retrieval routing"""
import logging
import re
from typing import List, Optional, Pattern, Tuple

from config import settings
from core.domain import QueryClassification, RetrievalPlan, RetrievedChunk
from core.enums import RetrievalKind
from core.interfaces import IVectorIndex
from services.embedding_pipeline import EmbeddingPipeline

logger = logging.getLogger(settings.LOGGER_NAME)

# Tried in order; the first pattern yielding a positive page number wins.
PAGE_PATTERNS: List[Tuple[str, Pattern[str]]] = [
    ("page N", re.compile(r"page\s+(\d+)")),
    ("the Nth page", re.compile(r"the\s+(\d+)(?:st|nd|rd|th)?\s+page")),
    ("page number N", re.compile(r"page\s+number\s+(\d+)")),
    ("Nth page", re.compile(r"(\d+)(?:st|nd|rd|th)?\s+page")),
]

NOT_PAGE_SPECIFIC = QueryClassification(is_page_specific=False, page_number=None)


def classify(query: str) -> QueryClassification:
    """Detect whether a query targets a specific page."""
    lowered = (query or "").lower()
    for name, pattern in PAGE_PATTERNS:
        match = pattern.search(lowered)
        if match:
            page_number = int(match.group(1))
            if page_number > 0:
                logger.debug(f"Page pattern '{name}' matched page {page_number}")
                return QueryClassification(is_page_specific=True, page_number=page_number)
    return NOT_PAGE_SPECIFIC


class QueryRouter:
    """
    | page-specific and fileId | searchByFileIdAndPage | 10 |
    | fileId                   | searchByFileId        | 10 |
    | no fileId                | embed + searchSimilar |  5 |
    """

    def __init__(
        self,
        vector_index: IVectorIndex,
        embedding_pipeline: EmbeddingPipeline,
        page_limit: int = settings.PAGE_CHUNK_LIMIT,
        file_limit: int = settings.FILE_CHUNK_LIMIT,
        corpus_limit: int = settings.CORPUS_CHUNK_LIMIT
    ):
        self.vector_index = vector_index
        self.embedding_pipeline = embedding_pipeline
        self.page_limit = page_limit
        self.file_limit = file_limit
        self.corpus_limit = corpus_limit

    def classify(self, query: str) -> QueryClassification:
        return classify(query)

    def route(self, query: str, file_id: Optional[str] = None) -> RetrievalPlan:
        classification = classify(query)

        if classification.is_page_specific and file_id:
            logger.info(f"Page-specific query detected for page {classification.page_number}")
            return RetrievalPlan(
                kind=RetrievalKind.PAGE, limit=self.page_limit, query=query,
                file_id=file_id, page_number=classification.page_number
            )
        if file_id:
            logger.info(f"Chatting with specific PDF: {file_id}")
            return RetrievalPlan(kind=RetrievalKind.FILE, limit=self.file_limit, query=query, file_id=file_id)

        logger.info("Chatting with all PDFs using semantic search")
        return RetrievalPlan(kind=RetrievalKind.CORPUS, limit=self.corpus_limit, query=query)

    async def retrieve(self, plan: RetrievalPlan) -> List[RetrievedChunk]:
        if plan.kind == RetrievalKind.PAGE:
            return await self.vector_index.search_by_file_id_and_page(plan.file_id, plan.page_number, plan.limit)
        if plan.kind == RetrievalKind.FILE:
            return await self.vector_index.search_by_file_id(plan.file_id, plan.limit)

        query_vector = await self.embedding_pipeline.embed_query(plan.query)
        return await self.vector_index.search_similar(query_vector, plan.limit)
