# services/chat_service.py
"""Chat, follow-up questions, analysis, improvement, comparison, and search over indexed PDFs"""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from api.schemas import (
    AnalyzeResponse, ChatContext, ChatMessage, ChatMetadata, ChatQueryResponse,
    CompareResponse, ImproveResponse, SearchGroup, SearchMatch, SearchResponse,
    SectionGroupsResponse, SuggestionsResponse
)
from config import settings
from core.domain import RetrievalPlan, RetrievedChunk
from core.exceptions import NotFoundError
from services.model_fallback import (
    ANALYSIS_PROFILE, CHAT_PROFILE, FOLLOW_UP_PROFILE, IMPROVE_PROFILE, ModelFallbackInvoker
)
from services.query_router import QueryRouter

logger = logging.getLogger(settings.LOGGER_NAME)

FOLLOW_UP_CHUNK_LIMIT = 10
ANALYSIS_CHUNK_LIMIT = 15
IMPROVE_CHUNK_LIMIT = 20
COMPARE_CHUNK_LIMIT = 10
CONTEXT_CHUNK_LIMIT = 20
UNKNOWN_SECTION = "Unknown"

NUMBERING = re.compile(r"^\d+\.\s*")

SYSTEM_PROMPT = """You are an intelligent PDF assistant that helps users understand and interact with their uploaded documents.

Your capabilities include:
- Explaining complex sections of documents
- Providing improvement suggestions for resumes
- Summarizing research papers
- Answering questions about invoices, contracts, and other documents
- Making connections between different parts of the document
- Engaging in general conversation and greetings

Guidelines:
1. For document-related queries: Always base your answers on the provided context from the document
2. For general conversation: Be friendly, helpful, and conversational
3. If the context doesn't contain relevant information for document queries, say so clearly
4. Be helpful, accurate, and concise
5. For resumes, provide constructive feedback and suggestions
6. For research papers, explain complex concepts in simple terms
7. For invoices, help with calculations and clarifications
8. For contracts, explain legal terms and implications

When calculating experience from a resume, "Present" means current employment:
count from the start date to today's date.

When responding:
- Be conversational but professional
- Ask clarifying questions if the user's query is ambiguous
- Use clear formatting with headers (###) for sections
- Use bullet points for lists and keep paragraphs short

IMPORTANT: When no document context is provided, respond naturally to general conversation without mentioning documents or PDFs."""


def empty_page_message(page_number: int) -> str:
    return (
        f"I couldn't find any content on page {page_number}. "
        "The document might not have that many pages, or the page might be empty."
    )


def build_context(chunks: Sequence[RetrievedChunk], plan: RetrievalPlan) -> str:
    """Numbered context block handed to the model with the user's question."""
    if not chunks:
        if plan.is_page_specific:
            return (
                f"No content found on page {plan.page_number}. "
                "The page might be empty or the document might not have that many pages."
            )
        return "No relevant information found in the uploaded documents."

    if plan.is_page_specific:
        context = f"Based on the following information from page {plan.page_number}:\n\n"
    else:
        context = "Based on the following information from the document:\n\n"

    for index, chunk in enumerate(chunks, start=1):
        context += f"{index}. {chunk.content}\n\n"

    if plan.file_id:
        if plan.is_page_specific:
            context += f"\nThis information is from page {plan.page_number} of a specific document (ID: {plan.file_id})."
        else:
            context += f"\nThis information is from a specific document (ID: {plan.file_id})."
    return context


def build_messages(
    query: str, context: str, chat_history: Optional[Sequence[ChatMessage]] = None
) -> List[Dict[str, str]]:
    messages = [{"role": "system", "content": SYSTEM_PROMPT}]
    history = list(chat_history or [])[-settings.CHAT_HISTORY_LIMIT:]
    messages.extend({"role": m.role, "content": m.content} for m in history)
    messages.append({"role": "user", "content": f"Context: {context}\n\nUser Question: {query}"})
    return messages


def parse_questions(text: str) -> List[str]:
    """One question per non-blank line, leading "N. " numbering removed."""
    return [NUMBERING.sub("", line.strip()).strip() for line in text.strip().split("\n") if line.strip()]


def group_by_section(chunks: Sequence[RetrievedChunk], with_scores: bool) -> Dict[str, List[Any]]:
    sections: Dict[str, List[Any]] = {}
    for chunk in chunks:
        title = chunk.metadata.get("sectionTitle") or UNKNOWN_SECTION
        entry = {"content": chunk.content, "score": chunk.score} if with_scores else chunk.content
        sections.setdefault(title, []).append(entry)
    return sections


class ChatService:
    def __init__(self, router: QueryRouter, invoker: ModelFallbackInvoker):
        self.router = router
        self.invoker = invoker

    @property
    def vector_index(self):
        return self.router.vector_index

    async def chat(
        self,
        query: str,
        file_id: Optional[str] = None,
        chat_history: Optional[Sequence[ChatMessage]] = None
    ) -> ChatQueryResponse:
        plan = self.router.route(query, file_id)
        chunks = await self.router.retrieve(plan)
        metadata = ChatMetadata(query=query, file_id=file_id, timestamp=datetime.now(timezone.utc))

        if plan.is_page_specific and not chunks:
            logger.info(f"No chunks on page {plan.page_number} of {file_id}, skipping model call")
            return ChatQueryResponse(
                response=empty_page_message(plan.page_number),
                context=ChatContext(
                    chunks_used=0,
                    top_chunk_preview="No content found",
                    confidence=0.0,
                    is_page_specific=True,
                    target_page=plan.page_number,
                ),
                metadata=metadata,
            )

        context = build_context(chunks, plan)
        logger.info(f"Query: {query[:100]}... | context length: {len(context)} characters")
        response = await self.invoker.run(CHAT_PROFILE, build_messages(query, context, chat_history))

        preview = ""
        if chunks:
            preview = chunks[0].content[:settings.TOP_CHUNK_PREVIEW_LENGTH] + "..."
        return ChatQueryResponse(
            response=response or "",
            context=ChatContext(
                chunks_used=len(chunks),
                top_chunk_preview=preview,
                confidence=chunks[0].score if chunks else 0.0,
                is_page_specific=plan.is_page_specific,
                target_page=plan.page_number,
            ),
            metadata=metadata,
        )

    async def _document_type(self, file_id: str) -> str:
        chunks = await self.vector_index.search_by_file_id(file_id, 1)
        if not chunks:
            raise NotFoundError("Document not found")
        return chunks[0].metadata.get("documentType", "general")

    async def generate_follow_up_questions(self, file_id: str, document_type: str) -> List[str]:
        """Empty list when the file has no chunks or every model failed."""
        chunks = await self.vector_index.search_by_file_id(file_id, FOLLOW_UP_CHUNK_LIMIT)
        if not chunks:
            return []

        context = "\n".join(c.content for c in chunks)
        messages = [
            {
                "role": "system",
                "content": (
                    "Generate 3-5 relevant follow-up questions based on the document content.\n"
                    f"Focus on the document type: {document_type}.\n"
                    "Make questions specific and actionable."
                ),
            },
            {"role": "user", "content": f"Document content: {context}\n\nGenerate follow-up questions."},
        ]
        text = await self.invoker.run(FOLLOW_UP_PROFILE, messages)
        if not text:
            return []
        return parse_questions(text)

    async def get_suggestions(self, file_id: str) -> SuggestionsResponse:
        document_type = await self._document_type(file_id)
        questions = await self.generate_follow_up_questions(file_id, document_type)
        return SuggestionsResponse(questions=questions, document_type=document_type)

    async def analyze_document(self, file_id: str) -> AnalyzeResponse:
        chunks = await self.vector_index.search_by_file_id(file_id, ANALYSIS_CHUNK_LIMIT)
        if not chunks:
            raise NotFoundError("Document not found")
        document_type = chunks[0].metadata.get("documentType", "general")

        context = "\n".join(c.content for c in chunks)
        messages = [
            {
                "role": "system",
                "content": (
                    f"Analyze the document and provide insights. Document type: {document_type}.\n"
                    "Include:\n- Key points and findings\n- Strengths and areas for improvement\n"
                    "- Recommendations\n- Summary"
                ),
            },
            {"role": "user", "content": f"Analyze this document: {context}"},
        ]
        analysis = await self.invoker.run(ANALYSIS_PROFILE, messages)
        return AnalyzeResponse(
            analysis=(analysis or "").strip(),
            document_type=document_type,
            chunks_analyzed=len(chunks),
        )

    async def improve_section(
        self, file_id: str, section_name: str, improvement_type: str
    ) -> ImproveResponse:
        chunks = await self.vector_index.search_by_file_id(file_id, IMPROVE_CHUNK_LIMIT)
        wanted = section_name.lower()
        section_chunks = [
            c for c in chunks if wanted in (c.metadata.get("sectionTitle") or "").lower()
        ]
        if not section_chunks:
            raise NotFoundError("Section not found")

        section_content = "\n".join(c.content for c in section_chunks)
        messages = [
            {
                "role": "system",
                "content": (
                    f"Improve the {section_name} section. Focus on: {improvement_type}.\n"
                    "Provide specific suggestions and examples."
                ),
            },
            {"role": "user", "content": f"Current {section_name}: {section_content}\n\nImprove this section."},
        ]
        improved = await self.invoker.run(IMPROVE_PROFILE, messages)
        return ImproveResponse(
            original_section=section_content,
            improved_section=(improved or "").strip(),
            section_name=section_name,
            improvement_type=improvement_type,
        )

    async def compare_documents(
        self, file_ids: Sequence[str], comparison_type: Optional[str] = None
    ) -> CompareResponse:
        if len(file_ids) < 2:
            raise ValueError("At least two file IDs are required for comparison")

        blocks = []
        for file_id in file_ids:
            chunks = await self.vector_index.search_by_file_id(file_id, COMPARE_CHUNK_LIMIT)
            blocks.append(f"Document {file_id}:\n" + "\n".join(c.content for c in chunks) + "\n")

        prompt = f"Compare the following documents ({comparison_type or 'general comparison'}):\n\n"
        result = await self.chat(prompt + "\n".join(blocks))
        return CompareResponse(
            comparison=result.response,
            files_compared=list(file_ids),
            comparison_type=comparison_type or "general",
        )

    async def get_context(
        self, file_id: str, limit: int = CONTEXT_CHUNK_LIMIT, with_scores: bool = True
    ) -> SectionGroupsResponse:
        chunks = await self.vector_index.search_by_file_id(file_id, limit)
        if not chunks:
            raise NotFoundError("Document not found")
        return SectionGroupsResponse(
            file_id=file_id,
            document_type=chunks[0].metadata.get("documentType"),
            sections=group_by_section(chunks, with_scores),
            total_chunks=len(chunks),
        )

    async def search(
        self, query: str, document_type: Optional[str] = None, limit: int = 10
    ) -> SearchResponse:
        """Semantic search, results grouped by fileId in first-seen order."""
        query_vector = await self.router.embedding_pipeline.embed_query(query)
        filter = {"documentType": document_type} if document_type else None
        hits = await self.vector_index.search_similar(query_vector, limit, filter)

        groups: Dict[Optional[str], SearchGroup] = {}
        for hit in hits:
            file_id = hit.metadata.get("fileId")
            if file_id not in groups:
                groups[file_id] = SearchGroup(
                    file_id=file_id, document_type=hit.metadata.get("documentType")
                )
            groups[file_id].matches.append(SearchMatch(
                content=hit.content, score=hit.score, section=hit.metadata.get("sectionTitle")
            ))

        return SearchResponse(query=query, results=list(groups.values()), total_results=len(hits))
