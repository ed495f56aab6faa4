"""Tests for page-query classification and retrieval routing."""

import pytest

from core.domain import IndexPoint
from core.enums import RetrievalKind
from services.query_router import QueryRouter, classify


class TestClassify:
    @pytest.mark.parametrize(
        "query,page",
        [
            ("What's on page 5?", 5),
            ("Tell me about the 3rd page", 3),
            ("Summarize page number 12", 12),
            ("what does the 2nd page say", 2),
            ("PAGE 7 please", 7),
            ("Explain the 21st page", 21),
        ],
    )
    def test_page_specific(self, query, page):
        result = classify(query)
        assert result.is_page_specific is True
        assert result.page_number == page

    @pytest.mark.parametrize(
        "query",
        ["What is this document about?", "List 3 key points", "", "page zero"],
    )
    def test_not_page_specific(self, query):
        result = classify(query)
        assert result.is_page_specific is False
        assert result.page_number is None

    def test_zero_page_does_not_count(self):
        assert classify("what is on page 0?").is_page_specific is False

    def test_first_pattern_wins(self):
        # "page 4" is found before "the 2nd page"
        assert classify("compare page 4 with the 2nd page").page_number == 4


class TestRoute:
    def _router(self, vector_index, embedding_pipeline):
        return QueryRouter(vector_index, embedding_pipeline, page_limit=10, file_limit=10, corpus_limit=5)

    def test_page_query_with_file(self, vector_index, embedding_pipeline):
        plan = self._router(vector_index, embedding_pipeline).route("what's on page 2?", "f1")
        assert plan.kind == RetrievalKind.PAGE
        assert plan.page_number == 2
        assert plan.file_id == "f1"
        assert plan.limit == 10

    def test_page_query_without_file_goes_to_corpus(self, vector_index, embedding_pipeline):
        plan = self._router(vector_index, embedding_pipeline).route("what's on page 2?")
        assert plan.kind == RetrievalKind.CORPUS
        assert plan.limit == 5
        assert plan.page_number is None

    def test_file_query(self, vector_index, embedding_pipeline):
        plan = self._router(vector_index, embedding_pipeline).route("summarize", "f1")
        assert plan.kind == RetrievalKind.FILE
        assert plan.limit == 10

    @pytest.mark.asyncio
    async def test_retrieve_dispatches_to_index(self, vector_index, embedding_pipeline):
        await vector_index.upsert([
            IndexPoint(id="1", vector=[1.0] * 8, payload={"content": "Page 2: x", "fileId": "f1", "pageNumber": 2}),
            IndexPoint(id="2", vector=[1.0] * 8, payload={"content": "Page 3: y", "fileId": "f1", "pageNumber": 3}),
        ])
        router = self._router(vector_index, embedding_pipeline)

        page_hits = await router.retrieve(router.route("page 2", "f1"))
        file_hits = await router.retrieve(router.route("summary", "f1"))
        corpus_hits = await router.retrieve(router.route("summary"))

        assert [h.id for h in page_hits] == ["1"]
        assert len(file_hits) == 2
        assert len(corpus_hits) == 2
        assert vector_index.calls[-3:] == ["search_by_file_id_and_page", "search_by_file_id", "search_similar"]
