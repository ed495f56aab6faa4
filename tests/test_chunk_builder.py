"""Tests for word-window chunking."""

import math

import pytest

from core.domain import Document, Page, Section
from core.enums import ChunkType, DocumentType, SourceKind
from services.chunk_builder import ChunkBuilder, split_words


def _words(n, prefix="w"):
    return [f"{prefix}{i}" for i in range(n)]


def _doc(pages=(), sections=(), **kwargs):
    return Document(
        document_type=kwargs.pop("document_type", DocumentType.GENERAL),
        pages=list(pages),
        sections=list(sections),
        summary=kwargs.pop("summary", "This document contains 1 main sections."),
        **kwargs,
    )


def _page(number, n_words):
    text = " ".join(_words(n_words, prefix=f"p{number}_"))
    return Page(page_number=number, text=text, word_count=n_words)


def _body(chunk):
    return chunk.content.split(": ", 1)[1].split()


class TestSplitWords:
    @pytest.mark.parametrize("n", [513, 700, 974, 975, 1500, 2048])
    def test_window_count_matches_formula(self, n):
        windows = list(split_words(_words(n), 512, 50))
        assert len(windows) == math.ceil((n - 50) / 462)

    def test_windows_reconstruct_sequence(self):
        words = _words(1300)
        rebuilt = []
        for part, start, window in split_words(words, 512, 50):
            assert window == words[start:start + 512]
            rebuilt.extend(window if not rebuilt else window[50:])
        assert rebuilt == words

    def test_starts_step_by_max_minus_overlap(self):
        starts = [start for _, start, _ in split_words(_words(1200), 512, 50)]
        assert starts == [0, 462, 924]


class TestChunkBuilder:
    def test_rejects_overlap_not_smaller_than_size(self):
        with pytest.raises(ValueError):
            ChunkBuilder(max_chunk_size=50, overlap_size=50)

    def test_small_page_is_one_chunk_with_same_word_count(self):
        chunks = ChunkBuilder().build(_doc(pages=[_page(1, 512)]), file_id="f1")
        page_chunks = [c for c in chunks if c.metadata.source_kind == SourceKind.PAGE_CONTENT]

        assert len(page_chunks) == 1
        assert page_chunks[0].metadata.word_count == 512
        assert page_chunks[0].content.startswith("Page 1: ")
        assert page_chunks[0].metadata.chunk_part is None

    def test_large_page_is_split_into_parts(self):
        chunks = ChunkBuilder().build(_doc(pages=[_page(2, 1000)]), file_id="f1")
        page_chunks = [c for c in chunks if c.metadata.source_kind == SourceKind.PAGE_CONTENT]

        assert len(page_chunks) == math.ceil((1000 - 50) / 462)
        assert [c.metadata.chunk_part for c in page_chunks] == [1, 2, 3]
        assert page_chunks[1].content.startswith("Page 2 (Part 2): ")
        assert all(c.metadata.page_number == 2 for c in page_chunks)
        assert all(c.metadata.chunk_type == ChunkType.PAGE for c in page_chunks)
        assert all(c.metadata.word_count <= 512 for c in page_chunks)

    def test_large_section_reconstructs_words(self):
        content = [" ".join(_words(300, "a")), " ".join(_words(400, "b"))]
        chunks = ChunkBuilder().build(_doc(sections=[Section(title="Experience", content=content)]))
        section_chunks = [c for c in chunks if c.metadata.source_kind == SourceKind.SECTION_CONTENT]

        rebuilt = []
        for chunk in section_chunks:
            words = _body(chunk)
            rebuilt.extend(words if not rebuilt else words[50:])
        assert rebuilt == " ".join(content).split()
        assert section_chunks[0].content.startswith("Experience (Part 1): ")

    def test_empty_pages_are_skipped(self):
        pages = [_page(1, 10), Page(page_number=2, text="   ", word_count=0), _page(3, 10)]
        chunks = ChunkBuilder().build(_doc(pages=pages))
        numbers = [c.metadata.page_number for c in chunks if c.metadata.source_kind == SourceKind.PAGE_CONTENT]
        assert numbers == [1, 3]

    def test_order_is_info_pages_sections_suggestions_explanations(self):
        document = _doc(
            pages=[_page(1, 5)],
            sections=[Section(title="Skills", content=["Python"])],
            suggestions=["Consider adding more technical skills"],
            explanations={"methodology": "This section describes the research methods."},
        )
        kinds = [c.metadata.source_kind for c in ChunkBuilder().build(document)]
        assert kinds == [
            SourceKind.DOCUMENT_INFO,
            SourceKind.PAGE_CONTENT,
            SourceKind.SECTION_CONTENT,
            SourceKind.SUGGESTIONS,
            SourceKind.EXPLANATIONS,
        ]

    def test_document_info_chunk(self):
        chunks = ChunkBuilder().build(_doc(pages=[_page(1, 3)], document_type=DocumentType.INVOICE, summary="Short."))
        info = chunks[0]
        assert info.content == "Document Type: invoice. Short."
        assert info.metadata.total_pages == 1
        assert info.metadata.total_sections == 0

    def test_suggestion_and_explanation_content(self):
        document = _doc(
            suggestions=["Add detail", "Add skills"],
            explanations={"results": "This section presents the findings."},
        )
        chunks = ChunkBuilder().build(document)
        assert chunks[-2].content == "Suggestions: Add detail. Add skills"
        assert chunks[-1].content == "Results: This section presents the findings."
        assert chunks[-1].metadata.explanation_type == "results"

    def test_output_is_deterministic(self):
        document = _doc(pages=[_page(1, 900), _page(2, 20)], sections=[Section(title="Intro", content=["a b c"])])
        builder = ChunkBuilder()
        assert builder.build(document, file_id="f") == builder.build(document, file_id="f")
