# services/document_structurer.py
"""
Structure extraction: sections, document type, entities, post-processing.

All heuristics are rule tables so they can be tested one rule at a time.
"""
import dataclasses
import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from config import settings
from core.domain import Document, ParsedPdf, Section
from core.enums import DocumentType
from core.interfaces import IEntityExtractor

logger = logging.getLogger(settings.LOGGER_NAME)

DEFAULT_SECTION_TITLE = "Introduction"
HEURISTIC_CONFIDENCE = 0.6
MAX_HEADER_LENGTH = 100
SUMMARY_WORD_THRESHOLD = 100

TITLE_CASE = re.compile(r"^[A-Z][a-z]+(\s+[A-Z][a-z]+)*$")

# (document type, alternatives); an alternative matches when every keyword
# in it occurs in the lower-cased text. First matching rule wins.
CLASSIFICATION_RULES: List[Tuple[DocumentType, List[Tuple[str, ...]]]] = [
    (DocumentType.RESUME, [("resume",), ("cv",), ("experience", "education")]),
    (DocumentType.INVOICE, [("invoice",), ("bill",), ("total", "amount")]),
    (DocumentType.RESEARCH_PAPER, [("abstract",), ("introduction",), ("references",), ("methodology",)]),
    (DocumentType.CONTRACT, [("contract",), ("agreement",), ("terms", "conditions")]),
]

# (section title keyword, minimum content lines, suggestion)
RESUME_SUGGESTION_RULES = [
    ("experience", 3, "Consider adding more detail to your work experience"),
    ("skills", 5, "Consider adding more technical skills"),
]

# (section title keyword, explanation key, explanation)
RESEARCH_EXPLANATION_RULES = [
    ("methodology", "methodology",
     "This section describes the research methods and procedures used in the study."),
    ("results", "results",
     "This section presents the findings and outcomes of the research."),
]


def is_section_header(line: str) -> bool:
    """Short line that is all upper-case or Title Case word by word."""
    trimmed = line.strip()
    return len(trimmed) < MAX_HEADER_LENGTH and (trimmed.upper() == trimmed or bool(TITLE_CASE.match(trimmed)))


def identify_sections(text: str) -> List[Section]:
    sections: List[Section] = []
    title, content = DEFAULT_SECTION_TITLE, []

    for line in text.split("\n"):
        trimmed = line.strip()
        if not trimmed:
            continue
        if is_section_header(trimmed):
            if content:
                sections.append(Section(title=title, content=content))
            title, content = trimmed, []
        else:
            content.append(trimmed)

    if content:
        sections.append(Section(title=title, content=content))
    return sections


def classify_document_type(text: str) -> DocumentType:
    lowered = text.lower()
    for document_type, alternatives in CLASSIFICATION_RULES:
        if any(all(keyword in lowered for keyword in alternative) for alternative in alternatives):
            return document_type
    return DocumentType.GENERAL


def group_entities(entities: Sequence[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    groups: Dict[str, List[Dict[str, Any]]] = {}
    for entity in entities:
        groups.setdefault(entity["entity_group"], []).append({
            "text": entity["word"],
            "score": entity["score"],
            "start": entity.get("start"),
            "end": entity.get("end"),
        })
    return groups


def entity_confidence(entities: Sequence[Dict[str, Any]]) -> float:
    if not entities:
        return 0.0
    return round(sum(e["score"] for e in entities) / len(entities), 2)


def resume_suggestions(sections: Sequence[Section]) -> List[str]:
    suggestions = []
    for section in sections:
        title = section.title.lower()
        for keyword, min_lines, suggestion in RESUME_SUGGESTION_RULES:
            if keyword in title and len(section.content) < min_lines:
                suggestions.append(suggestion)
    return suggestions


def research_explanations(sections: Sequence[Section]) -> Dict[str, str]:
    explanations: Dict[str, str] = {}
    for section in sections:
        title = section.title.lower()
        for keyword, key, explanation in RESEARCH_EXPLANATION_RULES:
            if keyword in title:
                explanations[key] = explanation
    return explanations


def summarize(sections: Sequence[Section]) -> str:
    word_count = len(" ".join(" ".join(s.content) for s in sections).split())
    if word_count > SUMMARY_WORD_THRESHOLD:
        return f"This document contains {len(sections)} main sections with approximately {word_count} words."
    return f"This document contains {len(sections)} main sections."


class DocumentStructurer:
    """ParsedPdf → Document, optionally enriched with NER entities."""

    def __init__(self, entity_extractor: Optional[IEntityExtractor] = None):
        self.entity_extractor = entity_extractor

    async def structure(self, parsed: ParsedPdf) -> Document:
        document = Document(
            document_type=classify_document_type(parsed.raw_text),
            pages=list(parsed.pages),
            sections=identify_sections(parsed.raw_text),
            confidence=HEURISTIC_CONFIDENCE,
        )

        if self.entity_extractor is None:
            logger.warning("No entity extractor configured, using heuristic extraction")
            return document

        try:
            logger.info("Using NER model for document understanding...")
            entities = await self.entity_extractor.extract(parsed.raw_text)
        except Exception as e:
            logger.error(f"Error in structured extraction: {e}")
            logger.info("Falling back to heuristic extraction")
            return document

        logger.info(f"NER processing completed ({len(entities)} entities)")
        return dataclasses.replace(
            document,
            entities=group_entities(entities),
            confidence=entity_confidence(entities),
            model_used=self.entity_extractor.model_name,
        )

    def post_process(self, document: Document) -> Document:
        """Adds suggestions (resume), explanations (research paper), and a summary."""
        changes: Dict[str, Any] = {"summary": summarize(document.sections)}
        if document.document_type == DocumentType.RESUME:
            changes["suggestions"] = resume_suggestions(document.sections)
        if document.document_type == DocumentType.RESEARCH_PAPER:
            changes["explanations"] = research_explanations(document.sections)
        return dataclasses.replace(document, **changes)
