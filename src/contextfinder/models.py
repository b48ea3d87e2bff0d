"""Core ContextFinder data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

DocumentType = Literal["adr", "rfc", "guide", "rule", "project"]
SectionType = Literal[
    "context",
    "decision",
    "consequences",
    "alternatives",
    "implementation",
    "summary",
    "metrics",
    "risks",
    "content",
]


@dataclass(frozen=True, slots=True)
class DocumentMetadata:
    """Validated metadata shared by a document and all of its chunks."""

    title: str
    doc_type: DocumentType
    tags: List[Any]
    projects: List[str]
    file_path: Path
    status: Optional[str] = None
    related: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "title": self.title,
            "type": self.doc_type,
            "tags": list(self.tags),
            "projects": list(self.projects),
            "file_path": str(self.file_path),
        }
        if self.status is not None:
            payload["status"] = self.status
        if self.related is not None:
            payload["related"] = self.related
        return payload


@dataclass(frozen=True, slots=True)
class Section:
    """Heading-delimited span of a document body."""

    title: str
    content: str
    section_type: SectionType = "content"


@dataclass(frozen=True, slots=True)
class ChunkMetadata:
    """Document metadata plus the position of one chunk inside it."""

    document: DocumentMetadata
    chunk_index: int
    total_chunks: int
    section_type: SectionType
    section_title: str
    tokens: int

    def to_dict(self) -> Dict[str, Any]:
        payload = self.document.to_dict()
        payload.update(
            {
                "chunk_index": self.chunk_index,
                "total_chunks": self.total_chunks,
                "section_type": self.section_type,
                "section_title": self.section_title,
                "tokens": self.tokens,
            }
        )
        return payload


@dataclass(frozen=True, slots=True)
class DocumentChunk:
    """Token-bounded passage handed to the embedding model."""

    id: str
    document_id: str
    content: str
    metadata: ChunkMetadata


@dataclass(frozen=True, slots=True)
class ProcessedDocument:
    """One Markdown file after front matter parsing and chunking."""

    id: str
    content: str
    metadata: DocumentMetadata
    chunks: List[DocumentChunk] = field(default_factory=list)
