"""Markdown loading and chunking pipeline."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional

from contextfinder.ingestion.chunker import (
    DEFAULT_MAX_CHUNK_TOKENS,
    DEFAULT_OVERLAP_TOKENS,
    chunk_document,
)
from contextfinder.ingestion.classify import classify_document
from contextfinder.ingestion.frontmatter import FrontMatter, parse_front_matter
from contextfinder.ingestion.metadata import build_metadata
from contextfinder.models import DocumentChunk, ProcessedDocument
from contextfinder.utils.files import MAX_DEPTH, generate_document_id, iter_markdown_paths

LOGGER = logging.getLogger(__name__)

FrontMatterParser = Callable[[str], FrontMatter]


class DocumentProcessor:
    """Turns a tree of Markdown files into chunked documents.

    The front matter parser is injected so callers can swap the YAML
    implementation without touching the pipeline.
    """

    def __init__(
        self,
        *,
        max_chunk_tokens: int = DEFAULT_MAX_CHUNK_TOKENS,
        overlap_tokens: int = DEFAULT_OVERLAP_TOKENS,
        max_depth: int = MAX_DEPTH,
        parser: FrontMatterParser = parse_front_matter,
    ) -> None:
        self.max_chunk_tokens = max_chunk_tokens
        self.overlap_tokens = overlap_tokens
        self.max_depth = max_depth
        self.parser = parser

    def process_documents(self, root: Path) -> List[ProcessedDocument]:
        """Process every eligible file under *root*, skipping failures."""
        root = Path(root)
        base = root.parent if root.is_file() else root
        documents: List[ProcessedDocument] = []

        for path in iter_markdown_paths(root, max_depth=self.max_depth):
            try:
                document = self.process_file(path, root=base)
            except Exception as exc:
                LOGGER.warning("Error processing %s: %s", path, exc)
                continue
            if document is not None:
                documents.append(document)

        LOGGER.debug("Processed %d documents from %s", len(documents), root)
        return documents

    def process_documents_to_chunks(self, root: Path) -> List[DocumentChunk]:
        return [chunk for document in self.process_documents(root) for chunk in document.chunks]

    def process_file(self, path: Path, *, root: Optional[Path] = None) -> Optional[ProcessedDocument]:
        """Parse, classify and chunk a single Markdown file.

        Returns ``None`` when the body is empty once front matter is removed.
        """
        path = Path(path)
        parsed = self.parser(path.read_text(encoding="utf-8"))
        body = parsed.content.strip()
        if not body:
            LOGGER.debug("Skipping %s: empty body", path)
            return None

        doc_type = classify_document(path)
        document_id = generate_document_id(path, root)
        metadata = build_metadata(parsed.data, path, doc_type)
        chunks = chunk_document(
            document_id,
            body,
            metadata,
            max_tokens=self.max_chunk_tokens,
            overlap_tokens=self.overlap_tokens,
        )
        return ProcessedDocument(id=document_id, content=body, metadata=metadata, chunks=chunks)
