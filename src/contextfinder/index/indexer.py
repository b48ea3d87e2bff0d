"""Document indexing pipeline."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from contextfinder.embedding.encoder import EmbeddingModel
from contextfinder.index.storage import SQLiteVectorStore
from contextfinder.ingestion.markdown_loader import DocumentProcessor
from contextfinder.models import ProcessedDocument

LOGGER = logging.getLogger(__name__)


def document_digest(document: ProcessedDocument) -> str:
    """Fingerprint of a document's chunk layout and metadata.

    Changes to the source text or to the chunking parameters both alter it.
    """
    sha = hashlib.sha256()
    for chunk in document.chunks:
        sha.update(chunk.id.encode("utf-8"))
        sha.update(b"\0")
        sha.update(chunk.content.encode("utf-8"))
        sha.update(b"\0")
    sha.update(repr(sorted(document.metadata.to_dict().items())).encode("utf-8"))
    return sha.hexdigest()


@dataclass(slots=True)
class IndexStats:
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    chunks: int = 0
    processed_files: list[Path] = field(default_factory=list)

    def increment(self, status: str, path: Path) -> None:
        if status == "inserted":
            self.inserted += 1
        elif status == "updated":
            self.updated += 1
        elif status == "skipped":
            self.skipped += 1
        else:
            self.failed += 1
        self.processed_files.append(path)


class Indexer:
    """Coordinates Markdown ingestion, embedding and persistence."""

    def __init__(
        self,
        embedder: EmbeddingModel,
        store: SQLiteVectorStore,
        *,
        processor: DocumentProcessor | None = None,
        batch_size: int = 32,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.processor = processor or DocumentProcessor()
        self.batch_size = batch_size

    def index(self, root: Path) -> IndexStats:
        """Index all Markdown documents found under *root*."""
        documents = self.processor.process_documents(root)
        stats = IndexStats()
        if not documents:
            LOGGER.warning("No Markdown documents found under %s", root)
            return stats

        for document in documents:
            path = document.metadata.file_path
            try:
                LOGGER.info("Indexing %s (%d chunks)", path, len(document.chunks))
                status = self._index_single(document)
                stats.increment(status, path)
                if status != "skipped":
                    stats.chunks += len(document.chunks)
            except Exception as exc:
                LOGGER.error("Failed to index %s: %s", path, exc)
                stats.failed += 1
                stats.processed_files.append(path)

        return stats

    def _index_single(self, document: ProcessedDocument) -> str:
        """Embed and store one document unless it is unchanged."""
        digest = document_digest(document)

        with self.store.transaction():
            doc_id, status = self.store.init_document(document, digest)
            if status == "skipped":
                return status

            for start in range(0, len(document.chunks), self.batch_size):
                batch = document.chunks[start : start + self.batch_size]
                embeddings = np.asarray(self.embedder.embed([c.content for c in batch]))
                self.store.insert_chunks(doc_id, batch, embeddings)

        return status
