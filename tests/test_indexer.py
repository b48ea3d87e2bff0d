"""Tests for Indexer."""

import logging
from pathlib import Path
from unittest.mock import MagicMock, Mock

import numpy as np
import pytest

from contextfinder.index.indexer import Indexer, IndexStats, document_digest
from contextfinder.index.storage import SQLiteVectorStore
from contextfinder.ingestion.markdown_loader import DocumentProcessor

DIMENSION = 4


def fake_embed(texts):
    """Deterministic unit vectors derived from text length."""
    rows = []
    for text in texts:
        vector = np.array([len(text) % 7 + 1, len(text) % 5 + 1, 1, 1], dtype="float32")
        rows.append(vector / np.linalg.norm(vector))
    return np.asarray(rows, dtype="float32").reshape(len(rows), DIMENSION)


@pytest.fixture
def docs(tmp_path):
    root = tmp_path / "docs"
    (root / "decisions" / "adr").mkdir(parents=True)
    (root / "guides").mkdir()
    (root / "decisions" / "adr" / "use-postgres.md").write_text(
        "---\ntitle: Use Postgres\nstatus: accepted\n---\n"
        "# Context\nWe need a database.\n# Decision\nUse Postgres.\n",
        encoding="utf-8",
    )
    (root / "guides" / "setup.md").write_text("# Setup\nInstall the tools.\n", encoding="utf-8")
    return root


@pytest.fixture
def embedder():
    embedder = Mock()
    embedder.embed.side_effect = fake_embed
    return embedder


@pytest.fixture
def store(tmp_path):
    store = SQLiteVectorStore(tmp_path / "index.db", dimension=DIMENSION)
    yield store
    store.close()


class TestIndexStats:
    """Test IndexStats tracking."""

    def test_init_defaults(self):
        """Test default initialization."""
        stats = IndexStats()
        assert stats.inserted == 0
        assert stats.updated == 0
        assert stats.skipped == 0
        assert stats.failed == 0
        assert stats.chunks == 0
        assert stats.processed_files == []

    @pytest.mark.parametrize("status", ["inserted", "updated", "skipped"])
    def test_increment(self, status):
        stats = IndexStats()
        path = Path("/docs/a.md")

        stats.increment(status, path)

        assert getattr(stats, status) == 1
        assert stats.failed == 0
        assert stats.processed_files == [path]

    def test_unknown_status_counts_as_failed(self):
        stats = IndexStats()

        stats.increment("boom", Path("/docs/a.md"))

        assert stats.failed == 1


class TestDocumentDigest:
    """Test document_digest function."""

    def test_stable_and_sensitive(self, docs):
        processor = DocumentProcessor()
        first = processor.process_documents(docs)
        second = processor.process_documents(docs)

        assert [document_digest(d) for d in first] == [document_digest(d) for d in second]
        assert document_digest(first[0]) != document_digest(first[1])

    def test_changes_with_chunking_parameters(self, docs):
        default = DocumentProcessor().process_documents(docs)[0]
        small = DocumentProcessor(max_chunk_tokens=5, overlap_tokens=1).process_documents(docs)[0]

        assert document_digest(default) != document_digest(small)


class TestIndexer:
    """Test Indexer document pipeline."""

    def test_init_defaults(self, embedder):
        store = Mock()

        indexer = Indexer(embedder, store)

        assert indexer.embedder is embedder
        assert indexer.store is store
        assert isinstance(indexer.processor, DocumentProcessor)
        assert indexer.batch_size == 32

    def test_index_inserts(self, embedder, store, docs):
        stats = Indexer(embedder, store).index(docs)

        assert stats.inserted == 2
        assert stats.failed == 0
        assert stats.chunks == 3
        assert len(stats.processed_files) == 2
        assert store.stats()["chunk_count"] == 3

    def test_reindex_unchanged_is_skipped(self, embedder, store, docs):
        indexer = Indexer(embedder, store)
        indexer.index(docs)
        embedder.embed.reset_mock()

        stats = indexer.index(docs)

        assert stats.skipped == 2
        assert stats.inserted == 0
        assert stats.chunks == 0
        embedder.embed.assert_not_called()

    def test_modified_document_is_updated(self, embedder, store, docs):
        indexer = Indexer(embedder, store)
        indexer.index(docs)
        (docs / "guides" / "setup.md").write_text(
            "# Setup\nInstall the tools.\n# Usage\nRun them.\n", encoding="utf-8"
        )

        stats = indexer.index(docs)

        assert stats.updated == 1
        assert stats.skipped == 1
        assert store.stats()["chunk_count"] == 4

    def test_batches_embeddings(self, embedder, store, docs):
        Indexer(embedder, store, batch_size=1).index(docs)

        assert embedder.embed.call_count == 3
        assert all(len(call.args[0]) == 1 for call in embedder.embed.call_args_list)

    def test_chunk_text_is_embedded(self, embedder, store, docs):
        Indexer(embedder, store).index(docs)

        texts = [text for call in embedder.embed.call_args_list for text in call.args[0]]
        assert "# Use Postgres\n\n# Context\nWe need a database." in texts

    def test_failure_is_counted(self, store, docs, caplog):
        embedder = Mock()
        embedder.embed.side_effect = RuntimeError("model crashed")

        with caplog.at_level(logging.ERROR):
            stats = Indexer(embedder, store).index(docs)

        assert stats.failed == 2
        assert stats.inserted == 0
        assert len(stats.processed_files) == 2
        assert "model crashed" in caplog.text
        assert store.stats()["document_count"] == 0

    def test_no_documents(self, embedder, tmp_path, caplog):
        store = MagicMock()
        (tmp_path / "empty").mkdir()

        with caplog.at_level(logging.WARNING):
            stats = Indexer(embedder, store).index(tmp_path / "empty")

        assert stats.processed_files == []
        assert "No Markdown documents found" in caplog.text
        store.init_document.assert_not_called()

    def test_uses_injected_processor(self, embedder, tmp_path):
        processor = Mock()
        processor.process_documents.return_value = []

        Indexer(embedder, Mock(), processor=processor).index(tmp_path)

        processor.process_documents.assert_called_once_with(tmp_path)
