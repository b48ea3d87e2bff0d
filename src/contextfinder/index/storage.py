"""SQLite-backed vector store for document chunks."""

from __future__ import annotations

import hashlib
import json
import sqlite3
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Sequence

import numpy as np

from contextfinder.index.filters import Where, matches_filter
from contextfinder.models import DocumentChunk, ProcessedDocument


def point_id(chunk_id: str) -> str:
    """Derive a storage-safe UUID from a chunk id.

    Chunk ids embed file paths, so they are hashed into a deterministic
    UUID instead of being used as keys directly.
    """
    digest = hashlib.md5(chunk_id.encode("utf-8")).hexdigest()
    return str(uuid.UUID(hex=digest, version=4))


class SQLiteVectorStore:
    """Persistence layer for document and chunk embeddings."""

    def __init__(self, db_path: Path, *, dimension: int) -> None:
        self.db_path = Path(db_path)
        self.dimension = dimension
        self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._conn.execute("PRAGMA foreign_keys=ON;")
        self._ensure_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    id INTEGER PRIMARY KEY,
                    doc_key TEXT NOT NULL UNIQUE,
                    path TEXT NOT NULL,
                    title TEXT,
                    doc_type TEXT NOT NULL,
                    digest TEXT NOT NULL,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS chunks (
                    id INTEGER PRIMARY KEY,
                    document_id INTEGER NOT NULL,
                    point_id TEXT NOT NULL UNIQUE,
                    chunk_key TEXT NOT NULL,
                    chunk_index INTEGER NOT NULL,
                    text TEXT NOT NULL,
                    metadata TEXT,
                    embedding BLOB NOT NULL,
                    FOREIGN KEY(document_id) REFERENCES documents(id) ON DELETE CASCADE
                )
                """
            )
            conn.execute(
                """CREATE INDEX IF NOT EXISTS idx_chunks_document_id
                    ON chunks(document_id)
                """
            )

    def init_document(self, document: ProcessedDocument, digest: str) -> tuple[int, str]:
        """Initialize a document for insertion.

        Returns:
            (doc_id, status) where status is 'inserted', 'updated', or 'skipped'.
            If skipped, doc_id is -1.
        """
        # Note: This should be called within a transaction
        conn = self._conn

        existing = conn.execute(
            "SELECT id, digest FROM documents WHERE doc_key = ?",
            (document.id,),
        ).fetchone()

        if existing and existing["digest"] == digest:
            return -1, "skipped"

        if existing:
            conn.execute("DELETE FROM chunks WHERE document_id = ?", (existing["id"],))
            conn.execute("DELETE FROM documents WHERE id = ?", (existing["id"],))

        doc_id = conn.execute(
            """
            INSERT INTO documents(doc_key, path, title, doc_type, digest)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                document.id,
                str(document.metadata.file_path),
                document.metadata.title,
                document.metadata.doc_type,
                digest,
            ),
        ).lastrowid

        return doc_id, "updated" if existing else "inserted"

    def insert_chunks(
        self,
        doc_id: int,
        chunks: Sequence[DocumentChunk],
        embeddings: np.ndarray,
    ) -> None:
        """Insert a batch of chunks for a document."""
        if embeddings.shape[0] != len(chunks):
            raise ValueError("Embeddings and chunks length mismatch")

        conn = self._conn
        for chunk, vector in zip(chunks, embeddings):
            conn.execute(
                """
                INSERT INTO chunks(document_id, point_id, chunk_key, chunk_index, text, metadata, embedding)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    doc_id,
                    point_id(chunk.id),
                    chunk.id,
                    chunk.metadata.chunk_index,
                    chunk.content,
                    json.dumps(chunk.metadata.to_dict(), ensure_ascii=True, default=str),
                    sqlite3.Binary(np.asarray(vector, dtype="float32").tobytes()),
                ),
            )

    def upsert_document(
        self,
        document: ProcessedDocument,
        digest: str,
        embeddings: np.ndarray,
    ) -> str:
        with self.transaction():
            doc_id, status = self.init_document(document, digest)
            if status == "skipped":
                return status

            self.insert_chunks(doc_id, document.chunks, embeddings)
            return status

    def search(
        self, embedding: np.ndarray, *, top_k: int = 10, where: Where | None = None
    ) -> List[dict]:
        """Rank stored chunks by cosine similarity, keeping those matching *where*."""
        query = np.asarray(embedding, dtype="float32")
        rows = self._conn.execute(
            """
            SELECT
                c.point_id AS point_id,
                c.chunk_key AS chunk_id,
                d.doc_key AS document_id,
                d.path AS path,
                d.title AS title,
                c.chunk_index AS chunk_index,
                c.text AS text,
                c.metadata AS metadata,
                c.embedding AS embedding
            FROM chunks c
            JOIN documents d ON d.id = c.document_id
            ORDER BY d.doc_key, c.chunk_index
            """
        ).fetchall()

        if where:
            rows = [row for row in rows if matches_filter(json.loads(row["metadata"] or "{}"), where)]
        if not rows:
            return []

        embeddings = np.vstack([np.frombuffer(row["embedding"], dtype="float32") for row in rows])
        scores = embeddings @ query

        if top_k < len(scores):
            top_indices = np.argpartition(scores, -top_k)[-top_k:]
            top_indices = top_indices[np.argsort(scores[top_indices])[::-1]]
        else:
            top_indices = np.argsort(scores)[::-1]

        results: List[dict] = []
        for idx in top_indices:
            row = rows[idx]
            results.append(
                {
                    "point_id": row["point_id"],
                    "chunk_id": row["chunk_id"],
                    "document_id": row["document_id"],
                    "path": row["path"],
                    "title": row["title"],
                    "chunk_index": row["chunk_index"],
                    "text": row["text"],
                    "metadata": row["metadata"],
                    "score": float(scores[idx]),
                }
            )
        return results

    def remove_missing_files(self) -> int:
        """Remove documents whose files no longer exist."""
        with self.transaction() as conn:
            rows = conn.execute("SELECT id, path FROM documents").fetchall()
            missing = [row for row in rows if not Path(row["path"]).exists()]
            for row in missing:
                conn.execute("DELETE FROM chunks WHERE document_id = ?", (row["id"],))
                conn.execute("DELETE FROM documents WHERE id = ?", (row["id"],))
        return len(missing)

    def reset(self) -> None:
        """Drop every stored document and chunk."""
        with self.transaction() as conn:
            conn.execute("DELETE FROM chunks")
            conn.execute("DELETE FROM documents")

    def stats(self) -> Dict[str, Any]:
        document_count = self._conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0]
        chunk_count = self._conn.execute("SELECT COUNT(*) FROM chunks").fetchone()[0]
        return {
            "document_count": document_count,
            "chunk_count": chunk_count,
            "dimension": self.dimension,
        }
