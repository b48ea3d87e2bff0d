"""Semantic search interface."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from contextfinder.embedding.encoder import EmbeddingModel
from contextfinder.index.filters import Where, build_filter
from contextfinder.index.storage import SQLiteVectorStore


@dataclass(slots=True)
class SearchResult:
    chunk_id: str
    document_id: str
    path: Path
    title: str
    chunk_index: int
    score: float
    text: str
    metadata: dict

    @property
    def distance(self) -> float:
        return 1.0 - self.score

    @property
    def doc_type(self) -> str:
        return self.metadata.get("type", "")


class Searcher:
    """High-level API to query the vector store."""

    def __init__(self, embedder: EmbeddingModel, store: SQLiteVectorStore) -> None:
        self.embedder = embedder
        self.store = store

    def search(
        self, query: str, *, top_k: int = 10, where: Where | None = None
    ) -> List[SearchResult]:
        query = query.strip()
        if not query:
            raise ValueError("Empty query")

        embedding = self.embedder.embed_query(query)
        rows = self.store.search(embedding, top_k=max(1, top_k), where=where)
        results: List[SearchResult] = []
        for row in rows:
            metadata = json.loads(row["metadata"]) if row.get("metadata") else {}
            results.append(
                SearchResult(
                    chunk_id=row["chunk_id"],
                    document_id=row["document_id"],
                    path=Path(row["path"]),
                    title=row["title"],
                    chunk_index=row["chunk_index"],
                    score=float(row["score"]),
                    text=row["text"],
                    metadata=metadata,
                )
            )
        return results

    def query_docs(
        self,
        query: str,
        *,
        max_results: int = 5,
        types: Sequence[str] | None = None,
        projects: Sequence[str] | None = None,
    ) -> List[SearchResult]:
        """Search restricted to the given document types and projects."""
        where = build_filter(types=types, projects=projects)
        return self.search(query, top_k=max_results, where=where)
