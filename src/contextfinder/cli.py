"""Command line interface for ContextFinder."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from contextfinder.config import AppConfig
from contextfinder.embedding.encoder import EmbeddingConfig, EmbeddingModel
from contextfinder.index.filters import build_filter
from contextfinder.index.indexer import Indexer
from contextfinder.index.search import Searcher
from contextfinder.index.storage import SQLiteVectorStore
from contextfinder.ingestion.markdown_loader import DocumentProcessor


console = Console()
app = typer.Typer(help="ContextFinder - semantic search over Markdown decision records and guides")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _ensure_db_parent(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)


def _build_config(**overrides) -> AppConfig:
    try:
        return AppConfig(**{key: value for key, value in overrides.items() if value is not None})
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def index(
    docs_path: Path = typer.Argument(
        ..., help="Directory containing Markdown documents.", resolve_path=True
    ),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    model: str = typer.Option(AppConfig().model_name, help="Sentence-transformer model name"),
    max_tokens: int = typer.Option(AppConfig().max_chunk_tokens, help="Maximum estimated tokens per chunk"),
    overlap: int = typer.Option(AppConfig().overlap_tokens, help="Estimated tokens carried into the next chunk"),
    reset: bool = typer.Option(False, "--reset", help="Drop the existing index before indexing"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index a directory of Markdown documents."""
    _setup_logging(verbose)
    if not docs_path.exists():
        raise typer.BadParameter(f"Path not found: {docs_path}")

    config = _build_config(
        db_path=db,
        model_name=model,
        max_chunk_tokens=max_tokens,
        overlap_tokens=overlap,
    )
    processor = DocumentProcessor(
        max_chunk_tokens=config.max_chunk_tokens,
        overlap_tokens=config.overlap_tokens,
        max_depth=config.max_depth,
    )

    resolved_db = config.resolve_db_path(Path.cwd())
    _ensure_db_parent(resolved_db)

    embedder = EmbeddingModel(EmbeddingConfig(model_name=config.model_name))
    store = SQLiteVectorStore(resolved_db, dimension=embedder.dimension)
    if reset:
        store.reset()
    indexer = Indexer(embedder, store, processor=processor, batch_size=config.batch_size)

    console.print(f"Indexing [bold]{docs_path}[/bold] into [bold]{resolved_db}[/bold]...")
    stats = indexer.index(docs_path)
    if not stats.processed_files:
        console.print("[yellow]No Markdown documents found.[/yellow]")
        store.close()
        return

    console.print(
        f"Inserted: {stats.inserted}, updated: {stats.updated}, "
        f"skipped: {stats.skipped}, failed: {stats.failed}, chunks: {stats.chunks}"
    )
    store.close()


@app.command()
def chunks(
    docs_path: Path = typer.Argument(
        ..., help="Directory containing Markdown documents.", resolve_path=True
    ),
    max_tokens: int = typer.Option(AppConfig().max_chunk_tokens, help="Maximum estimated tokens per chunk"),
    overlap: int = typer.Option(AppConfig().overlap_tokens, help="Estimated tokens carried into the next chunk"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show how documents would be chunked, without embedding anything."""
    _setup_logging(verbose)
    if not docs_path.exists():
        raise typer.BadParameter(f"Path not found: {docs_path}")

    config = _build_config(max_chunk_tokens=max_tokens, overlap_tokens=overlap)
    processor = DocumentProcessor(
        max_chunk_tokens=config.max_chunk_tokens,
        overlap_tokens=config.overlap_tokens,
        max_depth=config.max_depth,
    )

    documents = processor.process_documents(docs_path)
    if not documents:
        console.print("[yellow]No Markdown documents found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Document")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Chunks")
    table.add_column("Sections")

    for document in documents:
        section_types = Counter(chunk.metadata.section_type for chunk in document.chunks)
        table.add_row(
            document.metadata.title,
            document.metadata.doc_type,
            document.metadata.status or "",
            str(len(document.chunks)),
            ", ".join(f"{name}={count}" for name, count in sorted(section_types.items())),
        )

    console.print(table)
    total = sum(len(document.chunks) for document in documents)
    console.print(f"{len(documents)} documents, {total} chunks")


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    model: str = typer.Option(AppConfig().model_name, help="Sentence-transformer model name"),
    top_k: int = typer.Option(10, help="Number of results to display"),
    doc_type: Optional[List[str]] = typer.Option(
        None, "--type", help="Restrict to document types (adr, rfc, guide, rule, project)"
    ),
    project: Optional[List[str]] = typer.Option(None, "--project", help="Restrict to projects"),
    tag: Optional[List[str]] = typer.Option(None, "--tag", help="Restrict to tags"),
    status: Optional[str] = typer.Option(None, "--status", help="Restrict to a status"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Execute a semantic search."""
    _setup_logging(verbose)
    config = _build_config(db_path=db, model_name=model)
    resolved_db = config.resolve_db_path(Path.cwd())

    if not resolved_db.exists():
        raise typer.BadParameter(f"Database not found: {resolved_db}")

    embedder = EmbeddingModel(EmbeddingConfig(model_name=config.model_name))
    store = SQLiteVectorStore(resolved_db, dimension=embedder.dimension)
    searcher = Searcher(embedder, store)

    where = build_filter(types=doc_type, projects=project, tags=tag, status=status)
    results = searcher.search(query, top_k=top_k, where=where)
    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        store.close()
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Document")
    table.add_column("Type")
    table.add_column("Section")
    table.add_column("Snippet")

    for result in results:
        snippet = result.text.replace("\n", " ")
        table.add_row(
            f"{result.score:.4f}",
            f"{result.title} ({result.path})",
            result.doc_type,
            result.metadata.get("section_title", ""),
            snippet[:180],
        )

    console.print(table)
    store.close()


@app.command()
def prune(
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Remove documents that no longer exist on disk."""
    config = _build_config(db_path=db)
    resolved_db = config.resolve_db_path(Path.cwd())

    if not resolved_db.exists():
        console.print("[yellow]Database not found, nothing to prune.[/yellow]")
        return

    # Pruning never compares vectors, so the dimension is irrelevant here.
    store = SQLiteVectorStore(resolved_db, dimension=0)
    removed = store.remove_missing_files()
    console.print(f"Removed {removed} orphaned documents.")
    store.close()


if __name__ == "__main__":  # pragma: no cover
    app()
