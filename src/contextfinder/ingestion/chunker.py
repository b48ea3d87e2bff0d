"""Budget-aware, overlap-preserving chunking of document sections."""

from __future__ import annotations

from dataclasses import replace
from typing import List

from contextfinder.ingestion.sections import extract_sections
from contextfinder.models import ChunkMetadata, DocumentChunk, DocumentMetadata, Section
from contextfinder.utils.text import (
    add_document_context,
    estimate_tokens,
    split_into_sentences,
    split_oversized,
    tail_overlap,
)

# Sized for text-embedding models with an 8k context window.
DEFAULT_MAX_CHUNK_TOKENS = 1200
DEFAULT_OVERLAP_TOKENS = 200


def chunk_id(document_id: str, index: int) -> str:
    return f"{document_id}_chunk_{index}"


def _build_chunk(
    text: str,
    section: Section,
    document_id: str,
    index: int,
    metadata: DocumentMetadata,
) -> DocumentChunk:
    content = add_document_context(text, metadata.title)
    return DocumentChunk(
        id=chunk_id(document_id, index),
        document_id=document_id,
        content=content,
        metadata=ChunkMetadata(
            document=metadata,
            chunk_index=index,
            total_chunks=0,
            section_type=section.section_type,
            section_title=section.title,
            tokens=estimate_tokens(content),
        ),
    )


def chunk_section(
    section: Section,
    document_id: str,
    start_index: int,
    metadata: DocumentMetadata,
    *,
    max_tokens: int = DEFAULT_MAX_CHUNK_TOKENS,
    overlap_tokens: int = DEFAULT_OVERLAP_TOKENS,
) -> List[DocumentChunk]:
    """Turn one section into one or more chunks numbered from *start_index*.

    A section within *max_tokens* becomes a single chunk. Larger sections are
    packed sentence by sentence; whenever the next sentence would overflow
    the budget the buffer is emitted and the next one is seeded with the
    longest sentence suffix that fits in *overlap_tokens*.

    Units are first broken down to fit both the overlap budget and what is
    left of *max_tokens* after it, so a seed plus one unit never overflows.

    ``total_chunks`` is left at 0; :func:`chunk_document` fills it in.
    """
    if estimate_tokens(section.content) <= max_tokens:
        return [_build_chunk(section.content, section, document_id, start_index, metadata)]

    # Without an overlap budget the seed falls back to one whole unit.
    seed_tokens = overlap_tokens if overlap_tokens > 0 else max_tokens // 2
    budget = max(min(seed_tokens, max_tokens - seed_tokens), 1)
    sentences = [
        piece
        for sentence in split_into_sentences(section.content)
        for piece in split_oversized(sentence, budget)
    ]

    chunks: List[DocumentChunk] = []
    buffer: List[str] = []
    index = start_index
    for sentence in sentences:
        if buffer and estimate_tokens(" ".join([*buffer, sentence])) > max_tokens:
            chunks.append(_build_chunk(" ".join(buffer), section, document_id, index, metadata))
            index += 1
            buffer = tail_overlap(buffer, overlap_tokens)
        buffer.append(sentence)

    if buffer:
        chunks.append(_build_chunk(" ".join(buffer), section, document_id, index, metadata))
    return chunks


def chunk_document(
    document_id: str,
    content: str,
    metadata: DocumentMetadata,
    *,
    max_tokens: int = DEFAULT_MAX_CHUNK_TOKENS,
    overlap_tokens: int = DEFAULT_OVERLAP_TOKENS,
) -> List[DocumentChunk]:
    """Chunk every section of a document with one running index.

    The document total is only known once all sections are chunked, so a
    second pass builds the final list with ``total_chunks`` set.
    """
    chunks: List[DocumentChunk] = []
    for section in extract_sections(content):
        chunks.extend(
            chunk_section(
                section,
                document_id,
                len(chunks),
                metadata,
                max_tokens=max_tokens,
                overlap_tokens=overlap_tokens,
            )
        )

    total = len(chunks)
    return [
        replace(chunk, metadata=replace(chunk.metadata, total_chunks=total)) for chunk in chunks
    ]
