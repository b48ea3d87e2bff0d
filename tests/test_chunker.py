"""Tests for the section chunker."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from contextfinder.ingestion.chunker import chunk_document, chunk_section
from contextfinder.models import DocumentMetadata, Section
from contextfinder.utils.text import estimate_tokens, split_into_sentences

HEADER = "# Doc\n\n"


@pytest.fixture
def metadata() -> DocumentMetadata:
    return DocumentMetadata(
        title="Doc",
        doc_type="adr",
        tags=["db"],
        projects=[],
        file_path=Path("/docs/doc.md"),
        status="accepted",
    )


def _long_text(count: int = 200) -> str:
    return " ".join(
        f"Sentence number {i} talks about the architecture of the system." for i in range(count)
    )


def _body(content: str) -> str:
    assert content.startswith(HEADER)
    return content[len(HEADER):]


class TestChunkSection:
    """Test chunk_section function."""

    def test_small_section_single_chunk(self, metadata: DocumentMetadata) -> None:
        section = Section(title="Context", content="# Context\nShort.\n", section_type="context")

        chunks = chunk_section(section, "doc", 0, metadata)

        assert len(chunks) == 1
        chunk = chunks[0]
        assert chunk.id == "doc_chunk_0"
        assert chunk.document_id == "doc"
        assert chunk.content == "# Doc\n\n# Context\nShort."
        assert chunk.metadata.tokens == estimate_tokens(chunk.content)
        assert chunk.metadata.section_type == "context"
        assert chunk.metadata.section_title == "Context"
        assert chunk.metadata.document is metadata

    def test_start_index(self, metadata: DocumentMetadata) -> None:
        section = Section(title="Notes", content="# Notes\nText.\n")

        chunks = chunk_section(section, "doc", 5, metadata)

        assert chunks[0].id == "doc_chunk_5"
        assert chunks[0].metadata.chunk_index == 5

    def test_large_section_is_split(self, metadata: DocumentMetadata) -> None:
        """A ~3000 token section against a 1200/200 budget yields about three chunks."""
        section = Section(title="Body", content="# Body\n" + _long_text())
        assert estimate_tokens(section.content) > 3000

        chunks = chunk_section(section, "doc", 0, metadata, max_tokens=1200, overlap_tokens=200)

        assert 3 <= len(chunks) <= 4
        assert [c.metadata.chunk_index for c in chunks] == list(range(len(chunks)))
        for chunk in chunks:
            assert chunk.metadata.tokens <= 1200 * 1.15
            assert chunk.content.startswith(HEADER)

    def test_consecutive_chunks_overlap(self, metadata: DocumentMetadata) -> None:
        section = Section(title="Body", content="# Body\n" + _long_text())

        chunks = chunk_section(section, "doc", 0, metadata, max_tokens=1200, overlap_tokens=200)

        for previous, current in zip(chunks, chunks[1:]):
            previous_sentences = split_into_sentences(_body(previous.content))
            current_sentences = split_into_sentences(_body(current.content))
            assert current_sentences[0] in previous_sentences
            assert previous_sentences[-1] in current_sentences
            overlap = current_sentences[: current_sentences.index(previous_sentences[-1]) + 1]
            assert estimate_tokens(" ".join(overlap)) <= 200

    def test_all_sentences_covered(self, metadata: DocumentMetadata) -> None:
        text = _long_text(120)
        section = Section(title="Body", content=text)

        chunks = chunk_section(section, "doc", 0, metadata, max_tokens=300, overlap_tokens=50)
        covered = set()
        for chunk in chunks:
            covered.update(split_into_sentences(_body(chunk.content)))

        assert set(split_into_sentences(text)) <= covered

    def test_oversized_sentence_terminates(self, metadata: DocumentMetadata) -> None:
        """A single unterminated line far over budget still chunks and keeps every word."""
        section = Section(title="Big", content="# Big\n" + "word " * 2000)

        chunks = chunk_section(section, "doc", 0, metadata, max_tokens=1200, overlap_tokens=200)

        assert len(chunks) > 1
        assert all(chunk.metadata.tokens <= 1200 * 1.15 for chunk in chunks)
        assert sum(_body(c.content).count("word") for c in chunks) >= 2000

    def test_long_unsplittable_lines_stay_in_budget(self, metadata: DocumentMetadata) -> None:
        """Lines whose sentences start with inline code never split, yet chunks stay bounded."""
        line = " ".join(["`cfg` is set. `x` follows."] * 140)
        assert estimate_tokens(line) > 900
        section = Section(title="Body", content="\n".join([line] * 4))

        chunks = chunk_section(section, "doc", 0, metadata, max_tokens=1200, overlap_tokens=200)

        assert len(chunks) > 1
        assert all(chunk.metadata.tokens <= 1200 * 1.15 for chunk in chunks)
        for previous, current in zip(chunks, chunks[1:]):
            assert _body(previous.content)[-40:] in _body(current.content)

    def test_zero_overlap_stays_in_budget(self, metadata: DocumentMetadata) -> None:
        section = Section(title="Big", content="word " * 500)

        chunks = chunk_section(section, "doc", 0, metadata, max_tokens=100, overlap_tokens=0)

        assert len(chunks) > 1
        assert all(chunk.metadata.tokens <= 100 * 1.15 for chunk in chunks)

    def test_total_chunks_left_for_caller(self, metadata: DocumentMetadata) -> None:
        section = Section(title="Body", content=_long_text())

        chunks = chunk_section(section, "doc", 0, metadata)

        assert all(chunk.metadata.total_chunks == 0 for chunk in chunks)


class TestChunkDocument:
    """Test chunk_document function."""

    def test_adr_sections(self, metadata: DocumentMetadata) -> None:
        content = (
            "# Context\nWe need a database.\n\n"
            "# Decision\nUse Postgres.\n\n"
            "# Consequences\nWe must run migrations.\n"
        )

        chunks = chunk_document("doc", content, metadata)

        assert len(chunks) == 3
        assert [c.metadata.section_type for c in chunks] == ["context", "decision", "consequences"]
        for chunk in chunks:
            assert chunk.metadata.document.tags == ["db"]
            assert chunk.metadata.document.status == "accepted"
            assert "Doc" in chunk.content

    def test_indices_sequential_across_sections(self, metadata: DocumentMetadata) -> None:
        content = "# Intro\nHello.\n# Body\n" + _long_text() + "\n# Risks\nNone.\n"

        chunks = chunk_document("doc", content, metadata)

        total = len(chunks)
        assert [c.metadata.chunk_index for c in chunks] == list(range(total))
        assert [c.id for c in chunks] == [f"doc_chunk_{i}" for i in range(total)]
        assert {c.metadata.total_chunks for c in chunks} == {total}
        assert chunks[0].metadata.section_type == "summary"
        assert chunks[-1].metadata.section_type == "risks"

    def test_deterministic(self, metadata: DocumentMetadata) -> None:
        content = "# Body\n" + _long_text()

        assert chunk_document("doc", content, metadata) == chunk_document("doc", content, metadata)

    def test_chunks_are_immutable(self, metadata: DocumentMetadata) -> None:
        chunk = chunk_document("doc", "# A\ntext", metadata)[0]

        with pytest.raises(dataclasses.FrozenInstanceError):
            chunk.content = "changed"  # type: ignore[misc]
