"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from contextfinder.embedding.encoder import DEFAULT_MODEL
from contextfinder.ingestion.chunker import DEFAULT_MAX_CHUNK_TOKENS, DEFAULT_OVERLAP_TOKENS
from contextfinder.utils.files import MAX_DEPTH


def _get_default_db_path() -> Path:
    """Prefer a local data/ database when running from a checkout."""
    local_db = Path("data/contextfinder.db")
    if local_db.exists():
        return local_db
    return Path.home() / ".contextfinder" / "contextfinder.db"


@dataclass(slots=True)
class AppConfig:
    db_path: Path | None = None
    model_name: str = DEFAULT_MODEL
    max_chunk_tokens: int = DEFAULT_MAX_CHUNK_TOKENS
    overlap_tokens: int = DEFAULT_OVERLAP_TOKENS
    max_depth: int = MAX_DEPTH
    batch_size: int = 32

    def __post_init__(self) -> None:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        if self.overlap_tokens >= self.max_chunk_tokens:
            raise ValueError("overlap_tokens must be smaller than max_chunk_tokens")

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        if Path(self.db_path).is_absolute() or base_dir is None:
            return Path(self.db_path)
        return base_dir / self.db_path
