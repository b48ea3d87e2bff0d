"""Title, tag, project, status and related-graph extraction from front matter."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from contextfinder.ingestion.classify import normalize_path
from contextfinder.models import DocumentMetadata, DocumentType

VALID_STATUSES: Dict[str, tuple[str, ...]] = {
    "adr": ("draft", "accepted", "rejected", "deprecated", "superseded"),
    "rfc": ("draft", "review", "accepted", "rejected", "implemented"),
    "guide": (),
    "rule": (),
    "project": ("active", "inactive", "archived", "planning"),
}

RELATED_CATEGORIES = ("adrs", "rfcs", "guides", "rules", "projects")
RELATED_GRAPHS = ("depends-on", "supersedes")

_PROJECT_SEGMENT = re.compile(r"/projects/([^/]+)/")


def extract_title(front_matter: Mapping[str, Any], path: Path) -> str:
    """Prefer ``title``, then ``name``, then the filename without ``.md``."""
    for key in ("title", "name"):
        value = front_matter.get(key)
        if isinstance(value, str) and value:
            return value
    return Path(path).stem


def extract_tags(front_matter: Mapping[str, Any]) -> List[Any]:
    tags = front_matter.get("tags")
    return list(tags) if isinstance(tags, list) else []


def extract_projects(front_matter: Mapping[str, Any], path: Path) -> List[str]:
    related = front_matter.get("related")
    if isinstance(related, Mapping) and isinstance(related.get("projects"), list):
        return list(related["projects"])

    match = _PROJECT_SEGMENT.search(normalize_path(path))
    if match:
        return [match.group(1)]
    return []


def validate_status(status: Any, doc_type: DocumentType) -> Optional[str]:
    """Return *status* if allowed for *doc_type*, otherwise ``None``.

    Kinds without an allow-list accept any non-empty string. Matching is
    case-insensitive and the original spelling is kept.
    """
    if not isinstance(status, str) or not status:
        return None

    allowed = VALID_STATUSES.get(doc_type, ())
    if not allowed:
        return status
    return status if status.lower() in allowed else None


def _validate_categories(value: Any) -> Dict[str, list]:
    if not isinstance(value, Mapping):
        return {}
    return {
        key: list(value[key])
        for key in RELATED_CATEGORIES
        if isinstance(value.get(key), list)
    }


def validate_related(related: Any) -> Optional[Dict[str, Any]]:
    """Keep only list-valued, recognized categories of the reference graph."""
    validated: Dict[str, Any] = _validate_categories(related)
    if isinstance(related, Mapping):
        for graph in RELATED_GRAPHS:
            edges = _validate_categories(related.get(graph))
            if edges:
                validated[graph] = edges
    return validated or None


def build_metadata(
    front_matter: Mapping[str, Any], path: Path, doc_type: DocumentType
) -> DocumentMetadata:
    return DocumentMetadata(
        title=extract_title(front_matter, path),
        doc_type=doc_type,
        tags=extract_tags(front_matter),
        projects=extract_projects(front_matter, path),
        file_path=Path(path),
        status=validate_status(front_matter.get("status"), doc_type),
        related=validate_related(front_matter.get("related")),
    )
