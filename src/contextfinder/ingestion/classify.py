"""Declarative classification of documents and sections.

Both classifiers are pure functions over an ordered table of
``(pattern, label)`` pairs: the first pattern that matches wins.
"""

from __future__ import annotations

import re
from pathlib import Path, PurePath
from typing import Pattern, Sequence, Tuple, TypeVar, Union

from contextfinder.models import DocumentType, SectionType

Label = TypeVar("Label", bound=str)
Rule = Tuple[Pattern[str], Label]

SECTION_TYPE_RULES: Tuple[Tuple[Pattern[str], SectionType], ...] = (
    (re.compile(r"context|problem|background|motivation|rationale|why", re.I), "context"),
    (re.compile(r"decision|solution|approach|proposal|chosen", re.I), "decision"),
    (re.compile(r"consequence|impact|tradeoff|implication|effect", re.I), "consequences"),
    (re.compile(r"alternative|option|considered|comparison|rejected", re.I), "alternatives"),
    (re.compile(r"implementation|plan|rollout|migration|deploy|schedule", re.I), "implementation"),
    (re.compile(r"summary|overview|tldr|abstract|intro", re.I), "summary"),
    (re.compile(r"metric|measure|success|criteria|kpi", re.I), "metrics"),
    (re.compile(r"risk|concern|question|issue|challenge", re.I), "risks"),
)

# Matched against a forward-slash path with a leading "/".
DOCUMENT_TYPE_RULES: Tuple[Tuple[Pattern[str], DocumentType], ...] = (
    # Filename suffix is the most explicit signal and overrides location.
    (re.compile(r"\.adr\.md$"), "adr"),
    (re.compile(r"\.rfc\.md$"), "rfc"),
    (re.compile(r"\.guide\.md$"), "guide"),
    (re.compile(r"\.rules\.md$"), "rule"),
    (re.compile(r"/decisions/adr/"), "adr"),
    (re.compile(r"/decisions/rfc/"), "rfc"),
    (re.compile(r"/guides/"), "guide"),
    (re.compile(r"/rules/"), "rule"),
    (re.compile(r"/projects/(?:.*/)?project\.md$"), "project"),
    (re.compile(r"/projects/[^/]+/.*\.md$"), "project"),
)

DEFAULT_SECTION_TYPE: SectionType = "content"
DEFAULT_DOCUMENT_TYPE: DocumentType = "guide"


def first_match(text: str, rules: Sequence[Rule], default: Label) -> Label:
    """Return the label of the first rule whose pattern is found in *text*."""
    for pattern, label in rules:
        if pattern.search(text):
            return label
    return default


def normalize_path(path: Union[str, PurePath]) -> str:
    """Forward-slash form of *path* with a single leading slash."""
    normalized = str(path).replace("\\", "/")
    return "/" + normalized.lstrip("/")


def classify_section(
    title: str,
    rules: Sequence[Rule] = SECTION_TYPE_RULES,
    default: SectionType = DEFAULT_SECTION_TYPE,
) -> SectionType:
    if not title:
        return default
    return first_match(title, rules, default)


def classify_document(
    path: Union[str, Path],
    rules: Sequence[Rule] = DOCUMENT_TYPE_RULES,
    default: DocumentType = DEFAULT_DOCUMENT_TYPE,
) -> DocumentType:
    """Infer the document kind from its path."""
    return first_match(normalize_path(path), rules, default)
