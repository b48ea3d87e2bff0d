"""YAML front matter parsing for Markdown files."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict

import yaml

_FRONT_MATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?P<block>.*?)^(?:---|\.\.\.)[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


class FrontMatterError(ValueError):
    """Raised when a front matter block cannot be parsed into a mapping."""


@dataclass(slots=True)
class FrontMatter:
    data: Dict[str, Any] = field(default_factory=dict)
    content: str = ""


def parse_front_matter(text: str) -> FrontMatter:
    """Split *text* into its YAML front matter fields and Markdown body.

    Text without a leading ``---`` block is returned as body with no fields.
    """
    text = text.lstrip("\ufeff")
    match = _FRONT_MATTER_RE.match(text)
    if match is None:
        return FrontMatter(data={}, content=text)

    try:
        data = yaml.safe_load(match.group("block"))
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"Invalid front matter: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontMatterError(
            f"Front matter must be a mapping, got {type(data).__name__}"
        )
    return FrontMatter(data=data, content=text[match.end():])
