"""Split a Markdown body into heading-delimited sections."""

from __future__ import annotations

import re
from typing import List

from contextfinder.ingestion.classify import classify_section
from contextfinder.models import Section

HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
FALLBACK_TITLE = "Content"


def extract_sections(content: str) -> List[Section]:
    """Split *content* at heading lines.

    Each section keeps its own heading line. Non-blank text before the first
    heading becomes an untitled section. A body without any heading is
    returned whole as one section under the fallback title.
    """
    sections: List[Section] = []
    has_heading = False
    title = ""
    lines: List[str] = []

    def flush() -> None:
        text = "".join(lines)
        if text.strip():
            sections.append(Section(title=title, content=text, section_type=classify_section(title)))

    for line in content.split("\n"):
        match = HEADING_RE.match(line)
        if match:
            flush()
            has_heading = True
            title = match.group(2).strip()
            lines = [line + "\n"]
        else:
            lines.append(line + "\n")
    flush()

    if not has_heading:
        return [Section(title=FALLBACK_TITLE, content=content, section_type="content")]
    return sections
