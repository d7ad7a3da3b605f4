"""Markdown helpers for the extracted whiteboard text.

The AI extraction returns markdown-flavoured text: ``#`` for the board title,
``##`` for sections, ``-``/``*``/``•`` bullets and ``1.`` numbered items.
"""

import re
from dataclasses import dataclass


_TITLE_RE = re.compile(r"^#[ \t]+(.+)$", re.MULTILINE)
_SECTION_RE = re.compile(r"^##[ \t]+(.+)$", re.MULTILINE)
_BULLET_RE = re.compile(r"^[•\-*][ \t]+(.+)$", re.MULTILINE)
_NUMBERED_RE = re.compile(r"^\d+\.[ \t]+(.+)$", re.MULTILINE)
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]\s+")
_KEYWORD_RE = re.compile(
    r"important|key|critical|essential|remember|note|summary", re.IGNORECASE,
)

MAX_KEY_POINTS = 7


@dataclass(frozen=True)
class Section:
    """A ``## heading`` and the text up to the next one."""
    heading: str
    content: str


def find_title(text: str | None) -> str | None:
    """Return the first ``# heading`` in *text*, or None."""
    if not text:
        return None
    match = _TITLE_RE.search(text)
    if not match:
        return None
    title = match.group(1).strip()
    return title or None


def non_empty_lines(text: str | None) -> list[str]:
    """Split *text* into stripped lines, dropping blank ones."""
    if not text:
        return []
    return [line.strip() for line in text.splitlines() if line.strip()]


def parse_sections(text: str | None) -> list[Section]:
    """Split *text* on ``## heading`` lines."""
    if not text:
        return []
    matches = list(_SECTION_RE.finditer(text))
    sections: list[Section] = []
    for i, match in enumerate(matches):
        heading = match.group(1).strip()
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        content = text[match.end():end].strip()
        if heading:
            sections.append(Section(heading=heading, content=content))
    return sections


def extract_key_points(text: str | None) -> list[str]:
    """Collect up to seven bullet, numbered and keyword sentences.

    The first point carries a leading bullet so the list can be joined with
    ``"\\n• "`` for display.
    """
    if not text:
        return []

    candidates: list[str] = []
    candidates.extend(m.group(0) for m in _BULLET_RE.finditer(text))
    candidates.extend(m.group(0) for m in _NUMBERED_RE.finditer(text))
    for sentence in _SENTENCE_SPLIT_RE.split(text):
        if _KEYWORD_RE.search(sentence):
            candidates.append(sentence.strip() + ".")

    points: list[str] = []
    seen: set[str] = set()
    for candidate in candidates:
        if candidate in seen:
            continue
        seen.add(candidate)
        points.append(re.sub(r"^[•\-*\d.]+\s+", "", candidate))
        if len(points) == MAX_KEY_POINTS:
            break

    if not points:
        return []
    return ["• " + points[0]] + points[1:]
