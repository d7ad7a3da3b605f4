"""Outline package - structures extracted whiteboard content into pages.

Modules:
    builder: Fixed four-page export outline
    preview: Content-adaptive preview slides
    markdown: Title, section and key-point parsing
"""

from .builder import build_outline
from .markdown import extract_key_points, find_title, parse_sections
from .preview import PreviewSlide, build_preview_slides

__all__ = [
    "build_outline",
    "build_preview_slides",
    "PreviewSlide",
    "extract_key_points",
    "find_title",
    "parse_sections",
]
