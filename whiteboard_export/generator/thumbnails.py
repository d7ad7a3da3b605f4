"""Thumbnail generator - one small PNG preview per outline page.

Thumbnails are category placeholders, not renders of the page: each page
kind maps to a fixed color and label, so the same kind at the same size
always yields the same PNG bytes.
"""

import io

from PIL import Image, ImageDraw

from whiteboard_export.schema.models import Outline, Page, PageKind, Thumbnail


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SLIDE_THUMBNAIL_SIZE = (160, 90)     # 16:9, matches the PPTX slide
PAGE_THUMBNAIL_SIZE = (90, 116)      # US Letter portrait, matches the PDF page

_CATEGORY_BY_KIND = {
    PageKind.TITLE: "title",
    PageKind.TEXT_SECTION: "text",
    PageKind.IMAGE_SECTION: "image",
    PageKind.ELEMENTS_SECTION: "elements",
}

# category -> (fill, band)
_CATEGORY_COLORS = {
    "title": ("#3B82F6", "#1D4ED8"),      # blue
    "text": ("#22C55E", "#15803D"),       # green
    "image": ("#EF4444", "#B91C1C"),      # red
    "elements": ("#A855F7", "#7E22CE"),   # purple
    "other": ("#F97316", "#C2410C"),      # orange
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def thumbnail_category(page: Page) -> str:
    """Map a page to its thumbnail category."""
    return _CATEGORY_BY_KIND.get(page.kind, "other")


def render_placeholder(category: str, size: tuple[int, int]) -> bytes:
    """Render the placeholder PNG for a category."""
    if category not in _CATEGORY_COLORS:
        category = "other"
    fill, band = _CATEGORY_COLORS[category]
    width, height = size
    img = Image.new("RGB", (width, height), fill)
    draw = ImageDraw.Draw(img)

    band_height = max(height // 5, 1)
    draw.rectangle([0, height - band_height, width, height], fill=band)
    # Header bar and two "text" lines
    draw.rectangle([width // 10, height // 8, width - width // 10, height // 8 + 3],
                   fill="#FFFFFF")
    for i in range(2):
        y = height // 3 + i * (height // 8)
        draw.rectangle([width // 10, y, width // 2 + i * width // 8, y + 1],
                       fill="#FFFFFF")
    draw.text((4, height - band_height), category, fill="#FFFFFF")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def generate_thumbnails(outline: Outline,
                        size: tuple[int, int] = SLIDE_THUMBNAIL_SIZE) -> list[Thumbnail]:
    """One thumbnail per page, in page order."""
    thumbnails: list[Thumbnail] = []
    for page in outline.pages:
        category = thumbnail_category(page)
        thumbnails.append(Thumbnail(
            category=category,
            png=render_placeholder(category, size),
            size=size,
        ))
    return thumbnails
