"""Outline builder - turns an extraction result into an ordered page outline.

The outline is deliberately fixed: a title page, the extracted text, the
original photo and the detected elements, always in that order and always
four pages, however rich or sparse the extraction is.  Encoders and the
thumbnail generator consume the outline and never look at the raw
extraction again.

Usage::

    from whiteboard_export.outline.builder import build_outline

    outline = build_outline(extraction, include_source_image=True)
    assert outline.page_count == 4
"""

from whiteboard_export.schema.models import (
    ExtractionResult,
    Outline,
    Page,
    PageKind,
)

from .markdown import non_empty_lines


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

OUTLINE_TITLE = "Whiteboard Extraction"

TITLE_HEADING = "Whiteboard Content Extraction"
TITLE_DESCRIPTION = "Extracted text and images from the whiteboard"

TEXT_HEADING = "Extracted Text"
NO_TEXT_PLACEHOLDER = "No text was extracted from the image."

IMAGE_HEADING = "Original Image"
IMAGE_CAPTION = "Source whiteboard image"

ELEMENTS_HEADING = "Extracted Elements"
ELEMENTS_CAPTION = "Visual elements detected in the whiteboard"

PAGE_ORDER = (
    PageKind.TITLE,
    PageKind.TEXT_SECTION,
    PageKind.IMAGE_SECTION,
    PageKind.ELEMENTS_SECTION,
)


# ---------------------------------------------------------------------------
# Page builders
# ---------------------------------------------------------------------------

def _title_page(extraction: ExtractionResult, include_source_image: bool) -> Page:
    return Page(
        kind=PageKind.TITLE,
        heading=TITLE_HEADING,
        body=(TITLE_DESCRIPTION,),
        source_image=extraction.source_image if include_source_image else None,
    )


def _text_page(extraction: ExtractionResult, include_source_image: bool) -> Page:
    lines = non_empty_lines(extraction.text)
    return Page(
        kind=PageKind.TEXT_SECTION,
        heading=TEXT_HEADING,
        body=tuple(lines) if lines else (NO_TEXT_PLACEHOLDER,),
    )


def _image_page(extraction: ExtractionResult, include_source_image: bool) -> Page:
    return Page(
        kind=PageKind.IMAGE_SECTION,
        heading=IMAGE_HEADING,
        body=(IMAGE_CAPTION,),
        source_image=extraction.source_image,
    )


def _elements_page(extraction: ExtractionResult, include_source_image: bool) -> Page:
    return Page(
        kind=PageKind.ELEMENTS_SECTION,
        heading=ELEMENTS_HEADING,
        body=(ELEMENTS_CAPTION,),
        diagrams=tuple(extraction.diagrams or ()),
    )


_PAGE_BUILDERS = {
    PageKind.TITLE: _title_page,
    PageKind.TEXT_SECTION: _text_page,
    PageKind.IMAGE_SECTION: _image_page,
    PageKind.ELEMENTS_SECTION: _elements_page,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_outline(extraction: ExtractionResult | dict | None,
                  include_source_image: bool = True) -> Outline:
    """Build the four-page outline for an extraction result.

    Never fails for well-formed input; a missing or ``None`` text is treated
    as empty and produces the placeholder line on the text page.
    """
    if not isinstance(extraction, ExtractionResult):
        extraction = ExtractionResult.from_dict(extraction)

    pages = tuple(
        _PAGE_BUILDERS[kind](extraction, include_source_image) for kind in PAGE_ORDER
    )
    return Outline(title=OUTLINE_TITLE, pages=pages)
