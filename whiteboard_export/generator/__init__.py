"""Document generator package - PPTX/PDF encoders and page thumbnails.

Consumes an Outline and a DesignSystem to produce export documents.

Modules:
    pptx_builder: PowerPoint generation (python-pptx)
    pdf_builder: PDF generation (reportlab)
    thumbnails: Per-page PNG previews (Pillow)
"""

from .pdf_builder import PDFBuilder, build_document
from .pptx_builder import PPTXBuilder, build_presentation
from .thumbnails import (
    PAGE_THUMBNAIL_SIZE,
    SLIDE_THUMBNAIL_SIZE,
    generate_thumbnails,
    thumbnail_category,
)

__all__ = [
    "PDFBuilder",
    "PPTXBuilder",
    "build_document",
    "build_presentation",
    "generate_thumbnails",
    "thumbnail_category",
    "PAGE_THUMBNAIL_SIZE",
    "SLIDE_THUMBNAIL_SIZE",
]
