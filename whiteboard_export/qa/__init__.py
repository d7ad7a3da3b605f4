"""QA validation package for whiteboard export.

Validates exported PPTX/PDF output against its outline: package parts and
content types, slide/page count, PDF cross-references and page tree, and
page headings recoverable from the output.
"""

from .validator import (
    DocumentValidator,
    Issue,
    QAResult,
    read_pdf_objects,
    read_pdf_trailer,
    read_pdf_xref,
    slide_part_names,
    validate_document,
)

__all__ = [
    "DocumentValidator",
    "Issue",
    "QAResult",
    "read_pdf_objects",
    "read_pdf_trailer",
    "read_pdf_xref",
    "slide_part_names",
    "validate_document",
]
