"""PDF builder engine - generates PDF documents from an outline.

Draws one US Letter page per outline page with the reportlab canvas: the
heading in large type near the top, the body in smaller type below it, the
source photo on the image page and the diagram labels on the elements page.
Page streams are left uncompressed and output is invariant, so identical
outlines produce identical bytes.

Usage::

    from whiteboard_export.generator.pdf_builder import PDFBuilder

    pdf_bytes = PDFBuilder(design).build(outline)
"""

import io
from pathlib import Path

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from whiteboard_export.schema.models import (
    DesignSystem,
    Outline,
    Page,
    PageKind,
    RasterImage,
)

from .pptx_builder import NO_ELEMENTS_CAPTION, NO_IMAGE_CAPTION, diagram_line


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PDF_VERSION = (1, 7)
PAGE_WIDTH, PAGE_HEIGHT = letter          # 612 x 792 pt

MARGIN_X = 50
HEADING_Y = 700
BODY_TOP_Y = 660
BOTTOM_MARGIN = 60
LEADING_FACTOR = 1.35
ELLIPSIS = "..."

_BODY_WIDTH = PAGE_WIDTH - 2 * MARGIN_X
_IMAGE_BOX = (MARGIN_X, BOTTOM_MARGIN + 20, _BODY_WIDTH, 520)   # x, y, w, h
_TITLE_IMAGE_BOX = (PAGE_WIDTH / 2 - 120, 200, 240, 200)


# ---------------------------------------------------------------------------
# PDFBuilder
# ---------------------------------------------------------------------------

class PDFBuilder:
    """Builds a PDF document from an outline.

    Parameters
    ----------
    design : DesignSystem
        Colors and font sizes for every page.
    accessibility : bool
        Embed document title, subject and author metadata.
    """

    def __init__(self, design: DesignSystem | None = None,
                 accessibility: bool = True) -> None:
        self.design = design or DesignSystem()
        self.accessibility = accessibility
        self.warnings: list[str] = []
        self.fell_back = False

    def build(self, outline: Outline) -> bytes:
        """Build the PDF and return it as bytes.

        Never raises: if rendering fails the failure is recorded in
        ``warnings`` and a valid single blank page document is returned.
        """
        self.warnings = []
        self.fell_back = False
        try:
            return self._render(outline)
        except Exception as exc:
            self.fell_back = True
            self.warnings.append(
                f"PDF encoding failed ({exc.__class__.__name__}: {exc}); "
                f"wrote an empty document instead"
            )
            return self._empty_document()

    def build_to_file(self, outline: Outline, path: str | Path) -> None:
        """Build the PDF and write it to a file path."""
        Path(path).write_bytes(self.build(outline))

    # ------------------------------------------------------------------
    # Document
    # ------------------------------------------------------------------

    def _new_canvas(self, buf: io.BytesIO) -> canvas.Canvas:
        return canvas.Canvas(
            buf,
            pagesize=letter,
            pageCompression=0,
            invariant=1,
            pdfVersion=PDF_VERSION,
        )

    def _render(self, outline: Outline) -> bytes:
        buf = io.BytesIO()
        pdf = self._new_canvas(buf)
        pdf.setCreator("whiteboard-export")
        if self.accessibility:
            pdf.setTitle(outline.title)
            pdf.setSubject("Whiteboard content extraction")
            pdf.setAuthor("whiteboard-export")

        for index, page in enumerate(outline.pages):
            self._draw_page(pdf, page, index)
            pdf.showPage()

        pdf.save()
        return buf.getvalue()

    def _empty_document(self) -> bytes:
        buf = io.BytesIO()
        pdf = self._new_canvas(buf)
        pdf.showPage()
        pdf.save()
        return buf.getvalue()

    # ------------------------------------------------------------------
    # Page drawing
    # ------------------------------------------------------------------

    def _draw_page(self, pdf: canvas.Canvas, page: Page, index: int) -> None:
        self._draw_background(pdf)
        self._draw_heading(pdf, page.heading)

        lines = list(page.body)
        if page.kind == PageKind.ELEMENTS_SECTION:
            if page.diagrams:
                lines.extend("• " + diagram_line(d) for d in page.diagrams)
            else:
                lines.append(NO_ELEMENTS_CAPTION)
        elif page.kind == PageKind.IMAGE_SECTION:
            placed = False
            if page.source_image is not None:
                placed = self._draw_image(pdf, page.source_image, _IMAGE_BOX, index)
            if not placed:
                lines.append(NO_IMAGE_CAPTION)
        elif page.kind == PageKind.TITLE and page.source_image is not None:
            self._draw_image(pdf, page.source_image, _TITLE_IMAGE_BOX, index)

        self._draw_body(pdf, lines)

    def _draw_background(self, pdf: canvas.Canvas) -> None:
        if self.design.background.upper() in ("#FFFFFF", "#FFF"):
            return
        pdf.setFillColor(HexColor(self.design.background))
        pdf.rect(0, 0, PAGE_WIDTH, PAGE_HEIGHT, stroke=0, fill=1)

    def _draw_heading(self, pdf: canvas.Canvas, heading: str) -> None:
        pdf.setFillColor(HexColor(self.design.title_text))
        pdf.setFont(self.design.pdf_bold_font, self.design.pdf_heading_size_pt)
        pdf.drawString(MARGIN_X, HEADING_Y, heading)
        pdf.setStrokeColor(HexColor(self.design.accent))
        pdf.setLineWidth(2)
        pdf.line(MARGIN_X, HEADING_Y - 12, MARGIN_X + 108, HEADING_Y - 12)

    def _draw_body(self, pdf: canvas.Canvas, lines: list[str]) -> None:
        size = self.design.pdf_body_size_pt
        font = self.design.pdf_font
        leading = size * LEADING_FACTOR
        pdf.setFillColor(HexColor(self.design.body_text))
        pdf.setFont(font, size)

        wrapped: list[str] = []
        for line in lines:
            wrapped.extend(simpleSplit(line, font, size, _BODY_WIDTH) or [""])

        y = BODY_TOP_Y
        for i, text in enumerate(wrapped):
            if y - leading < BOTTOM_MARGIN and i < len(wrapped) - 1:
                # Page count is fixed by the outline, so overflow is clipped
                pdf.drawString(MARGIN_X, y, ELLIPSIS)
                return
            pdf.drawString(MARGIN_X, y, text)
            y -= leading

    def _draw_image(self, pdf: canvas.Canvas, image: RasterImage,
                    box: tuple[float, float, float, float], index: int) -> bool:
        """Draw an image fitted and centered in *box*; False if undecodable."""
        x, y, width, height = box
        try:
            reader = ImageReader(io.BytesIO(image.data))
            img_w, img_h = reader.getSize()
            scale = min(width / img_w, height / img_h)
            draw_w, draw_h = img_w * scale, img_h * scale
            pdf.drawImage(
                reader,
                x + (width - draw_w) / 2,
                y + (height - draw_h) / 2,
                width=draw_w,
                height=draw_h,
            )
        except Exception as exc:
            self.warnings.append(
                f"Page {index + 1}: skipped undecodable image "
                f"({exc.__class__.__name__})"
            )
            return False
        return True


# ---------------------------------------------------------------------------
# Convenience function
# ---------------------------------------------------------------------------

def build_document(outline: Outline, design: DesignSystem | None = None,
                   accessibility: bool = True) -> bytes:
    """One-shot convenience: build a PDF from an outline."""
    return PDFBuilder(design, accessibility).build(outline)
