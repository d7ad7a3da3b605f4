"""PPTX builder engine - generates PowerPoint presentations from an outline.

Consumes an Outline (ordered pages with headings, body lines, diagram
references and the shared source image) and a DesignSystem to produce a
fully rendered .pptx file using python-pptx.  One blank-layout slide is
emitted per page.

Usage::

    from whiteboard_export.generator.pptx_builder import PPTXBuilder
    from whiteboard_export.outline import build_outline

    outline = build_outline(extraction)
    builder = PPTXBuilder(design)
    pptx_bytes = builder.build(outline)

    with open("board.pptx", "wb") as f:
        f.write(pptx_bytes)
"""

import io
from pathlib import Path

from PIL import Image
from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_SHAPE
from pptx.enum.text import MSO_ANCHOR, MSO_AUTO_SIZE, PP_ALIGN
from pptx.util import Emu, Inches, Pt

from whiteboard_export.schema.models import (
    DesignSystem,
    Outline,
    Page,
    PageKind,
    RasterImage,
)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SLIDE_WIDTH_IN = 13.333
SLIDE_HEIGHT_IN = 7.5
BLANK_LAYOUT = 6

NO_IMAGE_CAPTION = "No source image was provided."
NO_ELEMENTS_CAPTION = "No visual elements were detected."

# (left, top, width, height) in inches
_HEADING_BOX = (0.6, 0.4, 12.1, 1.1)
_BODY_BOX = (0.6, 1.7, 12.1, 5.3)
_TITLE_HEADING_BOX = (0.8, 1.6, 11.7, 1.5)
_TITLE_BODY_BOX = (0.8, 3.1, 11.7, 0.8)
_TITLE_IMAGE_BOX = (4.9, 4.1, 3.5, 3.0)
_IMAGE_BOX = (1.2, 2.2, 10.9, 4.9)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _hex_to_rgb(hex_color: str) -> RGBColor:
    """Convert '#RRGGBB' hex string to an RGBColor."""
    h = hex_color.lstrip("#")
    return RGBColor(*bytes.fromhex(h))


def _image_size(image: RasterImage) -> tuple[int, int]:
    """Pixel dimensions of a raster image (raises if undecodable)."""
    with Image.open(io.BytesIO(image.data)) as img:
        return img.size


def _fit_box(img_w: int, img_h: int,
             box: tuple[float, float, float, float]) -> tuple[Emu, Emu, Emu, Emu]:
    """Scale an image into a box, preserving aspect ratio, centered."""
    left, top, width, height = (Inches(v) for v in box)
    scale = min(width / img_w, height / img_h)
    pic_w = int(img_w * scale)
    pic_h = int(img_h * scale)
    return (
        Emu(int(left + (width - pic_w) / 2)),
        Emu(int(top + (height - pic_h) / 2)),
        Emu(pic_w),
        Emu(pic_h),
    )


def diagram_line(diagram) -> str:
    """Text line rendered for one diagram reference."""
    return f"{diagram.display_label} ({diagram.type})"


# ---------------------------------------------------------------------------
# PPTXBuilder
# ---------------------------------------------------------------------------

class PPTXBuilder:
    """Builds a PowerPoint presentation from an outline.

    Parameters
    ----------
    design : DesignSystem
        Colors and typography for every slide.
    accessibility : bool
        Add picture alt text and document title metadata.
    """

    def __init__(self, design: DesignSystem | None = None,
                 accessibility: bool = True) -> None:
        self.design = design or DesignSystem()
        self.accessibility = accessibility
        self.warnings: list[str] = []
        self.fell_back = False

    def build(self, outline: Outline) -> bytes:
        """Build the PPTX and return it as bytes.

        Never raises: if rendering fails the failure is recorded in
        ``warnings`` and a valid presentation without slides is returned.
        """
        self.warnings = []
        self.fell_back = False
        try:
            return self._render(outline)
        except Exception as exc:
            self.fell_back = True
            self.warnings.append(
                f"PPTX encoding failed ({exc.__class__.__name__}: {exc}); "
                f"wrote an empty presentation instead"
            )
            return self._empty_package()

    def build_to_file(self, outline: Outline, path: str | Path) -> None:
        """Build the PPTX and write it to a file path."""
        data = self.build(outline)
        Path(path).write_bytes(data)

    # ------------------------------------------------------------------
    # Package
    # ------------------------------------------------------------------

    def _new_presentation(self) -> Presentation:
        prs = Presentation()
        prs.slide_width = Inches(SLIDE_WIDTH_IN)
        prs.slide_height = Inches(SLIDE_HEIGHT_IN)
        return prs

    def _render(self, outline: Outline) -> bytes:
        prs = self._new_presentation()

        if self.accessibility:
            props = prs.core_properties
            props.title = outline.title
            props.subject = "Whiteboard content extraction"

        for index, page in enumerate(outline.pages):
            self._build_slide(prs, page, index)

        buf = io.BytesIO()
        prs.save(buf)
        return buf.getvalue()

    def _empty_package(self) -> bytes:
        buf = io.BytesIO()
        self._new_presentation().save(buf)
        return buf.getvalue()

    # ------------------------------------------------------------------
    # Slide builders
    # ------------------------------------------------------------------

    def _build_slide(self, prs: Presentation, page: Page, index: int) -> None:
        """Create a slide and render the page by kind."""
        # Blank layout avoids placeholder interference
        slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
        self._apply_background(slide)

        renderers = {
            PageKind.TITLE: self._render_title,
            PageKind.TEXT_SECTION: self._render_text,
            PageKind.IMAGE_SECTION: self._render_image,
            PageKind.ELEMENTS_SECTION: self._render_elements,
        }
        renderer = renderers.get(page.kind, self._render_text)
        renderer(slide, page, index)

    def _apply_background(self, slide) -> None:
        fill = slide.background.fill
        fill.solid()
        fill.fore_color.rgb = _hex_to_rgb(self.design.background)

    # ------------------------------------------------------------------
    # Page renderers - dispatch by PageKind
    # ------------------------------------------------------------------

    def _render_title(self, slide, page: Page, index: int) -> None:
        self._add_lines(
            slide, _TITLE_HEADING_BOX, [page.heading],
            size_pt=self.design.title_size_pt, color=self.design.title_text,
            bold=True, align=PP_ALIGN.CENTER, anchor=MSO_ANCHOR.BOTTOM,
        )
        self._add_lines(
            slide, _TITLE_BODY_BOX, list(page.body),
            size_pt=self.design.body_size_pt, color=self.design.muted,
            align=PP_ALIGN.CENTER,
        )
        if page.source_image is not None:
            self._add_picture(slide, page.source_image, _TITLE_IMAGE_BOX,
                              "Whiteboard photo", index)

    def _render_text(self, slide, page: Page, index: int) -> None:
        self._add_heading(slide, page)
        self._add_lines(
            slide, _BODY_BOX, list(page.body),
            size_pt=self.design.body_size_pt, color=self.design.body_text,
            shrink=True,
        )

    def _render_image(self, slide, page: Page, index: int) -> None:
        self._add_heading(slide, page)
        caption = list(page.body)
        placed = False
        if page.source_image is not None:
            placed = self._add_picture(slide, page.source_image, _IMAGE_BOX,
                                       "Original whiteboard photo", index)
        if not placed:
            caption.append(NO_IMAGE_CAPTION)
        self._add_lines(
            slide, (_BODY_BOX[0], _BODY_BOX[1], _BODY_BOX[2], 0.5), caption,
            size_pt=self.design.caption_size_pt, color=self.design.muted,
        )

    def _render_elements(self, slide, page: Page, index: int) -> None:
        self._add_heading(slide, page)
        lines = list(page.body)
        if page.diagrams:
            lines.extend(diagram_line(d) for d in page.diagrams)
        else:
            lines.append(NO_ELEMENTS_CAPTION)
        self._add_lines(
            slide, _BODY_BOX, lines,
            size_pt=self.design.body_size_pt, color=self.design.body_text,
            shrink=True,
        )

    # ------------------------------------------------------------------
    # Shape helpers
    # ------------------------------------------------------------------

    def _add_heading(self, slide, page: Page) -> None:
        self._add_lines(
            slide, _HEADING_BOX, [page.heading],
            size_pt=self.design.heading_size_pt, color=self.design.title_text,
            bold=True,
        )
        # Accent rule under the heading
        rule = slide.shapes.add_shape(
            MSO_SHAPE.RECTANGLE,
            Inches(_HEADING_BOX[0]), Inches(_HEADING_BOX[1] + _HEADING_BOX[3]),
            Inches(1.5), Inches(0.06),
        )
        rule.fill.solid()
        rule.fill.fore_color.rgb = _hex_to_rgb(self.design.accent)
        rule.line.fill.background()

    def _add_lines(self, slide, box, lines: list[str], *, size_pt: float,
                   color: str, bold: bool = False,
                   align=PP_ALIGN.LEFT, anchor=MSO_ANCHOR.TOP,
                   shrink: bool = False) -> None:
        """Add a text box with one paragraph per line."""
        left, top, width, height = box
        txbox = slide.shapes.add_textbox(
            Inches(left), Inches(top), Inches(width), Inches(height),
        )
        tf = txbox.text_frame
        tf.word_wrap = True
        tf.vertical_anchor = anchor
        if shrink:
            tf.auto_size = MSO_AUTO_SIZE.TEXT_TO_FIT_SHAPE

        for i, line in enumerate(lines or [""]):
            p = tf.paragraphs[0] if i == 0 else tf.add_paragraph()
            p.alignment = align
            run = p.add_run()
            run.text = line
            run.font.name = self.design.primary_font
            run.font.size = Pt(size_pt)
            run.font.bold = bold
            run.font.color.rgb = _hex_to_rgb(color)

    def _add_picture(self, slide, image: RasterImage, box,
                     alt_text: str, index: int) -> bool:
        """Place a picture fitted into *box*; False if it cannot be decoded."""
        try:
            img_w, img_h = _image_size(image)
            left, top, width, height = _fit_box(img_w, img_h, box)
            pic = slide.shapes.add_picture(
                io.BytesIO(image.data), left, top, width, height,
            )
        except Exception as exc:
            self.warnings.append(
                f"Slide {index + 1}: skipped undecodable image "
                f"({exc.__class__.__name__})"
            )
            return False
        if self.accessibility:
            pic._element._nvXxPr.cNvPr.set("descr", alt_text)
        return True


# ---------------------------------------------------------------------------
# Convenience function
# ---------------------------------------------------------------------------

def build_presentation(outline: Outline, design: DesignSystem | None = None,
                       accessibility: bool = True) -> bytes:
    """One-shot convenience: build a PPTX from an outline."""
    return PPTXBuilder(design, accessibility).build(outline)
