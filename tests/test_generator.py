"""Tests for the PPTX builder engine."""

import io
import zipfile

import pytest
from PIL import Image
from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_SHAPE_TYPE
from pptx.util import Inches

from whiteboard_export.generator.pptx_builder import (
    BLANK_LAYOUT,
    NO_ELEMENTS_CAPTION,
    NO_IMAGE_CAPTION,
    SLIDE_HEIGHT_IN,
    SLIDE_WIDTH_IN,
    PPTXBuilder,
    _fit_box,
    _hex_to_rgb,
    build_presentation,
    diagram_line,
)
from whiteboard_export.outline.builder import build_outline
from whiteboard_export.schema.design_system import resolve_design
from whiteboard_export.schema.models import (
    DesignSystem,
    Diagram,
    ExtractionResult,
    RasterImage,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def _png_bytes(size=(64, 48), color="white") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def _bytes_to_prs(pptx_bytes: bytes) -> Presentation:
    """Load a Presentation from bytes."""
    return Presentation(io.BytesIO(pptx_bytes))


def _slide_text(slide) -> str:
    return "\n".join(
        shape.text_frame.text for shape in slide.shapes if shape.has_text_frame
    )


def _pictures(slide) -> list:
    return [shape for shape in slide.shapes if shape.shape_type == MSO_SHAPE_TYPE.PICTURE]


@pytest.fixture
def design():
    return DesignSystem()


@pytest.fixture
def extraction():
    return ExtractionResult(
        text="# Retro\n- What went well\n- What to improve",
        diagrams=(
            Diagram(id="d1", type="flowchart", label="Deploy pipeline"),
            Diagram(id="d2", type="table"),
        ),
        source_image=RasterImage(data=_png_bytes()),
    )


@pytest.fixture
def outline(extraction):
    return build_outline(extraction)


# ---------------------------------------------------------------------------
# Helper tests
# ---------------------------------------------------------------------------

class TestHelpers:

    def test_hex_to_rgb(self):
        assert _hex_to_rgb("#1E293B") == RGBColor(0x1E, 0x29, 0x3B)
        assert _hex_to_rgb("FFFFFF") == RGBColor(0xFF, 0xFF, 0xFF)

    def test_fit_box_preserves_aspect(self):
        left, top, width, height = _fit_box(200, 100, (0, 0, 4, 4))
        assert width == Inches(4)
        assert height == Inches(2)
        assert top == Inches(1)
        assert left == 0

    def test_diagram_line(self):
        assert diagram_line(Diagram(id="d", type="chart")) == "Chart (chart)"
        assert diagram_line(Diagram(id="d", type="chart", label="Sales")) == "Sales (chart)"


# ---------------------------------------------------------------------------
# Builder tests
# ---------------------------------------------------------------------------

class TestPPTXBuilder:

    def test_one_slide_per_page(self, outline, design):
        prs = _bytes_to_prs(PPTXBuilder(design).build(outline))
        assert len(prs.slides) == outline.page_count == 4

    def test_slide_dimensions(self, outline, design):
        prs = _bytes_to_prs(PPTXBuilder(design).build(outline))
        assert prs.slide_width == Inches(SLIDE_WIDTH_IN)
        assert prs.slide_height == Inches(SLIDE_HEIGHT_IN)

    def test_blank_layout_used(self, outline, design):
        prs = _bytes_to_prs(PPTXBuilder(design).build(outline))
        blank = prs.slide_layouts[BLANK_LAYOUT]
        assert all(slide.slide_layout.name == blank.name for slide in prs.slides)

    def test_headings_on_slides(self, outline, design):
        prs = _bytes_to_prs(PPTXBuilder(design).build(outline))
        for slide, page in zip(prs.slides, outline.pages):
            assert page.heading in _slide_text(slide)

    def test_text_slide_has_every_line(self, outline, design):
        prs = _bytes_to_prs(PPTXBuilder(design).build(outline))
        text = _slide_text(prs.slides[1])
        for line in ("# Retro", "- What went well", "- What to improve"):
            assert line in text

    def test_elements_slide_lists_diagrams(self, outline, design):
        prs = _bytes_to_prs(PPTXBuilder(design).build(outline))
        text = _slide_text(prs.slides[3])
        assert "Deploy pipeline (flowchart)" in text
        assert "Table (table)" in text

    def test_pictures_on_title_and_image_slides(self, outline, design):
        prs = _bytes_to_prs(PPTXBuilder(design).build(outline))
        assert len(_pictures(prs.slides[0])) == 1
        assert len(_pictures(prs.slides[2])) == 1
        assert len(_pictures(prs.slides[1])) == 0

    def test_alt_text_when_accessible(self, outline, design):
        prs = _bytes_to_prs(PPTXBuilder(design, accessibility=True).build(outline))
        pic = _pictures(prs.slides[2])[0]
        assert pic._element._nvXxPr.cNvPr.get("descr") == "Original whiteboard photo"
        assert prs.core_properties.title == outline.title

    def test_no_alt_text_without_accessibility(self, outline, design):
        prs = _bytes_to_prs(PPTXBuilder(design, accessibility=False).build(outline))
        pic = _pictures(prs.slides[2])[0]
        assert pic._element._nvXxPr.cNvPr.get("descr") != "Original whiteboard photo"

    def test_background_color_from_design(self, outline):
        design = resolve_design("dark")
        prs = _bytes_to_prs(PPTXBuilder(design).build(outline))
        fill = prs.slides[0].background.fill
        assert fill.fore_color.rgb == _hex_to_rgb(design.background)

    def test_missing_image_and_elements_captions(self, design):
        outline = build_outline(ExtractionResult(text="Just some words"))
        prs = _bytes_to_prs(PPTXBuilder(design).build(outline))
        assert NO_IMAGE_CAPTION in _slide_text(prs.slides[2])
        assert NO_ELEMENTS_CAPTION in _slide_text(prs.slides[3])
        assert not _pictures(prs.slides[0])

    def test_undecodable_image_is_skipped(self, design):
        extraction = ExtractionResult(
            text="Some board text",
            source_image=RasterImage(data=b"definitely not an image"),
        )
        builder = PPTXBuilder(design)
        prs = _bytes_to_prs(builder.build(build_outline(extraction)))
        assert len(prs.slides) == 4
        assert NO_IMAGE_CAPTION in _slide_text(prs.slides[2])
        assert builder.fell_back is False
        assert any("undecodable image" in w for w in builder.warnings)

    def test_fallback_on_render_failure(self, outline, design, monkeypatch):
        def boom(self, prs, page, index):
            raise RuntimeError("renderer exploded")

        monkeypatch.setattr(PPTXBuilder, "_build_slide", boom)
        builder = PPTXBuilder(design)
        data = builder.build(outline)

        assert builder.fell_back is True
        assert "renderer exploded" in builder.warnings[0]
        assert zipfile.is_zipfile(io.BytesIO(data))
        assert len(_bytes_to_prs(data).slides) == 0

    def test_deterministic_slide_count(self, outline, design):
        first = _bytes_to_prs(PPTXBuilder(design).build(outline))
        second = _bytes_to_prs(PPTXBuilder(design).build(outline))
        assert len(first.slides) == len(second.slides)

    def test_build_to_file(self, outline, design, tmp_path):
        path = tmp_path / "board.pptx"
        PPTXBuilder(design).build_to_file(outline, path)
        assert len(_bytes_to_prs(path.read_bytes()).slides) == 4

    def test_convenience_function(self, outline):
        prs = _bytes_to_prs(build_presentation(outline))
        assert len(prs.slides) == 4
