"""Tests for the outline builder and markdown helpers."""

import pytest

from whiteboard_export.outline.builder import (
    ELEMENTS_CAPTION,
    ELEMENTS_HEADING,
    IMAGE_CAPTION,
    IMAGE_HEADING,
    NO_TEXT_PLACEHOLDER,
    OUTLINE_TITLE,
    PAGE_ORDER,
    TEXT_HEADING,
    TITLE_DESCRIPTION,
    TITLE_HEADING,
    build_outline,
)
from whiteboard_export.outline.markdown import (
    extract_key_points,
    find_title,
    non_empty_lines,
    parse_sections,
)
from whiteboard_export.schema.models import (
    Diagram,
    ExtractionResult,
    PageKind,
    RasterImage,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def photo():
    return RasterImage(data=b"\x89PNG fake bytes")


@pytest.fixture
def extraction(photo):
    return ExtractionResult(
        text="# Sprint Planning\n\n- Ship login\n  - Fix bugs  \n\n",
        diagrams=(
            Diagram(id="d1", type="flowchart", label="Release flow"),
            Diagram(id="d2", type="mindmap"),
        ),
        source_image=photo,
    )


# ===================================================================
# build_outline
# ===================================================================

class TestBuildOutline:

    def test_always_four_pages_in_order(self, extraction):
        outline = build_outline(extraction)
        assert outline.page_count == 4
        assert tuple(outline.kinds()) == PAGE_ORDER
        assert outline.kinds() == [
            PageKind.TITLE,
            PageKind.TEXT_SECTION,
            PageKind.IMAGE_SECTION,
            PageKind.ELEMENTS_SECTION,
        ]

    def test_fixed_headings(self, extraction):
        outline = build_outline(extraction)
        assert outline.title == OUTLINE_TITLE
        assert [p.heading for p in outline.pages] == [
            TITLE_HEADING, TEXT_HEADING, IMAGE_HEADING, ELEMENTS_HEADING,
        ]

    def test_title_page(self, extraction, photo):
        title = build_outline(extraction).pages[0]
        assert title.body == (TITLE_DESCRIPTION,)
        assert title.source_image is photo

    def test_text_page_keeps_non_empty_lines(self, extraction):
        text_page = build_outline(extraction).pages[1]
        assert text_page.body == ("# Sprint Planning", "- Ship login", "- Fix bugs")

    def test_image_page_shares_source_image(self, extraction, photo):
        image_page = build_outline(extraction).pages[2]
        assert image_page.body == (IMAGE_CAPTION,)
        assert image_page.source_image is photo

    def test_elements_page_lists_every_diagram(self, extraction):
        elements = build_outline(extraction).pages[3]
        assert elements.body == (ELEMENTS_CAPTION,)
        assert [d.id for d in elements.diagrams] == ["d1", "d2"]

    def test_empty_text_gives_placeholder(self):
        outline = build_outline(ExtractionResult(text="  \n\n "))
        assert outline.page_count == 4
        assert outline.pages[1].body == (NO_TEXT_PLACEHOLDER,)

    def test_none_input(self):
        outline = build_outline(None)
        assert outline.page_count == 4
        assert outline.pages[1].body == (NO_TEXT_PLACEHOLDER,)
        assert outline.pages[2].source_image is None
        assert outline.pages[3].diagrams == ()

    def test_dict_input_with_null_text(self):
        outline = build_outline({"text": None, "diagrams": [{"type": "chart"}]})
        assert outline.pages[1].body == (NO_TEXT_PLACEHOLDER,)
        assert len(outline.pages[3].diagrams) == 1

    def test_excluding_source_image_only_affects_title_page(self, extraction, photo):
        outline = build_outline(extraction, include_source_image=False)
        assert outline.page_count == 4
        assert outline.pages[0].source_image is None
        assert outline.pages[2].source_image is photo

    def test_deterministic(self, extraction):
        assert build_outline(extraction) == build_outline(extraction)

    def test_pages_follow_page_order(self, extraction, monkeypatch):
        reordered = (PageKind.ELEMENTS_SECTION, PageKind.TITLE)
        monkeypatch.setattr("whiteboard_export.outline.builder.PAGE_ORDER", reordered)
        outline = build_outline(extraction)
        assert tuple(outline.kinds()) == reordered
        assert [p.heading for p in outline.pages] == [ELEMENTS_HEADING, TITLE_HEADING]


# ===================================================================
# Markdown helpers
# ===================================================================

class TestFindTitle:

    def test_first_h1(self):
        assert find_title("intro\n# Q3 Review\n# Second") == "Q3 Review"

    def test_ignores_h2(self):
        assert find_title("## Not a title\nbody") is None

    def test_requires_space(self):
        assert find_title("#hashtag") is None

    @pytest.mark.parametrize("text", [None, ""])
    def test_empty(self, text):
        assert find_title(text) is None


class TestNonEmptyLines:

    def test_strips_and_drops_blank(self):
        assert non_empty_lines("  a \n\n\t\n b") == ["a", "b"]

    def test_none(self):
        assert non_empty_lines(None) == []


class TestParseSections:

    def test_splits_on_h2(self):
        text = "# Title\n## Goals\nShip it\n## Risks\nTime\nMoney"
        sections = parse_sections(text)
        assert [s.heading for s in sections] == ["Goals", "Risks"]
        assert sections[0].content == "Ship it"
        assert sections[1].content == "Time\nMoney"

    def test_no_sections(self):
        assert parse_sections("just text") == []


class TestExtractKeyPoints:

    def test_bullets_and_numbers(self):
        text = "- alpha\n* beta\n1. gamma"
        points = extract_key_points(text)
        assert points[0] == "• alpha"
        assert "beta" in points
        assert "gamma" in points

    def test_keyword_sentences(self):
        points = extract_key_points("This is important. Nothing here")
        assert points == ["• This is important."]

    def test_capped_at_seven(self):
        text = "\n".join(f"- item {i}" for i in range(12))
        assert len(extract_key_points(text)) == 7

    def test_deduplicates(self):
        points = extract_key_points("- same\n- same")
        assert points == ["• same"]

    def test_nothing_found(self):
        assert extract_key_points("plain words only") == []
