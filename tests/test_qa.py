"""Tests for the QA validation module."""

import io
import zipfile

import pytest

from whiteboard_export.generator.pdf_builder import PDFBuilder
from whiteboard_export.generator.pptx_builder import PPTXBuilder
from whiteboard_export.outline.builder import build_outline
from whiteboard_export.qa.validator import (
    CT_SLIDE,
    REQUIRED_PPTX_PARTS,
    DocumentValidator,
    Issue,
    QAResult,
    content_type_overrides,
    pdf_escape,
    read_pdf_xref,
    slide_part_names,
    validate_document,
)
from whiteboard_export.schema.models import (
    EncodedDocument,
    ExportFormat,
    ExtractionResult,
    Outline,
    Page,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def outline():
    return build_outline(ExtractionResult(text="# Standup\n- Blockers\n- Demos"))


@pytest.fixture
def pptx_bytes(outline):
    return PPTXBuilder().build(outline)


@pytest.fixture
def pdf_bytes(outline):
    return PDFBuilder().build(outline)


def _rewrite_zip(data: bytes, drop: str = None, replace: dict = None) -> bytes:
    """Copy a ZIP package, dropping or replacing members."""
    replace = replace or {}
    out = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(data)) as src, \
            zipfile.ZipFile(out, "w", zipfile.ZIP_DEFLATED) as dst:
        for item in src.infolist():
            if item.filename == drop:
                continue
            dst.writestr(item, replace.get(item.filename, src.read(item.filename)))
    return out.getvalue()


# ---------------------------------------------------------------------------
# QAResult
# ---------------------------------------------------------------------------

class TestQAResult:

    def test_empty_passes(self):
        result = QAResult()
        assert result.passed
        assert result.summary() == "QA PASS: 0 error(s), 0 warning(s)"

    def test_warnings_do_not_fail(self):
        result = QAResult()
        result.add("body_missing", "line missing", page_index=1, severity="warning")
        assert result.passed
        assert result.warning_count == 1

    def test_errors_fail(self):
        result = QAResult()
        result.add("page_count", "Expected 4 pages, got 3")
        assert not result.passed
        assert "QA FAIL: 1 error(s)" in result.report()
        assert "[ERROR] document: Expected 4 pages, got 3" in result.report()

    def test_issue_str_page_location(self):
        issue = Issue(severity="warning", page_index=2, category="x", message="m")
        assert str(issue) == "[WARNING] page 3: m"


# ---------------------------------------------------------------------------
# PPTX
# ---------------------------------------------------------------------------

class TestPPTXValidation:

    def test_generated_package_passes(self, outline, pptx_bytes):
        result = DocumentValidator(outline).validate_pptx(pptx_bytes)
        assert result.passed, result.report()
        assert result.warning_count == 0

    def test_required_parts_present(self, pptx_bytes):
        with zipfile.ZipFile(io.BytesIO(pptx_bytes)) as zf:
            names = set(zf.namelist())
        for part in REQUIRED_PPTX_PARTS:
            assert part in names

    def test_slide_parts_and_content_types(self, pptx_bytes):
        slides = slide_part_names(pptx_bytes)
        assert slides == [f"ppt/slides/slide{i}.xml" for i in range(1, 5)]
        overrides = content_type_overrides(pptx_bytes)
        for name in slides:
            assert overrides[f"/{name}"] == CT_SLIDE

    def test_not_a_zip(self, outline):
        result = DocumentValidator(outline).validate_pptx(b"plain bytes")
        assert not result.passed
        assert result.errors[0].category == "container"

    def test_missing_part(self, outline, pptx_bytes):
        broken = _rewrite_zip(pptx_bytes, drop="docProps/app.xml")
        result = DocumentValidator(outline).validate_pptx(broken)
        assert any(i.category == "missing_part" for i in result.errors)

    def test_wrong_slide_count(self, outline, pptx_bytes):
        longer = Outline(title=outline.title, pages=outline.pages + (outline.pages[0],))
        result = DocumentValidator(longer).validate_pptx(pptx_bytes)
        assert any(i.category == "page_count" for i in result.errors)

    def test_wrong_content_type(self, outline, pptx_bytes):
        with zipfile.ZipFile(io.BytesIO(pptx_bytes)) as zf:
            ct = zf.read("[Content_Types].xml")
        broken = _rewrite_zip(pptx_bytes, replace={
            "[Content_Types].xml": ct.replace(CT_SLIDE.encode(), b"application/xml"),
        })
        result = DocumentValidator(outline).validate_pptx(broken)
        assert any(i.category == "content_type" for i in result.errors)

    def test_heading_mismatch(self, pptx_bytes):
        other = build_outline(ExtractionResult(text="something else entirely"))
        renamed = Outline(
            title=other.title,
            pages=(Page(kind=other.pages[0].kind, heading="Wrong"),)
            + other.pages[1:],
        )
        result = DocumentValidator(renamed).validate_pptx(pptx_bytes)
        assert [i.page_index for i in result.errors] == [0]
        assert result.errors[0].category == "heading_missing"


# ---------------------------------------------------------------------------
# PDF
# ---------------------------------------------------------------------------

class TestPDFValidation:

    def test_generated_document_passes(self, outline, pdf_bytes):
        result = DocumentValidator(outline).validate_pdf(pdf_bytes)
        assert result.passed, result.report()

    def test_wrong_header(self, outline, pdf_bytes):
        result = DocumentValidator(outline).validate_pdf(
            b"%PDF-1.3" + pdf_bytes[len(b"%PDF-1.7"):]
        )
        assert any(i.category == "header" for i in result.errors)

    def test_truncated(self, outline, pdf_bytes):
        result = DocumentValidator(outline).validate_pdf(pdf_bytes[:-40])
        assert not result.passed

    def test_garbage(self, outline):
        result = DocumentValidator(outline).validate_pdf(b"not a pdf at all")
        categories = {i.category for i in result.errors}
        assert {"header", "eof", "xref"} <= categories

    def test_shifted_offsets_detected(self, outline, pdf_bytes):
        xref = read_pdf_xref(pdf_bytes)
        first_obj = min(xref.entries.values())
        # Insert a byte before the first object without fixing the xref
        shifted = pdf_bytes[:first_obj] + b" " + pdf_bytes[first_obj:]
        result = DocumentValidator(outline).validate_pdf(shifted)
        assert not result.passed

    def test_fallback_document_fails_page_count(self, outline, monkeypatch):
        monkeypatch.setattr(PDFBuilder, "_draw_page",
                            lambda self, pdf, page, index: 1 / 0)
        data = PDFBuilder().build(outline)
        result = DocumentValidator(outline).validate_pdf(data)
        assert any(i.category == "page_count" for i in result.errors)

    def test_pdf_escape(self):
        assert pdf_escape("a(b)c\\") == b"a\\(b\\)c\\\\"


class TestValidateDocument:

    def test_dispatches_on_format(self, outline, pdf_bytes, pptx_bytes):
        pdf_doc = EncodedDocument(format=ExportFormat.PDF, data=pdf_bytes, filename="a.pdf")
        pptx_doc = EncodedDocument(format=ExportFormat.PPTX, data=pptx_bytes, filename="a.pptx")
        assert validate_document(outline, pdf_doc).passed
        assert validate_document(outline, pptx_doc).passed
