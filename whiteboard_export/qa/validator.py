"""QA validator - inspects exported PPTX/PDF output against its outline.

Validates that an encoded document honours its file-format contract and
carries the outline's content: package parts and content types, one slide
or page per outline page, resolvable PDF object references, and every page
heading recoverable from the output.

Usage::

    from whiteboard_export.qa.validator import DocumentValidator

    validator = DocumentValidator(outline)
    result = validator.validate(result.document)
    assert result.passed, result.summary()
"""

import io
import re
import zipfile
from dataclasses import dataclass, field

from lxml import etree
from pptx import Presentation

from whiteboard_export.schema.models import EncodedDocument, ExportFormat, Outline


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_CT_NS = "http://schemas.openxmlformats.org/package/2006/content-types"

REQUIRED_PPTX_PARTS = (
    "[Content_Types].xml",
    "_rels/.rels",
    "docProps/app.xml",
    "docProps/core.xml",
    "ppt/presentation.xml",
)

CT_SLIDE = "application/vnd.openxmlformats-officedocument.presentationml.slide+xml"
CT_APP = "application/vnd.openxmlformats-officedocument.extended-properties+xml"
CT_CORE = "application/vnd.openxmlformats-package.core-properties+xml"

PDF_HEADER = b"%PDF-1.7"

_SLIDE_PART_RE = re.compile(r"^ppt/slides/slide(\d+)\.xml$")
_STARTXREF_RE = re.compile(rb"startxref\s+(\d+)\s+%%EOF")
_XREF_HEADER_RE = re.compile(rb"xref\s+(\d+)\s+(\d+)\s+")
_XREF_ENTRY_RE = re.compile(rb"(\d{10}) (\d{5}) ([nf])")
_OBJ_HEADER_RE = re.compile(rb"(\d+)\s+(\d+)\s+obj\b")
_REF_RE = re.compile(rb"(\d+) 0 R")


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class Issue:
    """A single QA issue found during validation."""
    severity: str       # "error" or "warning"
    page_index: int     # -1 for document-level issues
    category: str       # e.g. "page_count", "missing_part", "xref"
    message: str

    def __str__(self) -> str:
        loc = "document" if self.page_index < 0 else f"page {self.page_index + 1}"
        return f"[{self.severity.upper()}] {loc}: {self.message}"


@dataclass
class QAResult:
    """Aggregated result of QA validation."""
    issues: list[Issue] = field(default_factory=list)

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    def add(self, category: str, message: str, page_index: int = -1,
            severity: str = "error") -> None:
        self.issues.append(Issue(
            severity=severity,
            page_index=page_index,
            category=category,
            message=message,
        ))

    def summary(self) -> str:
        """One-line summary string."""
        status = "PASS" if self.passed else "FAIL"
        return (
            f"QA {status}: {self.error_count} error(s), "
            f"{self.warning_count} warning(s)"
        )

    def report(self) -> str:
        """Multi-line report of all issues."""
        lines = [self.summary()]
        for issue in self.issues:
            lines.append(f"  {issue}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# PPTX helpers
# ---------------------------------------------------------------------------

def slide_part_names(pptx_bytes: bytes) -> list[str]:
    """Slide part names in the package, ordered by slide number."""
    with zipfile.ZipFile(io.BytesIO(pptx_bytes)) as zf:
        names = [n for n in zf.namelist() if _SLIDE_PART_RE.match(n)]
    return sorted(names, key=lambda n: int(_SLIDE_PART_RE.match(n).group(1)))


def content_type_overrides(pptx_bytes: bytes) -> dict[str, str]:
    """PartName -> ContentType from ``[Content_Types].xml``."""
    with zipfile.ZipFile(io.BytesIO(pptx_bytes)) as zf:
        root = etree.fromstring(zf.read("[Content_Types].xml"))
    return {
        el.get("PartName"): el.get("ContentType")
        for el in root.iter(f"{{{_CT_NS}}}Override")
    }


def _all_text_on_slide(slide) -> str:
    """Concatenate all text on a slide for content searches."""
    parts: list[str] = []
    for shape in slide.shapes:
        if shape.has_text_frame:
            parts.append(shape.text_frame.text)
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# PDF helpers
# ---------------------------------------------------------------------------

@dataclass
class PDFXref:
    """Cross-reference table of a single-section PDF."""
    offset: int                  # Byte offset of the ``xref`` keyword
    size: int                    # Declared entry count
    entries: dict[int, int]      # In-use object number -> byte offset


def read_pdf_xref(data: bytes) -> PDFXref:
    """Parse the xref table that ``startxref`` points at."""
    matches = list(_STARTXREF_RE.finditer(data))
    if not matches:
        raise ValueError("startxref not found")
    offset = int(matches[-1].group(1))
    header = _XREF_HEADER_RE.match(data, offset)
    if header is None:
        raise ValueError(f"no xref table at offset {offset}")
    first, count = int(header.group(1)), int(header.group(2))
    raw_entries = _XREF_ENTRY_RE.findall(data, header.end())[:count]
    entries = {
        first + i: int(pos)
        for i, (pos, _gen, kind) in enumerate(raw_entries)
        if kind == b"n"
    }
    return PDFXref(offset=offset, size=count, entries=entries)


def read_pdf_objects(data: bytes) -> dict[int, bytes]:
    """Object number -> raw object bytes, sliced using the xref offsets."""
    xref = read_pdf_xref(data)
    ordered = sorted(xref.entries.items(), key=lambda kv: kv[1])
    objects: dict[int, bytes] = {}
    for i, (num, start) in enumerate(ordered):
        end = ordered[i + 1][1] if i + 1 < len(ordered) else xref.offset
        objects[num] = data[start:end]
    return objects


def read_pdf_trailer(data: bytes) -> bytes:
    """Raw trailer dictionary bytes."""
    start = data.rfind(b"trailer")
    end = data.rfind(b"startxref")
    if start < 0 or end < start:
        raise ValueError("trailer not found")
    return data[start:end]


def object_dict(obj: bytes) -> bytes:
    """The dictionary part of an object, without any stream data."""
    return obj.split(b"stream", 1)[0]


def object_type(obj: bytes) -> str | None:
    match = re.search(rb"/Type\s*/(\w+)", object_dict(obj))
    return match.group(1).decode("ascii") if match else None


def stream_data(obj: bytes) -> bytes:
    """Raw bytes between ``stream`` and ``endstream``."""
    start = obj.find(b"stream")
    end = obj.rfind(b"endstream")
    if start < 0 or end < start:
        return b""
    return obj[start + len(b"stream"):end].strip(b"\r\n")


def pdf_escape(text: str) -> bytes:
    """Escape text the way a PDF literal string stores it."""
    escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    return escaped.encode("latin-1", errors="replace")


# ---------------------------------------------------------------------------
# DocumentValidator
# ---------------------------------------------------------------------------

class DocumentValidator:
    """Validates exported documents against the outline they came from.

    Parameters
    ----------
    outline : Outline
        The outline that was encoded.
    """

    def __init__(self, outline: Outline) -> None:
        self.outline = outline

    def validate(self, document: EncodedDocument) -> QAResult:
        """Dispatch to the format-specific checks."""
        if document.format is ExportFormat.PPTX:
            return self.validate_pptx(document.data)
        return self.validate_pdf(document.data)

    # ------------------------------------------------------------------
    # PPTX
    # ------------------------------------------------------------------

    def validate_pptx(self, pptx_bytes: bytes) -> QAResult:
        """Run all PPTX checks."""
        result = QAResult()
        if not zipfile.is_zipfile(io.BytesIO(pptx_bytes)):
            result.add("container", "Output is not a ZIP package")
            return result

        with zipfile.ZipFile(io.BytesIO(pptx_bytes)) as zf:
            names = set(zf.namelist())
            corrupt = zf.testzip()
        if corrupt is not None:
            result.add("container", f"Corrupt ZIP member: {corrupt}")

        for part in REQUIRED_PPTX_PARTS:
            if part not in names:
                result.add("missing_part", f"Package part '{part}' is missing")

        slides = slide_part_names(pptx_bytes)
        self._check_count(len(slides), "slide parts", result)
        if "[Content_Types].xml" in names:
            self._check_content_types(pptx_bytes, slides, result)

        if result.passed:
            self._check_slide_text(pptx_bytes, result)
        return result

    def _check_content_types(self, pptx_bytes: bytes, slides: list[str],
                             result: QAResult) -> None:
        overrides = content_type_overrides(pptx_bytes)
        expected = {"/docProps/app.xml": CT_APP, "/docProps/core.xml": CT_CORE}
        expected.update({f"/{name}": CT_SLIDE for name in slides})
        for part, content_type in expected.items():
            actual = overrides.get(part)
            if actual != content_type:
                result.add(
                    "content_type",
                    f"{part} declared as {actual!r}, expected {content_type!r}",
                )

    def _check_slide_text(self, pptx_bytes: bytes, result: QAResult) -> None:
        prs = Presentation(io.BytesIO(pptx_bytes))
        for index, (slide, page) in enumerate(zip(prs.slides, self.outline.pages)):
            text = _all_text_on_slide(slide)
            if page.heading not in text:
                result.add(
                    "heading_missing",
                    f"Heading '{page.heading}' not found on slide",
                    page_index=index,
                )
            for line in page.body:
                if line not in text:
                    result.add(
                        "body_missing",
                        f"Body line '{line[:40]}' not found on slide",
                        page_index=index,
                        severity="warning",
                    )

    # ------------------------------------------------------------------
    # PDF
    # ------------------------------------------------------------------

    def validate_pdf(self, pdf_bytes: bytes) -> QAResult:
        """Run all PDF checks."""
        result = QAResult()
        if not pdf_bytes.startswith(PDF_HEADER):
            result.add("header", f"Missing {PDF_HEADER.decode()} header")
        if not pdf_bytes.rstrip().endswith(b"%%EOF"):
            result.add("eof", "Document does not end with %%EOF")

        try:
            xref = read_pdf_xref(pdf_bytes)
            objects = read_pdf_objects(pdf_bytes)
            trailer = read_pdf_trailer(pdf_bytes)
        except ValueError as exc:
            result.add("xref", f"Cross-reference table unreadable: {exc}")
            return result

        self._check_xref(pdf_bytes, xref, objects, result)
        self._check_pdf_tree(objects, trailer, result)
        return result

    def _check_xref(self, data: bytes, xref: PDFXref,
                    objects: dict[int, bytes], result: QAResult) -> None:
        if xref.size != len(objects) + 1:
            result.add(
                "xref",
                f"xref declares {xref.size} entries for {len(objects)} objects",
            )
        for num, offset in xref.entries.items():
            header = _OBJ_HEADER_RE.match(data, offset)
            if header is None or int(header.group(1)) != num:
                result.add("xref", f"xref offset {offset} does not start object {num}")
        for num, obj in objects.items():
            if b"endobj" not in obj:
                result.add("object", f"Object {num} is not terminated by endobj")

    def _check_pdf_tree(self, objects: dict[int, bytes], trailer: bytes,
                        result: QAResult) -> None:
        root = re.search(rb"/Root\s+(\d+) 0 R", trailer)
        if root is None:
            result.add("trailer", "Trailer has no /Root reference")
            return
        catalog = objects.get(int(root.group(1)))
        if catalog is None or object_type(catalog) != "Catalog":
            result.add("trailer", "/Root does not reference a Catalog object")
            return

        pages_ref = re.search(rb"/Pages\s+(\d+) 0 R", object_dict(catalog))
        pages_node = objects.get(int(pages_ref.group(1))) if pages_ref else None
        if pages_node is None or object_type(pages_node) != "Pages":
            result.add("page_tree", "Catalog does not reference a Pages node")
            return

        pages_dict = object_dict(pages_node)
        count = re.search(rb"/Count\s+(\d+)", pages_dict)
        kids = re.search(rb"/Kids\s*\[(.*?)\]", pages_dict, re.DOTALL)
        kid_nums = [int(n) for n in _REF_RE.findall(kids.group(1))] if kids else []

        self._check_count(int(count.group(1)) if count else 0, "/Count", result)
        if count and int(count.group(1)) != len(kid_nums):
            result.add("page_tree", f"/Count {count.group(1).decode()} "
                                    f"but {len(kid_nums)} /Kids")

        for index, num in enumerate(kid_nums):
            page_obj = objects.get(num)
            if page_obj is None or object_type(page_obj) != "Page":
                result.add("page_tree", f"Kid {num} is not a Page object",
                           page_index=index)
                continue
            contents = re.search(rb"/Contents\s+(\d+) 0 R", object_dict(page_obj))
            stream_obj = objects.get(int(contents.group(1))) if contents else None
            if stream_obj is None:
                result.add("contents", "Page /Contents does not resolve",
                           page_index=index)
                continue
            if index < self.outline.page_count:
                heading = self.outline.pages[index].heading
                if b"(" + pdf_escape(heading) + b")" not in stream_data(stream_obj):
                    result.add(
                        "heading_missing",
                        f"Heading '{heading}' not drawn on page",
                        page_index=index,
                    )

    # ------------------------------------------------------------------
    # Shared
    # ------------------------------------------------------------------

    def _check_count(self, actual: int, what: str, result: QAResult) -> None:
        expected = self.outline.page_count
        if actual != expected:
            result.add("page_count", f"Expected {expected} {what}, got {actual}")


# ---------------------------------------------------------------------------
# Convenience function
# ---------------------------------------------------------------------------

def validate_document(outline: Outline, document: EncodedDocument) -> QAResult:
    """One-shot convenience: validate an exported document against its outline."""
    return DocumentValidator(outline).validate(document)
