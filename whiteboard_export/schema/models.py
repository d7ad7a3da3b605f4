"""Export schema models - the contract between extraction, outline, and encoders.

Defines the typed structure of the export pipeline: what the upstream AI
extraction hands over, how it is organised into an outline of pages, which
options and design rules shape the rendering, and what an encoded document
looks like when it is handed back to the caller.
"""

import base64
import binascii
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class PageKind(Enum):
    """Which template renders an outline page."""
    TITLE = "title"
    TEXT_SECTION = "text-section"
    IMAGE_SECTION = "image-section"
    ELEMENTS_SECTION = "elements-section"


class ExportFormat(Enum):
    """Supported output document formats."""
    PPTX = "pptx"
    PDF = "pdf"

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self]

    @property
    def extension(self) -> str:
        return self.value

    @property
    def fallback_title(self) -> str:
        """Filename stem used when the text carries no ``# heading``."""
        return "presentation" if self is ExportFormat.PPTX else "document"


_MIME_TYPES = {
    ExportFormat.PPTX: (
        "application/vnd.openxmlformats-officedocument.presentationml.presentation"
    ),
    ExportFormat.PDF: "application/pdf",
}


# ---------------------------------------------------------------------------
# Raster images
# ---------------------------------------------------------------------------

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(;[\w=-]+)*;base64,(?P<data>.*)$",
                          re.DOTALL)


@dataclass(frozen=True)
class RasterImage:
    """Encoded raster bytes (PNG, JPEG, ...) plus their MIME type."""
    data: bytes
    mime_type: str = "image/png"

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def to_dict(self) -> dict:
        return {"mime_type": self.mime_type, "data": self.to_data_uri()}

    @classmethod
    def from_value(cls, value: Any) -> "RasterImage | None":
        """Coerce a data URI, bare base64 string, bytes or mapping to an image.

        Returns ``None`` for empty or undecodable values: a broken image is
        treated as a missing one.
        """
        if value is None or value == "":
            return None
        if isinstance(value, RasterImage):
            return value
        if isinstance(value, (bytes, bytearray)):
            return cls(data=bytes(value)) if value else None
        if isinstance(value, dict):
            mime = value.get("mime_type") or value.get("mimeType") or "image/png"
            inner = cls.from_value(value.get("data"))
            if inner is None:
                return None
            return cls(data=inner.data, mime_type=mime)
        if isinstance(value, str):
            mime = "image/png"
            payload = value.strip()
            match = _DATA_URI_RE.match(payload)
            if match:
                mime = match.group("mime") or mime
                payload = match.group("data")
            payload = "".join(payload.split())
            try:
                data = base64.b64decode(payload, validate=True)
            except (binascii.Error, ValueError):
                return None
            return cls(data=data, mime_type=mime) if data else None
        return None


# ---------------------------------------------------------------------------
# Extraction result - pipeline input
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Diagram:
    """A visual element detected on the whiteboard."""
    id: str
    type: str                            # e.g. "flowchart", "mindmap", "text-block"
    label: str | None = None
    image: RasterImage | None = None
    data: Any = None                     # Structured payload, passed through untouched
    description: str | None = None

    @property
    def display_label(self) -> str:
        """Label shown on slides: the explicit label or the capitalised type."""
        if self.label:
            return self.label
        if self.type:
            return self.type[:1].upper() + self.type[1:]
        return self.id

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"id": self.id, "type": self.type}
        if self.label:
            d["label"] = self.label
        if self.description:
            d["description"] = self.description
        if self.image is not None:
            d["image"] = self.image.to_data_uri()
        if self.data is not None:
            d["data"] = self.data
        return d

    @classmethod
    def from_dict(cls, d: dict, index: int = 0) -> "Diagram":
        return cls(
            id=str(d.get("id") or f"diagram-{index + 1}"),
            type=str(d.get("type") or "unknown"),
            label=d.get("label"),
            image=RasterImage.from_value(d.get("image", d.get("imageData"))),
            data=d.get("data"),
            description=d.get("description"),
        )


@dataclass(frozen=True)
class Equation:
    """A mathematical expression recognised on the whiteboard."""
    id: str
    latex: str = ""
    text: str = ""
    label: str | None = None
    image: RasterImage | None = None

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"id": self.id, "latex": self.latex}
        if self.text:
            d["text"] = self.text
        if self.label:
            d["label"] = self.label
        if self.image is not None:
            d["image"] = self.image.to_data_uri()
        return d

    @classmethod
    def from_dict(cls, d: dict, index: int = 0) -> "Equation":
        return cls(
            id=str(d.get("id") or f"equation-{index + 1}"),
            latex=d.get("latex") or "",
            text=d.get("text") or "",
            label=d.get("label"),
            image=RasterImage.from_value(
                d.get("image", d.get("rendered", d.get("imageData")))
            ),
        )


@dataclass(frozen=True)
class ExtractionResult:
    """Text, diagrams and equations produced by the AI recognition step."""
    text: str = ""
    diagrams: tuple[Diagram, ...] = ()
    equations: tuple[Equation, ...] = ()
    source_image: RasterImage | None = None

    @property
    def meaningful_length(self) -> int:
        """Length of the text once surrounding whitespace is removed."""
        return len((self.text or "").strip())

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "text": self.text,
            "diagrams": [g.to_dict() for g in self.diagrams],
        }
        if self.equations:
            d["equations"] = [e.to_dict() for e in self.equations]
        if self.source_image is not None:
            d["source_image"] = self.source_image.to_data_uri()
        return d

    @classmethod
    def from_dict(cls, d: dict | None) -> "ExtractionResult":
        d = d or {}
        text = d.get("text")
        return cls(
            text=text if isinstance(text, str) else "",
            diagrams=tuple(
                Diagram.from_dict(g, i)
                for i, g in enumerate(d.get("diagrams") or [])
            ),
            equations=tuple(
                Equation.from_dict(e, i)
                for i, e in enumerate(d.get("equations") or [])
            ),
            source_image=RasterImage.from_value(
                d.get("source_image", d.get("sourceImage"))
            ),
        )


# ---------------------------------------------------------------------------
# Outline - intermediate representation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Page:
    """One logical unit of the outline, rendered as one slide or PDF page."""
    kind: PageKind
    heading: str
    body: tuple[str, ...] = ()
    diagrams: tuple[Diagram, ...] = ()
    source_image: RasterImage | None = None   # Shared reference, never copied

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "kind": self.kind.value,
            "heading": self.heading,
            "body": list(self.body),
        }
        if self.kind == PageKind.ELEMENTS_SECTION:
            d["diagrams"] = [
                {"id": g.id, "type": g.type, "label": g.display_label}
                for g in self.diagrams
            ]
        if self.source_image is not None:
            d["source_image"] = {
                "mime_type": self.source_image.mime_type,
                "size_bytes": self.source_image.size_bytes,
            }
        return d


@dataclass(frozen=True)
class Outline:
    """Ordered pages derived from extracted content, format independent."""
    title: str
    pages: tuple[Page, ...]

    def __post_init__(self) -> None:
        if not self.pages:
            raise ValueError("An outline must contain at least one page")

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def kinds(self) -> list[PageKind]:
        return [p.kind for p in self.pages]

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "page_count": self.page_count,
            "pages": [p.to_dict() for p in self.pages],
        }


# ---------------------------------------------------------------------------
# Options and design
# ---------------------------------------------------------------------------

_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0", ""}


def _as_bool(value: Any, default: bool) -> bool:
    """Read a flag that may arrive as a bool, an int, or a string."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValueError(f"Expected a boolean flag, got {value!r}")


@dataclass
class ExportOptions:
    """User-facing export settings."""
    template: str = "ai-generated"       # Cosmetic; appears in the filename
    theme: str = "light"                 # light, dark, colorful, monochrome
    accessibility: bool = True
    high_contrast: bool = False
    include_source_image: bool = True

    def to_dict(self) -> dict:
        return {
            "template": self.template,
            "theme": self.theme,
            "accessibility": self.accessibility,
            "high_contrast": self.high_contrast,
            "include_source_image": self.include_source_image,
        }

    @classmethod
    def from_dict(cls, d: dict | None) -> "ExportOptions":
        d = d or {}
        return cls(
            template=d.get("template", "ai-generated"),
            theme=d.get("theme", "light"),
            accessibility=_as_bool(d.get("accessibility"), True),
            high_contrast=_as_bool(d.get("high_contrast", d.get("highContrast")), False),
            include_source_image=_as_bool(
                d.get("include_source_image", d.get("includeSourceImage")), True
            ),
        )


@dataclass
class DesignSystem:
    """Colors and typography applied to every page of a document."""
    name: str = "light"

    # Colors
    background: str = "#FFFFFF"
    title_text: str = "#1E293B"
    body_text: str = "#334155"
    accent: str = "#2563EB"
    muted: str = "#64748B"

    # Typography
    primary_font: str = "Calibri"
    pdf_font: str = "Helvetica"
    pdf_bold_font: str = "Helvetica-Bold"
    title_size_pt: float = 40.0
    heading_size_pt: float = 32.0
    body_size_pt: float = 18.0
    caption_size_pt: float = 12.0
    pdf_heading_size_pt: float = 24.0
    pdf_body_size_pt: float = 12.0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "colors": {
                "background": self.background,
                "title_text": self.title_text,
                "body_text": self.body_text,
                "accent": self.accent,
                "muted": self.muted,
            },
            "typography": {
                "primary_font": self.primary_font,
                "pdf_font": self.pdf_font,
                "pdf_bold_font": self.pdf_bold_font,
                "title_size_pt": self.title_size_pt,
                "heading_size_pt": self.heading_size_pt,
                "body_size_pt": self.body_size_pt,
                "caption_size_pt": self.caption_size_pt,
                "pdf_heading_size_pt": self.pdf_heading_size_pt,
                "pdf_body_size_pt": self.pdf_body_size_pt,
            },
        }

    @classmethod
    def from_dict(cls, d: dict) -> "DesignSystem":
        colors = d.get("colors", {})
        typo = d.get("typography", {})
        return cls(
            name=d.get("name", "light"),
            background=colors.get("background", "#FFFFFF"),
            title_text=colors.get("title_text", "#1E293B"),
            body_text=colors.get("body_text", "#334155"),
            accent=colors.get("accent", "#2563EB"),
            muted=colors.get("muted", "#64748B"),
            primary_font=typo.get("primary_font", "Calibri"),
            pdf_font=typo.get("pdf_font", "Helvetica"),
            pdf_bold_font=typo.get("pdf_bold_font", "Helvetica-Bold"),
            title_size_pt=typo.get("title_size_pt", 40.0),
            heading_size_pt=typo.get("heading_size_pt", 32.0),
            body_size_pt=typo.get("body_size_pt", 18.0),
            caption_size_pt=typo.get("caption_size_pt", 12.0),
            pdf_heading_size_pt=typo.get("pdf_heading_size_pt", 24.0),
            pdf_body_size_pt=typo.get("pdf_body_size_pt", 12.0),
        )


# ---------------------------------------------------------------------------
# EncodedDocument - pipeline output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Thumbnail:
    """Small PNG preview standing in for one rendered page."""
    category: str                        # title, text, image, elements, other
    png: bytes
    size: tuple[int, int]

    @property
    def data_uri(self) -> str:
        return "data:image/png;base64," + base64.b64encode(self.png).decode("ascii")


@dataclass
class EncodedDocument:
    """A finished document plus everything a caller needs to offer it."""
    format: ExportFormat
    data: bytes
    filename: str
    thumbnails: list[Thumbnail] = field(default_factory=list)

    @property
    def mime_type(self) -> str:
        return self.format.mime_type

    @property
    def size_bytes(self) -> int:
        return len(self.data)
