"""Export orchestrator - public entry points for PPTX and PDF export.

Sequences the whole pipeline for one export call: content validation,
outline building, thumbnail generation, document encoding, filename
derivation and handle registration.  Every entry point returns an
:class:`ExportResult`; failures are reported through ``result.error`` and
never raised.

Usage::

    from whiteboard_export.export import generate_pptx

    result = generate_pptx(extraction, ExportOptions(theme="dark"))
    if result.ok:
        with open(result.filename, "wb") as f:
            f.write(result.data)
        result.release()
    else:
        print(result.error)
"""

import datetime
import re
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from whiteboard_export.clients import ExtractionClient
from whiteboard_export.errors import (
    EncodingError,
    ExportError,
    UpstreamError,
    ValidationError,
)
from whiteboard_export.generator.pdf_builder import PDFBuilder
from whiteboard_export.generator.pptx_builder import PPTXBuilder
from whiteboard_export.generator.thumbnails import (
    PAGE_THUMBNAIL_SIZE,
    SLIDE_THUMBNAIL_SIZE,
    generate_thumbnails,
)
from whiteboard_export.handles import HandleRegistry
from whiteboard_export.outline.builder import build_outline
from whiteboard_export.outline.markdown import find_title
from whiteboard_export.schema.design_system import design_for_options
from whiteboard_export.schema.models import (
    EncodedDocument,
    ExportFormat,
    ExportOptions,
    ExtractionResult,
    Outline,
    Thumbnail,
)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MIN_TEXT_LENGTH = 10
MAX_TITLE_LENGTH = 30

NO_CONTENT_MESSAGE = (
    "No content available to export. "
    "Please ensure text was properly extracted."
)
TOO_SHORT_MESSAGE = (
    "The extracted content is too short or low quality. "
    "Please try with a clearer image."
)

_TEMPLATE_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_-]")
_TITLE_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9]")


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------

@dataclass
class ExportResult:
    """Output of one export call.

    On success ``url`` names a live handle in the exporter's registry and
    ``document`` holds the bytes; on failure both are None and ``error``
    says why.  The caller owns the handle and should ``release()`` it.
    """
    url: str | None
    format: ExportFormat | None = None
    document: EncodedDocument | None = None
    outline: Outline | None = None
    error: Exception | None = None
    warnings: list[str] = field(default_factory=list)
    registry: HandleRegistry | None = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.error is None and self.document is not None

    @property
    def data(self) -> bytes | None:
        return self.document.data if self.document else None

    @property
    def filename(self) -> str | None:
        return self.document.filename if self.document else None

    @property
    def mime_type(self) -> str | None:
        return self.document.mime_type if self.document else None

    @property
    def thumbnails(self) -> list[Thumbnail]:
        return list(self.document.thumbnails) if self.document else []

    @property
    def page_count(self) -> int | None:
        return self.outline.page_count if self.outline else None

    @property
    def slide_count(self) -> int | None:
        return self.page_count

    def release(self) -> bool:
        """Revoke the handle URL; safe to call more than once."""
        if self.url is None or self.registry is None:
            return False
        return self.registry.revoke(self.url)

    def __enter__(self) -> "ExportResult":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly summary (bytes and thumbnails omitted)."""
        return {
            "url": self.url,
            "format": self.format.value if self.format else None,
            "filename": self.filename,
            "mime_type": self.mime_type,
            "page_count": self.page_count,
            "size_bytes": len(self.data) if self.data else 0,
            "thumbnail_count": len(self.thumbnails),
            "warnings": list(self.warnings),
            "error": str(self.error) if self.error else None,
        }


# ---------------------------------------------------------------------------
# Pipeline steps
# ---------------------------------------------------------------------------

def validate_content(extraction: ExtractionResult) -> None:
    """Raise ValidationError unless the text is worth exporting."""
    if not extraction.text or not extraction.text.strip():
        raise ValidationError(NO_CONTENT_MESSAGE)
    if extraction.meaningful_length < MIN_TEXT_LENGTH:
        raise ValidationError(TOO_SHORT_MESSAGE)


def derive_filename(text: str | None, template: str, fmt: ExportFormat,
                    today: datetime.date | None = None) -> str:
    """``{title}_{template}_{YYYY-MM-DD}.{ext}``.

    The title is the first ``# heading`` with every non-alphanumeric
    character replaced by ``_``, capped at 30 characters; without a heading
    the format's fallback ("presentation" or "document") is used.
    """
    today = today or datetime.date.today()
    heading = find_title(text)
    if heading:
        title = _TITLE_UNSAFE_RE.sub("_", heading)[:MAX_TITLE_LENGTH]
    else:
        title = fmt.fallback_title
    template = _TEMPLATE_UNSAFE_RE.sub("_", template or "") or "default"
    return f"{title}_{template}_{today.isoformat()}.{fmt.extension}"


def _coerce_format(fmt: ExportFormat | str) -> ExportFormat:
    if isinstance(fmt, ExportFormat):
        return fmt
    try:
        return ExportFormat(str(fmt).lower())
    except ValueError:
        raise ExportError(
            f"Unsupported export format: {fmt!r}. Use 'pptx' or 'pdf'."
        ) from None


def _coerce_content(content: Any) -> ExtractionResult:
    if isinstance(content, ExtractionResult):
        return content
    if content is None or isinstance(content, Mapping):
        return ExtractionResult.from_dict(dict(content or {}))
    raise ExportError(
        f"Unsupported content type: {type(content).__name__}"
    )


def _coerce_options(options: Any) -> ExportOptions:
    if isinstance(options, ExportOptions):
        return options
    return ExportOptions.from_dict(dict(options or {}))


# ---------------------------------------------------------------------------
# Exporter
# ---------------------------------------------------------------------------

class Exporter:
    """Runs export calls and owns the registry their handles live in.

    Parameters
    ----------
    registry : HandleRegistry
        Where exported bytes are parked behind handle URLs.
    clock : callable
        Returns today's date for the filename; injectable for tests.
    """

    def __init__(self, registry: HandleRegistry | None = None,
                 clock: Callable[[], datetime.date] | None = None) -> None:
        self.registry = registry if registry is not None else HandleRegistry()
        self.clock = clock or datetime.date.today

    def generate(self, fmt: ExportFormat | str, content: Any,
                 options: ExportOptions | Mapping | None = None) -> ExportResult:
        """Export *content* as *fmt*; never raises."""
        try:
            return self._generate(fmt, content, options)
        except ExportError as exc:
            return ExportResult(url=None, error=exc)
        except Exception as exc:
            error = ExportError(f"Failed to create document: {exc}")
            error.__cause__ = exc
            return ExportResult(url=None, error=error)

    def generate_pptx(self, content: Any,
                      options: ExportOptions | Mapping | None = None) -> ExportResult:
        return self.generate(ExportFormat.PPTX, content, options)

    def generate_pdf(self, content: Any,
                     options: ExportOptions | Mapping | None = None) -> ExportResult:
        return self.generate(ExportFormat.PDF, content, options)

    def generate_from_client(self, fmt: ExportFormat | str,
                             client: ExtractionClient, image: bytes,
                             options: ExportOptions | Mapping | None = None) -> ExportResult:
        """Run the extraction client, then export its result.

        Client failures come back as ``UpstreamError`` without retry.
        """
        try:
            content = client.extract(image)
        except Exception as exc:
            error = UpstreamError(f"Extraction failed: {exc}")
            error.__cause__ = exc
            return ExportResult(url=None, error=error)
        return self.generate(fmt, content, options)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _generate(self, fmt, content, options) -> ExportResult:
        fmt = _coerce_format(fmt)
        extraction = _coerce_content(content)
        options = _coerce_options(options)

        validate_content(extraction)

        design = design_for_options(options)
        outline = build_outline(
            extraction, include_source_image=options.include_source_image,
        )

        thumb_size = SLIDE_THUMBNAIL_SIZE if fmt is ExportFormat.PPTX else PAGE_THUMBNAIL_SIZE
        thumbnails = generate_thumbnails(outline, size=thumb_size)

        data, warnings = self._encode(fmt, outline, design, options)

        document = EncodedDocument(
            format=fmt,
            data=data,
            filename=derive_filename(
                extraction.text, options.template, fmt, self.clock(),
            ),
            thumbnails=thumbnails,
        )
        url = self.registry.create(document.data, document.mime_type)
        return ExportResult(
            url=url,
            format=fmt,
            document=document,
            outline=outline,
            warnings=warnings,
            registry=self.registry,
        )

    def _encode(self, fmt: ExportFormat, outline: Outline, design,
                options: ExportOptions) -> tuple[bytes, list[str]]:
        if fmt is ExportFormat.PPTX:
            builder = PPTXBuilder(design, accessibility=options.accessibility)
        else:
            builder = PDFBuilder(design, accessibility=options.accessibility)
        data = builder.build(outline)
        if not data:
            raise EncodingError(
                f"{fmt.value.upper()} encoder produced no output"
            )
        return data, list(builder.warnings)


# ---------------------------------------------------------------------------
# Convenience functions
# ---------------------------------------------------------------------------

_default_exporter: Exporter | None = None
_default_lock = threading.Lock()


def default_exporter() -> Exporter:
    """Process-wide exporter used by the module-level shortcuts."""
    global _default_exporter
    if _default_exporter is None:
        with _default_lock:
            if _default_exporter is None:
                _default_exporter = Exporter()
    return _default_exporter


def generate(fmt: ExportFormat | str, content: Any,
             options: ExportOptions | Mapping | None = None) -> ExportResult:
    """One-shot convenience: export with the default exporter."""
    return default_exporter().generate(fmt, content, options)


def generate_pptx(content: Any,
                  options: ExportOptions | Mapping | None = None) -> ExportResult:
    return default_exporter().generate_pptx(content, options)


def generate_pdf(content: Any,
                 options: ExportOptions | Mapping | None = None) -> ExportResult:
    return default_exporter().generate_pdf(content, options)
