"""Preview slides - the content-adaptive deck shown before export.

Unlike the fixed export outline, the preview follows the structure of the
extracted text: a title slide, one slide per ``## section``, one per diagram
(or the whiteboard photo when nothing was detected), one per equation and a
closing summary of key points.
"""

from dataclasses import dataclass

from whiteboard_export.schema.models import ExtractionResult, RasterImage

from .markdown import extract_key_points, find_title, parse_sections


DEFAULT_PREVIEW_TITLE = "Whiteboard Conversion"
NO_DIAGRAMS_TITLE = "Whiteboard Image"
NO_DIAGRAMS_CONTENT = "No diagrams detected in the whiteboard image"
SUMMARY_TITLE = "Summary"


@dataclass(frozen=True)
class PreviewSlide:
    """One slide of the on-screen preview."""
    id: str
    title: str
    content: str
    image: RasterImage | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "has_image": self.image is not None,
        }


def build_preview_slides(extraction: ExtractionResult | dict | None,
                         include_source_image: bool = True) -> list[PreviewSlide]:
    """Build the preview deck; empty when there is no text at all."""
    if not isinstance(extraction, ExtractionResult):
        extraction = ExtractionResult.from_dict(extraction)
    text = extraction.text
    if not text:
        return []

    slides: list[PreviewSlide] = []

    def add(title: str, content: str, image: RasterImage | None = None) -> None:
        slides.append(PreviewSlide(
            id=f"slide-{len(slides) + 1}",
            title=title,
            content=content,
            image=image,
        ))

    add(
        find_title(text) or DEFAULT_PREVIEW_TITLE,
        "\n".join(text.split("\n")[:2]),
        extraction.source_image,
    )

    for section in parse_sections(text):
        add(section.heading, section.content)

    if extraction.diagrams:
        for diagram in extraction.diagrams:
            add(diagram.display_label, diagram.description or "", diagram.image)
    elif include_source_image:
        add(NO_DIAGRAMS_TITLE, NO_DIAGRAMS_CONTENT, extraction.source_image)

    for index, equation in enumerate(extraction.equations, start=1):
        add(
            equation.label or f"Mathematical Equation {index}",
            equation.latex or equation.text,
            equation.image,
        )

    add(SUMMARY_TITLE, "\n• ".join(extract_key_points(text)))
    return slides
