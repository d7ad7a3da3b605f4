"""Export schema package - typed models for the export pipeline.

Provides the contract between the extraction input, the outline builder,
and the document encoders:

- models.py: Core dataclasses (ExtractionResult, Outline, Page, ExportOptions, etc.)
- design_system.py: Themes, high-contrast and WCAG contrast rules
- loader.py: YAML serialization/deserialization of options and extraction results
"""

from .design_system import (
    THEMES,
    contrast_ratio,
    design_for_options,
    enforce_contrast,
    high_contrast,
    readable_text_color,
    relative_luminance,
    resolve_design,
)
from .loader import load_extraction, load_options, save_extraction, save_options
from .models import (
    DesignSystem,
    Diagram,
    EncodedDocument,
    Equation,
    ExportFormat,
    ExportOptions,
    ExtractionResult,
    Outline,
    Page,
    PageKind,
    RasterImage,
    Thumbnail,
)

__all__ = [
    # Models
    "DesignSystem",
    "Diagram",
    "EncodedDocument",
    "Equation",
    "ExportFormat",
    "ExportOptions",
    "ExtractionResult",
    "Outline",
    "Page",
    "PageKind",
    "RasterImage",
    "Thumbnail",
    # Loader
    "load_extraction",
    "load_options",
    "save_extraction",
    "save_options",
    # Design
    "THEMES",
    "contrast_ratio",
    "design_for_options",
    "enforce_contrast",
    "high_contrast",
    "readable_text_color",
    "relative_luminance",
    "resolve_design",
]
