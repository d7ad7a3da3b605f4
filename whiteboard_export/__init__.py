"""Whiteboard export - turns extracted whiteboard content into PPTX and PDF.

Subpackages:
    schema: Extraction, outline, option and design models plus YAML loading
    outline: Fixed export outline and content-adaptive preview slides
    generator: PPTX (python-pptx) and PDF (reportlab) encoders, thumbnails
    qa: Structural validation of exported documents

The public entry points live in :mod:`whiteboard_export.export`.
"""

from .export import Exporter, ExportResult, generate, generate_pdf, generate_pptx

__version__ = "0.1.0"

__all__ = [
    "Exporter",
    "ExportResult",
    "generate",
    "generate_pdf",
    "generate_pptx",
]
