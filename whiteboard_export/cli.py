"""CLI entry point for whiteboard export.

Orchestrates the full pipeline from a saved extraction result: option
loading, outline building, PPTX/PDF generation, thumbnails and QA
validation.

Usage::

    # Export a saved extraction result as PPTX
    whiteboard-export generate \\
        --input extraction.json --format pptx \\
        --output-dir output/

    # Export as PDF with settings from a YAML file and page thumbnails
    whiteboard-export generate \\
        --input extraction.yaml --format pdf \\
        --options export.yaml --thumbnails-dir output/thumbs

    # Show the export outline or the preview deck
    whiteboard-export outline --input extraction.json
    whiteboard-export preview --input extraction.json

    # Validate an existing file against the outline of its extraction
    whiteboard-export validate --input extraction.json --file output/board.pdf
"""

import argparse
import json
import sys
from pathlib import Path

from whiteboard_export.clients import FileExtractionClient
from whiteboard_export.export import Exporter
from whiteboard_export.handles import HandleRegistry
from whiteboard_export.outline.builder import build_outline
from whiteboard_export.outline.preview import build_preview_slides
from whiteboard_export.qa.validator import DocumentValidator
from whiteboard_export.schema.loader import load_extraction, load_options
from whiteboard_export.schema.models import (
    EncodedDocument,
    ExportFormat,
    ExportOptions,
)


# ---------------------------------------------------------------------------
# Input loading
# ---------------------------------------------------------------------------

def _load_extraction(args):
    """Load the ExtractionResult named by --input."""
    path = Path(args.input)
    if not path.exists():
        _error(f"Extraction file not found: {path}")
    try:
        return load_extraction(path)
    except (ValueError, OSError) as exc:
        _error(f"Cannot read extraction file {path}: {exc}")


def _load_options(args) -> ExportOptions:
    """Build ExportOptions from --options, then apply flag overrides."""
    options = ExportOptions()
    if getattr(args, "options", None):
        path = Path(args.options)
        if not path.exists():
            _error(f"Options file not found: {path}")
        try:
            options = load_options(path)
        except (ValueError, OSError) as exc:
            _error(f"Cannot read options file {path}: {exc}")

    if getattr(args, "template", None):
        options.template = args.template
    if getattr(args, "theme", None):
        options.theme = args.theme
    if getattr(args, "high_contrast", False):
        options.high_contrast = True
    if getattr(args, "no_accessibility", False):
        options.accessibility = False
    if getattr(args, "no_source_image", False):
        options.include_source_image = False
    return options


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_generate(args):
    """Generate a PPTX or PDF document."""
    options = _load_options(args)
    fmt = ExportFormat(args.format)
    _info(f"Format: {fmt.value.upper()} (template {options.template}, "
          f"theme {options.theme})")

    exporter = Exporter(registry=HandleRegistry(ttl=None))
    client = FileExtractionClient(args.input)
    result = exporter.generate_from_client(fmt, client, b"", options)
    if not result.ok:
        _error(f"Failed to create {fmt.value.upper()} file: {result.error}")

    for w in result.warnings:
        _warn(w)

    # QA validation
    if not args.skip_qa:
        _info("Running QA validation...")
        qa_result = DocumentValidator(result.outline).validate(result.document)
        if qa_result.passed:
            _info(qa_result.summary())
        else:
            _warn(qa_result.summary())
            if args.verbose:
                print(qa_result.report(), file=sys.stderr)
            if not args.force:
                result.release()
                _error("QA validation failed. Use --force to write anyway, "
                       "or --skip-qa to skip validation.")
    else:
        _info("QA validation skipped (--skip-qa)")

    # Write output
    out_dir = Path(args.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    output = out_dir / result.filename
    output.write_bytes(result.data)
    _info(f"Written: {output} ({len(result.data):,} bytes, "
          f"{result.page_count} pages)")

    if args.thumbnails_dir:
        thumbs = Path(args.thumbnails_dir)
        thumbs.mkdir(parents=True, exist_ok=True)
        stem = Path(result.filename).stem
        for index, thumb in enumerate(result.thumbnails, start=1):
            (thumbs / f"{stem}_{index}_{thumb.category}.png").write_bytes(thumb.png)
        _info(f"Thumbnails: {len(result.thumbnails)} written to {thumbs}")

    result.release()
    print(output)


def cmd_outline(args):
    """Show the export outline."""
    extraction = _load_extraction(args)
    outline = build_outline(
        extraction, include_source_image=not args.no_source_image,
    )

    if args.json:
        print(json.dumps(outline.to_dict(), indent=2))
        return

    print(f"Outline:  {outline.title}")
    print(f"Pages:    {outline.page_count}")
    print()
    for index, page in enumerate(outline.pages, start=1):
        image = " [image]" if page.source_image is not None else ""
        print(f"  [{index}] {page.heading} ({page.kind.value}){image}")
        for line in page.body:
            print(f"       {line}")
        for diagram in page.diagrams:
            print(f"       * {diagram.display_label} ({diagram.type})")


def cmd_preview(args):
    """Show the content-adaptive preview slides."""
    extraction = _load_extraction(args)
    slides = build_preview_slides(
        extraction, include_source_image=not args.no_source_image,
    )
    if not slides:
        _warn("No text extracted, nothing to preview")
        return

    print(f"Preview slides: {len(slides)}")
    print()
    for slide in slides:
        image = " [image]" if slide.image is not None else ""
        print(f"  {slide.id}: {slide.title}{image}")
        if args.verbose and slide.content:
            for line in slide.content.splitlines():
                print(f"       {line}")


def cmd_validate(args):
    """Validate an existing PPTX/PDF against its extraction's outline."""
    extraction = _load_extraction(args)
    path = Path(args.file)
    if not path.exists():
        _error(f"Document not found: {path}")

    suffix = path.suffix.lower().lstrip(".")
    try:
        fmt = ExportFormat(suffix)
    except ValueError:
        _error(f"Cannot infer format from '{path.name}'. Use .pptx or .pdf.")

    outline = build_outline(
        extraction, include_source_image=not args.no_source_image,
    )
    document = EncodedDocument(format=fmt, data=path.read_bytes(),
                               filename=path.name)
    _info(f"Validating {path} against a {outline.page_count}-page outline")

    qa_result = DocumentValidator(outline).validate(document)
    print(qa_result.report())
    sys.exit(0 if qa_result.passed else 1)


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------

def _info(msg):
    print(f"  {msg}", file=sys.stderr)


def _warn(msg):
    print(f"  WARNING: {msg}", file=sys.stderr)


def _error(msg):
    print(f"  ERROR: {msg}", file=sys.stderr)
    sys.exit(1)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_parser():
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="whiteboard-export",
        description="Export extracted whiteboard content as PPTX or PDF.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ---- generate ----
    gen = subparsers.add_parser(
        "generate",
        help="Generate a PPTX or PDF document from an extraction result.",
    )
    _add_input_args(gen)
    _add_option_args(gen)
    gen.add_argument(
        "-f", "--format",
        choices=[f.value for f in ExportFormat],
        default=ExportFormat.PPTX.value,
        help="Output format (default: pptx).",
    )
    gen.add_argument(
        "-o", "--output-dir",
        default=".",
        help="Directory for the generated file (default: current directory).",
    )
    gen.add_argument(
        "--thumbnails-dir",
        help="Also write one PNG thumbnail per page into this directory.",
    )
    gen.add_argument(
        "--skip-qa",
        action="store_true",
        default=False,
        help="Skip QA validation after generation.",
    )
    gen.add_argument(
        "--force",
        action="store_true",
        default=False,
        help="Write output even if QA validation fails.",
    )
    gen.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="Show detailed output (full QA report on failure).",
    )
    gen.set_defaults(func=cmd_generate)

    # ---- outline ----
    out = subparsers.add_parser(
        "outline",
        help="Show the export outline for an extraction result.",
    )
    _add_input_args(out)
    out.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print the outline as JSON.",
    )
    out.set_defaults(func=cmd_outline)

    # ---- preview ----
    prev = subparsers.add_parser(
        "preview",
        help="Show the preview slides for an extraction result.",
    )
    _add_input_args(prev)
    prev.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="Show slide content.",
    )
    prev.set_defaults(func=cmd_preview)

    # ---- validate ----
    val = subparsers.add_parser(
        "validate",
        help="Validate an existing PPTX/PDF against its extraction result.",
    )
    _add_input_args(val)
    val.add_argument(
        "--file",
        required=True,
        help="Path to the PPTX or PDF file to validate.",
    )
    val.set_defaults(func=cmd_validate)

    return parser


def _add_input_args(parser):
    """Add --input / --no-source-image args to a subparser."""
    parser.add_argument(
        "-i", "--input",
        required=True,
        help="Extraction result file (.json or .yaml).",
    )
    parser.add_argument(
        "--no-source-image",
        dest="no_source_image",
        action="store_true",
        default=False,
        help="Leave the whiteboard photo off the title page.",
    )


def _add_option_args(parser):
    """Add export option args to a subparser."""
    opts = parser.add_argument_group("export options")
    opts.add_argument(
        "--options",
        help="YAML/JSON file with export options.",
    )
    opts.add_argument(
        "--template",
        help="Template name used in the filename (default: ai-generated).",
    )
    opts.add_argument(
        "--theme",
        choices=["light", "dark", "colorful", "monochrome"],
        help="Color theme (default: light).",
    )
    opts.add_argument(
        "--high-contrast",
        dest="high_contrast",
        action="store_true",
        default=False,
        help="Use high-contrast black/white colors.",
    )
    opts.add_argument(
        "--no-accessibility",
        dest="no_accessibility",
        action="store_true",
        default=False,
        help="Skip alt text, metadata and contrast enforcement.",
    )


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv=None):
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
