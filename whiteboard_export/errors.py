"""Error taxonomy for the export pipeline."""


class ExportError(Exception):
    """Base class for every failure reported by an export call."""


class ValidationError(ExportError):
    """Extracted content is missing or too short to export."""


class EncodingError(ExportError):
    """A document encoder could not produce any output."""


class UpstreamError(ExportError):
    """The extraction client failed before the pipeline started."""
