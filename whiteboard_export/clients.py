"""Extraction client interface.

The export core never calls the AI recognition service itself; it consumes
whatever an :class:`ExtractionClient` returns.  Concrete clients receive
their configuration (endpoint, API key, model) through the constructor.
"""

from pathlib import Path
from typing import Any, Mapping, Protocol, runtime_checkable

from whiteboard_export.schema.loader import load_extraction
from whiteboard_export.schema.models import ExtractionResult


@runtime_checkable
class ExtractionClient(Protocol):
    """Anything that turns an image into an extraction result."""

    def extract(self, image: bytes) -> ExtractionResult | Mapping[str, Any]:
        ...


class FileExtractionClient:
    """Replays an extraction result saved as YAML or JSON.

    The image argument is ignored; the saved result is returned as-is.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def extract(self, image: bytes | None = None) -> ExtractionResult:
        return load_extraction(self.path)
