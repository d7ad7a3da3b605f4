"""Config loader - YAML serialization for export options and extraction results.

Provides round-trip save/load so export settings can be kept as reviewable
configuration files and extraction results captured from the AI service can
be replayed through the pipeline.  JSON files load through the same path,
since JSON is a subset of YAML.
"""

from pathlib import Path

import yaml

from .models import ExportOptions, ExtractionResult


def _read(path: str | Path) -> dict:
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level, "
                         f"got {type(data).__name__}")
    return data


def _write(data: dict, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False,
                       allow_unicode=True, width=120)


def save_options(options: ExportOptions, path: str | Path) -> None:
    """Serialize ExportOptions to a YAML file."""
    _write(options.to_dict(), path)


def load_options(path: str | Path) -> ExportOptions:
    """Deserialize ExportOptions from a YAML or JSON file."""
    data = _read(path)
    # Allow options nested under an "export" key alongside other settings
    if isinstance(data.get("export"), dict):
        data = data["export"]
    return ExportOptions.from_dict(data)


def save_extraction(extraction: ExtractionResult, path: str | Path) -> None:
    """Serialize an ExtractionResult (images as data URIs) to YAML."""
    _write(extraction.to_dict(), path)


def load_extraction(path: str | Path) -> ExtractionResult:
    """Deserialize an ExtractionResult from a YAML or JSON file."""
    return ExtractionResult.from_dict(_read(path))
