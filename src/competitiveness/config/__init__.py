"""Reading and writing config documents as JSON or YAML text."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from ..core.model import CompetitivenessConfig

YAML_SUFFIXES = (".yaml", ".yml")


def parse_document(text: str, fmt: str = "json") -> Any:
    """Parse document text; syntax errors surface as ``ValueError``."""
    if fmt not in ("json", "yaml"):
        raise ValueError(f"Unsupported document format: {fmt!r}")
    try:
        if fmt == "yaml":
            return yaml.safe_load(text)
        return json.loads(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML document: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON document: {exc}") from exc
    except RecursionError as exc:
        raise ValueError(f"Document nested too deeply to parse as {fmt.upper()}") from exc


def document_format(path: str | Path) -> str:
    return "yaml" if Path(path).suffix.lower() in YAML_SUFFIXES else "json"


def load_document(path: str | Path) -> Any:
    """Load a config document, choosing the parser from the file suffix."""
    path = Path(path)
    with path.open("r", encoding="utf-8") as handle:
        return parse_document(handle.read(), document_format(path))


def serialize_config(config: CompetitivenessConfig, fmt: str = "json") -> str:
    """Render a typed config back into document text.

    Parsing the output and validating it again yields an equal config.
    """
    document = config.to_document()
    if fmt == "yaml":
        return yaml.safe_dump(document, allow_unicode=True, sort_keys=False)
    return json.dumps(document, ensure_ascii=False, indent=2)


__all__ = ["document_format", "load_document", "parse_document", "serialize_config"]
