"""
Source Loader — Adapter from the external parser's JSON output to ContractUnit.

A document holds one unit object, a list of unit objects, or an object with a
"units" list. Problems are attached to the affected input rather than raised,
so one bad file or unit never stops a batch.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from pitfall.core.errors import MalformedSourceModel
from pitfall.models.source_models import ContractUnit

logger = logging.getLogger("pitfall.loader")


@dataclass(frozen=True)
class SourceInput:
    """One unit's raw parser output, or the reason it could not be read."""

    source: str
    payload: Any = None
    error: str | None = None

    @property
    def display_name(self) -> str:
        if isinstance(self.payload, dict) and isinstance(self.payload.get("name"), str):
            return self.payload["name"]
        return self.source or "<unknown>"


def parse_unit(payload: Any) -> ContractUnit:
    """
    Validate one unit payload into an immutable ContractUnit.

    Raises:
        MalformedSourceModel: if required fields are missing or malformed.
    """
    if isinstance(payload, ContractUnit):
        return payload
    if not isinstance(payload, dict):
        raise MalformedSourceModel(
            f"Expected a contract unit object, got {type(payload).__name__}"
        )
    try:
        return ContractUnit.model_validate(payload)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise MalformedSourceModel(f"Invalid source model: {problems}") from e


def split_document(document: Any, source: str = "") -> list[SourceInput]:
    """Split a decoded document into per-unit inputs."""
    if isinstance(document, dict) and "units" in document:
        document = document["units"]
    if isinstance(document, list):
        if len(document) == 1:
            return [SourceInput(source=source, payload=document[0])]
        return [
            SourceInput(source=f"{source}[{i}]" if source else f"[{i}]", payload=item)
            for i, item in enumerate(document)
        ]
    return [SourceInput(source=source, payload=document)]


def read_source_file(path: str | Path) -> list[SourceInput]:
    """Read a parser output file into per-unit inputs."""
    source = str(path)
    try:
        with open(path, encoding="utf-8") as f:
            document = json.load(f)
    except OSError as e:
        logger.error(f"Cannot read {source}: {e}")
        return [SourceInput(source=source, error=f"Cannot read file: {e}")]
    except UnicodeDecodeError as e:
        logger.error(f"Invalid encoding in {source}: {e}")
        return [SourceInput(source=source, error=f"Invalid encoding: {e}")]
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {source}: {e}")
        return [SourceInput(source=source, error=f"Invalid JSON: {e}")]

    return split_document(document, source)
