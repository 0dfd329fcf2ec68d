"""
Analysis errors. Each aborts the current unit only, never the batch.
"""

from __future__ import annotations


class PitfallError(Exception):
    """Base class for unit-level analysis failures."""

    kind = "error"


class MalformedSourceModel(PitfallError):
    """The parser output violates a structural invariant (dangling reference, missing field)."""

    kind = "malformed-source-model"


class ResourceExceeded(PitfallError):
    """The per-unit budget imposed by the host was exceeded."""

    kind = "resource-exceeded"
