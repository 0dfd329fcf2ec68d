"""
Suppression List — Rule id and location patterns for findings to ignore.

Each entry is `<rule-pattern> <location-pattern>` with shell-style globs,
matched against a finding's rule id and rendered location, e.g.

    raw-call-without-gas   withdraw#*
    event-naming-collision event:*
    *                      legacyPayout

Blank lines and lines starting with `#` are ignored in suppression files.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable

from pitfall.models.finding_models import Finding

logger = logging.getLogger("pitfall.suppression")


@dataclass(frozen=True)
class SuppressionEntry:
    rule_pattern: str
    location_pattern: str = "*"

    def matches(self, finding: Finding) -> bool:
        return fnmatchcase(finding.rule_id, self.rule_pattern) and fnmatchcase(
            finding.location.render(), self.location_pattern
        )

    @classmethod
    def parse(cls, text: str) -> "SuppressionEntry":
        parts = text.split()
        if not parts or len(parts) > 2:
            raise ValueError(f"Invalid suppression entry: {text!r}")
        return cls(*parts)


class SuppressionList:
    """Loaded once at startup; applied by the aggregator before sorting."""

    def __init__(self, entries: Iterable[SuppressionEntry] = ()) -> None:
        self.entries: tuple[SuppressionEntry, ...] = tuple(entries)

    def __len__(self) -> int:
        return len(self.entries)

    def is_suppressed(self, finding: Finding) -> bool:
        return any(entry.matches(finding) for entry in self.entries)

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "SuppressionList":
        entries: list[SuppressionEntry] = []
        for raw in lines:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            entries.append(SuppressionEntry.parse(line))
        return cls(entries)

    @classmethod
    def from_file(cls, path: str | Path) -> "SuppressionList":
        with open(path, encoding="utf-8") as f:
            suppressions = cls.from_lines(f)
        logger.info(f"Loaded {len(suppressions)} suppression entries from {path}")
        return suppressions

    @classmethod
    def from_settings(cls, settings) -> "SuppressionList":
        """Merge the suppression file (if any) with inline entries."""
        entries: list[SuppressionEntry] = []
        if settings.suppression_file:
            entries.extend(cls.from_file(settings.suppression_file).entries)
        entries.extend(cls.from_lines(settings.suppressions).entries)
        return cls(entries)
