"""
FastAPI Dependencies — Shared singletons injected via Depends().
"""

from __future__ import annotations

from functools import lru_cache

from pitfall.audit.logger import AuditLogger
from pitfall.config import settings
from pitfall.engine.pipeline import Analyzer


@lru_cache
def get_analyzer() -> Analyzer:
    """Shared analyzer singleton; the suppression list is loaded once here."""
    return Analyzer.from_settings(settings)


@lru_cache
def get_audit_logger() -> AuditLogger:
    """Shared audit logger singleton."""
    return AuditLogger()
