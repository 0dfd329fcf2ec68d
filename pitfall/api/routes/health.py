"""
Health Check Route — GET /health
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from pitfall.api.dependencies import get_analyzer
from pitfall.config import VERSION
from pitfall.engine.pipeline import Analyzer

router = APIRouter()


@router.get("/health")
async def health(analyzer: Analyzer = Depends(get_analyzer)):
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": VERSION,
        "rules": len(analyzer.engine.rules),
    }
