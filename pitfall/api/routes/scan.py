"""
Scan Route — POST /scan

Accepts parser output for one or more contract units and returns the
aggregated findings per unit. Malformed units come back as failed units
inside a normal response, never as a server error.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from starlette.concurrency import run_in_threadpool

from pitfall.api.dependencies import get_analyzer, get_audit_logger
from pitfall.audit.logger import AuditLogger
from pitfall.config import settings
from pitfall.core.source_loader import split_document
from pitfall.engine.pipeline import Analyzer
from pitfall.models.scan_models import ScanRequest, ScanResponse

logger = logging.getLogger("pitfall.api.scan")

router = APIRouter()


@router.post("/scan", response_model=ScanResponse, response_model_by_alias=True)
async def scan(
    request: ScanRequest,
    analyzer: Analyzer = Depends(get_analyzer),
    audit: AuditLogger = Depends(get_audit_logger),
):
    """Analyze the submitted units."""
    if not request.units:
        raise HTTPException(status_code=400, detail="Request contains no units")

    if len(request.units) > settings.max_units_per_request:
        raise HTTPException(
            status_code=400,
            detail=f"Request exceeds maximum of {settings.max_units_per_request} units",
        )

    scan_id = str(uuid.uuid4())[:8]
    inputs = split_document(request.units, source="request")
    logger.info(f"[{scan_id}] Scanning {len(inputs)} units")

    # Analysis is synchronous CPU work; keep it off the event loop
    report = await run_in_threadpool(analyzer.analyze_batch, inputs)

    audit.log(audit.entry_for(scan_id, len(inputs), report))

    return ScanResponse(scan_id=scan_id, report=report, exit_code=report.exit_code())
