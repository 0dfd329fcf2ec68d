"""
Pitfall FastAPI Application.

  POST /scan   → analyze contract source models, return findings per unit
  GET  /health → {"status": "ok", ...}
"""

from __future__ import annotations

import logging

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from pitfall.api.routes.health import router as health_router
from pitfall.api.routes.scan import router as scan_router
from pitfall.config import VERSION

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("pitfall")

app = FastAPI(
    title="Pitfall",
    description="Static security-pattern checker for smart-contract source models",
    version=VERSION,
)

app.include_router(health_router)
app.include_router(scan_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in errors)
    logger.warning(f"Rejected {request.method} {request.url.path}: invalid fields {fields}")
    return JSONResponse(status_code=422, content={"detail": errors})


def run() -> None:
    """Serve the API with uvicorn using the configured host and port."""
    import uvicorn

    from pitfall.config import settings

    uvicorn.run(app, host=settings.host, port=settings.port)
