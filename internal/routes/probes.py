"""Kubernetes probe endpoints.

Mounted at root level, outside /api/v1, so ingress never exposes them.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from common.core.config import settings
from common.core.exceptions import ConfigurationError

router = APIRouter(tags=["internal"])


@router.get("/healthz")
async def healthz():
    """Liveness probe - is the process alive?"""
    return {"status": "ok"}


@router.get("/readyz")
async def readyz():
    """Readiness probe - billing secrets present and plan prices well-formed."""
    try:
        settings.ensure_billing_configured()
    except ConfigurationError as e:
        return JSONResponse(status_code=503, content={"status": "unready", "detail": str(e)})
    return {"status": "ok"}
