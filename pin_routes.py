# app/pin_routes.py
"""
Raw pinning endpoints: upload a file or a JSON object to IPFS via Pinata.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile

from context import ServiceContext, get_context
from models import PinResult
from pinning import PinningError, PinningNotConfigured

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pin", tags=["pinning"])


def _require_pinning(ctx: ServiceContext):
    if not ctx.pinning.configured:
        raise HTTPException(503, "Pinning service not configured")
    return ctx.pinning


@router.post("/file")
def pin_file(file: UploadFile = File(...), ctx: ServiceContext = Depends(get_context)) -> PinResult:
    pinning = _require_pinning(ctx)
    data = file.file.read()
    if not data:
        raise HTTPException(400, "Uploaded file is empty")

    filename = file.filename or "upload"
    try:
        return pinning.store_file(data, filename)
    except PinningNotConfigured:
        raise HTTPException(503, "Pinning service not configured")
    except PinningError:
        logger.exception("File pin failed: %s", filename)
        raise HTTPException(502, "Failed to pin file")


@router.post("/json")
def pin_json(
    content: Any = Body(...),
    name: Optional[str] = None,
    ctx: ServiceContext = Depends(get_context),
) -> PinResult:
    pinning = _require_pinning(ctx)
    if not isinstance(content, dict) or not content:
        raise HTTPException(400, "Body must be a non-empty JSON object")

    try:
        return pinning.store_json(content, name=name)
    except PinningNotConfigured:
        raise HTTPException(503, "Pinning service not configured")
    except PinningError:
        logger.exception("JSON pin failed: %s", name or "<unnamed>")
        raise HTTPException(502, "Failed to pin JSON")
