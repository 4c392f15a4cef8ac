# app/metadata_routes.py
"""
Per-token metadata endpoint consumed by marketplaces and wallets.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from chain.chain_reader import MAX_UINT256
from config import METADATA_CACHE_SECONDS
from context import ServiceContext, get_context
from resolver import MetadataResolutionError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["metadata"])

_TOKEN_ID_RE = re.compile(r"^[0-9]+$")

# 2**256 - 1 has 78 decimal digits; longer ids can never be minted
MAX_TOKEN_ID_DIGITS = len(str(MAX_UINT256))


def parse_token_id(raw: str) -> Optional[int]:
    """Decimal token id, or None when it is beyond the uint256 range."""
    if not _TOKEN_ID_RE.match(raw):
        raise HTTPException(400, "tokenId must be a non-negative decimal integer")
    digits = raw.lstrip("0") or "0"
    if len(digits) > MAX_TOKEN_ID_DIGITS:
        return None
    return int(digits)


def _metadata_response(doc):
    return JSONResponse(
        content=doc.to_response(),
        headers={"Cache-Control": f"public, max-age={METADATA_CACHE_SECONDS}"},
    )


@router.get("/metadata/{token_id}")
async def token_metadata(token_id: str, ctx: ServiceContext = Depends(get_context)):
    """
    Point-in-time metadata document for one token.
    Unminted tokens get a minimal document with a single Status attribute.
    """
    tid = parse_token_id(token_id)

    if ctx.resolver is None:
        raise HTTPException(503, "Token contract not configured")

    if tid is None:
        digits = token_id.lstrip("0")
        logger.info("token id with %d digits is out of range, not minted", len(digits))
        return _metadata_response(ctx.resolver.not_minted_document(ctx.resolver.defaults_for(digits)))

    try:
        doc = await ctx.resolver.resolve(tid)
    except MetadataResolutionError as e:
        logger.exception("Metadata resolution failed for token %d (%s)", tid, e.stage.value)
        raise HTTPException(500, "Failed to resolve token metadata")
    except Exception:
        logger.exception("Unexpected error resolving token %d", tid)
        raise HTTPException(500, "Failed to resolve token metadata")

    return _metadata_response(doc)
