"""
Bulk state handlers
Multi-key read used for hydration and single-transaction batch write
"""

import sqlite3
from typing import Any, Dict, Optional, Union

from fastapi.responses import JSONResponse

from pimx.core.db import get_db
from pimx.core.json_codec import InvalidDocumentError, decode_stored, encode_value, normalize_value
from pimx.core.logger import get_logger
from pimx.models.requests import StateBatchRequest

from . import api_handler

logger = get_logger(__name__)


@api_handler(
    method="GET",
    path="/state",
    tags=["state"],
    summary="Get several values",
    description="Return {data: {key: value}} for a comma-separated key list, or for every key when omitted",
)
async def get_state(keys: Optional[str] = None) -> Dict[str, Any]:
    """Get several values

    @param keys - Comma-separated key list
    @returns {data: {key: value}}; keys that are not stored are omitted
    """
    if keys:
        requested = [k.strip() for k in keys.split(",") if k.strip()]
        if not requested:
            return {"data": {}}
        rows = get_db().get_state(requested)
    else:
        rows = get_db().get_state()

    return {"data": {row["key"]: decode_stored(row["value"]) for row in rows}}


@api_handler(
    body=StateBatchRequest,
    method="POST",
    path="/state",
    tags=["state"],
    summary="Store several values",
    description="Normalize and upsert every entry of {data} in one transaction",
)
async def post_state(body: StateBatchRequest) -> Union[Dict[str, Any], JSONResponse]:
    """Store several values

    @param body - {data: {key: value}}
    @returns {ok: true, saved: n}, or 400 {error: "invalid-json"} with nothing written
    """
    payload = body.data or {}
    if not payload:
        return {"ok": True, "saved": 0}

    try:
        entries = [(key, encode_value(normalize_value(value))) for key, value in payload.items()]
        saved = get_db().upsert_many(entries)
        return {"ok": True, "saved": saved}
    except (InvalidDocumentError, sqlite3.Error) as e:
        logger.error(f"Failed to upsert bulk state: {e}", exc_info=True)
        return JSONResponse(status_code=400, content={"error": "invalid-json"})
