"""
Key-value command handlers
Single-document read, write and delete on the remote store
"""

import sqlite3
from typing import Any, Dict, Union

from fastapi.responses import JSONResponse

from pimx.core.db import get_db
from pimx.core.json_codec import InvalidDocumentError, decode_stored, encode_value, normalize_value
from pimx.core.logger import get_logger
from pimx.models.requests import PutValueRequest

from . import api_handler

logger = get_logger(__name__)


@api_handler(
    method="GET",
    path="/kv/{key:path}",
    tags=["kv"],
    summary="Get a stored value",
    description="Return the document stored under a key with its last update time",
)
async def get_kv(key: str) -> Union[Dict[str, Any], JSONResponse]:
    """Get a stored value

    @param key - Storage key
    @returns {key, value, updatedAt}, or 404 {error: "not-found"}
    """
    row = get_db().get_kv(key)
    if row is None:
        return JSONResponse(status_code=404, content={"error": "not-found"})

    return {
        "key": row["key"],
        "value": decode_stored(row["value"]),
        "updatedAt": row["updated_at"],
    }


@api_handler(
    body=PutValueRequest,
    method="PUT",
    path="/kv/{key:path}",
    tags=["kv"],
    summary="Store a value",
    description="Normalize and upsert a document, overwriting any previous value",
)
async def put_kv(key: str, body: PutValueRequest) -> Union[Dict[str, Any], JSONResponse]:
    """Store a value

    @param key - Storage key
    @param body - {value}
    @returns {ok: true}, or 400 {error: "invalid-json"}
    """
    try:
        get_db().upsert_kv(key, encode_value(normalize_value(body.value)))
        return {"ok": True}
    except (InvalidDocumentError, sqlite3.Error) as e:
        logger.error(f"Failed to upsert kv {key}: {e}", exc_info=True)
        return JSONResponse(status_code=400, content={"error": "invalid-json"})


@api_handler(
    method="DELETE",
    path="/kv/{key:path}",
    tags=["kv"],
    summary="Delete a value",
    description="Delete a key; deleting a missing key also succeeds",
)
async def delete_kv(key: str) -> Dict[str, Any]:
    """Delete a value

    @param key - Storage key
    @returns {ok: true}
    """
    get_db().delete_kv(key)
    return {"ok": True}
