"""
Request models for the key-value API
"""

from typing import Any, Dict, Optional

from .base import BaseModel


class PutValueRequest(BaseModel):
    """Body of PUT /kv/{key}.

    @property value - Any JSON document; strings holding encoded JSON are unwrapped.
    """

    value: Any = None


class StateBatchRequest(BaseModel):
    """Body of POST /state.

    @property data - Mapping of key to document, written in one transaction.
    """

    data: Optional[Dict[str, Any]] = None
