"""
System handlers
"""

from typing import Any, Dict

from . import api_handler


@api_handler(
    method="GET",
    path="/ping",
    tags=["system"],
    summary="Liveness probe",
)
async def ping() -> Dict[str, Any]:
    """Liveness probe

    @returns {ok: true}
    """
    return {"ok": True}
