"""
JSON value codec for the key-value store
Unwraps double-encoded documents sent by older clients and serializes values for storage
"""

import json
import re
from typing import Any

from pimx.core.logger import get_logger

logger = get_logger(__name__)

# A value stringified N times needs N parse passes; more than this is treated as text
MAX_UNWRAP_ATTEMPTS = 3

_LOOSE_OBJECTS = re.compile(r"}\s*,\s*{")


class InvalidDocumentError(ValueError):
    """Raised when a value cannot be stored as a JSON document"""


def _looks_like_json(text: str) -> bool:
    return (
        (text.startswith("{") and text.endswith("}"))
        or (text.startswith("[") and text.endswith("]"))
        or (text.startswith('"') and text.endswith('"'))
    )


def _parse_lenient(text: str) -> Any:
    """Parse text, retrying once with escaped quotes undone

    Loose comma-separated objects ("{..}, {..}") are wrapped into an array.

    Raises:
        ValueError: When neither attempt yields JSON
    """
    try:
        return json.loads(text)
    except ValueError:
        pass

    unescaped = text.replace('\\"', '"')
    if _LOOSE_OBJECTS.search(unescaped) and not unescaped.strip().startswith("["):
        return json.loads(f"[{unescaped}]")
    return json.loads(unescaped)


def normalize_value(raw: Any) -> Any:
    """
    Unwrap a value that may have been JSON-stringified one or more times

    Strings that look like JSON objects, arrays or quoted strings are parsed,
    at most MAX_UNWRAP_ATTEMPTS times. Anything else, and any string that
    fails to parse, is returned as it stands.

    Args:
        raw: Value received from a client

    Returns:
        The unwrapped value
    """
    value = raw
    for _ in range(MAX_UNWRAP_ATTEMPTS):
        if not isinstance(value, str):
            break
        trimmed = value.strip()
        if not _looks_like_json(trimmed):
            break
        try:
            value = _parse_lenient(trimmed)
        except ValueError:
            logger.debug("Value looks like JSON but does not parse, keeping text")
            break
    return value


def encode_value(value: Any) -> str:
    """
    Serialize a value to canonical JSON text

    Raises:
        InvalidDocumentError: Value is not representable as strict JSON
            (non-finite numbers, unsupported types, circular references)
    """
    try:
        return json.dumps(value, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise InvalidDocumentError(str(e)) from e


def decode_stored(text: str) -> Any:
    """Decode stored text, returning it unchanged when it is not JSON"""
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return text
