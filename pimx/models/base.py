"""
Shared pydantic bases

Wire and storage documents use camelCase keys; Python code uses snake_case.
"""

from typing import Any, Dict, Iterable, List, Type, TypeVar

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from pimx.core.logger import get_logger

logger = get_logger(__name__)

D = TypeVar("D", bound="Document")


class BaseModel(PydanticBaseModel):
    """Strict camelCase model used for request bodies"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def model_dump(self, **kwargs):
        # Dump with camelCase keys unless told otherwise
        kwargs.setdefault("by_alias", True)
        return super().model_dump(**kwargs)


class Document(BaseModel):
    """Stored entity inside a cached JSON document.

    Unknown keys written by other clients are kept and written back unchanged.
    """

    model_config = ConfigDict(
        **{**BaseModel.model_config, "extra": "allow", "use_enum_values": True}
    )

    def to_document(self) -> Dict[str, Any]:
        """Plain dict for storage, without unset optional fields"""
        return self.model_dump(exclude_none=True)


def _fits(model: Type[Document], entry: Any) -> bool:
    try:
        model.model_validate(entry)
    except ValidationError:
        return False
    return True


def load_list(model: Type[D], raw: Any) -> List[D]:
    """Validate a stored list, skipping entries that do not fit the model"""
    if not isinstance(raw, list):
        return []
    items: List[D] = []
    for entry in raw:
        try:
            items.append(model.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Skipping invalid {model.__name__} entry: {e.error_count()} errors")
    return items


def invalid_entries(model: Type[Document], raw: Any) -> List[Any]:
    """Raw entries of a stored list that load_list would skip"""
    if not isinstance(raw, list):
        return []
    return [entry for entry in raw if not _fits(model, entry)]


def dump_list(items: Iterable[Document], keep: Iterable[Any] = ()) -> List[Dict[str, Any]]:
    """Documents for storage; `keep` carries unreadable raw entries through unchanged"""
    return [item.to_document() for item in items] + list(keep)
