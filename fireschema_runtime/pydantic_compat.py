import logging
from typing import Any

import pydantic
from packaging.version import parse
from pydantic.version import VERSION

logger = logging.getLogger(__name__)

version_parsed = parse(str(VERSION))

if version_parsed.major >= 2:
    PydanticVersion = 2
else:
    PydanticVersion = 1

logger.debug(f"Running on Pydantic {VERSION} (compat mode V{PydanticVersion})")


BaseModel: type = pydantic.BaseModel
Field: type = pydantic.Field


# Pydantic V1: class Config; Pydantic V2: model_config = ConfigDict(...)
if PydanticVersion >= 2:

    class FrozenModel(BaseModel):
        """Immutable value object; assignment after construction raises."""

        model_config = pydantic.ConfigDict(frozen=True, arbitrary_types_allowed=True)

else:

    class FrozenModel(BaseModel):  # type: ignore[no-redef]
        """Immutable value object; assignment after construction raises."""

        class Config:
            frozen = True
            arbitrary_types_allowed = True


def get_fields_set(model: Any) -> set:
    """Names of the fields that were explicitly given at construction."""
    if PydanticVersion == 1:
        return set(getattr(model, "__fields_set__", set()))
    return set(getattr(model, "model_fields_set", set()))


def model_dump_compat(model: Any, **kwargs) -> dict:
    """``model_dump()`` on V2, ``dict()`` on V1, same keyword arguments."""
    if PydanticVersion == 1:
        return model.dict(**kwargs)
    return model.model_dump(**kwargs)


def rebuild_model(cls: type) -> None:
    """Resolve forward references on recursive models."""
    if PydanticVersion == 1:
        cls.update_forward_refs()
    else:
        cls.model_rebuild()


__all__ = [
    "BaseModel",
    "Field",
    "FrozenModel",
    "get_fields_set",
    "model_dump_compat",
    "rebuild_model",
    "PydanticVersion",
]
