"""
Field-level write operations held by an :class:`~.update_builder.UpdateBuilder`.

Only ``LiteralValue`` carries a client value as-is; the rest are turned into
Firestore sentinels when the update is committed.
"""
from typing import Any, Tuple, Union

from pydantic import StrictFloat, StrictInt

from .pydantic_compat import FrozenModel


class LiteralValue(FrozenModel):
    value: Any


class Increment(FrozenModel):
    delta: Union[StrictInt, StrictFloat]


class ArrayUnion(FrozenModel):
    values: Tuple[Any, ...] = ()


class ArrayRemove(FrozenModel):
    values: Tuple[Any, ...] = ()


class DeleteField(FrozenModel):
    pass


class ServerTimestamp(FrozenModel):
    pass


Operation = Union[LiteralValue, Increment, ArrayUnion, ArrayRemove, DeleteField, ServerTimestamp]

__all__ = [
    "LiteralValue",
    "Increment",
    "ArrayUnion",
    "ArrayRemove",
    "DeleteField",
    "ServerTimestamp",
    "Operation",
]
