"""
Query constraint values.

Each class describes one restriction on a query and nothing else; turning
them into Firestore calls is the job of :class:`~.query_builder.QueryBuilder`.
"""
from typing import Any, Tuple, Union

from .enums import CursorKind, FirestoreOperators, OrderByDirection
from .pydantic_compat import FrozenModel


class Filter(FrozenModel):
    """``where(field_path, op, value)``"""

    field_path: str
    op: FirestoreOperators
    value: Any


class OrderBy(FrozenModel):
    field_path: str
    direction: OrderByDirection = OrderByDirection.ASCENDING


class Limit(FrozenModel):
    """First ``count`` results, or the last ``count`` when ``from_start`` is False."""

    count: int
    from_start: bool = True


class Cursor(FrozenModel):
    """
    Pagination boundary.

    ``anchor`` is either a previously fetched ``DocumentSnapshot`` or the
    value of the first ordered field; ``extra_values`` carries the values of
    the following order-by fields when the ordering is composite.
    """

    kind: CursorKind
    anchor: Any
    extra_values: Tuple[Any, ...] = ()


Constraint = Union[Filter, OrderBy, Limit, Cursor]

__all__ = ["Filter", "OrderBy", "Limit", "Cursor", "Constraint"]
