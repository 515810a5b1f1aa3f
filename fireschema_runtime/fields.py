from typing import Any, List

from google.cloud.firestore_v1.field_path import FieldPath

from .constraints import Filter, OrderBy
from .enums import FirestoreOperators, OrderByDirection


class QueryField:
    """
    Named field handle whose comparison operators build query constraints.

    Examples
    --------
    >>> age = QueryField("age")
    >>> age >= 18
    Filter(field_path='age', op=<FirestoreOperators.GTE: '>='>, value=18)
    >>> QueryField("profile.city").desc()
    OrderBy(field_path='profile.city', direction=<OrderByDirection.DESCENDING: 'DESCENDING'>)

    The results are plain :class:`~.constraints.Filter` / :class:`~.constraints.OrderBy`
    values and can be handed to ``QueryBuilder.where`` / ``QueryBuilder.order_by``.
    """

    def __init__(self, field_path: str):
        self.field_path = field_path

    @classmethod
    def document_id(cls) -> "QueryField":
        """Handle for the document ID pseudo-field (``__name__``)."""
        return cls(FieldPath.document_id())

    # ------------------------------------------------------------------ #
    # Convenience dunder methods                                         #
    # ------------------------------------------------------------------ #

    def __str__(self) -> str:          # noqa: DunderStr
        return self.field_path

    __repr__ = __str__

    def __hash__(self) -> int:         # noqa: DunderHash
        return hash(self.field_path)

    # ------------------------------------------------------------------ #
    # Comparison operators build Filter constraints                      #
    # ------------------------------------------------------------------ #

    def _filter(self, op: FirestoreOperators, value: Any) -> Filter:
        return Filter(field_path=self.field_path, op=op, value=value)

    def __eq__(self, other):           # type: ignore[override]
        return self._filter(FirestoreOperators.EQ, other)

    def __ne__(self, other):           # type: ignore[override]
        return self._filter(FirestoreOperators.NE, other)

    def __lt__(self, other):
        return self._filter(FirestoreOperators.LT, other)

    def __le__(self, other):
        return self._filter(FirestoreOperators.LTE, other)

    def __gt__(self, other):
        return self._filter(FirestoreOperators.GT, other)

    def __ge__(self, other):
        return self._filter(FirestoreOperators.GTE, other)

    # ------------------------------------------------------------------ #
    # Firestore-specific helpers                                         #
    # ------------------------------------------------------------------ #

    def in_(self, values: List[Any]) -> Filter:
        return self._filter(FirestoreOperators.IN, values)

    def not_in_(self, values: List[Any]) -> Filter:
        return self._filter(FirestoreOperators.NOT_IN, values)

    def array_contains(self, value: Any) -> Filter:
        return self._filter(FirestoreOperators.ARRAY_CONTAINS, value)

    def array_contains_any(self, values: List[Any]) -> Filter:
        return self._filter(FirestoreOperators.ARRAY_CONTAINS_ANY, values)

    # ------------------------------------------------------------------ #
    # Ordering                                                           #
    # ------------------------------------------------------------------ #

    def asc(self) -> OrderBy:
        return OrderBy(field_path=self.field_path, direction=OrderByDirection.ASCENDING)

    def desc(self) -> OrderBy:
        return OrderBy(field_path=self.field_path, direction=OrderByDirection.DESCENDING)
