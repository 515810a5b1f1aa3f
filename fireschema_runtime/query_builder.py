import copy
import logging
from typing import Any, AsyncGenerator, Dict, List, NamedTuple, Optional, Tuple, Union

from google.cloud.firestore_v1.base_document import DocumentSnapshot
from google.cloud.firestore_v1.base_query import FieldFilter

from .constraints import Constraint, Cursor, Filter, Limit, OrderBy
from .enums import CursorKind, FirestoreOperators, OrderByDirection
from .exceptions import UnsupportedConstraintError
from .fields import QueryField

# Field paths may be given as plain strings or QueryField handles
FieldType = Union[str, QueryField]

logger = logging.getLogger(__name__)


class NativeConstraint(NamedTuple):
    """One SDK query call: ``getattr(query, method)(*args, **kwargs)``."""

    method: str
    args: Tuple[Any, ...] = ()
    kwargs: Optional[Dict[str, Any]] = None

    def apply(self, query):
        return getattr(query, self.method)(*self.args, **(self.kwargs or {}))


class QueryBuilder:
    """
    Immutable accumulator of query constraints over one collection.

    Every chaining method returns a new builder; the one it was called on
    keeps its constraints::

        adults = users.query().where("age", ">=", 18)
        page = adults.order_by("age").limit(20)
        rows = await page.fetch_all()

    Nothing is sent to Firestore until ``fetch_snapshot``, ``fetch_all``,
    ``fetch_one``, ``stream`` or ``count`` is awaited, and each of those
    compiles the query again from scratch.
    """

    def __init__(self, collection_ref):
        self._collection_ref = collection_ref
        self._constraints: Tuple[Constraint, ...] = ()

    @property
    def collection_ref(self):
        return self._collection_ref

    @property
    def constraints(self) -> Tuple[Constraint, ...]:
        return self._constraints

    # --------------------------------------------------------------------------
    # Accumulation
    # --------------------------------------------------------------------------
    def _add_constraint(self, constraint: Constraint) -> "QueryBuilder":
        builder = copy.copy(self)
        builder._constraints = self._constraints + (constraint,)
        return builder

    def where(
        self,
        field_path: Union[FieldType, Filter],
        op: Optional[Union[str, FirestoreOperators]] = None,
        value: Any = None,
    ) -> "QueryBuilder":
        """
        Add a filter.  Accepts ``(field_path, op, value)`` or a ready
        :class:`Filter`, e.g. ``where(QueryField("age") >= 18)``.
        """
        if isinstance(field_path, Filter):
            if op is not None or value is not None:
                raise TypeError("where() takes no op or value when given a Filter")
            return self._add_constraint(field_path)
        return self._add_constraint(Filter(field_path=str(field_path), op=op, value=value))

    def order_by(
        self,
        field_path: Union[FieldType, OrderBy],
        direction: Union[str, OrderByDirection] = OrderByDirection.ASCENDING,
    ) -> "QueryBuilder":
        if isinstance(field_path, OrderBy):
            return self._add_constraint(field_path)
        return self._add_constraint(OrderBy(field_path=str(field_path), direction=direction))

    def limit(self, count: int) -> "QueryBuilder":
        return self._add_constraint(Limit(count=count))

    def limit_to_last(self, count: int) -> "QueryBuilder":
        return self._add_constraint(Limit(count=count, from_start=False))

    def _cursor(self, kind: CursorKind, anchor: Any, extra_values: Tuple[Any, ...]) -> "QueryBuilder":
        return self._add_constraint(Cursor(kind=kind, anchor=anchor, extra_values=extra_values))

    def start_at(self, snapshot_or_value: Any, *field_values: Any) -> "QueryBuilder":
        return self._cursor(CursorKind.START_AT, snapshot_or_value, field_values)

    def start_after(self, snapshot_or_value: Any, *field_values: Any) -> "QueryBuilder":
        return self._cursor(CursorKind.START_AFTER, snapshot_or_value, field_values)

    def end_at(self, snapshot_or_value: Any, *field_values: Any) -> "QueryBuilder":
        return self._cursor(CursorKind.END_AT, snapshot_or_value, field_values)

    def end_before(self, snapshot_or_value: Any, *field_values: Any) -> "QueryBuilder":
        return self._cursor(CursorKind.END_BEFORE, snapshot_or_value, field_values)

    # --------------------------------------------------------------------------
    # Compilation
    # --------------------------------------------------------------------------
    @staticmethod
    def _translate(constraint: Constraint) -> NativeConstraint:
        if isinstance(constraint, Filter):
            return NativeConstraint(
                "where",
                kwargs={
                    "filter": FieldFilter(
                        constraint.field_path, constraint.op.value, constraint.value
                    )
                },
            )
        elif isinstance(constraint, OrderBy):
            return NativeConstraint(
                "order_by",
                (constraint.field_path,),
                {"direction": constraint.direction.value},
            )
        elif isinstance(constraint, Limit):
            method = "limit" if constraint.from_start else "limit_to_last"
            return NativeConstraint(method, (constraint.count,))
        elif isinstance(constraint, Cursor):
            # A snapshot is passed through; field values go as one ordered list
            if isinstance(constraint.anchor, DocumentSnapshot) and not constraint.extra_values:
                cursor_arg = constraint.anchor
            else:
                cursor_arg = [constraint.anchor, *constraint.extra_values]
            return NativeConstraint(constraint.kind.value, (cursor_arg,))
        raise UnsupportedConstraintError(constraint)

    def native_constraints(self) -> List[NativeConstraint]:
        """Accumulated constraints as SDK calls, in the order they were added."""
        return [self._translate(constraint) for constraint in self._constraints]

    def build_query(self):
        """
        Apply every native constraint, in order, to the collection reference
        and return the resulting ``AsyncQuery`` (or the bare collection
        reference when there are no constraints).
        """
        native_constraints = self.native_constraints()
        query = self._collection_ref
        for native in native_constraints:
            query = native.apply(query)
        logger.debug(
            f"Build Query: {getattr(self._collection_ref, 'id', self._collection_ref)} "
            f"constraints={[native.method for native in native_constraints]}"
        )
        return query

    # --------------------------------------------------------------------------
    # Execution
    # --------------------------------------------------------------------------
    async def fetch_snapshot(self) -> List[DocumentSnapshot]:
        """Run the query and return Firestore's document snapshots untouched."""
        query = self.build_query()
        return await query.get()

    async def fetch_all(self) -> List[Dict[str, Any]]:
        """Run the query and return the data of every matched document."""
        snapshots = await self.fetch_snapshot()
        return [doc.to_dict() for doc in snapshots]

    async def fetch_one(self) -> Optional[Dict[str, Any]]:
        """Data of the first matching document, or ``None``."""
        results = await self.limit(1).fetch_all()
        if results:
            return results[0]
        return None

    async def stream(self) -> AsyncGenerator[Dict[str, Any], None]:
        """Yield matched documents' data as Firestore streams them."""
        query = self.build_query()
        async for doc in query.stream():
            yield doc.to_dict()

    async def count(self) -> int:
        """
        Number of matching documents.  Uses the aggregation API and, if the
        installed SDK has none, counts an empty projection instead.
        """
        query = self.build_query()
        try:
            count_snapshot = await query.count().get()
            return count_snapshot[0][0].value
        except AttributeError:
            logger.warning("Firestore: Performing count by fetching all items with empty select")
            docs = await query.select([]).get()
            return len(docs)
