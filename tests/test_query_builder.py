import pytest
from unittest.mock import MagicMock, AsyncMock
from typing import Any, AsyncGenerator, List

from google.api_core.exceptions import FailedPrecondition
from google.cloud.firestore_v1.base_document import DocumentSnapshot
from google.cloud.firestore_v1.base_query import FieldFilter

from fireschema_runtime import (
    ConfigurationError,
    Cursor,
    CursorKind,
    Filter,
    FirestoreOperators,
    Limit,
    NativeConstraint,
    OrderBy,
    OrderByDirection,
    QueryBuilder,
    QueryField,
    UnsupportedConstraintError,
)


# -----------------------------------------------------------------------------
# Fixtures / helpers
# -----------------------------------------------------------------------------
CHAIN_METHODS = [
    "where",
    "order_by",
    "limit",
    "limit_to_last",
    "start_at",
    "start_after",
    "end_at",
    "end_before",
]


@pytest.fixture
def collection_ref():
    ref = MagicMock()
    ref.id = "users"
    return ref


@pytest.fixture
def chained_ref():
    """Collection mock whose query methods all return the mock itself."""
    ref = MagicMock()
    ref.id = "users"
    for name in CHAIN_METHODS:
        getattr(ref, name).return_value = ref
    return ref


@pytest.fixture
def query_builder(collection_ref):
    return QueryBuilder(collection_ref)


def make_doc(data):
    doc = MagicMock()
    doc.exists = True
    doc.to_dict.return_value = data
    return doc


async def mock_stream(docs: List[Any]) -> AsyncGenerator[Any, None]:
    for doc in docs:
        yield doc


# -----------------------------------------------------------------------------
# Accumulation
# -----------------------------------------------------------------------------
def test_initial_state(query_builder, collection_ref):
    assert query_builder.collection_ref is collection_ref
    assert query_builder.constraints == ()


def test_where_appends_filter(query_builder):
    result = query_builder.where("age", ">=", 18)

    assert len(result.constraints) == 1
    constraint = result.constraints[0]
    assert isinstance(constraint, Filter)
    assert constraint.field_path == "age"
    assert constraint.op is FirestoreOperators.GTE
    assert constraint.value == 18


def test_where_accepts_query_field_expression(query_builder):
    status = QueryField("status")
    result = query_builder.where(status.in_(["active", "trial"]))

    constraint = result.constraints[0]
    assert constraint.field_path == "status"
    assert constraint.op is FirestoreOperators.IN
    assert constraint.value == ["active", "trial"]


def test_where_accepts_query_field_as_path(query_builder):
    result = query_builder.where(QueryField("profile.city"), FirestoreOperators.EQ, "Lima")
    assert result.constraints[0].field_path == "profile.city"


def test_where_allows_none_value(query_builder):
    result = query_builder.where("deletedAt", "==", None)
    assert result.constraints[0].value is None


@pytest.mark.parametrize("extra", [("==", None), (None, 21), (">=", 21)])
def test_where_rejects_filter_with_extra_arguments(query_builder, extra):
    age_filter = QueryField("age") >= 18

    with pytest.raises(TypeError, match="Filter"):
        query_builder.where(age_filter, *extra)
    assert query_builder.constraints == ()


def test_order_by_defaults_to_ascending(query_builder):
    result = query_builder.order_by("name")
    constraint = result.constraints[0]
    assert isinstance(constraint, OrderBy)
    assert constraint.direction is OrderByDirection.ASCENDING


def test_order_by_descending_and_prebuilt(query_builder):
    result = query_builder.order_by("age", "DESCENDING").order_by(QueryField("name").asc())
    first, second = result.constraints
    assert (first.field_path, first.direction) == ("age", OrderByDirection.DESCENDING)
    assert (second.field_path, second.direction) == ("name", OrderByDirection.ASCENDING)


def test_limit_and_limit_to_last(query_builder):
    first = query_builder.limit(10).constraints[0]
    last = query_builder.limit_to_last(5).constraints[0]

    assert isinstance(first, Limit)
    assert (first.count, first.from_start) == (10, True)
    assert (last.count, last.from_start) == (5, False)


@pytest.mark.parametrize(
    "method, kind",
    [
        ("start_at", CursorKind.START_AT),
        ("start_after", CursorKind.START_AFTER),
        ("end_at", CursorKind.END_AT),
        ("end_before", CursorKind.END_BEFORE),
    ],
)
def test_cursor_methods(query_builder, method, kind):
    result = getattr(query_builder, method)("Alice", 30)
    constraint = result.constraints[0]

    assert isinstance(constraint, Cursor)
    assert constraint.kind is kind
    assert constraint.anchor == "Alice"
    assert constraint.extra_values == (30,)


# -----------------------------------------------------------------------------
# Immutability
# -----------------------------------------------------------------------------
@pytest.mark.parametrize(
    "method, args",
    [
        ("where", ("age", "<", 3)),
        ("order_by", ("age",)),
        ("limit", (1,)),
        ("limit_to_last", (1,)),
        ("start_at", (1,)),
        ("start_after", (1,)),
        ("end_at", (1,)),
        ("end_before", (1,)),
    ],
)
def test_chain_methods_return_new_builder(query_builder, method, args):
    base = query_builder.where("name", "==", "Alice")
    before = base.constraints

    result = getattr(base, method)(*args)

    assert result is not base
    assert base.constraints == before
    assert len(base.constraints) == 1
    assert len(result.constraints) == 2


def test_branches_do_not_share_constraints(query_builder):
    base = query_builder.where("active", "==", True)
    by_name = base.order_by("name")
    by_age = base.order_by("age")

    assert [c.field_path for c in by_name.constraints] == ["active", "name"]
    assert [c.field_path for c in by_age.constraints] == ["active", "age"]


def test_subclass_survives_chaining(collection_ref):
    class UsersQuery(QueryBuilder):
        def where_name(self, name):
            return self.where("name", "==", name)

    result = UsersQuery(collection_ref).where_name("Alice").limit(1)

    assert isinstance(result, UsersQuery)
    assert len(result.constraints) == 2


# -----------------------------------------------------------------------------
# Compilation
# -----------------------------------------------------------------------------
def test_native_filter_uses_field_filter(query_builder):
    native = query_builder.where("age", ">=", 18).native_constraints()[0]

    assert native.method == "where"
    field_filter = native.kwargs["filter"]
    assert isinstance(field_filter, FieldFilter)
    assert field_filter.field_path == "age"
    assert field_filter.op_string == ">="
    assert field_filter.value == 18


def test_native_order_by_and_limits(query_builder):
    natives = (
        query_builder.order_by("age", OrderByDirection.DESCENDING)
        .limit(3)
        .limit_to_last(2)
        .native_constraints()
    )

    assert natives[0].method == "order_by"
    assert natives[0].args == ("age",)
    assert natives[0].kwargs == {"direction": "DESCENDING"}
    assert (natives[1].method, natives[1].args) == ("limit", (3,))
    assert (natives[2].method, natives[2].args) == ("limit_to_last", (2,))


def test_native_cursor_with_field_values(query_builder):
    native = query_builder.start_after("Alice", 30).native_constraints()[0]
    assert native.method == "start_after"
    assert native.args == (["Alice", 30],)


def test_native_cursor_with_snapshot(query_builder):
    snapshot = MagicMock(spec=DocumentSnapshot)
    native = query_builder.end_before(snapshot).native_constraints()[0]
    assert native.method == "end_before"
    assert native.args[0] is snapshot


def test_native_constraint_without_kwargs_applies_positional_args():
    query = MagicMock()
    first = NativeConstraint("limit", (3,))
    second = NativeConstraint("limit_to_last", (2,))

    assert first.kwargs is None and second.kwargs is None
    assert first.apply(query) is query.limit.return_value
    query.limit.assert_called_once_with(3)


def test_native_kwargs_are_not_shared_between_constraints(query_builder):
    first, second = (
        query_builder.order_by("age").order_by("name", OrderByDirection.DESCENDING).native_constraints()
    )

    assert first.kwargs is not second.kwargs
    assert first.kwargs == {"direction": "ASCENDING"}
    assert second.kwargs == {"direction": "DESCENDING"}


def test_build_query_without_constraints_returns_collection(query_builder, collection_ref):
    assert query_builder.build_query() is collection_ref


def test_build_query_preserves_order(chained_ref):
    query = (
        QueryBuilder(chained_ref)
        .where("age", ">=", 18)
        .order_by("age")
        .start_after(21)
        .limit(5)
        .build_query()
    )

    assert query is chained_ref
    assert [name for name, _, _ in chained_ref.method_calls] == [
        "where",
        "order_by",
        "start_after",
        "limit",
    ]
    chained_ref.order_by.assert_called_once_with("age", direction="ASCENDING")
    chained_ref.start_after.assert_called_once_with([21])
    chained_ref.limit.assert_called_once_with(5)


def test_conflicting_constraints_are_not_validated_locally(query_builder):
    builder = query_builder.limit(1).limit(2).limit_to_last(3)
    assert [n.method for n in builder.native_constraints()] == ["limit", "limit", "limit_to_last"]


def test_unknown_constraint_fails_fast(query_builder):
    builder = query_builder._add_constraint(object())

    with pytest.raises(UnsupportedConstraintError):
        builder.native_constraints()
    with pytest.raises(ConfigurationError):
        builder.build_query()


# -----------------------------------------------------------------------------
# Execution
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_fetch_snapshot_returns_raw_result(collection_ref):
    docs = [make_doc({"name": "Alice"})]
    query_mock = MagicMock()
    query_mock.get = AsyncMock(return_value=docs)
    collection_ref.limit.return_value = query_mock

    snapshot = await QueryBuilder(collection_ref).limit(10).fetch_snapshot()

    collection_ref.limit.assert_called_once_with(10)
    query_mock.get.assert_awaited_once()
    assert snapshot is docs


@pytest.mark.asyncio
async def test_fetch_all_projects_data(collection_ref):
    query_mock = MagicMock()
    query_mock.get = AsyncMock(
        return_value=[make_doc({"name": "Alice"}), make_doc({"name": "Bob"})]
    )
    collection_ref.where.return_value = query_mock

    results = await QueryBuilder(collection_ref).where("age", ">", 20).fetch_all()

    assert results == [{"name": "Alice"}, {"name": "Bob"}]


@pytest.mark.asyncio
async def test_fetch_all_empty(collection_ref):
    collection_ref.get = AsyncMock(return_value=[])
    assert await QueryBuilder(collection_ref).fetch_all() == []


@pytest.mark.asyncio
async def test_every_fetch_recompiles(collection_ref):
    query_mock = MagicMock()
    query_mock.get = AsyncMock(return_value=[])
    collection_ref.limit.return_value = query_mock
    builder = QueryBuilder(collection_ref).limit(2)

    await builder.fetch_all()
    await builder.fetch_all()

    assert collection_ref.limit.call_count == 2
    assert query_mock.get.await_count == 2


@pytest.mark.asyncio
async def test_store_errors_propagate(collection_ref):
    query_mock = MagicMock()
    query_mock.get = AsyncMock(side_effect=FailedPrecondition("index required"))
    collection_ref.order_by.return_value = query_mock

    with pytest.raises(FailedPrecondition):
        await QueryBuilder(collection_ref).order_by("age").fetch_all()


@pytest.mark.asyncio
async def test_fetch_one(collection_ref):
    query_mock = MagicMock()
    query_mock.get = AsyncMock(return_value=[make_doc({"name": "Alice"})])
    collection_ref.limit.return_value = query_mock

    result = await QueryBuilder(collection_ref).fetch_one()

    collection_ref.limit.assert_called_once_with(1)
    assert result == {"name": "Alice"}


@pytest.mark.asyncio
async def test_fetch_one_no_match(collection_ref):
    query_mock = MagicMock()
    query_mock.get = AsyncMock(return_value=[])
    collection_ref.limit.return_value = query_mock

    assert await QueryBuilder(collection_ref).fetch_one() is None


@pytest.mark.asyncio
async def test_stream_yields_data(collection_ref):
    query_mock = MagicMock()
    query_mock.stream = lambda: mock_stream([make_doc({"n": 1}), make_doc({"n": 2})])
    collection_ref.order_by.return_value = query_mock

    results = [item async for item in QueryBuilder(collection_ref).order_by("n").stream()]

    assert results == [{"n": 1}, {"n": 2}]


@pytest.mark.asyncio
async def test_count_uses_aggregation(collection_ref):
    count_result = MagicMock()
    count_result.value = 5
    query_mock = MagicMock()
    query_mock.count.return_value.get = AsyncMock(return_value=[[count_result]])
    collection_ref.where.return_value = query_mock

    total = await QueryBuilder(collection_ref).where("age", ">", 1).count()

    assert total == 5


@pytest.mark.asyncio
async def test_count_fallback(collection_ref):
    query_mock = MagicMock()
    query_mock.count = MagicMock(side_effect=AttributeError("No .count() method"))
    query_mock.select.return_value.get = AsyncMock(return_value=[MagicMock(), MagicMock()])
    collection_ref.where.return_value = query_mock

    total = await QueryBuilder(collection_ref).where("name", "==", "Alice").count()

    query_mock.select.assert_called_once_with([])
    assert total == 2
