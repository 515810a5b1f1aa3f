# fireschema_runtime/__init__.py
from .collection import CollectionResolver
from .constraints import Constraint, Cursor, Filter, Limit, OrderBy
from .enums import CursorKind, DefaultDirective, FirestoreOperators, OrderByDirection
from .exceptions import (
    ConfigurationError,
    UnsupportedConstraintError,
    UnsupportedOperationError,
)
from .fields import QueryField
from .firestore_client import FirestoreDB
from .operations import (
    ArrayRemove,
    ArrayUnion,
    DeleteField,
    Increment,
    LiteralValue,
    Operation,
    ServerTimestamp,
)
from .query_builder import NativeConstraint, QueryBuilder
from .schema import CollectionSchema, FieldSchema, SubCollectionSchema
from .update_builder import UpdateBuilder

__all__ = [
    "CollectionResolver",
    "QueryBuilder",
    "UpdateBuilder",
    "NativeConstraint",
    "FirestoreDB",
    "QueryField",
    "CollectionSchema",
    "FieldSchema",
    "SubCollectionSchema",
    "Constraint",
    "Filter",
    "OrderBy",
    "Limit",
    "Cursor",
    "Operation",
    "LiteralValue",
    "Increment",
    "ArrayUnion",
    "ArrayRemove",
    "DeleteField",
    "ServerTimestamp",
    "CursorKind",
    "DefaultDirective",
    "FirestoreOperators",
    "OrderByDirection",
    "ConfigurationError",
    "UnsupportedConstraintError",
    "UnsupportedOperationError",
]
