import copy
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from google.cloud.firestore_v1 import transforms

from .exceptions import ConfigurationError
from .firestore_client import FirestoreDB
from .pydantic_compat import BaseModel, model_dump_compat
from .query_builder import QueryBuilder
from .schema import CollectionSchema
from .update_builder import UpdateBuilder

# Accepted write payloads: plain mappings or pydantic models
DocumentData = Union[Mapping[str, Any], BaseModel]

logger = logging.getLogger(__name__)


def _is_resolver_subclass(candidate: Any, declared: Any) -> bool:
    return isinstance(candidate, type) and isinstance(declared, type) and issubclass(candidate, declared)


class CollectionResolver:
    """
    Entry point for one Firestore collection, root-level or nested.

    Wraps the collection reference, fills in the schema's default values on
    full writes and hands out query/update builders.  Subclass it to give a
    collection typed helpers; subclasses are what schemas name as
    ``resolver_factory`` for their sub-collections.
    """

    def __init__(
        self,
        store: FirestoreDB,
        collection_id: str,
        schema: Optional[CollectionSchema] = None,
        parent_ref=None,
    ):
        self.store = store
        self.collection_id = collection_id
        self.schema = schema
        self.parent_ref = parent_ref
        self.ref = store.collection(collection_id, parent_ref=parent_ref)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.collection_id!r}, parent={getattr(self.parent_ref, 'path', None)!r})"

    # --------------------------------------------------------------------------
    # References and builders (no I/O)
    # --------------------------------------------------------------------------
    def doc(self, doc_id: str):
        """Document reference for ``doc_id`` inside this collection."""
        return self.ref.document(doc_id)

    def query(self) -> QueryBuilder:
        return QueryBuilder(self.ref)

    def update(self, doc_id: str) -> UpdateBuilder:
        return UpdateBuilder(self.doc(doc_id))

    # --------------------------------------------------------------------------
    # Write preparation
    # --------------------------------------------------------------------------
    def _server_timestamp_value(self):
        return transforms.SERVER_TIMESTAMP

    @staticmethod
    def _to_document_data(data: DocumentData) -> Dict[str, Any]:
        if isinstance(data, BaseModel):
            return model_dump_compat(data, by_alias=True, exclude_unset=True)
        return dict(data)

    def apply_defaults(self, data: DocumentData) -> Dict[str, Any]:
        """
        Return a copy of ``data`` with every schema default whose field is
        missing filled in.  Fields already present, even with ``None``, are
        left alone, so applying this twice changes nothing.
        """
        data_with_defaults = self._to_document_data(data)
        if self.schema is None:
            return data_with_defaults

        for field_name, field_schema in self.schema.fields.items():
            if not field_schema.has_default or field_name in data_with_defaults:
                continue
            if field_schema.is_server_timestamp:
                data_with_defaults[field_name] = self._server_timestamp_value()
            else:
                data_with_defaults[field_name] = copy.deepcopy(field_schema.default)
        return data_with_defaults

    # --------------------------------------------------------------------------
    # Document operations
    # --------------------------------------------------------------------------
    async def add(self, data: DocumentData):
        """Create a document with a generated ID and return its reference."""
        data_to_write = self.apply_defaults(data)
        _, doc_ref = await self.ref.add(data_to_write)
        logger.debug(f"Add: {self.collection_id} - id={doc_ref.id}")
        return doc_ref

    async def set(
        self,
        doc_id: str,
        data: DocumentData,
        merge: Union[bool, List[str]] = False,
        merge_fields: Optional[List[str]] = None,
    ) -> None:
        """
        Write a document.

        A full write (the default) overwrites the document and gets schema
        defaults for every omitted field.  A merge write (``merge=True``, a
        non-empty field list as ``merge``, or ``merge_fields=[...]``) only touches the
        given fields and never gets defaults: a default would clobber a
        field the caller did not mean to change.
        """
        doc_ref = self.doc(doc_id)
        is_merge = bool(merge) or merge_fields is not None

        if is_merge:
            data_to_write = self._to_document_data(data)
            merge_arg = merge_fields if merge_fields is not None else merge
        else:
            data_to_write = self.apply_defaults(data)
            merge_arg = False

        logger.debug(f"Set: {self.collection_id} - id={doc_id}, merge={is_merge}")
        await doc_ref.set(data_to_write, merge=merge_arg)

    async def delete(self, doc_id: str) -> None:
        """Delete a document; deleting a missing document is not an error."""
        await self.doc(doc_id).delete()

    async def get(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """Data of the document, or ``None`` when it does not exist."""
        doc_snap = await self.doc(doc_id).get()
        if doc_snap.exists:
            return doc_snap.to_dict()
        return None

    async def exists(self, doc_id: str) -> bool:
        doc_snap = await self.doc(doc_id).get()
        return doc_snap.exists

    # --------------------------------------------------------------------------
    # Sub-collections
    # --------------------------------------------------------------------------
    def sub_collection(
        self,
        parent_id: str,
        sub_collection_id: str,
        resolver_factory: Optional[Callable[..., "CollectionResolver"]] = None,
        sub_schema: Optional[CollectionSchema] = None,
    ) -> "CollectionResolver":
        """
        Resolver for ``sub_collection_id`` under document ``parent_id``.

        The factory and schema come from this collection's schema.  Passing
        ``resolver_factory`` asserts which factory the caller expects: it must
        be the declared one or a subclass of the declared resolver class, in
        which case the subclass builds the resolver;
        ``sub_schema`` is only used when the declaration has none.  A new
        resolver is built on every call.
        """
        sub_collection_def = None
        if self.schema is not None:
            sub_collection_def = self.schema.get_sub_collection(sub_collection_id)
        if sub_collection_def is None:
            raise ConfigurationError(
                f"Sub-collection '{sub_collection_id}' not found in schema "
                f"for collection '{self.collection_id}'"
            )

        declared_factory = sub_collection_def.resolver_factory
        if declared_factory is None:
            raise ConfigurationError(
                f"Resolver factory missing for sub-collection '{sub_collection_id}' "
                f"in schema for collection '{self.collection_id}'"
            )
        factory = declared_factory
        if resolver_factory is not None and resolver_factory is not declared_factory:
            if not _is_resolver_subclass(resolver_factory, declared_factory):
                raise ConfigurationError(
                    f"Sub-collection '{sub_collection_id}' of collection '{self.collection_id}' "
                    f"is declared with {getattr(declared_factory, '__name__', declared_factory)}, "
                    f"not {getattr(resolver_factory, '__name__', resolver_factory)}"
                )
            factory = resolver_factory

        parent_doc_ref = self.doc(parent_id)
        return factory(
            self.store,
            sub_collection_id,
            sub_collection_def.sub_schema if sub_collection_def.sub_schema is not None else sub_schema,
            parent_doc_ref,
        )
