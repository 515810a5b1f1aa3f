"""
Static description of a collection: its fields' default values and the
sub-collections that may live under each of its documents.

Schemas are frozen pydantic models so a resolver can hold one without
worrying about it changing under its feet::

    POSTS = CollectionSchema(
        fields={
            "createdAt": FieldSchema(default=DefaultDirective.SERVER_TIMESTAMP),
            "likes": FieldSchema(default=0),
            "title": FieldSchema(),
        },
    )
    USERS = CollectionSchema(
        fields={"createdAt": {"default": "serverTimestamp"}},
        sub_collections={
            "posts": SubCollectionSchema(resolver_factory=PostsCollection, sub_schema=POSTS),
        },
    )
"""
from typing import Any, Callable, Dict, Optional

from .enums import DefaultDirective
from .pydantic_compat import Field, FrozenModel, get_fields_set, rebuild_model


class FieldSchema(FrozenModel):
    """
    One declared field.

    A default directive exists only when ``default`` is passed explicitly,
    so ``FieldSchema(default=None)`` injects ``None`` while ``FieldSchema()``
    injects nothing.
    """

    default: Any = None

    @property
    def has_default(self) -> bool:
        return "default" in get_fields_set(self)

    @property
    def is_server_timestamp(self) -> bool:
        return (
            self.has_default
            and isinstance(self.default, str)
            and self.default == DefaultDirective.SERVER_TIMESTAMP.value
        )


class SubCollectionSchema(FrozenModel):
    """
    A sub-collection declared on a parent collection.

    ``resolver_factory`` is called as
    ``resolver_factory(store, collection_id, schema, parent_ref)``; a
    :class:`~.collection.CollectionResolver` subclass fits that signature.
    """

    resolver_factory: Optional[Callable[..., Any]] = None
    sub_schema: Optional["CollectionSchema"] = None


class CollectionSchema(FrozenModel):
    fields: Dict[str, FieldSchema] = Field(default_factory=dict)
    sub_collections: Dict[str, SubCollectionSchema] = Field(default_factory=dict)

    def get_sub_collection(self, name: str) -> Optional[SubCollectionSchema]:
        return self.sub_collections.get(name)


rebuild_model(SubCollectionSchema)
rebuild_model(CollectionSchema)

__all__ = ["FieldSchema", "SubCollectionSchema", "CollectionSchema"]
