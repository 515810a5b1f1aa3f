from functools import wraps
import asyncio
import logging

from pydantic import BaseModel

from fireschema_runtime import (
    CollectionResolver,
    CollectionSchema,
    DefaultDirective,
    FieldSchema,
    FirestoreDB,
    OrderByDirection,
    QueryField,
    SubCollectionSchema,
)

logging.basicConfig(level=logging.DEBUG)


def async_decorator(f):
    """Decorator to allow calling an async function like a sync function"""
    @wraps(f)
    def wrapper(*args, **kwargs):
        ret = asyncio.run(f(*args, **kwargs))

        return ret
    return wrapper


# 1. Resolvers and schemas
class PostsCollection(CollectionResolver):
    def published(self):
        return self.query().where("published", "==", True)


class UsersCollection(CollectionResolver):
    def posts(self, user_id: str) -> PostsCollection:
        return self.sub_collection(user_id, "posts", PostsCollection)


POSTS_SCHEMA = CollectionSchema(
    fields={
        "createdAt": FieldSchema(default=DefaultDirective.SERVER_TIMESTAMP),
        "published": FieldSchema(default=False),
    },
)

USERS_SCHEMA = CollectionSchema(
    fields={
        "createdAt": FieldSchema(default=DefaultDirective.SERVER_TIMESTAMP),
        "visits": FieldSchema(default=0),
    },
    sub_collections={
        "posts": SubCollectionSchema(resolver_factory=PostsCollection, sub_schema=POSTS_SCHEMA),
    },
)


class NewUser(BaseModel):
    name: str
    email: str


@async_decorator
async def main():
    # 2. Store handle (GOOGLE_CLOUD_PROJECT / DATABASE / FIRESTORE_EMULATOR_HOST)
    db = FirestoreDB.from_env()
    users = UsersCollection(db, "users", USERS_SCHEMA)

    # 3. Writes: defaults for createdAt/visits are filled in
    alice_ref = await users.add(NewUser(name="Alice", email="alice@example.com"))
    await users.set("bob", {"name": "Bob", "email": "bob@example.com"})
    await users.set("bob", {"email": "bob@new.example.com"}, merge=True)

    # 4. Update builder
    await users.update(alice_ref.id).increment("visits", 1).set_server_timestamp("lastSeen").commit()

    # 5. Query builder
    name = QueryField("name")
    base = users.query().where(name.in_(["Alice", "Bob"]))
    for user in await base.order_by("name", OrderByDirection.ASCENDING).fetch_all():
        print(user)
    print("Users named Alice or Bob:", await base.count())

    # 6. Sub-collections
    posts = users.posts(alice_ref.id)
    await posts.add({"title": "Hello"})
    await posts.set("draft", {"title": "Soon"})
    async for post in posts.query().order_by("title").stream():
        print(post)
    print("Published:", await posts.published().fetch_all())


main()
