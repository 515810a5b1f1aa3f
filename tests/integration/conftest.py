"""
Fixtures for emulator-backed integration tests.

The tests in this package only run when ``FIRESTORE_EMULATOR_HOST`` points
at a running Firestore emulator, e.g.::

    gcloud emulators firestore start --host-port=localhost:8080
    FIRESTORE_EMULATOR_HOST=localhost:8080 pytest tests/integration
"""

import logging
import os

import pytest
import pytest_asyncio
import httpx

from fireschema_runtime import FirestoreDB

from .schemas import (
    PRODUCTS_SCHEMA,
    USERS_SCHEMA,
    ProductsCollection,
    UsersCollection,
)

logger = logging.getLogger(__name__)

# ── Environment detection ────────────────────────────────────────────────────

EMULATOR_HOST = os.environ.get("FIRESTORE_EMULATOR_HOST", "").strip()
DATABASE = os.environ.get("DATABASE", None) or None
PROJECT_ID = os.environ.get("GOOGLE_CLOUD_PROJECT") or "test-project"

IS_EMULATOR = bool(EMULATOR_HOST)


def pytest_collection_modifyitems(config, items):
    if IS_EMULATOR:
        return
    skip_integration = pytest.mark.skip(reason="FIRESTORE_EMULATOR_HOST is not set")
    for item in items:
        if "integration" in item.nodeid:
            item.add_marker(skip_integration)


# ── Store fixtures ───────────────────────────────────────────────────────────


@pytest.fixture()
def firestore_db():
    """FirestoreDB pointing at the emulator.

    Function-scoped so each test gets a fresh AsyncClient bound to the
    current event loop (avoids 'Event loop is closed' with gRPC).
    """
    return FirestoreDB(
        project_id=PROJECT_ID,
        database=DATABASE,
        emulator_host=EMULATOR_HOST,
    )


@pytest.fixture()
def raw_client(firestore_db):
    """Raw AsyncClient pointing to the same backend as the resolvers."""
    return firestore_db.client


@pytest.fixture()
def users(firestore_db):
    return UsersCollection(firestore_db, "users", USERS_SCHEMA)


@pytest.fixture()
def products(firestore_db):
    return ProductsCollection(firestore_db, "products", PRODUCTS_SCHEMA)


# ── Per-test cleanup ─────────────────────────────────────────────────────────


@pytest_asyncio.fixture(autouse=True)
async def clean_firestore():
    """Wipe all emulator data BEFORE and AFTER each test."""
    await _perform_cleanup()

    yield  # ← test runs here

    await _perform_cleanup()


async def _perform_cleanup():
    db_name = DATABASE or "(default)"
    url = (
        f"http://{EMULATOR_HOST}/emulator/v1/projects/"
        f"{PROJECT_ID}/databases/{db_name}/documents"
    )
    async with httpx.AsyncClient() as client:
        response = await client.delete(url)
        logger.debug(f"Emulator cleanup: {response.status_code}")
