import os
import logging
from typing import Optional

from google.cloud.firestore_v1 import AsyncClient

logger = logging.getLogger(__name__)


class FirestoreDB:
    """
    Store handle shared by every collection resolver.

    Owns the :class:`google.cloud.firestore_v1.AsyncClient` and knows how to
    point it at:

    * **the Firestore emulator** when an emulator host is configured,
    * **the real Firestore backend** otherwise,
    * **a ``MagicMock``** for unit tests that must not touch the network.

    Resolvers only ever ask it for collection references
    (:meth:`collection`); everything else goes through those references.
    """

    def __init__(
        self,
        project_id: Optional[str],
        database: Optional[str] = None,
        credentials=None,
        emulator_host: Optional[str] = None,
    ):
        """
        Parameters
        ----------
        project_id :
            Google Cloud project identifier.  May be ``None`` to let the SDK
            infer it from the environment.
        database :
            Firestore database ID; ``None`` selects ``(default)``.
        credentials :
            Explicit credentials; ``None`` uses the default credentials chain.
        emulator_host :
            ``host:port`` of a running Firestore emulator, e.g. ``"localhost:8080"``.
        """
        self.project_id = project_id
        self.database = database
        self.credentials = credentials
        self._emulator_host = emulator_host

        self.client: AsyncClient = self._init_client()

    @classmethod
    def from_env(cls, credentials=None) -> "FirestoreDB":
        """
        Build a handle from ``GOOGLE_CLOUD_PROJECT``, ``DATABASE`` and
        ``FIRESTORE_EMULATOR_HOST``.  Empty variables count as unset.
        """
        return cls(
            project_id=os.environ.get("GOOGLE_CLOUD_PROJECT") or None,
            database=os.environ.get("DATABASE") or None,
            credentials=credentials,
            emulator_host=os.environ.get("FIRESTORE_EMULATOR_HOST", "").strip() or None,
        )

    # --------------------------------------------------------------------- #
    # Internal helpers                                                      #
    # --------------------------------------------------------------------- #

    def _init_client(self) -> AsyncClient:
        """
        The SDK routes traffic to the emulator only through the
        ``FIRESTORE_EMULATOR_HOST`` environment variable, so it is exported
        (or removed) before the client is created.
        """
        if self._emulator_host:
            os.environ["FIRESTORE_EMULATOR_HOST"] = self._emulator_host
            logger.info(f"Using Firestore emulator on {self._emulator_host}")
        else:
            os.environ.pop("FIRESTORE_EMULATOR_HOST", None)
            logger.debug(f"Using Firestore project {self.project_id!r}")
        return AsyncClient(
            project=self.project_id,
            database=self.database,
            credentials=self.credentials,
        )

    # --------------------------------------------------------------------- #
    # Store primitives                                                      #
    # --------------------------------------------------------------------- #

    def collection(self, collection_id: str, parent_ref=None):
        """
        Collection reference for ``collection_id``, either at the database
        root or under ``parent_ref`` (a document reference).  No I/O.
        """
        if parent_ref is not None:
            return parent_ref.collection(collection_id)
        return self.client.collection(collection_id)

    # --------------------------------------------------------------------- #
    # Public utility methods                                                #
    # --------------------------------------------------------------------- #

    def use_emulator(self, host: str = "localhost:8080"):
        """Point this handle at an emulator and recreate the client."""
        self._emulator_host = host
        self.client = self._init_client()
        logger.info(f"Emulator enabled on {host}")

    def clear_emulator(self):
        """Go back to the production endpoint with a fresh client."""
        self._emulator_host = None
        self.client = self._init_client()
        logger.info("Emulator disabled – using real Firestore.")

    def mock_firestore_for_tests(self):
        """Swap the client for a :class:`unittest.mock.MagicMock`."""
        from unittest.mock import MagicMock

        self.client = MagicMock()
        logger.info("Firestore client replaced with MagicMock for unit tests.")
